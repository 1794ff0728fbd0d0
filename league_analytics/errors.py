class LeagueAnalyticsError(Exception):
    """Base class for errors raised by the analytics pipeline."""


class SeasonFetchError(LeagueAnalyticsError):
    """A season's upstream data could not be fetched; the whole history is abandoned."""

    def __init__(self, league_id: str, message: str = ""):
        self.league_id = league_id
        super().__init__(message or f"Failed to fetch season data for league {league_id}")
