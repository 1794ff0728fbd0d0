import logging
from typing import List, Dict, Optional, Callable, Awaitable

from ..config import MAX_SEASON_CHAIN, DEFAULT_PLAYOFF_WEEK_START
from ..models.sleeper import SeasonBundle, BracketMatch, Matchup
from ..models.analytics import SeasonRecord, ManagerIdentity, TaggedTrade, SeasonSummary

logger = logging.getLogger(__name__)

SeasonFetcher = Callable[[str], Awaitable[SeasonBundle]]


def find_champion_roster(bracket: List[BracketMatch]) -> Optional[int]:
    """Winner of the first-place match, or of the first match in the final round."""
    if not bracket:
        return None
    for match in bracket:
        if match.p == 1:
            return match.w
    final_round = max(match.r for match in bracket)
    for match in bracket:
        if match.r == final_round:
            return match.w
    return None


def _regular_season_weeks(bundle: SeasonBundle) -> int:
    playoff_week_start = bundle.league.settings.get("playoff_week_start") or DEFAULT_PLAYOFF_WEEK_START
    return max(0, int(playoff_week_start) - 1)


def _usable_weeks(weekly_matchups: List[List[Matchup]], regular_weeks: int) -> List[List[Matchup]]:
    weeks = [
        [m for m in week if m.players is not None]
        for week in weekly_matchups[:regular_weeks]
    ]
    # Weeks that haven't been played yet come back empty
    while weeks and not weeks[-1]:
        weeks.pop()
    return weeks


def build_season_record(bundle: SeasonBundle) -> SeasonRecord:
    league = bundle.league
    regular_weeks = _regular_season_weeks(bundle)

    roster_to_manager: Dict[int, str] = {
        roster.roster_id: roster.owner_id for roster in bundle.rosters if roster.owner_id
    }

    managers: Dict[str, ManagerIdentity] = {}
    for user in bundle.users:
        display_name = user.display_name or user.user_id
        managers[user.user_id] = ManagerIdentity(
            user_id=user.user_id,
            display_name=user.team_name or display_name,
            team_name=user.team_name or display_name,
            avatar=user.avatar,
        )

    trades: List[TaggedTrade] = []
    for week_index, transactions in enumerate(bundle.weekly_transactions):
        for tx in transactions:
            if tx.type == "trade" and tx.status == "complete":
                trades.append(TaggedTrade(
                    transaction=tx,
                    week=week_index + 1,
                    season=league.season,
                    league_id=league.league_id,
                ))

    champion_roster = find_champion_roster(bundle.winners_bracket)

    return SeasonRecord(
        season=league.season,
        league_id=league.league_id,
        regular_season_weeks=regular_weeks,
        roster_positions=league.roster_positions,
        weeks=_usable_weeks(bundle.weekly_matchups, regular_weeks),
        roster_to_manager=roster_to_manager,
        champion_manager_id=roster_to_manager.get(champion_roster) if champion_roster is not None else None,
        managers=managers,
        rosters=bundle.rosters,
        trades=trades,
        drafts=bundle.drafts,
        traded_picks=bundle.traded_picks,
    )


def has_usable_data(season: SeasonRecord) -> bool:
    return any(season.weeks)


async def assemble_league_history(
    league_id: str,
    fetch_season: SeasonFetcher,
    max_seasons: int = MAX_SEASON_CHAIN,
) -> List[SeasonRecord]:
    """
    Walk a league back through its predecessor seasons and return them oldest first.
    Any fetch failure propagates and abandons the whole history.
    """
    seasons: List[SeasonRecord] = []
    visited = set()
    current_id: Optional[str] = league_id

    while current_id and len(visited) < max_seasons:
        if current_id in visited:
            logger.warning("League chain for %s loops back to %s; stopping walk", league_id, current_id)
            break
        visited.add(current_id)

        bundle = await fetch_season(current_id)
        record = build_season_record(bundle)
        if has_usable_data(record):
            seasons.append(record)
        else:
            logger.warning("Dropping season %s (%s): no regular-season matchups", record.season, current_id)

        current_id = bundle.league.predecessor_id

    seasons.reverse()
    logger.info("Assembled %d season(s) for league %s", len(seasons), league_id)
    return seasons


def merge_manager_identities(seasons: List[SeasonRecord]) -> Dict[str, ManagerIdentity]:
    """Identity per manager across seasons; later seasons overwrite earlier ones."""
    identities: Dict[str, ManagerIdentity] = {}
    for season in seasons:
        identities.update(season.managers)
    return identities


def summarize_season(season: SeasonRecord) -> SeasonSummary:
    return SeasonSummary(
        season=season.season,
        league_id=season.league_id,
        weeks_with_data=len(season.weeks),
        managers=len(set(season.roster_to_manager.values())),
        trades=len(season.trades),
        champion_manager_id=season.champion_manager_id,
    )
