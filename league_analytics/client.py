import asyncio
import logging
from typing import List, Dict, Any

import httpx
from pydantic import ValidationError

from .config import API_URL, HTTP_TIMEOUT_SECONDS, MAX_CONCURRENT_REQUESTS, TOTAL_SEASON_WEEKS, DEFAULT_PLAYOFF_WEEK_START
from .errors import SeasonFetchError
from .models.sleeper import (
    League,
    Roster,
    LeagueUser,
    Matchup,
    Transaction,
    Draft,
    Pick,
    DraftBundle,
    BracketMatch,
    TradedPick,
    Player,
    SeasonBundle,
)

logger = logging.getLogger(__name__)


class SleeperClient:
    """
    Thin wrapper over the Sleeper REST API.

    Every request goes through one shared semaphore, and a single failed request
    fails the whole season fetch.
    """

    def __init__(self, http: httpx.AsyncClient, base_url: str = API_URL, max_concurrency: int = MAX_CONCURRENT_REQUESTS):
        self.http = http
        self.base_url = base_url
        self.semaphore = asyncio.Semaphore(max_concurrency)

    async def get(self, path: str) -> Any:
        async with self.semaphore:
            response = await self.http.get(f"{self.base_url}{path}")
            response.raise_for_status()
            return response.json()

    async def get_league(self, league_id: str) -> League:
        data = await self.get(f"/league/{league_id}")
        # Unknown or deleted leagues come back as a 200 with a null body
        if data is None:
            raise SeasonFetchError(league_id, f"League {league_id} not found")
        return League(**data)

    async def get_league_rosters(self, league_id: str) -> List[Roster]:
        return [Roster(**r) for r in await self.get(f"/league/{league_id}/rosters") or []]

    async def get_league_users(self, league_id: str) -> List[LeagueUser]:
        return [LeagueUser(**u) for u in await self.get(f"/league/{league_id}/users") or []]

    async def get_league_matchups(self, league_id: str, week: int) -> List[Matchup]:
        return [Matchup(**m) for m in await self.get(f"/league/{league_id}/matchups/{week}") or []]

    async def get_league_transactions(self, league_id: str, week: int) -> List[Transaction]:
        return [Transaction(**tx) for tx in await self.get(f"/league/{league_id}/transactions/{week}") or []]

    async def get_league_drafts(self, league_id: str) -> List[Draft]:
        return [Draft(**d) for d in await self.get(f"/league/{league_id}/drafts") or []]

    async def get_draft_picks(self, draft_id: str) -> List[Pick]:
        return [Pick(**p) for p in await self.get(f"/draft/{draft_id}/picks") or [] if p.get("player_id")]

    async def get_winners_bracket(self, league_id: str) -> List[BracketMatch]:
        return [BracketMatch(**m) for m in await self.get(f"/league/{league_id}/winners_bracket") or []]

    async def get_traded_picks(self, league_id: str) -> List[TradedPick]:
        return [TradedPick(**p) for p in await self.get(f"/league/{league_id}/traded_picks") or []]

    async def get_all_players(self) -> Dict[str, Player]:
        data = await self.get("/players/nfl") or {}
        return {pid: Player(**{**info, "player_id": pid}) for pid, info in data.items()}

    async def _get_draft_bundle(self, draft: Draft) -> DraftBundle:
        return DraftBundle(draft=draft, picks=await self.get_draft_picks(draft.draft_id))

    async def _fetch_season(self, league_id: str) -> SeasonBundle:
        league = await self.get_league(league_id)
        playoff_week_start = league.settings.get("playoff_week_start") or DEFAULT_PLAYOFF_WEEK_START
        regular_weeks = max(0, int(playoff_week_start) - 1)

        rosters, users, drafts, bracket, traded_picks, weekly_matchups, weekly_transactions = await asyncio.gather(
            self.get_league_rosters(league_id),
            self.get_league_users(league_id),
            self.get_league_drafts(league_id),
            self.get_winners_bracket(league_id),
            self.get_traded_picks(league_id),
            asyncio.gather(*[self.get_league_matchups(league_id, w) for w in range(1, regular_weeks + 1)]),
            asyncio.gather(*[self.get_league_transactions(league_id, w) for w in range(1, TOTAL_SEASON_WEEKS + 1)]),
        )
        draft_bundles = await asyncio.gather(*[self._get_draft_bundle(d) for d in drafts])

        return SeasonBundle(
            league=league,
            rosters=rosters,
            users=users,
            weekly_matchups=list(weekly_matchups),
            weekly_transactions=list(weekly_transactions),
            drafts=list(draft_bundles),
            winners_bracket=bracket,
            traded_picks=traded_picks,
        )

    async def fetch_season(self, league_id: str) -> SeasonBundle:
        """Fetch one season in full, or raise SeasonFetchError."""
        logger.info("Fetching season data for league %s", league_id)
        try:
            return await self._fetch_season(league_id)
        except (httpx.HTTPError, TypeError, ValidationError) as e:
            raise SeasonFetchError(league_id, f"Failed to fetch season data for league {league_id}: {e!r}") from e

    async def fetch_players(self) -> Dict[str, Player]:
        try:
            return await self.get_all_players()
        except (httpx.HTTPError, TypeError, ValidationError) as e:
            raise SeasonFetchError("players", f"Failed to fetch player directory: {e!r}") from e


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)
