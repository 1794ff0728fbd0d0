import logging
from typing import List, Dict, Optional, Callable, Awaitable, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..cache import AnalysisCache, cache_key
from ..models.sleeper import SeasonBundle, Player
from ..models.analytics import (
    SeasonRecord,
    SeasonSummary,
    PickChain,
    LeagueDraftAnalysis,
    LeagueTradeAnalysis,
    LeagueTrajectoryAnalysis,
    LeagueFranchiseAnalysis,
    FranchiseOutlook,
)
from .season_assembler import assemble_league_history, build_season_record, merge_manager_identities, summarize_season
from .draft_analysis import compute_league_draft_analysis
from .trade_valuation import compute_league_trade_analysis
from .trajectory import compute_value_trajectory
from .franchise_projection import compute_franchise_outlooks
from .pick_resolver import build_pick_resolution, trace_pick_chain

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LeagueDataSource:
    """What the pipeline needs from upstream. `SleeperClient` is the production implementation."""

    async def fetch_season(self, league_id: str) -> SeasonBundle:
        raise NotImplementedError

    async def fetch_players(self) -> Dict[str, Player]:
        raise NotImplementedError


async def _read_cache(cache: AnalysisCache, key: str, model: Type[T]) -> Optional[T]:
    try:
        cached = await cache.get(key)
    except Exception:
        logger.warning("Analysis cache read failed for %s; recomputing", key, exc_info=True)
        return None
    if cached is None:
        return None
    try:
        result = model.model_validate(cached)
    except ValidationError:
        logger.warning("Discarding unreadable cache entry %s", key, exc_info=True)
        return None
    logger.debug("Analysis cache hit for %s", key)
    return result


async def _write_cache(cache: AnalysisCache, key: str, result: BaseModel) -> None:
    try:
        await cache.set(key, result.model_dump(mode="json"))
    except Exception:
        logger.warning("Analysis cache write failed for %s", key, exc_info=True)
        return
    logger.info("Cached analysis %s", key)


async def _cached(cache: AnalysisCache, key: str, model: Type[T], compute: Callable[[], Awaitable[T]]) -> T:
    # 1. Check cache
    cached = await _read_cache(cache, key, model)
    if cached is not None:
        return cached

    # 2. Compute fresh
    result = await compute()

    # 3. Store in cache
    await _write_cache(cache, key, result)
    return result


async def load_league_history(league_id: str, source: LeagueDataSource) -> List[SeasonRecord]:
    return await assemble_league_history(league_id, source.fetch_season)


async def summarize_league_history(league_id: str, source: LeagueDataSource) -> List[SeasonSummary]:
    seasons = await load_league_history(league_id, source)
    return [summarize_season(season) for season in seasons]


async def analyze_drafts(league_id: str, source: LeagueDataSource, cache: AnalysisCache) -> LeagueDraftAnalysis:
    async def compute() -> LeagueDraftAnalysis:
        seasons = await load_league_history(league_id, source)
        return compute_league_draft_analysis(seasons, merge_manager_identities(seasons))

    return await _cached(cache, cache_key("draft-analysis", league_id), LeagueDraftAnalysis, compute)


async def analyze_trades(league_id: str, source: LeagueDataSource, cache: AnalysisCache) -> LeagueTradeAnalysis:
    async def compute() -> LeagueTradeAnalysis:
        seasons = await load_league_history(league_id, source)
        players = await source.fetch_players()
        return compute_league_trade_analysis(seasons, players, merge_manager_identities(seasons))

    return await _cached(cache, cache_key("trade-analysis", league_id), LeagueTradeAnalysis, compute)


async def analyze_trajectory(league_id: str, source: LeagueDataSource, cache: AnalysisCache) -> LeagueTrajectoryAnalysis:
    async def compute() -> LeagueTrajectoryAnalysis:
        seasons = await load_league_history(league_id, source)
        return compute_value_trajectory(seasons, merge_manager_identities(seasons))

    return await _cached(cache, cache_key("alltime-war", league_id), LeagueTrajectoryAnalysis, compute)


async def analyze_franchise(league_id: str, source: LeagueDataSource, cache: AnalysisCache) -> LeagueFranchiseAnalysis:
    """Outlook for the league's current season only; no predecessor walk."""
    async def compute() -> LeagueFranchiseAnalysis:
        season = build_season_record(await source.fetch_season(league_id))
        players = await source.fetch_players()
        return compute_franchise_outlooks(season, players)

    return await _cached(cache, cache_key("franchise-outlook", league_id), LeagueFranchiseAnalysis, compute)


async def analyze_manager_franchise(
    league_id: str,
    manager_id: str,
    source: LeagueDataSource,
    cache: AnalysisCache,
) -> Optional[FranchiseOutlook]:
    key = cache_key("franchise-outlook", league_id, manager_id)
    cached = await _read_cache(cache, key, FranchiseOutlook)
    if cached is not None:
        return cached

    league = await analyze_franchise(league_id, source, cache)
    outlook = league.outlooks.get(manager_id)
    if outlook is None:
        return None
    await _write_cache(cache, key, outlook)
    return outlook


async def analyze_pick_chain(
    league_id: str,
    season: str,
    round: int,
    original_roster_id: int,
    source: LeagueDataSource,
) -> PickChain:
    seasons = await load_league_history(league_id, source)
    trades = [trade for record in seasons for trade in record.trades]

    # Ownership as of the draft season, else the most recent season
    roster_to_manager: Dict[int, str] = seasons[-1].roster_to_manager if seasons else {}
    for record in seasons:
        if record.season == season:
            roster_to_manager = record.roster_to_manager

    return trace_pick_chain(
        trades,
        season,
        round,
        original_roster_id,
        table=build_pick_resolution(seasons),
        roster_to_manager=roster_to_manager,
    )
