import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import database
from .cache import AnalysisCache
from .client import SleeperClient, create_http_client
from .config import LOG_LEVEL
from .errors import SeasonFetchError
from .models.analytics import (
    SeasonSummary,
    PickChain,
    LeagueDraftAnalysis,
    LeagueTradeAnalysis,
    LeagueTrajectoryAnalysis,
    LeagueFranchiseAnalysis,
    FranchiseOutlook,
)
from .services import pipeline

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=LOG_LEVEL)
    await database.create_tables()
    yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Next.js development server
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def get_source():
    async with create_http_client() as http:
        yield SleeperClient(http)


def get_cache() -> AnalysisCache:
    return database.SqliteAnalysisCache()


@app.exception_handler(SeasonFetchError)
async def season_fetch_error_handler(request: Request, exc: SeasonFetchError):
    logger.warning("Upstream fetch failed for %s: %s", exc.league_id, exc)
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "league_id": exc.league_id},
    )


@app.get("/")
def read_root():
    return {"status": "ok"}


@app.get("/league/{league_id}/history", response_model=List[SeasonSummary])
async def get_league_history(league_id: str, source: SleeperClient = Depends(get_source)):
    return await pipeline.summarize_league_history(league_id, source)


@app.get("/analysis/league/{league_id}/drafts", response_model=LeagueDraftAnalysis)
async def get_draft_analysis(
    league_id: str,
    source: SleeperClient = Depends(get_source),
    cache: AnalysisCache = Depends(get_cache),
):
    return await pipeline.analyze_drafts(league_id, source, cache)


@app.get("/analysis/league/{league_id}/trades", response_model=LeagueTradeAnalysis)
async def get_trade_analysis(
    league_id: str,
    source: SleeperClient = Depends(get_source),
    cache: AnalysisCache = Depends(get_cache),
):
    return await pipeline.analyze_trades(league_id, source, cache)


@app.get("/analysis/league/{league_id}/trajectory", response_model=LeagueTrajectoryAnalysis)
async def get_value_trajectory(
    league_id: str,
    source: SleeperClient = Depends(get_source),
    cache: AnalysisCache = Depends(get_cache),
):
    return await pipeline.analyze_trajectory(league_id, source, cache)


@app.get("/analysis/league/{league_id}/franchise", response_model=LeagueFranchiseAnalysis)
async def get_franchise_outlooks(
    league_id: str,
    source: SleeperClient = Depends(get_source),
    cache: AnalysisCache = Depends(get_cache),
):
    return await pipeline.analyze_franchise(league_id, source, cache)


@app.get("/analysis/league/{league_id}/franchise/{manager_id}", response_model=FranchiseOutlook)
async def get_manager_franchise_outlook(
    league_id: str,
    manager_id: str,
    source: SleeperClient = Depends(get_source),
    cache: AnalysisCache = Depends(get_cache),
):
    outlook = await pipeline.analyze_manager_franchise(league_id, manager_id, source, cache)
    if outlook is None:
        raise HTTPException(status_code=404, detail="Manager not found in league")
    return outlook


@app.get("/analysis/league/{league_id}/pick_chain/{season}/{round}/{original_owner}", response_model=PickChain)
async def get_pick_chain(
    league_id: str,
    season: str,
    round: int,
    original_owner: int,
    source: SleeperClient = Depends(get_source),
):
    """Trace a draft pick through every trade that moved it."""
    return await pipeline.analyze_pick_chain(league_id, season, round, original_owner, source)
