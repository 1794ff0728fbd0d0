import asyncio
from datetime import datetime, timezone

from league_analytics.cache import InMemoryAnalysisCache, AnalysisCache, cache_key
from league_analytics.database import SqliteAnalysisCache, create_tables
from league_analytics.services import pipeline
from factories import sample_league


class BrokenCache(AnalysisCache):
    async def get(self, key):
        raise RuntimeError("cache offline")

    async def set(self, key, value):
        raise RuntimeError("cache offline")


def test_cache_key_format():
    assert cache_key("trade-analysis", "L1") == "trade-analysis-v11-L1"
    assert cache_key("franchise-outlook", "L1", "u7") == "franchise-outlook-v1-L1-u7"


def test_in_memory_entries_expire():
    cache = InMemoryAnalysisCache(ttl_seconds=0)
    asyncio.run(cache.set("k", {"a": 1}))
    assert asyncio.run(cache.get("k")) is None


def test_sqlite_round_trip(tmp_path):
    db_path = str(tmp_path / "cache.db")
    asyncio.run(create_tables(db_path))
    cache = SqliteAnalysisCache(db_path)

    asyncio.run(cache.set("k", {"a": [1, 2]}))
    asyncio.run(cache.set("k", {"a": [3]}))

    assert asyncio.run(cache.get("k")) == {"a": [3]}
    assert asyncio.run(cache.get("missing")) is None
    assert asyncio.run(SqliteAnalysisCache(db_path, ttl_seconds=0).get("k")) is None


def test_second_request_is_served_from_cache():
    source = sample_league()
    cache = InMemoryAnalysisCache()

    first = asyncio.run(pipeline.analyze_drafts("L2024", source, cache))
    calls = len(source.season_calls)
    second = asyncio.run(pipeline.analyze_drafts("L2024", source, cache))

    assert len(source.season_calls) == calls
    assert second == first
    assert cache_key("draft-analysis", "L2024") in cache.entries


def test_broken_cache_still_returns_result():
    result = asyncio.run(pipeline.analyze_trades("L2024", sample_league(), BrokenCache()))
    assert result.has_data


def test_unreadable_entry_is_recomputed():
    source = sample_league()
    cache = InMemoryAnalysisCache()
    key = cache_key("alltime-war", "L2024")
    cache.entries[key] = ({"manager_data": "not a mapping"}, datetime.now(timezone.utc))

    result = asyncio.run(pipeline.analyze_trajectory("L2024", source, cache))

    assert result.has_data
    assert source.season_calls
    assert cache.entries[key][0]["has_data"] is True


def test_manager_outlook_is_cached_per_manager():
    source = sample_league()
    cache = InMemoryAnalysisCache()

    outlook = asyncio.run(pipeline.analyze_manager_franchise("L2024", "u1", source, cache))

    assert outlook.user_id == "u1"
    assert cache_key("franchise-outlook", "L2024", "u1") in cache.entries
    assert cache_key("franchise-outlook", "L2024") in cache.entries
    assert asyncio.run(pipeline.analyze_manager_franchise("L2024", "nobody", source, cache)) is None
    assert cache_key("franchise-outlook", "L2024", "nobody") not in cache.entries


def test_franchise_uses_only_the_current_season():
    source = sample_league()
    asyncio.run(pipeline.analyze_franchise("L2024", source, InMemoryAnalysisCache()))
    assert source.season_calls == ["L2024"]
