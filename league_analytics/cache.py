from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

from .config import ANALYSIS_CACHE_TTL_SECONDS, CACHE_FORMAT_VERSIONS


def cache_key(domain: str, league_id: str, manager_id: Optional[str] = None) -> str:
    """`{domain}-{format_version}-{league_id}[-{manager_id}]`"""
    key = f"{domain}-{CACHE_FORMAT_VERSIONS[domain]}-{league_id}"
    if manager_id:
        key = f"{key}-{manager_id}"
    return key


def is_fresh(cached_at: datetime, ttl_seconds: int = ANALYSIS_CACHE_TTL_SECONDS) -> bool:
    return datetime.now(timezone.utc) - cached_at < timedelta(seconds=ttl_seconds)


class AnalysisCache:
    """Key -> JSON snapshot store. Entries older than the TTL read back as missing."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryAnalysisCache(AnalysisCache):
    def __init__(self, ttl_seconds: int = ANALYSIS_CACHE_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self.entries: Dict[str, Tuple[Dict[str, Any], datetime]] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self.entries.get(key)
        if entry is None:
            return None
        value, cached_at = entry
        if not is_fresh(cached_at, self.ttl_seconds):
            del self.entries[key]
            return None
        return value

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        self.entries[key] = (value, datetime.now(timezone.utc))
