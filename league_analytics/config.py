import os

API_URL = os.environ.get("SLEEPER_API_URL", "https://api.sleeper.app/v1")
DATABASE_URL = os.environ.get("LEAGUE_ANALYTICS_DB", "league_analytics_cache.db")

ANALYSIS_CACHE_TTL_SECONDS = int(os.environ.get("ANALYSIS_CACHE_TTL_SECONDS", "86400"))  # 24 hours
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))
MAX_CONCURRENT_REQUESTS = int(os.environ.get("MAX_CONCURRENT_REQUESTS", "8"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Upper bound on predecessor-season hops when walking a league's history
MAX_SEASON_CHAIN = 10
TOTAL_SEASON_WEEKS = 18
DEFAULT_PLAYOFF_WEEK_START = 15
ROLLING_WINDOW = 17

# Bump a domain's version whenever its cached result shape changes
CACHE_FORMAT_VERSIONS = {
    "draft-analysis": "v1",
    "trade-analysis": "v11",
    "alltime-war": "v2",
    "franchise-outlook": "v1",
}
