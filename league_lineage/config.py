import os

# Sleeper API
API_URL = os.getenv("SLEEPER_API_URL", "https://api.sleeper.app/v1")
LEAGUE_ID = os.getenv("LEAGUE_ID", "1191596293294166016")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# Response cache / manual trade ledger
DATABASE_URL = os.getenv("DATABASE_URL", "sleeper_cache.db")
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "604800"))  # 7 days

# Used when the league settings do not say how many rounds the draft has
DEFAULT_DRAFT_ROUNDS = int(os.getenv("DEFAULT_DRAFT_ROUNDS", "4"))

# Trade tree traversal bounds
MIN_SUBGRAPH_DEPTH = 1
MAX_SUBGRAPH_DEPTH = int(os.getenv("MAX_SUBGRAPH_DEPTH", "10"))
DEFAULT_SUBGRAPH_DEPTH = int(os.getenv("DEFAULT_SUBGRAPH_DEPTH", "2"))

# Weeks scanned for transactions
REGULAR_SEASON_WEEKS = 18

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
