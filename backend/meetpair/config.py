"""
Runtime configuration for the meet pairing service.

Values come from the environment (a local .env file is honoured).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./meetpair.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Days used when converting birthdate gaps to years.
DAYS_PER_YEAR = _env_int("DAYS_PER_YEAR", 365)

DEFAULT_MAX_AGE_GAP_DAYS = DAYS_PER_YEAR
DEFAULT_MAX_WEIGHT_DIFF_PCT = 12.0

# Hard cap on bouts per wrestler, regardless of meet settings.
MAX_MATCHES_PER_WRESTLER = _env_int("MAX_MATCHES_PER_WRESTLER", 5)

MIN_MATS = 1
MAX_MATS = _env_int("MAX_MATS", 6)
DEFAULT_MAT_COUNT = min(4, MAX_MATS)

DEFAULT_REST_GAP = 4

MEET_LOCK_TTL_SECONDS = _env_int("MEET_LOCK_TTL_SECONDS", 120)

REORDER_PASSES = _env_int("REORDER_PASSES", 10)
REORDER_SWAP_ATTEMPTS = _env_int("REORDER_SWAP_ATTEMPTS", 8)

CANDIDATE_LIMIT_DEFAULT = 20
CANDIDATE_LIMIT_MAX = 50

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())
