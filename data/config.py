"""
data/config.py
Runtime configuration read from the environment (.env supported).
Everything here is a plain module constant so other modules can import what they need.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # picks up COINGECKO_API_KEY etc. from a local .env file

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _env_float(name: str, default: float | None, positive: bool = False) -> float | None:
    """Read a float env var, falling back to `default` when unset, malformed or (with `positive`) <= 0."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}, using {default}.")
        return default
    if positive and not value > 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}.")
        return default
    return value


def _env_int(name: str, default: int, positive: bool = False) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}, using {default}.")
        return default
    if positive and value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}.")
        return default
    return value


# ── Upstream API ───────────────────────────────────────────────────────────────
COINGECKO_BASE_URL = os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3").rstrip("/")
COINGECKO_API_KEY  = os.getenv("COINGECKO_API_KEY", "")
COINGECKO_TIMEOUT  = _env_float("COINGECKO_TIMEOUT", None, positive=True)  # None = requests default (no timeout)

# ── Table behaviour ────────────────────────────────────────────────────────────
REFRESH_INTERVAL_SECONDS = _env_float("REFRESH_INTERVAL_SECONDS", 60.0, positive=True)
MARKETS_TOTAL_COUNT      = _env_int("MARKETS_TOTAL_COUNT", 10_000, positive=True)

# ── Persistence ────────────────────────────────────────────────────────────────
CACHE_DIR       = Path(__file__).parent / "cache"
VIEW_STATE_PATH = Path(os.getenv("VIEW_STATE_PATH", "") or CACHE_DIR / "view_state.json")

# ── Dash server ────────────────────────────────────────────────────────────────
DASH_HOST  = os.getenv("DASH_HOST", "127.0.0.1")
DASH_PORT  = _env_int("DASH_PORT", 8050, positive=True)
DASH_DEBUG = os.getenv("DASH_DEBUG", "false").strip().lower() in ("1", "true", "yes")
