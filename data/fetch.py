"""
data/fetch.py
Fetches one page of coin market data from the CoinGecko /coins/markets endpoint.
Every call is a fresh round trip — no retries, no caching between calls.
Failures come back as a Failure outcome rather than an exception.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Union

import requests

from data.config import COINGECKO_API_KEY, COINGECKO_BASE_URL, COINGECKO_TIMEOUT
from data.view_state import ViewState

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────────
MARKETS_PATH = "/coins/markets"
SORT_ORDER   = "market_cap_desc"
API_KEY_HEADER = "x-cg-demo-api-key"


class NetworkFailure(Exception):
    """Non-2xx response, transport error, or a payload that is not a list of coins."""


# ── Records ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MarketRow:
    """One priced asset as returned by /coins/markets. Immutable once received."""

    id: str
    symbol: str
    name: str
    image: str | None = None
    current_price: float | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    fully_diluted_valuation: float | None = None
    total_volume: float | None = None
    high_24h: float | None = None
    low_24h: float | None = None
    price_change_24h: float | None = None
    price_change_percentage_24h: float | None = None
    market_cap_change_24h: float | None = None
    market_cap_change_percentage_24h: float | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None
    max_supply: float | None = None
    ath: float | None = None
    ath_change_percentage: float | None = None
    ath_date: str | None = None
    atl: float | None = None
    atl_change_percentage: float | None = None
    atl_date: str | None = None
    last_updated: str | None = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "MarketRow":
        """
        Build a row from one element of the API response.
        Numeric fields that are absent or not numbers become None (never 0).
        Fields the API adds beyond ours are ignored.
        """
        values = {}
        for f in fields(cls):
            raw = item.get(f.name)
            if f.name in _TEXT_FIELDS:
                values[f.name] = _as_text(raw)
            else:
                values[f.name] = _as_number(raw)
        if not values["id"]:
            raise NetworkFailure(f"coin without id: {item!r:.120}")
        values["symbol"] = values["symbol"] or ""
        values["name"] = values["name"] or values["id"]
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_TEXT_FIELDS = {"id", "symbol", "name", "image", "ath_date", "atl_date", "last_updated"}


def _as_number(value: Any) -> float | int | None:
    # bool is an int subclass; a JSON true is not a price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class FetchRequest:
    view_state: ViewState
    epoch: int


@dataclass(frozen=True)
class Success:
    epoch: int
    rows: tuple[MarketRow, ...]
    ok = True


@dataclass(frozen=True)
class Failure:
    epoch: int
    reason: str
    ok = False


FetchOutcome = Union[Success, Failure]


# ── Fetcher ────────────────────────────────────────────────────────────────────

class DataFetcher:
    """
    Thin CoinGecko client. `fetch()` is a coroutine; the blocking HTTP call runs in
    the event loop's default executor so the loop stays free while it is in flight.
    """

    def __init__(
        self,
        base_url: str = COINGECKO_BASE_URL,
        api_key: str = COINGECKO_API_KEY,
        timeout: float | None = COINGECKO_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.url = base_url.rstrip("/") + MARKETS_PATH
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if api_key:
            self._session.headers[API_KEY_HEADER] = api_key

    @staticmethod
    def build_params(view_state: ViewState) -> dict[str, Any]:
        """Map the view state onto /coins/markets query parameters."""
        return {
            "vs_currency": view_state.currency,
            "order":       SORT_ORDER,
            "per_page":    view_state.rows_per_page,
            "page":        view_state.page,
            "sparkline":   "false",
        }

    async def fetch(self, request: FetchRequest) -> FetchOutcome:
        """Run one request and return Success/Failure tagged with the request's epoch."""
        loop = asyncio.get_running_loop()
        try:
            rows = await loop.run_in_executor(None, self._get_rows, request.view_state)
        except NetworkFailure as e:
            logger.warning(f"Market fetch failed (epoch {request.epoch}): {e}")
            return Failure(epoch=request.epoch, reason=str(e))
        logger.debug(f"Fetched {len(rows)} rows for {request.view_state} (epoch {request.epoch}).")
        return Success(epoch=request.epoch, rows=rows)

    def _get_rows(self, view_state: ViewState) -> tuple[MarketRow, ...]:
        """Blocking part of fetch(). Raises NetworkFailure for every failure mode."""
        try:
            resp = self._session.get(self.url, params=self.build_params(view_state), timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise NetworkFailure(f"HTTP {status}") from e
        except requests.JSONDecodeError as e:
            raise NetworkFailure(f"invalid JSON: {e}") from e
        except requests.RequestException as e:
            raise NetworkFailure(f"transport error: {e}") from e
        except ValueError as e:
            raise NetworkFailure(f"invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise NetworkFailure(f"expected a JSON array, got {type(data).__name__}")
        rows = []
        for item in data:
            if not isinstance(item, dict):
                raise NetworkFailure(f"expected coin objects, got {type(item).__name__}")
            rows.append(MarketRow.from_api(item))
        return tuple(rows)

    def close(self) -> None:
        self._session.close()
