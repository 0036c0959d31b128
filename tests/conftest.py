"""Shared fixtures: fake fetcher, fake timer, row factory, in-memory store."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent.resolve()
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from data.fetch import Failure, FetchRequest, MarketRow, Success
from data.view_state import MemoryStorage, ViewStateStore


# ═══════════════════════════════════════════════════════════════════
# Fakes
# ═══════════════════════════════════════════════════════════════════

class FakeFetcher:
    """
    Fetcher whose results are released by the test.
    Each fetch() parks on a future keyed by the request epoch, so tests choose
    the order in which responses "arrive".
    """

    def __init__(self):
        self.requests: list[FetchRequest] = []
        self._pending: dict[int, asyncio.Future] = {}

    async def fetch(self, request: FetchRequest):
        future = asyncio.get_running_loop().create_future()
        self.requests.append(request)
        self._pending[request.epoch] = future
        return await future

    def succeed(self, epoch: int, rows) -> None:
        self._pending.pop(epoch).set_result(Success(epoch=epoch, rows=tuple(rows)))

    def fail(self, epoch: int, reason: str = "HTTP 500") -> None:
        self._pending.pop(epoch).set_result(Failure(epoch=epoch, reason=reason))

    @property
    def pending_epochs(self) -> list[int]:
        return sorted(self._pending)


class FakeTimer:
    """Records start/reset/cancel calls; fire() runs the callback on demand."""

    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.starts = 0
        self.resets = 0
        self.cancels = 0
        self.active = False

    def start(self):
        self.starts += 1
        self.active = True

    def reset(self):
        self.resets += 1
        self.active = True

    def cancel(self):
        self.cancels += 1
        self.active = False

    def fire(self):
        self.callback()


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ═══════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════

@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def timers():
    """Timer factory for TableController; created timers are in `timers.created`."""
    created = []

    def factory(interval, callback):
        timer = FakeTimer(interval, callback)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return ViewStateStore(storage)


@pytest.fixture
def make_row():
    """Factory for MarketRow with sensible defaults."""

    def _make(coin_id: str, **overrides) -> MarketRow:
        values = {
            "id": coin_id,
            "symbol": coin_id[:3],
            "name": coin_id.title(),
            "image": f"https://assets.example/{coin_id}.png",
            "current_price": 100.0,
            "market_cap": 1_000_000.0,
            "market_cap_rank": 1,
            "total_volume": 50_000.0,
            "circulating_supply": 10_000.0,
            "price_change_percentage_24h": 1.5,
        }
        values.update(overrides)
        return MarketRow(**values)

    return _make


@pytest.fixture
def ten_rows(make_row):
    """Ten rows in market-cap-descending order, as the API returns them."""
    return [
        make_row(f"coin{i}", market_cap=float(10_000_000 - i * 100_000), market_cap_rank=i + 1,
                 current_price=float(10 + (i * 7) % 10))
        for i in range(10)
    ]
