"""
data/controller.py
TableController — owns the fetch lifecycle of the markets table.

State machine:

    IDLE ──trigger──▶ LOADING ──Success──▶ DISPLAYING
                         ▲      └─Failure──▶ ERRORED
                         └──── any trigger re-enters LOADING

Triggers are a view-state change (page / rows per page / currency) and the
recurring refresh timer. Each trigger bumps the epoch; a fetch result is applied
only if its epoch is still the current one, so a slow superseded response can
never overwrite rows that belong to newer parameters. Superseded requests are
not aborted, their results are just dropped on arrival.

All methods must run on the controller's event loop (see data/runtime.py for
calling in from other threads).
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from data.config import REFRESH_INTERVAL_SECONDS
from data.fetch import DataFetcher, Failure, FetchOutcome, FetchRequest, MarketRow, Success
from data.process import sort_rows
from data.scheduler import RefreshTimer
from data.selection import ModalController
from data.view_state import ViewState, ViewStateStore

logger = logging.getLogger(__name__)


class LoadState(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    DISPLAYING = "displaying"
    ERRORED = "errored"


@dataclass(frozen=True)
class SortSpec:
    column: str
    descending: bool = False


@dataclass(frozen=True)
class TableSnapshot:
    """Read-only view handed to the presentation layer."""

    rows: tuple[MarketRow, ...]
    view_state: ViewState
    state: LoadState
    epoch: int
    version: int
    sort: SortSpec | None
    selected: MarketRow | None
    rows_view_state: ViewState | None   # parameters the rows were fetched for
    updated_at: datetime | None         # time of the last applied Success
    selected_currency: str | None = None  # currency `selected` was fetched in

    @property
    def is_loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def is_error(self) -> bool:
        return self.state is LoadState.ERRORED


class TableController:
    def __init__(
        self,
        fetcher: DataFetcher,
        store: ViewStateStore,
        *,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        timer_factory: Callable[[float, Callable[[], object]], RefreshTimer] = RefreshTimer,
    ):
        self.fetcher = fetcher
        self.store = store
        self.modal = ModalController()
        self._timer = timer_factory(refresh_interval, self.refresh)

        self._view_state = ViewState()
        self._state = LoadState.IDLE
        self._epoch = 0
        self._version = 0
        self._rows: tuple[MarketRow, ...] = ()      # upstream order
        self._sorted: tuple[MarketRow, ...] = ()    # _rows with the active sort applied
        self._rows_view_state: ViewState | None = None
        self._sort: SortSpec | None = None
        self._updated_at: datetime | None = None
        self._mounted = False
        self._tasks: set[asyncio.Task] = set()

    # ── Lifecycle ──────────────────────────────────────────

    def mount(self) -> None:
        """Restore persisted view state, arm the timer and start the first fetch."""
        if self._mounted:
            return
        self._view_state = self.store.load()
        self._mounted = True
        logger.info(f"Table mounted with {self._view_state}.")
        self._timer.start()
        self._trigger("mount")

    def unmount(self) -> None:
        """Tear down the timer and make every in-flight result stale."""
        if not self._mounted:
            return
        self._mounted = False
        self._timer.cancel()
        self._epoch += 1
        if self._state is LoadState.LOADING:
            self._state = LoadState.IDLE
        self._touch()
        logger.info("Table unmounted.")

    async def drain(self) -> None:
        """Wait for every outstanding fetch task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def __aenter__(self) -> "TableController":
        self.mount()
        return self

    async def __aexit__(self, *exc) -> None:
        self.unmount()
        await self.drain()

    # ── Accessors ──────────────────────────────────────────

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def rows(self) -> tuple[MarketRow, ...]:
        return self._sorted

    @property
    def is_loading(self) -> bool:
        return self._state is LoadState.LOADING

    @property
    def is_error(self) -> bool:
        return self._state is LoadState.ERRORED

    @property
    def mounted(self) -> bool:
        return self._mounted

    def snapshot(self) -> TableSnapshot:
        return TableSnapshot(
            rows=self._sorted,
            view_state=self._view_state,
            state=self._state,
            epoch=self._epoch,
            version=self._version,
            sort=self._sort,
            selected=self.modal.selected,
            selected_currency=self.modal.currency,
            rows_view_state=self._rows_view_state,
            updated_at=self._updated_at,
        )

    # ── View-state changes ─────────────────────────────────

    def set_page(self, page: int) -> bool:
        return self.update(page=page)

    def set_rows_per_page(self, rows_per_page: int) -> bool:
        return self.update(rows_per_page=rows_per_page)

    def set_currency(self, currency: str) -> bool:
        return self.update(currency=currency)

    def update(self, **changes) -> bool:
        """
        Apply one or more view-state changes as a single trigger.

        Persists each changed field, resets the refresh timer and issues exactly
        one fetch. Returns False (and does nothing) when no field actually changed.
        Invalid values raise ValueError before anything is touched.
        """
        new_state = self._view_state.replace(**changes)
        changed = new_state.changed_fields(self._view_state)
        if not changed:
            return False

        self._view_state = new_state
        for field_name in changed:
            self.store.save(field_name, getattr(new_state, field_name))

        if self._mounted:
            self._timer.reset()
            self._trigger(f"changed {', '.join(changed)}")
        else:
            self._touch()
        return True

    def refresh(self) -> None:
        """Timer trigger: refetch the current parameters."""
        if self._mounted:
            self._trigger("timer")

    # ── Client-side sort ───────────────────────────────────

    def sort(self, column: str, descending: bool = False) -> None:
        """Reorder the loaded page only. Never fetches."""
        self._sorted = sort_rows(self._rows, column, descending)
        self._sort = SortSpec(column, descending)
        self._touch()

    def clear_sort(self) -> None:
        self._sort = None
        self._sorted = self._rows
        self._touch()

    # ── Selection ──────────────────────────────────────────

    def select_row(self, row_id: str) -> bool:
        """Open the overlay for the loaded row with id `row_id`."""
        for row in self._rows:
            if row.id == row_id:
                self.modal.select(row, (self._rows_view_state or self._view_state).currency)
                self._touch()
                return True
        return False

    def dismiss(self) -> None:
        self.modal.dismiss()
        self._touch()

    # ── Fetch lifecycle ────────────────────────────────────

    def _trigger(self, reason: str) -> None:
        self._state = LoadState.LOADING
        self._epoch += 1
        request = FetchRequest(view_state=self._view_state, epoch=self._epoch)
        self._touch()
        logger.debug(f"Fetch epoch {request.epoch} ({reason}): {request.view_state}")

        task = asyncio.get_running_loop().create_task(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, request: FetchRequest) -> None:
        try:
            outcome = await self.fetcher.fetch(request)
        except Exception as e:
            logger.exception(f"Fetcher raised for epoch {request.epoch}")
            outcome = Failure(epoch=request.epoch, reason=f"unexpected error: {e}")
        self._apply(request, outcome)

    def _apply(self, request: FetchRequest, outcome: FetchOutcome) -> None:
        if outcome.epoch != self._epoch:
            logger.debug(f"Discarding stale result for epoch {outcome.epoch} (current {self._epoch}).")
            return

        if isinstance(outcome, Success):
            self._rows = outcome.rows
            self._rows_view_state = request.view_state
            self._sorted = self._apply_sort(outcome.rows)
            self._updated_at = datetime.now(timezone.utc)
            self._state = LoadState.DISPLAYING
            logger.info(f"Loaded {len(outcome.rows)} rows for {request.view_state}.")
        else:
            # Keep the last good rows only if they belong to these same parameters
            if self._rows_view_state != request.view_state:
                self._rows = ()
                self._sorted = ()
                self._rows_view_state = None
            self._state = LoadState.ERRORED
            logger.warning(f"Showing error state for {request.view_state}: {outcome.reason}")
        self._touch()

    def _apply_sort(self, rows: tuple[MarketRow, ...]) -> tuple[MarketRow, ...]:
        if self._sort is None:
            return rows
        return sort_rows(rows, self._sort.column, self._sort.descending)

    def _touch(self) -> None:
        self._version += 1
