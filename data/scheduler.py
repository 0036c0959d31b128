"""
data/scheduler.py
Recurring refresh timer for the markets table.

Contract:
    start()   arm the timer; every `interval` seconds the callback runs, then it re-arms
    reset()   drop the pending expiry and re-arm from now
    cancel()  stop for good (idempotent) — the callback will not run afterwards

Must be used from inside a running asyncio loop; the callback runs on that loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class RefreshTimer:
    def __init__(self, interval: float, callback: Callable[[], object]):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.interval = interval
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is None:
            self._arm()

    def reset(self) -> None:
        self._disarm()
        self._arm()

    def cancel(self) -> None:
        self._disarm()

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        # Re-arm first so a slow or failing callback never stops the cadence
        self._arm()
        try:
            self.callback()
        except Exception:
            logger.exception("Refresh timer callback failed")

    def __enter__(self) -> "RefreshTimer":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()
