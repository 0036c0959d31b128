"""
data/runtime.py
Hosts the TableController on a private asyncio loop in a daemon thread.

Dash serves callbacks from worker threads; they never touch the controller
directly. Every call goes through ControllerRuntime.call(), which runs the
function on the loop thread and hands the result back, so controller state is
only ever mutated from one execution context.

Usage::

    runtime = ControllerRuntime(build_controller)
    runtime.start()                       # spawns the loop thread, mounts the controller
    runtime.call(lambda c: c.set_page(2))
    snap = runtime.snapshot()
    runtime.stop()                        # unmounts, drains in-flight fetches, joins
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from data.controller import TableController, TableSnapshot

logger = logging.getLogger(__name__)

# Upper bound on how long a Dash callback waits for the loop thread
CALL_TIMEOUT = 5.0
STOP_TIMEOUT = 10.0


class ControllerRuntime:
    def __init__(self, controller_factory: Callable[[], TableController]):
        self._factory = controller_factory
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._controller: Optional[TableController] = None
        self._started = threading.Event()
        self._stop_event: Optional[asyncio.Event] = None
        self._start_error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and self._started.is_set()

    # ── Public API ─────────────────────────────────────────

    def start(self) -> None:
        """Start the loop thread and block until the controller is mounted."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run_loop, name="TableController", daemon=True)
        self._thread.start()
        self._started.wait(timeout=CALL_TIMEOUT)
        if self._start_error is not None:
            raise RuntimeError("Controller runtime failed to start") from self._start_error
        logger.info("Controller runtime started.")

    def call(self, fn: Callable[[TableController], Any], timeout: float = CALL_TIMEOUT) -> Any:
        """Run `fn(controller)` on the loop thread and return its result (exceptions propagate)."""
        if not self.running:
            raise RuntimeError("Controller runtime is not running")

        async def _invoke():
            return fn(self._controller)

        future = asyncio.run_coroutine_threadsafe(_invoke(), self._loop)
        return future.result(timeout=timeout)

    def snapshot(self) -> TableSnapshot:
        return self.call(lambda c: c.snapshot())

    def stop(self) -> None:
        """Unmount the controller, let in-flight fetches settle, and join the thread."""
        if self._loop is not None and not self._loop.is_closed() and self._stop_event is not None:
            try:
                self._loop.call_soon_threadsafe(self._stop_event.set)
            except RuntimeError:
                pass  # loop already closed between the check and the call
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=STOP_TIMEOUT)
        self._thread = None
        self._started.clear()
        logger.info("Controller runtime stopped.")

    # ── Loop thread ────────────────────────────────────────

    def _run_loop(self) -> None:
        try:
            self._loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self._loop)
            self._loop.run_until_complete(self._serve())
        except Exception as e:
            logger.exception(f"Controller loop crashed: {e}")
            self._start_error = self._start_error or e
        finally:
            self._started.set()  # never leave start() waiting
            if self._loop is not None and not self._loop.is_closed():
                self._loop.close()

    async def _serve(self) -> None:
        self._stop_event = asyncio.Event()
        try:
            self._controller = self._factory()
            self._controller.mount()
        except Exception as e:
            self._start_error = e
            raise
        self._started.set()

        await self._stop_event.wait()

        self._controller.unmount()
        try:
            # A hung request never resolves on its own (no fetch timeout by default)
            await asyncio.wait_for(self._controller.drain(), timeout=STOP_TIMEOUT / 2)
        except asyncio.TimeoutError:
            logger.warning("Gave up waiting for in-flight fetches during shutdown.")
