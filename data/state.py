"""
data/state.py
Module-level shared state — holds the controller runtime so component callbacks
can reach it without creating circular imports back to app.py.
Populated once by app.py at startup.
"""

from __future__ import annotations

from data.runtime import ControllerRuntime

# Set by app.py before the components are imported.
# Components import from here instead of from app.py directly.
runtime: ControllerRuntime | None = None


def get_runtime() -> ControllerRuntime:
    """Return the started runtime; raises if app.py has not set it up yet."""
    if runtime is None:
        raise RuntimeError("data.state.runtime is not initialised — start the app via app.py")
    return runtime
