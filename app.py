"""
app.py — Coin Markets Dashboard
Entry point. Starts the table controller, defines layout, wires callbacks.
Keep this file thin — table/overlay logic lives in components/, fetch logic in data/.
"""

import atexit

from dash import Dash, dcc, html, Input, Output, callback

# ── Controller start-up (runs once at startup) ────────────────────────────────
from data.config import (
    DASH_DEBUG,
    DASH_HOST,
    DASH_PORT,
    REFRESH_INTERVAL_SECONDS,
    VIEW_STATE_PATH,
)
from data.controller import TableController
from data.fetch import DataFetcher
from data.runtime import ControllerRuntime
from data.view_state import JsonFileStorage, ViewStateStore
import data.state as _state  # shared runtime state (avoids circular imports)

# ══════════════════════════════════════════════════════════════════════════════
# CONTROLLER
# ══════════════════════════════════════════════════════════════════════════════


def build_controller() -> TableController:
    """Wire the production fetcher and persisted store into a TableController."""
    return TableController(
        DataFetcher(),
        ViewStateStore(JsonFileStorage(VIEW_STATE_PATH)),
        refresh_interval=REFRESH_INTERVAL_SECONDS,
    )


print(f"Restoring view state from {VIEW_STATE_PATH}...")
runtime = ControllerRuntime(build_controller)
runtime.start()
atexit.register(runtime.stop)

print(f"Ready — refreshing every {REFRESH_INTERVAL_SECONDS:g}s.\n")

# ── Populate shared state (BEFORE importing components) ───────────────────────
_state.runtime = runtime

# ── Component callbacks (importing registers them with Dash) ──────────────────
import components.detail  as _dt   # noqa: F401, E402
import components.markets as _mk   # noqa: F401, E402
import components.source  as _src  # noqa: F401, E402

# ══════════════════════════════════════════════════════════════════════════════
# APP
# ══════════════════════════════════════════════════════════════════════════════

app = Dash(
    __name__,
    title="Coins & Markets",
    suppress_callback_exceptions=True,
)
server = app.server

# ══════════════════════════════════════════════════════════════════════════════
# LAYOUT
# ══════════════════════════════════════════════════════════════════════════════


def build_tabs() -> dcc.Tabs:
    """Build the tab strip."""
    return dcc.Tabs(
        id="main-tabs",
        value="tab-markets",
        className="custom-tabs",
        children=[
            dcc.Tab(label="Coins & Markets", value="tab-markets", className="custom-tab", selected_className="custom-tab--selected"),
            dcc.Tab(label="Source",          value="tab-source",  className="custom-tab", selected_className="custom-tab--selected"),
        ],
    )


app.layout = html.Div(id="app-wrapper", children=[

    # ── Header ────────────────────────────────────────────────────
    html.Div(id="header", children=[
        html.Div(id="header-left", children=[
            html.Span("COINS & MARKETS", id="header-logo"),
            html.Span("Live cryptocurrency prices by market cap", id="header-subtitle"),
        ]),
        html.Div(id="header-right", children=[
            html.Span(className="live-dot"),
            html.Span("LIVE", id="header-badge"),
        ]),
    ]),

    # ── Body ──────────────────────────────────────────────────────
    html.Div(id="main-content", children=[
        build_tabs(),
        html.Div(id="tab-content", className="tab-content"),
    ]),

    # ── Footer ────────────────────────────────────────────────────
    html.Div(id="footer", children=[
        html.Span("Data: CoinGecko"),
        html.Span("Not financial advice"),
    ]),
])

# ══════════════════════════════════════════════════════════════════════════════
# CALLBACKS
# ══════════════════════════════════════════════════════════════════════════════


@callback(
    Output("tab-content", "children"),
    Input("main-tabs", "value"),
)
def render_tab(tab_value: str):
    """Route tab selection to the appropriate component."""
    from components.markets import build_markets_tab
    from components.source  import build_source_tab

    dispatch = {
        "tab-markets": build_markets_tab,
        "tab-source":  build_source_tab,
    }

    build_fn = dispatch.get(tab_value)
    if build_fn:
        return build_fn()
    return html.Div("Unknown tab")


# ══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ══════════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    app.run(debug=DASH_DEBUG, host=DASH_HOST, port=DASH_PORT)
