"""
components/markets.py
Markets tab — currency / page-size controls, the paginated coin table, and the
loading / error status line.

Pagination and currency changes are pushed to the TableController (which refetches);
column sorting is forwarded as a client-side sort of the loaded page only.
The table re-renders from the controller snapshot whenever its version moves.
"""

from __future__ import annotations

from dash import dash_table, dcc, html, callback, ctx, no_update, Input, Output, State
from dash.exceptions import PreventUpdate

import data.state as _state
from components.detail import build_detail_overlay
from data.config import MARKETS_TOTAL_COUNT
from data.controller import LoadState, TableSnapshot
from data.process import (
    DISPLAY_COLUMNS,
    SORTABLE_COLUMNS,
    page_count,
    pagination_summary,
    rows_to_frame,
)
from data.view_state import CURRENCIES, PAGE_SIZE_OPTIONS

# ── Colors ─────────────────────────────────────────────────────────────────────
TABLE_BG    = "#06090f"
HEADER_BG   = "#0d1520"
BORDER      = "#1e2a36"
TEXT_COLOR  = "#e2e8f0"
MUTED       = "#7a90b0"
GOLD        = "#f0c040"
UP_GREEN    = "#22c55e"
DOWN_RED    = "#ef4444"

UI_POLL_MS = 1_000  # how often the page checks the controller for a new snapshot


def build_markets_tab() -> html.Div:
    """
    Build the Markets tab, seeded from the controller's current view state so a
    restored page / page size / currency shows up on first paint.
    """
    snap = _state.get_runtime().snapshot()
    vs = snap.view_state

    return html.Div([
        # ── Controls bar ──────────────────────────────────────
        html.Div(
            className="chart-controls",
            style={"display": "flex", "gap": "16px", "alignItems": "center", "marginBottom": "12px"},
            children=[
                html.Span("Select a currency:", style={"color": MUTED, "fontSize": "12px"}),
                dcc.Dropdown(
                    id="currency-select",
                    options=[{"label": c.upper(), "value": c} for c in CURRENCIES],
                    value=vs.currency,
                    clearable=False,
                    style={"width": "110px"},
                ),
                html.Span("Rows per page:", style={"color": MUTED, "fontSize": "12px"}),
                dcc.Dropdown(
                    id="page-size-select",
                    options=[{"label": str(n), "value": n} for n in PAGE_SIZE_OPTIONS],
                    value=vs.rows_per_page,
                    clearable=False,
                    style={"width": "90px"},
                ),
                html.Div(id="markets-status", style={"marginLeft": "auto"}),
            ],
        ),

        # ── Table ─────────────────────────────────────────────
        dash_table.DataTable(
            id="markets-table",
            columns=[_column(col, label) for col, label in DISPLAY_COLUMNS],
            markdown_options={"html": True},
            css=[{"selector": ".dash-cell-value p", "rule": "margin: 0;"}],
            data=[],
            page_action="custom",
            page_current=vs.page - 1,
            page_size=vs.rows_per_page,
            page_count=page_count(vs, 0, MARKETS_TOTAL_COUNT, complete=False),
            sort_action="custom",
            sort_mode="single",
            sort_by=_sort_by(snap),
            style_table={"overflowX": "auto", "minWidth": "100%"},
            style_header={
                "backgroundColor": HEADER_BG,
                "color": GOLD,
                "fontWeight": "600",
                "border": f"1px solid {BORDER}",
            },
            style_cell={
                "backgroundColor": TABLE_BG,
                "color": TEXT_COLOR,
                "border": f"1px solid {BORDER}",
                "fontFamily": "IBM Plex Mono, monospace",
                "fontSize": "13px",
                "padding": "8px",
                "textAlign": "right",
                "cursor": "pointer",
            },
            style_cell_conditional=[
                {"if": {"column_id": "name"}, "textAlign": "left", "minWidth": "220px"},
                {"if": {"column_id": "market_cap_rank"}, "width": "60px", "textAlign": "center"},
            ],
            style_data_conditional=[
                {
                    "if": {"column_id": "price_change_percentage_24h",
                           "filter_query": '{price_change_percentage_24h} contains "-"'},
                    "color": DOWN_RED,
                },
                {
                    "if": {"column_id": "price_change_percentage_24h",
                           "filter_query": '{price_change_percentage_24h} contains "%" '
                                           '&& !({price_change_percentage_24h} contains "-")'},
                    "color": UP_GREEN,
                },
            ],
        ),
        html.Div(id="markets-summary", style={"color": MUTED, "fontSize": "12px", "marginTop": "8px"}),

        build_detail_overlay(snap.selected, snap.selected_currency or vs.currency),

        # ── Plumbing ──────────────────────────────────────────
        dcc.Interval(id="markets-poll", interval=UI_POLL_MS),
        dcc.Store(id="markets-ack"),
        dcc.Store(id="markets-version", data=-1),
    ])


def _column(col: str, label: str) -> dict:
    if col == "name":
        return {"name": label, "id": col, "presentation": "markdown"}
    return {"name": label, "id": col}


def _sort_by(snap: TableSnapshot) -> list[dict]:
    if snap.sort is None:
        return []
    return [{"column_id": snap.sort.column, "direction": "desc" if snap.sort.descending else "asc"}]


def build_status(snap: TableSnapshot) -> html.Span:
    """Loading / error / last-updated line shown above the table."""
    if snap.state is LoadState.ERRORED:
        text = "Failed to fetch data."
        if snap.rows:
            text += " Showing the last successful refresh."
        return html.Span(text, style={"color": DOWN_RED, "fontSize": "12px"})
    if snap.state in (LoadState.LOADING, LoadState.IDLE):
        return html.Span("Loading…", style={"color": GOLD, "fontSize": "12px"})
    updated = snap.updated_at.strftime("%H:%M:%S UTC") if snap.updated_at else "--"
    return html.Span(f"Updated {updated}", style={"color": MUTED, "fontSize": "12px"})


# ══════════════════════════════════════════════════════════════════════════════
# CALLBACKS
# ══════════════════════════════════════════════════════════════════════════════

@callback(
    Output("markets-ack", "data"),
    Output("markets-table", "page_size"),
    Input("currency-select", "value"),
    Input("page-size-select", "value"),
    Input("markets-table", "page_current"),
    Input("markets-table", "sort_by"),
)
def push_controls(currency, page_size, page_current, sort_by):
    """Forward user changes to the controller. Paging/currency refetch; sorting does not."""
    if currency is None or page_size is None:
        raise PreventUpdate

    page_size = int(page_size)
    page = int(page_current or 0) + 1
    sort = sort_by[0] if sort_by else None

    # ctx is only valid on the Dash worker thread, so resolve it here
    triggered = ctx.triggered_id
    changed, version = _state.get_runtime().call(
        lambda c: _apply_on_loop(c, currency, page_size, page, sort, triggered)
    )
    return version, page_size if changed else no_update


def _apply_on_loop(controller, currency, page_size, page, sort, triggered):
    changed = controller.update(currency=currency, rows_per_page=page_size, page=page)
    if triggered == "markets-table":
        if sort and sort.get("column_id") in SORTABLE_COLUMNS:
            controller.sort(sort["column_id"], descending=sort.get("direction") == "desc")
        else:
            controller.clear_sort()
    return changed, controller.snapshot().version


@callback(
    Output("markets-table", "data"),
    Output("markets-table", "page_count"),
    Output("markets-status", "children"),
    Output("markets-summary", "children"),
    Output("markets-version", "data"),
    Input("markets-poll", "n_intervals"),
    Input("markets-ack", "data"),
    State("markets-version", "data"),
)
def render_table(_n, _ack, last_version):
    """Redraw from the controller snapshot when anything observable changed."""
    snap = _state.get_runtime().snapshot()
    if snap.version == last_version:
        raise PreventUpdate

    vs = snap.view_state
    # While a new page is loading the old rows are still shown, in their own currency
    rows_vs = snap.rows_view_state or vs
    frame = rows_to_frame(snap.rows, rows_vs.currency)
    complete = snap.state is LoadState.DISPLAYING and rows_vs == vs
    pages = page_count(vs, len(snap.rows), MARKETS_TOTAL_COUNT, complete=complete)
    summary = pagination_summary(rows_vs, len(snap.rows), MARKETS_TOTAL_COUNT)

    return frame.to_dict("records"), pages, build_status(snap), summary, snap.version
