"""
components/detail.py
Detail overlay for one coin — opens when a table row is clicked.
Only reads the selected MarketRow and the currency it was fetched in; a background table
refresh does not change what the overlay shows until the user selects again.
"""

from __future__ import annotations

from dash import html, callback, ctx, no_update, Input, Output

import data.state as _state
from data.fetch import MarketRow
from data.formatting import (
    currency_symbol,
    format_large_number,
    format_number,
    format_percentage,
    percentage_direction,
)

PANEL_BG   = "#0d1520"
BORDER     = "#1e2a36"
TEXT_COLOR = "#e2e8f0"
MUTED      = "#7a90b0"
GOLD       = "#f0c040"
UP_GREEN   = "#22c55e"
DOWN_RED   = "#ef4444"

OVERLAY_HIDDEN = {"display": "none"}
OVERLAY_SHOWN = {
    "display": "flex",
    "position": "fixed",
    "inset": 0,
    "background": "rgba(0, 0, 0, 0.6)",
    "alignItems": "center",
    "justifyContent": "center",
    "zIndex": 1000,
}

# (title, tooltip, MarketRow field, "money" | "supply")
DETAIL_ELEMENTS: list[tuple[str, str, str, str]] = [
    ("Market cap",
     "The total market value of a cryptocurrency's circulating supply. "
     "It is analogous to the free-float capitalization in the stock market.",
     "market_cap", "money"),
    ("Volume (24h)",
     "A measure of how much of a cryptocurrency was traded in the last 24 hours.",
     "total_volume", "money"),
    ("Circulating supply",
     "The amount of coins that are circulating in the market and are in public hands. "
     "It is analogous to the flowing shares in the stock market.",
     "circulating_supply", "supply"),
    ("Total supply",
     "Total supply = Total coins created - coins that have been burned (if any). "
     "It is comparable to outstanding shares in the stock market.",
     "total_supply", "supply"),
    ("Max. supply",
     "The maximum amount of coins that will ever exist in the lifetime of the cryptocurrency. "
     "It is analogous to the fully diluted shares in the stock market.",
     "max_supply", "supply"),
    ("Fully diluted valuation",
     "The total value of a cryptocurrency project considering all of its tokens that are in circulation.",
     "fully_diluted_valuation", "money"),
]


def build_detail_overlay(selected: MarketRow | None = None, currency: str = "usd") -> html.Div:
    """
    Overlay shell; the panel body is filled by the callback below.
    Starts open when the controller already has a selection (e.g. after a tab switch).
    """
    panel = build_detail_panel(selected, currency) if selected is not None else []
    style = OVERLAY_SHOWN if selected is not None else OVERLAY_HIDDEN
    return html.Div(id="detail-overlay", style=style, children=[
        html.Div(
            style={"background": PANEL_BG, "border": f"1px solid {BORDER}", "borderRadius": "8px",
                   "padding": "12px 24px 20px", "width": "440px", "color": TEXT_COLOR},
            children=[
                html.Div(style={"textAlign": "right"}, children=html.Button(
                    "×", id="detail-close", n_clicks=0,
                    style={"background": "none", "border": "none", "color": MUTED,
                           "fontSize": "20px", "cursor": "pointer"},
                )),
                html.Div(id="detail-panel", children=panel),
            ],
        ),
    ])


def percentage_badge(pct: float | None) -> html.Span:
    """Caret + colored 24h change, or "--" when missing."""
    direction = percentage_direction(pct)
    if direction is None:
        return html.Span(format_percentage(pct), style={"color": MUTED})
    color = DOWN_RED if direction == "down" else UP_GREEN
    caret = "▼" if direction == "down" else "▲"
    return html.Span(f"{caret} {format_percentage(pct)}", style={"color": color, "fontWeight": "600"})


def _detail_value(row: MarketRow, field: str, kind: str, currency: str) -> str:
    value = getattr(row, field)
    if kind == "money":
        text = format_large_number(value)
        return text if value is None else f"{currency_symbol(currency)}{text}"
    text = format_number(value)
    return text if value is None else f"{text} {row.symbol.upper()}"


def build_detail_panel(row: MarketRow, currency: str) -> html.Div:
    """Detail card for `row` priced in `currency`."""
    items = []
    for title, tooltip, field, kind in DETAIL_ELEMENTS:
        items.append(html.Div(
            style={"display": "flex", "justifyContent": "space-between",
                   "padding": "8px 0", "borderBottom": f"1px solid {BORDER}"},
            children=[
                html.Span([title, html.Span(" ⓘ", title=tooltip, style={"color": MUTED, "cursor": "help"})],
                          style={"color": MUTED}),
                html.Span(_detail_value(row, field, kind, currency), style={"color": TEXT_COLOR}),
            ],
        ))

    price = row.current_price
    price_text = "--" if price is None else f"{currency_symbol(currency)}{format_number(price)}"

    return html.Div(
        children=[
            html.Div(style={"display": "flex", "alignItems": "center", "gap": "10px"}, children=[
                html.Img(src=row.image or "", alt="cryptocurrency icon", width=38, height=38),
                html.Span(row.name, style={"fontSize": "18px", "fontWeight": "600"}),
                html.Span(row.symbol.upper(), style={"color": MUTED}),
            ]),
            html.Div(style={"display": "flex", "alignItems": "center", "gap": "12px", "margin": "12px 0"},
                     children=[
                         html.Span(price_text, style={"fontSize": "24px", "color": GOLD}),
                         percentage_badge(row.price_change_percentage_24h),
                     ]),
            html.Div(items),
        ],
    )


# ══════════════════════════════════════════════════════════════════════════════
# CALLBACKS
# ══════════════════════════════════════════════════════════════════════════════

@callback(
    Output("detail-overlay", "style"),
    Output("detail-panel", "children"),
    Output("markets-table", "active_cell"),
    Input("markets-table", "active_cell"),
    Input("detail-close", "n_clicks"),
    prevent_initial_call=True,
)
def toggle_detail(active_cell, _close_clicks):
    """Open on row click; close on the × button."""
    runtime = _state.get_runtime()

    if ctx.triggered_id == "detail-close":
        runtime.call(lambda c: c.dismiss())
        return OVERLAY_HIDDEN, [], no_update

    if not active_cell or not active_cell.get("row_id"):
        return no_update, no_update, no_update

    row_id = active_cell["row_id"]
    found = runtime.call(lambda c: c.select_row(row_id))
    if not found:
        return no_update, no_update, None

    snap = runtime.snapshot()
    # Reset active_cell so clicking the same row again re-opens the overlay
    return OVERLAY_SHOWN, build_detail_panel(snap.selected, snap.selected_currency), None
