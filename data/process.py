"""
data/process.py
Turns fetched MarketRows into what the table shows: client-side sorting of the
loaded page, the display DataFrame, and pager numbers.
Pure functions — nothing here touches the network or the controller.
"""

import logging
import math
from html import escape
from typing import Sequence

import pandas as pd

from data.fetch import MarketRow
from data.formatting import (
    format_money,
    format_number,
    format_percentage,
)
from data.view_state import ViewState

logger = logging.getLogger(__name__)

# ── Sorting ────────────────────────────────────────────────────────────────────

# Columns the table lets the user sort on (all numeric)
SORTABLE_COLUMNS: tuple[str, ...] = (
    "market_cap_rank",
    "current_price",
    "price_change_percentage_24h",
    "market_cap",
    "total_volume",
    "circulating_supply",
)


def sort_rows(rows: Sequence[MarketRow], column: str, descending: bool = False) -> tuple[MarketRow, ...]:
    """
    Reorder the rows of the loaded page by one numeric column.

    Stable, so ties keep the upstream (market-cap) order. Rows with a missing
    value go last in both directions.

    Args:
        rows:       Rows currently loaded for the page.
        column:     One of SORTABLE_COLUMNS.
        descending: Largest first when True.

    Returns:
        New tuple of the same row objects.
    """
    if column not in SORTABLE_COLUMNS:
        raise ValueError(f"Cannot sort on {column!r}; sortable columns: {SORTABLE_COLUMNS}")
    rows = list(rows)
    if len(rows) < 2:
        return tuple(rows)

    values = pd.Series([getattr(r, column) for r in rows], dtype="float64")
    order = values.sort_values(ascending=not descending, kind="stable", na_position="last").index
    return tuple(rows[i] for i in order)


# ── Display frame ──────────────────────────────────────────────────────────────

DISPLAY_COLUMNS: list[tuple[str, str]] = [
    ("market_cap_rank",             "#"),
    ("name",                        "Name"),
    ("current_price",               "Current Price"),
    ("price_change_percentage_24h", "24h %"),
    ("market_cap",                  "Market Cap"),
    ("total_volume",                "Volume(24h)"),
    ("circulating_supply",          "Circulating Supply"),
]


ICON_SIZE = 32


def name_cell(row: MarketRow) -> str:
    """Markdown cell for the Name column: coin icon (when known), name and symbol."""
    label = escape(f"{row.name} {row.symbol.upper()}".strip())
    if not row.image:
        return label
    src = escape(row.image, quote=True)
    return (f'<img src="{src}" alt="" width="{ICON_SIZE}" height="{ICON_SIZE}" '
            f'style="vertical-align: middle; margin-right: 8px"/>{label}')


def rows_to_frame(rows: Sequence[MarketRow], currency: str) -> pd.DataFrame:
    """
    Build the table's display DataFrame (all cells pre-formatted strings).

    Column ids match the MarketRow field names so a sort request from the table
    maps straight back onto sort_rows(). The "id" column carries row identity
    for click-to-select and is not displayed. The "name" cell is markdown with an
    inline icon, for a column rendered with presentation="markdown".
    """
    columns = ["id"] + [col for col, _ in DISPLAY_COLUMNS]
    if not rows:
        return pd.DataFrame(columns=columns)

    records = []
    for r in rows:
        records.append({
            "id":                          r.id,
            "market_cap_rank":             format_number(r.market_cap_rank),
            "name":                        name_cell(r),
            "current_price":               format_money(r.current_price, currency),
            "price_change_percentage_24h": format_percentage(r.price_change_percentage_24h),
            "market_cap":                  format_money(r.market_cap, currency),
            "total_volume":                format_money(r.total_volume, currency),
            "circulating_supply":          f"{format_number(r.circulating_supply)} {r.symbol.upper()}".strip(),
        })
    return pd.DataFrame(records, columns=columns)


# ── Pager ──────────────────────────────────────────────────────────────────────

def page_count(view_state: ViewState, loaded: int, total: int, complete: bool) -> int:
    """
    Number of pages to offer in the pager.

    `total` is the configured item count (the upstream does not report one).
    When a successful fetch (`complete`) returned fewer rows than a full page,
    the current page is known to be the last one and wins over `total`.
    """
    if complete and loaded < view_state.rows_per_page:
        return view_state.page
    pages = max(math.ceil(total / view_state.rows_per_page), 1)
    return max(pages, view_state.page)


def pagination_summary(view_state: ViewState, loaded: int, total: int) -> str:
    """E.g. "Showing 11-20 out of 10000 items" for page 2 of 10 rows."""
    if loaded <= 0:
        return "No items"
    start = (view_state.page - 1) * view_state.rows_per_page + 1
    end = start + loaded - 1
    return f"Showing {start}-{end} out of {max(total, end)} items"
