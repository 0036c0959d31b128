"""
data/formatting.py
Number and percentage formatting for table cells and the detail overlay.
Pure functions — no state, no I/O.
"""

from __future__ import annotations

MISSING = "--"

CURRENCY_SYMBOLS: dict[str, str] = {
    "usd": "$",
    "eur": "€",
}


def currency_symbol(code: str) -> str:
    """Return the display symbol for a supported currency code ("usd" → "$")."""
    return CURRENCY_SYMBOLS[code.lower()]


def format_number(num: float | int | None) -> str:
    """
    Format a number with thousands separators.

    Examples:
        1234567     → "1,234,567"
        1234.5      → "1,234.5"
        0.00001234  → "0.00001234"
        None        → "--"
    """
    if num is None:
        return MISSING
    if isinstance(num, int):
        return f"{num:,}"
    if float(num).is_integer():
        return f"{int(num):,}"
    # Up to 8 decimals covers sub-cent token prices without scientific notation
    return f"{num:,.8f}".rstrip("0").rstrip(".")


def format_large_number(num: float | int | None) -> str:
    """
    Abbreviate market-cap sized values.

    Examples:
        1.5e12    → "1.50T"
        2.567e9   → "2.57B"
        12345678  → "12,345,678"
    """
    if num is None:
        return MISSING
    if num >= 1e12:
        return f"{num / 1e12:.2f}T"
    if num >= 1e9:
        return f"{num / 1e9:.2f}B"
    if num >= 1e6:
        return f"{num:,.3f}".rstrip("0").rstrip(".")
    return format_number(num)


def format_percentage(pct: float | None) -> str:
    """Two-decimal percentage with a trailing " %" (e.g. -2.345 → "-2.35 %")."""
    if pct is None:
        return MISSING
    return f"{pct:.2f} %"


def percentage_direction(pct: float | None) -> str | None:
    """Return "up" / "down" for the change badge caret, None when missing."""
    if pct is None:
        return None
    return "down" if pct < 0 else "up"


def format_money(num: float | int | None, currency: str) -> str:
    """Prefix a formatted number with the currency symbol; missing stays "--"."""
    if num is None:
        return MISSING
    return f"{currency_symbol(currency)}{format_number(num)}"
