"""
data/selection.py
Which market row, if any, is open in the detail overlay.
Independent of the fetch lifecycle: a table refresh never touches the selection.
"""

from __future__ import annotations

from data.fetch import MarketRow


class ModalController:
    def __init__(self):
        self._selected: MarketRow | None = None
        self._currency: str | None = None

    @property
    def selected(self) -> MarketRow | None:
        return self._selected

    @property
    def currency(self) -> str | None:
        """Currency the selected row's prices were fetched in."""
        return self._currency

    @property
    def is_open(self) -> bool:
        return self._selected is not None

    def select(self, row: MarketRow, currency: str) -> None:
        """Show `row` in the overlay (replacing any current selection)."""
        self._selected = row
        self._currency = currency

    def dismiss(self) -> None:
        self._selected = None
        self._currency = None
