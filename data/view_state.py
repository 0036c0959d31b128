"""
data/view_state.py
The {page, rows_per_page, currency} tuple that drives the markets table, and the
store that persists it between sessions.

Persisted values live under three independent string keys ("page", "rows",
"currency"). Each is parsed on its own at load time, so one corrupt entry only
resets that entry to its default.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, fields, replace as dc_replace
from pathlib import Path
from typing import Protocol

from data.formatting import CURRENCY_SYMBOLS

logger = logging.getLogger(__name__)

# ── Domain ─────────────────────────────────────────────────────────────────────

DEFAULT_PAGE          = 1
DEFAULT_ROWS_PER_PAGE = 10
DEFAULT_CURRENCY      = "usd"

PAGE_SIZE_OPTIONS: tuple[int, ...] = (5, 10, 20, 50, 100)
CURRENCIES: tuple[str, ...] = tuple(CURRENCY_SYMBOLS)

# ViewState field name → storage key
STORAGE_KEYS: dict[str, str] = {
    "page":          "page",
    "rows_per_page": "rows",
    "currency":      "currency",
}


class PersistedStateInvalid(ValueError):
    """A stored view-state entry is missing or outside its allowed domain."""


@dataclass(frozen=True)
class ViewState:
    page: int = DEFAULT_PAGE
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValueError(f"page must be an integer >= 1, got {self.page!r}")
        if self.rows_per_page not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"rows_per_page must be one of {PAGE_SIZE_OPTIONS}, got {self.rows_per_page!r}")
        if self.currency not in CURRENCIES:
            raise ValueError(f"currency must be one of {CURRENCIES}, got {self.currency!r}")

    def replace(self, **changes) -> "ViewState":
        """Return a validated copy with `changes` applied."""
        return dc_replace(self, **changes)

    def changed_fields(self, other: "ViewState") -> list[str]:
        """Names of the fields whose values differ between self and `other`."""
        return [f.name for f in fields(self) if getattr(self, f.name) != getattr(other, f.name)]


# ── Field parsers (raise PersistedStateInvalid) ────────────────────────────────

def _parse_page(raw: str | None) -> int:
    if raw is None:
        raise PersistedStateInvalid("page missing")
    text = raw.strip()
    if not (text.isascii() and text.isdigit()) or int(text) < 1:
        raise PersistedStateInvalid(f"page {raw!r} is not a positive integer")
    return int(text)


def _parse_rows(raw: str | None) -> int:
    if raw is None:
        raise PersistedStateInvalid("rows missing")
    text = raw.strip()
    if not (text.isascii() and text.isdigit()) or int(text) not in PAGE_SIZE_OPTIONS:
        raise PersistedStateInvalid(f"rows {raw!r} is not one of {PAGE_SIZE_OPTIONS}")
    return int(text)


def _parse_currency(raw: str | None) -> str:
    if raw is None:
        raise PersistedStateInvalid("currency missing")
    code = raw.strip().lower()
    if code not in CURRENCIES:
        raise PersistedStateInvalid(f"currency {raw!r} is not supported")
    return code


_PARSERS = {
    "page":          (_parse_page, DEFAULT_PAGE),
    "rows_per_page": (_parse_rows, DEFAULT_ROWS_PER_PAGE),
    "currency":      (_parse_currency, DEFAULT_CURRENCY),
}


# ── Storage backends ───────────────────────────────────────────────────────────

class Storage(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """
    One JSON object on disk holding every key.
    A missing, unreadable or corrupt file reads as empty; writes replace the file atomically.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path.name}: {e}. Treating as empty.")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        # Anything other than a string was not written by us
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".view_state_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


# ── Store ──────────────────────────────────────────────────────────────────────

class ViewStateStore:
    """Loads and saves the ViewState through a key/value Storage."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def load(self) -> ViewState:
        values = {}
        for field_name, (parse, default) in _PARSERS.items():
            key = STORAGE_KEYS[field_name]
            try:
                values[field_name] = parse(self.storage.get(key))
            except PersistedStateInvalid as e:
                logger.debug(f"Persisted {key} invalid ({e}); using default {default!r}.")
                values[field_name] = default
            except Exception as e:
                logger.warning(f"Could not read persisted {key}: {e}. Using default {default!r}.")
                values[field_name] = default
        return ViewState(**values)

    def save(self, field: str, value) -> None:
        """Persist one ViewState field. Storage failures are logged, never raised."""
        key = STORAGE_KEYS[field]
        try:
            self.storage.set(key, str(value))
        except Exception as e:
            logger.warning(f"Could not persist {key}={value!r}: {e}")

    def save_all(self, view_state: ViewState) -> None:
        for field_name in STORAGE_KEYS:
            self.save(field_name, getattr(view_state, field_name))
