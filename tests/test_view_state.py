"""Tests for ViewState validation and the ViewStateStore persistence round trip."""

import json
import logging
from unittest.mock import MagicMock

import pytest

from data.view_state import (
    JsonFileStorage,
    MemoryStorage,
    ViewState,
    ViewStateStore,
)


# ═══════════════════════════════════════════════════════════════════
# ViewState
# ═══════════════════════════════════════════════════════════════════

class TestViewState:

    def test_defaults(self):
        vs = ViewState()
        assert (vs.page, vs.rows_per_page, vs.currency) == (1, 10, "usd")

    @pytest.mark.parametrize("kwargs", [
        {"page": 0},
        {"page": -3},
        {"page": True},
        {"page": "2"},
        {"rows_per_page": 7},
        {"rows_per_page": 0},
        {"currency": "gbp"},
        {"currency": "USD"},
    ])
    def test_out_of_domain_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ViewState(**kwargs)

    def test_replace_validates(self):
        vs = ViewState()
        assert vs.replace(page=5).page == 5
        with pytest.raises(ValueError):
            vs.replace(rows_per_page=11)

    def test_changed_fields(self):
        a = ViewState(page=1, rows_per_page=10, currency="usd")
        b = ViewState(page=2, rows_per_page=10, currency="eur")
        assert b.changed_fields(a) == ["page", "currency"]
        assert a.changed_fields(a) == []


# ═══════════════════════════════════════════════════════════════════
# ViewStateStore
# ═══════════════════════════════════════════════════════════════════

class TestViewStateStore:

    def test_empty_storage_loads_defaults(self, store):
        assert store.load() == ViewState()

    @pytest.mark.parametrize("vs", [
        ViewState(),
        ViewState(page=42, rows_per_page=5, currency="eur"),
        ViewState(page=1000, rows_per_page=100, currency="usd"),
        ViewState(page=2, rows_per_page=20, currency="eur"),
    ])
    def test_round_trip_per_field(self, store, vs):
        store.save("page", vs.page)
        store.save("rows_per_page", vs.rows_per_page)
        store.save("currency", vs.currency)
        assert store.load() == vs

    def test_save_all(self, storage, store):
        store.save_all(ViewState(page=3, rows_per_page=50, currency="eur"))
        assert storage.data == {"page": "3", "rows": "50", "currency": "eur"}

    @pytest.mark.parametrize("bad_page", ["0", "-1", "abc", "1.5", "", "  ", "²", "1e3"])
    def test_malformed_page_only_resets_page(self, bad_page):
        store = ViewStateStore(MemoryStorage({"page": bad_page, "rows": "50", "currency": "eur"}))
        assert store.load() == ViewState(page=1, rows_per_page=50, currency="eur")

    @pytest.mark.parametrize("bad_rows", ["7", "ten", "", "-10", "1000"])
    def test_malformed_rows_only_resets_rows(self, bad_rows):
        store = ViewStateStore(MemoryStorage({"page": "4", "rows": bad_rows, "currency": "eur"}))
        assert store.load() == ViewState(page=4, rows_per_page=10, currency="eur")

    @pytest.mark.parametrize("bad_currency", ["gbp", "", "dollar", "u s d"])
    def test_malformed_currency_only_resets_currency(self, bad_currency):
        store = ViewStateStore(MemoryStorage({"page": "4", "rows": "20", "currency": bad_currency}))
        assert store.load() == ViewState(page=4, rows_per_page=20, currency="usd")

    def test_missing_single_field(self):
        store = ViewStateStore(MemoryStorage({"page": "9", "currency": "eur"}))
        assert store.load() == ViewState(page=9, rows_per_page=10, currency="eur")

    def test_currency_is_case_insensitive_and_whitespace_tolerant(self):
        store = ViewStateStore(MemoryStorage({"currency": " EUR "}))
        assert store.load().currency == "eur"

    def test_storage_read_error_falls_back_to_defaults(self):
        storage = MagicMock()
        storage.get.side_effect = OSError("disk gone")
        assert ViewStateStore(storage).load() == ViewState()

    def test_save_swallows_storage_errors(self, caplog):
        storage = MagicMock()
        storage.set.side_effect = OSError("read-only file system")
        store = ViewStateStore(storage)

        with caplog.at_level(logging.WARNING, logger="data.view_state"):
            store.save("page", 3)  # must not raise

        assert "Could not persist page" in caplog.text

    def test_save_unknown_field_is_a_programming_error(self, store):
        with pytest.raises(KeyError):
            store.save("sort", "market_cap")


# ═══════════════════════════════════════════════════════════════════
# JsonFileStorage
# ═══════════════════════════════════════════════════════════════════

class TestJsonFileStorage:

    def test_round_trip_through_disk(self, tmp_path):
        path = tmp_path / "nested" / "view_state.json"
        store = ViewStateStore(JsonFileStorage(path))
        store.save_all(ViewState(page=6, rows_per_page=20, currency="eur"))

        # Fresh store on the same file, as on the next start-up
        assert ViewStateStore(JsonFileStorage(path)).load() == ViewState(page=6, rows_per_page=20, currency="eur")
        assert json.loads(path.read_text()) == {"page": "6", "rows": "20", "currency": "eur"}

    def test_missing_file_reads_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "absent.json")
        assert storage.get("page") is None

    def test_corrupt_file_loads_defaults(self, tmp_path):
        path = tmp_path / "view_state.json"
        path.write_text("{not json")
        assert ViewStateStore(JsonFileStorage(path)).load() == ViewState()

    def test_corrupt_file_is_replaced_on_save(self, tmp_path):
        path = tmp_path / "view_state.json"
        path.write_text("[1, 2, 3]")
        storage = JsonFileStorage(path)
        storage.set("page", "2")
        assert json.loads(path.read_text()) == {"page": "2"}

    def test_non_string_values_are_ignored(self, tmp_path):
        path = tmp_path / "view_state.json"
        path.write_text(json.dumps({"page": 5, "rows": "20", "currency": None}))
        assert ViewStateStore(JsonFileStorage(path)).load() == ViewState(page=1, rows_per_page=20, currency="usd")

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "view_state.json")
        storage.set("page", "2")
        storage.set("rows", "5")
        assert [p.name for p in tmp_path.iterdir()] == ["view_state.json"]
