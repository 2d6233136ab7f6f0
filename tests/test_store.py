"""
Unit tests for the JSON document store.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from packages.features import store
from packages.features.store import (
    JsonCollection,
    JsonDocument,
    NotFoundError,
    now_iso,
    parse_iso,
    slugify,
)


class TestSlugify:
    def test_basic(self):
        assert slugify("Route A Preferred") == "route-a-preferred"

    def test_collapses_and_trims(self):
        assert slugify("  --Swiss   Alps & Lakes!! ") == "swiss-alps-lakes"

    def test_non_ascii_dropped(self):
        assert slugify("Côte d'Azur") == "c-te-d-azur"

    def test_empty(self):
        assert slugify("") == ""
        assert slugify("!!!") == ""


class TestParseIso:
    def test_z_suffix(self):
        dt = parse_iso("2025-01-02T03:04:05Z")
        assert dt is not None and dt.tzinfo is not None
        assert (dt.year, dt.hour) == (2025, 3)

    def test_date_only(self):
        assert parse_iso("2025-06-01").day == 1

    def test_garbage(self):
        assert parse_iso("not a date") is None
        assert parse_iso(None) is None


class TestNowIso:
    def test_fixed_width(self, monkeypatch):
        class _Frozen(datetime):
            @classmethod
            def now(cls, tz=None):
                return datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        monkeypatch.setattr(store, "datetime", _Frozen)
        assert now_iso() == "2025-01-02T03:04:05.000000Z"

    def test_sorts_chronologically(self):
        stamps = [now_iso() for _ in range(50)]
        assert all(len(s) == len("2025-01-02T03:04:05.000000Z") for s in stamps)
        assert stamps == sorted(stamps)


class TestJsonCollection:
    @pytest.fixture
    def things(self):
        return JsonCollection("things", "thg")

    def test_insert_stamps_id_and_timestamps(self, things):
        row = things.insert({"name": "a"})
        assert row["id"].startswith("thg_")
        assert row["createdAt"].endswith("Z")
        assert row["updatedAt"] == row["createdAt"]
        assert things.get(row["id"])["name"] == "a"
        assert things.path.exists()

    def test_missing_file_loads_empty(self, things):
        assert things.load() == []
        assert things.count() == 0

    def test_corrupt_file_loads_empty(self, things):
        things.path.parent.mkdir(parents=True, exist_ok=True)
        things.path.write_text("{not json", encoding="utf-8")
        assert things.load() == []

    def test_update_protects_id_and_created_at(self, things):
        row = things.insert({"name": "a"})
        updated = things.update(row["id"], {"name": "b", "id": "other", "createdAt": "1999-01-01T00:00:00Z"})
        assert updated["id"] == row["id"]
        assert updated["createdAt"] == row["createdAt"]
        assert updated["name"] == "b"

    def test_update_missing_returns_none(self, things):
        assert things.update("nope", {"x": 1}) is None

    def test_delete(self, things):
        row = things.insert({"name": "a"})
        assert things.delete(row["id"])["name"] == "a"
        assert things.delete(row["id"]) is None
        assert things.count() == 0

    def test_require_raises(self, things):
        with pytest.raises(NotFoundError, match="Thing not found"):
            things.require("missing", "Thing")

    def test_all_newest_first(self, things):
        things.insert({"name": "old", "createdAt": "2024-01-01T00:00:00Z"})
        things.insert({"name": "new", "createdAt": "2025-01-01T00:00:00Z"})
        assert [x["name"] for x in things.all()] == ["new", "old"]
        assert [x["name"] for x in things.all(newest_first=False)] == ["old", "new"]

    def test_mutate_aborts_on_error(self, things):
        things.insert({"name": "a"})

        def _boom(items):
            items.clear()
            raise ValueError("stop")

        with pytest.raises(ValueError):
            things.mutate(_boom)
        assert things.count() == 1


class TestJsonDocument:
    def test_defaults_are_copied(self):
        doc = JsonDocument("settings", {"nested": {"a": 1}})
        first = doc.load()
        first["nested"]["a"] = 2
        assert doc.load()["nested"]["a"] == 1
        assert not doc.exists()

    def test_save_sets_updated_at(self):
        doc = JsonDocument("settings", {})
        saved = doc.save({"x": 1})
        assert saved["updatedAt"].endswith("Z")
        assert doc.load()["x"] == 1

    def test_update_applies_and_persists(self):
        doc = JsonDocument("settings", {"count": 0})
        result = doc.update(lambda d: d.update(count=d["count"] + 1))
        assert result["count"] == 1
        assert result["updatedAt"].endswith("Z")
        assert doc.load()["count"] == 1

    def test_update_uses_returned_doc(self):
        doc = JsonDocument("settings", {"a": 1})
        assert doc.update(lambda d: {"b": 2})["b"] == 2
        assert "a" not in doc.load()

    def test_concurrent_updates_are_not_lost(self):
        doc = JsonDocument("settings", {"count": 0})

        def _bump():
            for _ in range(20):
                doc.update(lambda d: d.update(count=d["count"] + 1))

        threads = [threading.Thread(target=_bump) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert doc.load()["count"] == 100
