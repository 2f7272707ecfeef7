"""Tests for snapshot export, validation and staged import."""

import json
import re
from datetime import datetime

import pytest

from home_stock.data_store import MemoryKeyValueStore
from home_stock.engine import HomeStock
from home_stock.errors import NothingStagedError
from home_stock.exchange import (
    SnapshotValidationError,
    ValidationErrorKind,
    ValidationResult,
    decode,
    export_filename,
    export_snapshot,
    validate,
)
from home_stock.models import SNAPSHOT_VERSION, StockStatus
from home_stock.snapshot_store import CANONICAL_KEY


def strip_stamps(document):
    return {k: v for k, v in document.items() if k not in ("updatedAt", "updatedBy")}


class TestExport:
    """Tests for export."""

    def test_payload(self, engine):
        payload = engine.export()
        assert payload.content_type == "application/json"
        assert re.match(r"^home-stock-\d{8}-\d{4}\.json$", payload.filename)
        assert json.loads(payload.data)["version"] == SNAPSHOT_VERSION

    def test_filename(self):
        assert export_filename(datetime(2024, 5, 1, 9, 7)) == "home-stock-20240501-0907.json"

    def test_pretty_utf8(self, engine):
        """Exports are indented UTF-8 with non-ASCII kept as is."""
        engine.shopping.add_item("牛乳", category="食料品")
        text = engine.export().data.decode("utf-8")
        assert "牛乳" in text
        assert "\n  " in text

    def test_export_is_unfiltered(self, engine):
        """Exports hold every item regardless of view state."""
        engine.shopping.add_item("Milk")
        item = engine.shopping.add_item("Bread")
        engine.shopping.toggle_item(item.id)
        document = json.loads(engine.export().data)
        assert len(document["shoppingItems"]) == 2
        assert len(document["stockItems"]) == 1

    def test_export_with_moment(self, snapshot_store):
        payload = export_snapshot(snapshot_store.snapshot, datetime(2023, 12, 31, 23, 59))
        assert payload.filename == "home-stock-20231231-2359.json"


class TestValidate:
    """Tests for validate()."""

    def test_valid(self, sample_snapshot_data):
        result = validate(sample_snapshot_data)
        assert result
        assert result.unwrap().updated_by == "Hanako"

    @pytest.mark.parametrize(
        "candidate,kind,field",
        [
            ([], ValidationErrorKind.NOT_AN_OBJECT, None),
            ("text", ValidationErrorKind.NOT_AN_OBJECT, None),
            ({"shoppingItems": [], "stockItems": []}, ValidationErrorKind.MISSING_FIELD, "categories"),
            ({"categories": [], "stockItems": []}, ValidationErrorKind.MISSING_FIELD, "shoppingItems"),
            (
                {"categories": [], "shoppingItems": {}, "stockItems": []},
                ValidationErrorKind.NOT_AN_ARRAY,
                "shoppingItems",
            ),
            (
                {"categories": [], "shoppingItems": [], "stockItems": ["Soap"]},
                ValidationErrorKind.INVALID_ITEM,
                "stockItems",
            ),
            (
                {"categories": [], "shoppingItems": [], "stockItems": [{"status": "plenty"}]},
                ValidationErrorKind.INVALID_ITEM,
                "stockItems",
            ),
        ],
    )
    def test_rejected(self, candidate, kind, field):
        result = validate(candidate)
        assert not result
        assert result.error.kind == kind
        assert result.error.field == field
        with pytest.raises(SnapshotValidationError):
            result.unwrap()

    def test_minimal_candidate(self):
        """Only the three lists are required."""
        snapshot = validate({"categories": [], "shoppingItems": [], "stockItems": []}).unwrap()
        assert snapshot.version == SNAPSHOT_VERSION
        assert snapshot.updated_by == ""

    def test_decode_invalid(self):
        with pytest.raises(SnapshotValidationError) as exc_info:
            decode(b"{oops")
        assert exc_info.value.kind == ValidationErrorKind.INVALID_JSON
        assert exc_info.value.error_code == "INVALID_SNAPSHOT"

    def test_decode_bom(self):
        """A UTF-8 byte order mark is tolerated."""
        assert decode("\ufeff{}".encode("utf-8")) == {}

    def test_lone_surrogate_in_item(self):
        """Escaped lone surrogates parse as JSON but are rejected as items."""
        candidate = decode(
            rb'{"categories": [], "shoppingItems": [{"id": "a", "name": "x\ud800"}], "stockItems": []}'
        )
        result = validate(candidate)
        assert not result
        assert result.error.kind == ValidationErrorKind.INVALID_ITEM
        assert result.error.field == "shoppingItems"

    def test_lone_surrogate_in_category(self):
        candidate = decode(rb'{"categories": ["\udfff"], "shoppingItems": [], "stockItems": []}')
        result = validate(candidate)
        assert result.error.kind == ValidationErrorKind.INVALID_FIELD
        assert result.error.field == "categories"

    @pytest.mark.parametrize("version", [None, 0, "", False, {"major": 1}])
    def test_empty_version_backfilled(self, version):
        """Empty or unreadable versions become the current version."""
        candidate = {"version": version, "categories": [], "shoppingItems": [], "stockItems": []}
        assert validate(candidate).unwrap().version == SNAPSHOT_VERSION

    @pytest.mark.parametrize("updated_by", [None, False, ["Hanako"], {"name": "Hanako"}])
    def test_unreadable_updated_by_backfilled(self, updated_by):
        candidate = {
            "updatedBy": updated_by, "updatedAt": None,
            "categories": [], "shoppingItems": [], "stockItems": [],
        }
        snapshot = validate(candidate).unwrap()
        assert snapshot.updated_by == ""
        assert snapshot.updated_at

    def test_unwrap_empty_result(self):
        with pytest.raises(ValueError):
            ValidationResult().unwrap()


class TestImporter:
    """Tests for the two-phase import."""

    def test_round_trip(self, engine):
        """Export on one device, import on another, same data."""
        engine.categories.add("Pets")
        engine.shopping.add_item("Cat food", category="Pets")
        engine.stock.add_item("Rice", category="食料品", status="low", note="5kg")
        payload = engine.export()

        other = HomeStock(MemoryKeyValueStore())
        other.importer.stage(payload.data)
        other.importer.commit()

        assert strip_stamps(other.snapshot.to_document()) == strip_stamps(
            engine.snapshot.to_document()
        )

    def test_stage_summary(self, engine, sample_snapshot_json):
        summary = engine.importer.stage(sample_snapshot_json)
        assert summary.shopping_count == 2
        assert summary.stock_count == 1
        assert summary.category_count == 5
        assert summary.updated_by == "Hanako"
        assert engine.importer.staged

    def test_stage_does_not_touch_state(self, engine, data_store, sample_snapshot_json):
        engine.shopping.add_item("Milk")
        before = data_store.get(CANONICAL_KEY)

        engine.importer.stage(sample_snapshot_json)

        assert data_store.get(CANONICAL_KEY) == before
        assert [item.name for item in engine.shopping.items] == ["Milk"]
        assert engine.snapshots.list_backups() == []

    def test_commit_replaces_and_backs_up(self, engine, data_store, sample_snapshot_json):
        """Commit replaces local data wholesale after backing it up."""
        engine.shopping.add_item("Local only")
        engine.importer.stage(sample_snapshot_json)

        engine.importer.commit()

        assert [item.name for item in engine.shopping.items] == ["Milk", "Cat food"]
        assert engine.snapshot.categories[-1] == "Pets"
        backups = engine.snapshots.list_backups()
        assert len(backups) == 1
        backed_up = json.loads(data_store.get(backups[0].key))
        assert backed_up["shoppingItems"][0]["name"] == "Local only"
        assert not engine.importer.staged

    def test_commit_persists(self, engine, data_store, sample_snapshot_json):
        engine.importer.stage(sample_snapshot_json)
        engine.importer.commit()
        stored = json.loads(data_store.get(CANONICAL_KEY))
        assert stored["stockItems"][0]["name"] == "Toilet paper"

    def test_partial_import_repair(self, engine, data_store):
        """Missing top-level fields get defaults; partial items stay verbatim."""
        candidate = {"categories": [], "shoppingItems": [], "stockItems": [{"id": "x", "name": "Soap"}]}
        engine.importer.stage(json.dumps(candidate))
        snapshot = engine.importer.commit()

        assert snapshot.version == SNAPSHOT_VERSION
        assert snapshot.categories == []
        assert snapshot.updated_at
        assert snapshot.stock_items[0].status == StockStatus.SUFFICIENT
        stored = json.loads(data_store.get(CANONICAL_KEY))
        assert stored["version"] == SNAPSHOT_VERSION
        assert stored["updatedBy"] == ""
        assert stored["stockItems"] == [{"id": "x", "name": "Soap"}]

    def test_partial_import_null_fields(self, engine, data_store):
        """Null top-level fields are repaired like missing ones."""
        engine.importer.stage(
            b'{"version": null, "updatedBy": null, "categories": [],'
            b' "shoppingItems": [], "stockItems": []}'
        )
        snapshot = engine.importer.commit()

        assert snapshot.version == SNAPSHOT_VERSION
        stored = json.loads(data_store.get(CANONICAL_KEY))
        assert stored["version"] == SNAPSHOT_VERSION
        assert stored["updatedBy"] == ""

    def test_stage_lone_surrogate(self, engine, data_store):
        """Text that cannot be stored is refused before anything changes."""
        engine.shopping.add_item("Milk")
        before = data_store.get(CANONICAL_KEY)

        with pytest.raises(SnapshotValidationError):
            engine.importer.stage(
                rb'{"categories": [], "shoppingItems": [{"id": "a", "name": "x\ud800"}],'
                rb' "stockItems": []}'
            )

        assert not engine.importer.staged
        assert [item.name for item in engine.shopping.items] == ["Milk"]
        assert data_store.get(CANONICAL_KEY) == before

    def test_imported_items_without_name(self, engine):
        """Items missing a name import and display with an empty name."""
        candidate = {"categories": [], "shoppingItems": [{"id": "n"}], "stockItems": []}
        engine.importer.stage(json.dumps(candidate))
        engine.importer.commit()
        assert [row.item.name for row in engine.current_shopping_view()] == [""]

    def test_legacy_status_import(self, engine):
        candidate = {
            "categories": [],
            "shoppingItems": [],
            "stockItems": [{"id": "a", "name": "Rice", "status": "少ない"}],
        }
        engine.importer.stage(json.dumps(candidate, ensure_ascii=False).encode("utf-8"))
        engine.importer.commit()
        assert engine.stock.items[0].status == StockStatus.LOW

    def test_unknown_fields_survive(self, engine, data_store):
        candidate = {
            "categories": [],
            "shoppingItems": [{"id": "s", "name": "Milk", "quantity": 2}],
            "stockItems": [],
            "device": "tablet",
        }
        engine.importer.stage(json.dumps(candidate))
        engine.importer.commit()
        stored = json.loads(data_store.get(CANONICAL_KEY))
        assert stored["device"] == "tablet"
        assert stored["shoppingItems"][0]["quantity"] == 2

    def test_stage_invalid(self, engine, data_store):
        """Invalid candidates are rejected without any change."""
        engine.shopping.add_item("Milk")
        before = data_store.get(CANONICAL_KEY)

        with pytest.raises(SnapshotValidationError):
            engine.importer.stage(b'{"categories": []}')

        assert not engine.importer.staged
        assert data_store.get(CANONICAL_KEY) == before
        assert engine.snapshots.list_backups() == []

    def test_invalid_stage_drops_previous(self, engine, sample_snapshot_json):
        engine.importer.stage(sample_snapshot_json)
        with pytest.raises(SnapshotValidationError):
            engine.importer.stage(b"[]")
        assert not engine.importer.staged

    def test_cancel(self, engine, sample_snapshot_json):
        engine.shopping.add_item("Milk")
        engine.importer.stage(sample_snapshot_json)
        engine.importer.cancel()

        with pytest.raises(NothingStagedError):
            engine.importer.commit()
        assert [item.name for item in engine.shopping.items] == ["Milk"]

    def test_commit_without_stage(self, engine):
        with pytest.raises(NothingStagedError):
            engine.importer.commit()

    def test_commit_once(self, engine, sample_snapshot_json):
        """A staged snapshot can only be committed once."""
        engine.importer.stage(sample_snapshot_json)
        engine.importer.commit()
        with pytest.raises(NothingStagedError):
            engine.importer.commit()
