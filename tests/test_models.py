"""Tests for data models."""

import pytest
from pydantic import ValidationError

from home_stock.models import (
    DEFAULT_CATEGORIES,
    SNAPSHOT_VERSION,
    BackupEntry,
    ShoppingItem,
    Snapshot,
    StockItem,
    StockStatus,
    normalize_name,
)


class TestShoppingItem:
    """Tests for ShoppingItem model."""

    def test_create_minimal(self):
        """Test creating an item with only a name."""
        item = ShoppingItem(name="Milk")
        assert item.name == "Milk"
        assert item.id
        assert item.checked is False
        assert item.category == ""

    def test_aliases(self):
        """File-format camelCase names populate snake_case fields."""
        item = ShoppingItem.model_validate(
            {"id": "a", "name": "Milk", "createdAt": "2024-01-01T00:00:00.000Z"}
        )
        assert item.created_at == "2024-01-01T00:00:00.000Z"

    def test_to_record_uses_file_names(self):
        """Records are written with camelCase field names."""
        item = ShoppingItem(
            id="a", name="Milk", category="食料品", checked=True,
            created_at="2024-01-01T00:00:00.000Z", updated_at="2024-01-02T00:00:00.000Z",
        )
        assert item.to_record() == {
            "id": "a",
            "name": "Milk",
            "category": "食料品",
            "checked": True,
            "createdAt": "2024-01-01T00:00:00.000Z",
            "updatedAt": "2024-01-02T00:00:00.000Z",
        }

    def test_partial_record_kept_verbatim(self):
        """Only fields an entry carried are written back."""
        item = ShoppingItem.model_validate({"id": "x", "name": "Soap"})
        assert item.to_record() == {"id": "x", "name": "Soap"}

    def test_unknown_fields_preserved(self):
        """Fields from other app versions survive a round trip."""
        item = ShoppingItem.model_validate({"id": "x", "name": "Soap", "quantity": 3})
        assert item.to_record()["quantity"] == 3

    def test_missing_id_generated(self):
        """Entries without an id get a fresh one."""
        item = ShoppingItem.model_validate({"name": "Soap"})
        assert item.id

    def test_null_name_reads_empty(self):
        """A null name reads as an empty string."""
        item = ShoppingItem.model_validate({"id": "x", "name": None})
        assert item.name == ""

    def test_name_key(self):
        """Name keys ignore case and surrounding whitespace."""
        assert ShoppingItem(name="  Eggs ").name_key == "eggs"


class TestStockItem:
    """Tests for StockItem model."""

    def test_default_status(self):
        """New stock items default to sufficient."""
        assert StockItem(name="Rice").status == StockStatus.SUFFICIENT

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("十分", StockStatus.SUFFICIENT),
            ("少ない", StockStatus.LOW),
            ("なし", StockStatus.NONE),
            ("LOW", StockStatus.LOW),
        ],
    )
    def test_legacy_status_labels(self, label, expected):
        """Legacy and differently-cased labels are accepted."""
        item = StockItem.model_validate({"id": "a", "name": "Rice", "status": label})
        assert item.status == expected

    def test_invalid_status(self):
        """Unknown status values are rejected."""
        with pytest.raises(ValidationError):
            StockItem.model_validate({"id": "a", "name": "Rice", "status": "plenty"})

    def test_status_serialized_as_value(self):
        """Status is written as its plain value."""
        item = StockItem(id="a", name="Rice", status=StockStatus.LOW)
        assert item.to_record()["status"] == "low"

    def test_is_depleted(self):
        """Only low and none count as depleted."""
        assert not StockStatus.SUFFICIENT.is_depleted
        assert StockStatus.LOW.is_depleted
        assert StockStatus.NONE.is_depleted


class TestSnapshot:
    """Tests for Snapshot model."""

    def test_defaults(self):
        """A fresh snapshot has the built-in categories and empty lists."""
        snapshot = Snapshot()
        assert snapshot.version == SNAPSHOT_VERSION
        assert snapshot.categories == list(DEFAULT_CATEGORIES)
        assert snapshot.shopping_items == []
        assert snapshot.stock_items == []
        assert snapshot.updated_by == ""

    def test_defaults_not_shared(self):
        """Default categories are a fresh list per snapshot."""
        first = Snapshot()
        first.categories.append("Pets")
        assert "Pets" not in Snapshot().categories

    def test_to_document(self, sample_snapshot_data):
        """Documents use the file-format field names."""
        document = Snapshot.model_validate(sample_snapshot_data).to_document()
        assert document == sample_snapshot_data

    def test_top_level_extras_preserved(self):
        """Unknown top-level fields are written back."""
        snapshot = Snapshot.model_validate(
            {"categories": [], "shoppingItems": [], "stockItems": [], "device": "tablet"}
        )
        assert snapshot.to_document()["device"] == "tablet"

    def test_find(self, sample_snapshot_data):
        """Items are found by id."""
        snapshot = Snapshot.model_validate(sample_snapshot_data)
        assert snapshot.find_shopping("lv1a2b3c-abcdefgh").name == "Milk"
        assert snapshot.find_stock("lv1a2b3e-qrstuvwx").name == "Toilet paper"
        assert snapshot.find_shopping("missing") is None
        assert snapshot.find_stock("lv1a2b3c-abcdefgh") is None


def test_normalize_name():
    """normalize_name trims and lowercases."""
    assert normalize_name("  Milk ") == "milk"


def test_backup_entry_created_at():
    """Backup timestamps render as UTC ISO strings."""
    entry = BackupEntry(key="home-stock-backup-0", timestamp=0)
    assert entry.created_at == "1970-01-01T00:00:00.000Z"
