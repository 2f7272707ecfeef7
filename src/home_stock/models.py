"""Core data models for Home Stock.

Models use snake_case attributes in Python and the camelCase field names of
the snapshot file format on disk (``populate_by_name`` plus aliases).
Unknown fields are kept so snapshots from newer or older devices survive a
load/save cycle unchanged.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ids import new_id, now_iso

DEFAULT_CATEGORIES: tuple[str, ...] = (
    "食料品",  # groceries
    "日用品",  # daily goods
    "消耗品",  # consumables
    "その他",  # other
)
FALLBACK_CATEGORY = "その他"
SNAPSHOT_VERSION = 1


class StockStatus(str, Enum):
    """Three-level stock sufficiency."""

    SUFFICIENT = "sufficient"
    LOW = "low"
    NONE = "none"

    @property
    def is_depleted(self) -> bool:
        return self is not StockStatus.SUFFICIENT


# Japanese status labels found in older snapshots.
LEGACY_STATUS_LABELS = {
    "十分": StockStatus.SUFFICIENT,
    "少ない": StockStatus.LOW,
    "なし": StockStatus.NONE,
}


class SortMode(str, Enum):
    """Shopping list sort modes."""

    RECENT = "recent"
    CATEGORY = "category"


def normalize_name(name: str) -> str:
    """Key used for soft name matching between the two lists."""
    return name.strip().lower()


def _as_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Record(BaseModel):
    """Base for list entries.

    Only the fields an entry actually carries are written back, so entries
    from a partial import are stored verbatim.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _ensure_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            data = {**data, "id": new_id()}
        return data

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)  # type: ignore[attr-defined]

    def to_record(self) -> dict[str, Any]:
        """Serialize with file-format field names."""
        record = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        for key, value in (self.model_extra or {}).items():
            record.setdefault(key, value)
        return record


class ShoppingItem(_Record):
    """An entry on the shopping list."""

    id: str
    name: str = ""
    category: str = ""
    checked: bool = False
    created_at: str = Field(default="", alias="createdAt")
    updated_at: str = Field(default="", alias="updatedAt")

    @field_validator("id", "name", "category", "created_at", "updated_at", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class StockItem(_Record):
    """An entry on the stock list."""

    id: str
    name: str = ""
    category: str = ""
    status: StockStatus = StockStatus.SUFFICIENT
    note: str = ""
    updated_at: str = Field(default="", alias="updatedAt")

    @field_validator("id", "name", "category", "note", "updated_at", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _legacy_status(cls, value: Any) -> Any:
        if value is None:
            return StockStatus.SUFFICIENT
        if isinstance(value, str):
            return LEGACY_STATUS_LABELS.get(value.strip(), value.strip().lower())
        return value


class Snapshot(BaseModel):
    """The complete persisted household state."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: int | float | str = SNAPSHOT_VERSION
    updated_at: str = Field(default_factory=now_iso, alias="updatedAt")
    updated_by: str = Field(default="", alias="updatedBy")
    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    shopping_items: list[ShoppingItem] = Field(default_factory=list, alias="shoppingItems")
    stock_items: list[StockItem] = Field(default_factory=list, alias="stockItems")

    # Empty or unreadable top-level fields fall back to their defaults.
    @field_validator("version", mode="before")
    @classmethod
    def _backfill_version(cls, value: Any) -> Any:
        if not value or isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return SNAPSHOT_VERSION
        return value

    @field_validator("updated_at", mode="before")
    @classmethod
    def _backfill_updated_at(cls, value: Any) -> Any:
        value = _as_text(value)
        return value if value and isinstance(value, str) else now_iso()

    @field_validator("updated_by", mode="before")
    @classmethod
    def _backfill_updated_by(cls, value: Any) -> Any:
        value = _as_text(value)
        return value if isinstance(value, str) else ""

    @field_validator("categories", mode="before")
    @classmethod
    def _coerce_categories(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_as_text(name) for name in value]
        return value

    def find_shopping(self, item_id: str) -> ShoppingItem | None:
        for item in self.shopping_items:
            if item.id == item_id:
                return item
        return None

    def find_stock(self, item_id: str) -> StockItem | None:
        for item in self.stock_items:
            if item.id == item_id:
                return item
        return None

    def to_document(self) -> dict[str, Any]:
        """Serialize to the snapshot file format."""
        document: dict[str, Any] = {
            "version": self.version,
            "updatedAt": self.updated_at,
            "updatedBy": self.updated_by,
            "categories": list(self.categories),
            "shoppingItems": [item.to_record() for item in self.shopping_items],
            "stockItems": [item.to_record() for item in self.stock_items],
        }
        for key, value in (self.model_extra or {}).items():
            document.setdefault(key, value)
        return document


class BackupEntry(BaseModel):
    """A backup ring entry, as listed to the user."""

    key: str
    timestamp: int  # epoch milliseconds

    @property
    def created_at(self) -> str:
        moment = datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ImportSummary(BaseModel):
    """What a staged import would bring in."""

    shopping_count: int
    stock_count: int
    category_count: int
    updated_at: str | None = None
    updated_by: str | None = None
