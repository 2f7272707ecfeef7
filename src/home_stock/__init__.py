"""Home Stock - shopping list and household stock kept in sync."""

from .categories import CategoryInfo, CategoryManager, color_of
from .config import ConfigManager
from .data_store import (
    BackendType,
    create_data_store,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from .engine import HomeStock
from .errors import (
    DuplicateCategoryError,
    DuplicateItemError,
    EmptyNameError,
    HomeStockError,
    ItemNotFoundError,
    NothingStagedError,
    PersistenceError,
    ProtectedCategoryError,
    StorageQuotaError,
)
from .exchange import (
    ExportPayload,
    Importer,
    SnapshotValidationError,
    ValidationErrorKind,
    ValidationResult,
    export_snapshot,
    validate,
)
from .list_manager import ListManager
from .models import (
    DEFAULT_CATEGORIES,
    BackupEntry,
    ImportSummary,
    ShoppingItem,
    Snapshot,
    SortMode,
    StockItem,
    StockStatus,
)
from .query import ShoppingView, StockView, ViewState
from .settings import DeviceSettings
from .snapshot_store import BackupRing, SnapshotStore
from .sqlite_store import SQLiteKeyValueStore
from .stock_manager import StockManager

__version__ = "0.1.0"

__all__ = [
    "BackendType",
    "BackupEntry",
    "BackupRing",
    "CategoryInfo",
    "CategoryManager",
    "color_of",
    "ConfigManager",
    "create_data_store",
    "DEFAULT_CATEGORIES",
    "DeviceSettings",
    "DuplicateCategoryError",
    "DuplicateItemError",
    "EmptyNameError",
    "export_snapshot",
    "ExportPayload",
    "FileKeyValueStore",
    "HomeStock",
    "HomeStockError",
    "Importer",
    "ImportSummary",
    "ItemNotFoundError",
    "KeyValueStore",
    "ListManager",
    "MemoryKeyValueStore",
    "NothingStagedError",
    "PersistenceError",
    "ProtectedCategoryError",
    "ShoppingItem",
    "ShoppingView",
    "Snapshot",
    "SnapshotStore",
    "SnapshotValidationError",
    "SortMode",
    "SQLiteKeyValueStore",
    "StockItem",
    "StockManager",
    "StockStatus",
    "StockView",
    "StorageQuotaError",
    "validate",
    "ValidationErrorKind",
    "ValidationResult",
    "ViewState",
]
