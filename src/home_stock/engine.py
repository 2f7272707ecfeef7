"""The Home Stock engine: one owned state context wiring all components."""

from collections.abc import Callable
from pathlib import Path

from .categories import CategoryManager
from .config import ConfigManager
from .data_store import BackendType, KeyValueStore, MemoryKeyValueStore, create_data_store
from .exchange import ExportPayload, Importer, export_snapshot
from .list_manager import ListManager
from .models import FALLBACK_CATEGORY, Snapshot, SortMode
from .query import ShoppingView, StockView, ViewState
from .settings import DeviceSettings
from .snapshot_store import DEFAULT_BACKUP_LIMIT, SnapshotStore
from .stock_manager import StockManager


class HomeStock:
    """Owns the canonical snapshot and exposes every core operation.

    Instances are independent; tests can create as many as they like, each
    over its own key-value store.
    """

    def __init__(
        self,
        data_store: KeyValueStore | None = None,
        backup_limit: int = DEFAULT_BACKUP_LIMIT,
        default_category: str = FALLBACK_CATEGORY,
        default_sort: SortMode | str = SortMode.RECENT,
        on_warning: Callable[[str], None] | None = None,
    ):
        self.data_store = data_store if data_store is not None else MemoryKeyValueStore()
        self.settings = DeviceSettings(self.data_store)
        self.snapshots = SnapshotStore(
            self.data_store,
            settings=self.settings,
            backup_limit=backup_limit,
            on_warning=on_warning,
        )
        self.shopping = ListManager(self.snapshots, default_category=default_category)
        self.stock = StockManager(self.snapshots, default_category=default_category)
        self.categories = CategoryManager(self.snapshots)
        self.importer = Importer(self.snapshots)
        self.default_sort = SortMode(default_sort)

    @classmethod
    def from_config(
        cls,
        config: ConfigManager,
        data_dir: Path | None = None,
        on_warning: Callable[[str], None] | None = None,
    ) -> "HomeStock":
        """Build an engine from configuration; data_dir overrides the config."""
        data = config.data
        data_store = create_data_store(
            backend=BackendType(data.backend),
            data_dir=data_dir or data.storage_dir,
            quota_bytes=data.quota_bytes,
        )
        return cls(
            data_store,
            backup_limit=data.backup_limit,
            default_category=config.defaults.category,
            default_sort=config.defaults.sort,
            on_warning=on_warning,
        )

    @property
    def snapshot(self) -> Snapshot:
        return self.snapshots.snapshot

    def view_state(self, **kwargs) -> ViewState:
        kwargs.setdefault("sort_mode", self.default_sort)
        return ViewState(**kwargs)

    def current_shopping_view(self, view: ViewState | None = None) -> ShoppingView:
        return ShoppingView(self.snapshots, view or self.view_state())

    def current_stock_view(self, view: ViewState | None = None) -> StockView:
        return StockView(self.snapshots, view or self.view_state())

    def export(self) -> ExportPayload:
        return export_snapshot(self.snapshot)
