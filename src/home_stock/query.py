"""Filtering, search and sort over the shopping and stock lists.

Everything here is read-only: views are recomputed from the snapshot on
every iteration and never modify it.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from .categories import color_of
from .ids import parse_timestamp
from .models import ShoppingItem, Snapshot, SortMode, StockItem, StockStatus


@dataclass
class ViewState:
    """Transient presentation state chosen by the user."""

    search_text: str = ""
    category_filter: str = ""
    status_filter: StockStatus | None = None
    sort_mode: SortMode = SortMode.RECENT

    def __post_init__(self):
        self.search_text = self.search_text or ""
        self.category_filter = self.category_filter or ""
        if self.status_filter:
            self.status_filter = StockStatus(self.status_filter)
        else:
            self.status_filter = None
        self.sort_mode = SortMode(self.sort_mode or SortMode.RECENT)


class ShoppingRow(NamedTuple):
    item: ShoppingItem
    color: str


class StockRow(NamedTuple):
    item: StockItem
    color: str


def _matches_search(name: str, search_text: str) -> bool:
    return not search_text or search_text.lower() in (name or "").lower()


def filter_shopping(items: Iterable[ShoppingItem], view: ViewState) -> list[ShoppingItem]:
    return [
        item
        for item in items
        if _matches_search(item.name, view.search_text)
        and (not view.category_filter or item.category == view.category_filter)
    ]


def filter_stock(items: Iterable[StockItem], view: ViewState) -> list[StockItem]:
    return [
        item
        for item in items
        if _matches_search(item.name, view.search_text)
        and (not view.category_filter or item.category == view.category_filter)
        and (view.status_filter is None or item.status == view.status_filter)
    ]


def category_positions(categories: Sequence[str]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for index, name in enumerate(categories):
        positions.setdefault(name, index)
    return positions


def sort_shopping(
    items: Iterable[ShoppingItem],
    categories: Sequence[str],
    sort_mode: SortMode = SortMode.RECENT,
) -> list[ShoppingItem]:
    """Unchecked items first, then by sort mode.

    recent: newest first. category: registry order with unregistered
    categories first, newest first within a category.
    """
    ordered = sorted(items, key=lambda item: parse_timestamp(item.created_at), reverse=True)
    if sort_mode == SortMode.CATEGORY:
        positions = category_positions(categories)
        ordered.sort(key=lambda item: positions.get(item.category, -1))
    ordered.sort(key=lambda item: item.checked)
    return ordered


def sort_stock(items: Iterable[StockItem]) -> list[StockItem]:
    """Most recently updated first."""
    return sorted(items, key=lambda item: parse_timestamp(item.updated_at), reverse=True)


def shopping_rows(snapshot: Snapshot, view: ViewState) -> list[ShoppingRow]:
    items = sort_shopping(
        filter_shopping(snapshot.shopping_items, view), snapshot.categories, view.sort_mode
    )
    return [ShoppingRow(item, color_of(item.category, snapshot.categories)) for item in items]


def stock_rows(snapshot: Snapshot, view: ViewState) -> list[StockRow]:
    items = sort_stock(filter_stock(snapshot.stock_items, view))
    return [StockRow(item, color_of(item.category, snapshot.categories)) for item in items]


class _View:
    _rows = staticmethod(shopping_rows)

    def __init__(self, source, view: ViewState | None = None):
        """Create a view.

        Args:
            source: SnapshotStore, read again on every iteration so replaced
                snapshots are seen, or a fixed Snapshot
            view: Filters and sort mode
        """
        self.source = source
        self.view = view or ViewState()

    @property
    def snapshot(self) -> Snapshot:
        if isinstance(self.source, Snapshot):
            return self.source
        return self.source.snapshot

    def __iter__(self) -> Iterator:
        yield from self._rows(self.snapshot, self.view)

    def __len__(self) -> int:
        return len(self._rows(self.snapshot, self.view))

    def items(self) -> list:
        return [row.item for row in self]


class ShoppingView(_View):
    """Ordered shopping rows; each iteration reflects the current snapshot."""

    _rows = staticmethod(shopping_rows)


class StockView(_View):
    """Ordered stock rows; each iteration reflects the current snapshot."""

    _rows = staticmethod(stock_rows)
