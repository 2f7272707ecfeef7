"""Stock (household inventory) operations."""

import logging

from .errors import EmptyNameError
from .ids import new_id, now_iso
from .models import FALLBACK_CATEGORY, ShoppingItem, StockItem, StockStatus
from .sync import queue_for_shopping

logger = logging.getLogger(__name__)


class StockManager:
    """Manages the stock list of the canonical snapshot.

    Operations on an unknown id change nothing and return None.
    """

    def __init__(self, snapshot_store, default_category: str = FALLBACK_CATEGORY):
        self.snapshot_store = snapshot_store
        self.default_category = default_category

    @property
    def items(self) -> list[StockItem]:
        return self.snapshot_store.snapshot.stock_items

    def get_item(self, item_id: str) -> StockItem | None:
        return self.snapshot_store.snapshot.find_stock(item_id)

    def add_item(
        self,
        name: str,
        category: str | None = None,
        status: StockStatus | str = StockStatus.SUFFICIENT,
        note: str = "",
    ) -> StockItem:
        """Add an item to the stock list.

        Args:
            name: Item name, trimmed before use
            category: Category name, the default category if not given
            status: Initial stock status
            note: Free-text note

        Returns:
            The created StockItem

        Raises:
            EmptyNameError: If the name is blank
            ValueError: If the status is unknown
        """
        name = name.strip()
        if not name:
            raise EmptyNameError()

        item = StockItem(
            id=new_id(),
            name=name,
            category=category or self.default_category,
            status=StockStatus(status),
            note=note or "",
            updated_at=now_iso(),
        )
        self.items.append(item)
        self.snapshot_store.save()
        logger.info("Added %s to stock", name)
        return item

    def update_item(
        self,
        item_id: str,
        name: str | None = None,
        category: str | None = None,
        status: StockStatus | str | None = None,
        note: str | None = None,
    ) -> StockItem | None:
        """Update an existing stock item.

        Returns:
            The updated item, or None if no item has this id

        Raises:
            EmptyNameError: If a blank name is given
            ValueError: If the status is unknown
        """
        if name is not None:
            name = name.strip()
            if not name:
                raise EmptyNameError()
        new_status = StockStatus(status) if status is not None else None

        item = self.get_item(item_id)
        if item is None:
            logger.debug("Update ignored, no stock item %s", item_id)
            return None

        if name is not None:
            item.name = name
        if category is not None:
            item.category = category
        if new_status is not None:
            item.status = new_status
        if note is not None:
            item.note = note
        item.updated_at = now_iso()

        self.snapshot_store.save()
        return item

    def set_status(self, item_id: str, status: StockStatus | str) -> StockItem | None:
        """Set the stock status directly; any transition is allowed."""
        return self.update_item(item_id, status=status)

    def remove_item(self, item_id: str) -> StockItem | None:
        """Remove an item from the stock list.

        Returns:
            The removed item, or None if no item has this id
        """
        for i, item in enumerate(self.items):
            if item.id == item_id:
                removed = self.items.pop(i)
                self.snapshot_store.save()
                logger.info("Removed %s from stock", removed.name)
                return removed

        logger.debug("Remove ignored, no stock item %s", item_id)
        return None

    def add_to_cart(self, item_id: str) -> ShoppingItem | None:
        """Put a stock item on the shopping list.

        Returns:
            The new shopping item, or None if no stock item has this id

        Raises:
            DuplicateItemError: If the item is already on the list unchecked
        """
        stock = self.get_item(item_id)
        if stock is None:
            logger.debug("Add to cart ignored, no stock item %s", item_id)
            return None

        item = queue_for_shopping(self.snapshot_store.snapshot, stock)
        self.snapshot_store.save()
        logger.info("Queued %s for shopping", item.name)
        return item

    def depleted(self) -> list[StockItem]:
        """Items running low or out, the candidates for add_to_cart()."""
        return [item for item in self.items if item.status.is_depleted]
