"""Shopping list operations."""

import logging

from .errors import EmptyNameError
from .ids import new_id, now_iso
from .models import FALLBACK_CATEGORY, ShoppingItem
from .sync import restock_from_shopping

logger = logging.getLogger(__name__)


class ListManager:
    """Manages shopping list operations on the canonical snapshot.

    Operations on an unknown id change nothing and return None.
    """

    def __init__(self, snapshot_store, default_category: str = FALLBACK_CATEGORY):
        """Initialize list manager.

        Args:
            snapshot_store: SnapshotStore owning the canonical snapshot
            default_category: Category used when none is given
        """
        self.snapshot_store = snapshot_store
        self.default_category = default_category

    @property
    def items(self) -> list[ShoppingItem]:
        return self.snapshot_store.snapshot.shopping_items

    def get_item(self, item_id: str) -> ShoppingItem | None:
        return self.snapshot_store.snapshot.find_shopping(item_id)

    def add_item(self, name: str, category: str | None = None) -> ShoppingItem:
        """Add an item to the shopping list.

        Args:
            name: Item name, trimmed before use
            category: Category name, the default category if not given

        Returns:
            The new item

        Raises:
            EmptyNameError: If the name is blank
        """
        name = name.strip()
        if not name:
            raise EmptyNameError()

        timestamp = now_iso()
        item = ShoppingItem(
            id=new_id(),
            name=name,
            category=category or self.default_category,
            checked=False,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self.items.append(item)
        self.snapshot_store.save()
        logger.info("Added %s to shopping list", name)
        return item

    def toggle_item(self, item_id: str) -> ShoppingItem | None:
        """Flip an item between checked and unchecked.

        Checking an item marks it as sufficiently stocked. Unchecking leaves
        the stock list alone.

        Returns:
            The toggled item, or None if no item has this id
        """
        item = self.get_item(item_id)
        if item is None:
            logger.debug("Toggle ignored, no shopping item %s", item_id)
            return None

        item.checked = not item.checked
        item.updated_at = now_iso()
        if item.checked:
            restock_from_shopping(self.snapshot_store.snapshot, item)

        self.snapshot_store.save()
        return item

    def update_item(
        self,
        item_id: str,
        name: str | None = None,
        category: str | None = None,
    ) -> ShoppingItem | None:
        """Update an existing item.

        Returns:
            The updated item, or None if no item has this id

        Raises:
            EmptyNameError: If a blank name is given
        """
        if name is not None:
            name = name.strip()
            if not name:
                raise EmptyNameError()

        item = self.get_item(item_id)
        if item is None:
            logger.debug("Update ignored, no shopping item %s", item_id)
            return None

        if name is not None:
            item.name = name
        if category is not None:
            item.category = category
        item.updated_at = now_iso()

        self.snapshot_store.save()
        return item

    def remove_item(self, item_id: str) -> ShoppingItem | None:
        """Remove an item from the shopping list.

        Returns:
            The removed item, or None if no item has this id
        """
        for i, item in enumerate(self.items):
            if item.id == item_id:
                removed = self.items.pop(i)
                self.snapshot_store.save()
                logger.info("Removed %s from shopping list", removed.name)
                return removed

        logger.debug("Remove ignored, no shopping item %s", item_id)
        return None

    def clear_checked(self) -> int:
        """Remove all checked items.

        Returns:
            Number of removed items
        """
        snapshot = self.snapshot_store.snapshot
        original_count = len(snapshot.shopping_items)
        snapshot.shopping_items = [item for item in snapshot.shopping_items if not item.checked]

        removed_count = original_count - len(snapshot.shopping_items)
        if removed_count:
            self.snapshot_store.save()
        return removed_count
