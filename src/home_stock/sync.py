"""Cross-list synchronization between the shopping and stock lists.

Both directions match items by trimmed, case-insensitive name. These
functions mutate the snapshot they are given and leave saving to the
caller.
"""

import logging

from .errors import DuplicateItemError
from .ids import new_id, now_iso
from .models import ShoppingItem, Snapshot, StockItem, StockStatus, normalize_name

logger = logging.getLogger(__name__)


def find_stock_by_name(snapshot: Snapshot, name: str) -> StockItem | None:
    key = normalize_name(name)
    for stock in snapshot.stock_items:
        if stock.name_key == key:
            return stock
    return None


def find_open_shopping_by_name(snapshot: Snapshot, name: str) -> ShoppingItem | None:
    key = normalize_name(name)
    for item in snapshot.shopping_items:
        if not item.checked and item.name_key == key:
            return item
    return None


def restock_from_shopping(snapshot: Snapshot, item: ShoppingItem) -> StockItem:
    """Record that a checked-off shopping item is now in stock.

    An existing stock item with the same name becomes sufficient and takes
    the shopping item's category; otherwise a new stock item is created.
    """
    timestamp = now_iso()
    stock = find_stock_by_name(snapshot, item.name)
    if stock is not None:
        stock.status = StockStatus.SUFFICIENT
        stock.category = item.category
        stock.updated_at = timestamp
        logger.debug("Restocked %s", stock.name)
        return stock

    stock = StockItem(
        id=new_id(),
        name=item.name.strip(),
        category=item.category,
        status=StockStatus.SUFFICIENT,
        note="",
        updated_at=timestamp,
    )
    snapshot.stock_items.append(stock)
    logger.debug("Created stock item %s from shopping list", stock.name)
    return stock


def queue_for_shopping(snapshot: Snapshot, stock: StockItem) -> ShoppingItem:
    """Put a stock item back on the shopping list.

    Raises:
        DuplicateItemError: If an unchecked shopping item with the same name
            already exists; nothing is added
    """
    existing = find_open_shopping_by_name(snapshot, stock.name)
    if existing is not None:
        raise DuplicateItemError(existing)

    timestamp = now_iso()
    item = ShoppingItem(
        id=new_id(),
        name=stock.name,
        category=stock.category,
        checked=False,
        created_at=timestamp,
        updated_at=timestamp,
    )
    snapshot.shopping_items.append(item)
    return item
