"""Category registry and deterministic category colors."""

import logging
from collections.abc import Sequence
from typing import NamedTuple

from .errors import DuplicateCategoryError, EmptyNameError, ProtectedCategoryError
from .models import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)

CATEGORY_COLORS = {
    "食料品": "#4CAF50",
    "日用品": "#2196F3",
    "消耗品": "#FF9800",
    "その他": "#9E9E9E",
}
EXTRA_COLORS = (
    "#AB47BC",
    "#EF5350",
    "#26C6DA",
    "#8D6E63",
    "#78909C",
    "#EC407A",
    "#66BB6A",
    "#FFA726",
)


def hash_code(text: str) -> int:
    """32-bit signed string hash (h * 31 + c) over UTF-16 code units.

    Matches the hash used by other devices sharing the snapshot, so a
    category missing from the registry gets the same color everywhere.
    """
    value = 0
    encoded = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def color_of(name: str, categories: Sequence[str]) -> str:
    """Color for a category given the current registry order."""
    if name in CATEGORY_COLORS:
        return CATEGORY_COLORS[name]
    try:
        extra_index = list(categories).index(name) - len(DEFAULT_CATEGORIES)
    except ValueError:
        extra_index = -1
    if extra_index >= 0:
        return EXTRA_COLORS[extra_index % len(EXTRA_COLORS)]
    return EXTRA_COLORS[abs(hash_code(name)) % len(EXTRA_COLORS)]


def is_default_category(name: str) -> bool:
    return name in DEFAULT_CATEGORIES


class CategoryInfo(NamedTuple):
    """A registered category as presented to the user."""

    name: str
    color: str
    is_default: bool


class CategoryManager:
    """Manages the ordered category registry of the canonical snapshot."""

    def __init__(self, snapshot_store):
        self.snapshot_store = snapshot_store

    def list(self) -> list[CategoryInfo]:
        categories = self.snapshot_store.snapshot.categories
        return [
            CategoryInfo(name, color_of(name, categories), is_default_category(name))
            for name in categories
        ]

    def color_of(self, name: str) -> str:
        return color_of(name, self.snapshot_store.snapshot.categories)

    def add(self, name: str) -> str:
        """Register a new category at the end of the registry.

        Args:
            name: Category name, trimmed before use

        Returns:
            The registered name

        Raises:
            EmptyNameError: If the name is blank
            DuplicateCategoryError: If the exact name is already registered
        """
        trimmed = name.strip()
        if not trimmed:
            raise EmptyNameError("Category")

        snapshot = self.snapshot_store.snapshot
        if trimmed in snapshot.categories:
            raise DuplicateCategoryError(trimmed)

        snapshot.categories.append(trimmed)
        self.snapshot_store.save()
        logger.info("Added category %s", trimmed)
        return trimmed

    def remove(self, name: str) -> bool:
        """Remove a category from the registry.

        Items that still reference the category keep it.

        Returns:
            True if a category was removed, False if it was not registered

        Raises:
            ProtectedCategoryError: If the category is built in
        """
        if is_default_category(name):
            raise ProtectedCategoryError(name)

        snapshot = self.snapshot_store.snapshot
        if name not in snapshot.categories:
            logger.debug("Category %s not registered, nothing to remove", name)
            return False

        snapshot.categories.remove(name)
        self.snapshot_store.save()
        logger.info("Removed category %s", name)
        return True
