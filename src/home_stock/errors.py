"""Exception types for Home Stock."""


class HomeStockError(Exception):
    """Base class for all Home Stock errors."""

    error_code = "HOME_STOCK_ERROR"


class EmptyNameError(HomeStockError, ValueError):
    """Raised when a name is empty after trimming."""

    error_code = "EMPTY_NAME"

    def __init__(self, what: str = "Item"):
        super().__init__(f"{what} name must not be empty")


class DuplicateItemError(HomeStockError):
    """Raised when an unchecked shopping item with the same name already exists."""

    error_code = "DUPLICATE_ITEM"

    def __init__(self, existing_item):
        self.existing_item = existing_item
        super().__init__(f"Item '{existing_item.name}' is already on the shopping list")


class DuplicateCategoryError(HomeStockError):
    """Raised when adding a category that is already registered."""

    error_code = "DUPLICATE_CATEGORY"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Category '{name}' already exists")


class ProtectedCategoryError(HomeStockError):
    """Raised when removing one of the built-in categories."""

    error_code = "PROTECTED_CATEGORY"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Built-in category '{name}' cannot be removed")


class PersistenceError(HomeStockError):
    """Raised by a storage backend when a write cannot be completed."""

    error_code = "PERSISTENCE_FAILED"


class StorageQuotaError(PersistenceError):
    """Raised when a write would exceed the storage quota."""

    error_code = "QUOTA_EXCEEDED"

    def __init__(self, key: str, needed: int, quota: int):
        self.key = key
        self.needed = needed
        self.quota = quota
        super().__init__(
            f"Writing '{key}' needs {needed} bytes, which exceeds the {quota} byte quota"
        )


class NothingStagedError(HomeStockError):
    """Raised when committing an import with no staged snapshot."""

    error_code = "NOTHING_STAGED"

    def __init__(self):
        super().__init__("No import is staged")


class ItemNotFoundError(HomeStockError):
    """Raised at the command line when a user-supplied id does not exist.

    The engine itself treats unknown ids as a silent no-op.
    """

    error_code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")
