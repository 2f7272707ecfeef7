"""CLI entry point for Home Stock."""

import sys
from pathlib import Path
from typing import Annotated

import typer

from .config import ConfigManager
from .engine import HomeStock
from .errors import HomeStockError, ItemNotFoundError
from .logging_utils import configure_logging
from .models import ShoppingItem, SortMode, StockItem, StockStatus
from .output_formatter import OutputFormatter
from .query import ShoppingRow, StockRow

app = typer.Typer(
    name="home-stock",
    help="Household shopping list and stock tracking",
    no_args_is_help=True,
)

# Global state for formatter and engine (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
engine: HomeStock | None = None


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_engine() -> HomeStock:
    """Get or create the HomeStock engine using config values."""
    global engine
    if engine is None:
        engine = HomeStock.from_config(get_config(), on_warning=formatter.warning)
    return engine


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Home Stock CLI - keep the shopping list and household stock in sync."""
    global formatter, config, engine

    formatter = OutputFormatter(json_mode=json_output)

    # Load config early
    config = ConfigManager()
    configure_logging("DEBUG" if verbose else config.logging.level, config.logging.format)

    # CLI --data-dir overrides config, which overrides default
    engine = HomeStock.from_config(config, data_dir=data_dir, on_warning=formatter.warning)


def shopping_dict(item: ShoppingItem, color: str) -> dict:
    return {**item.to_record(), "color": color}


def stock_dict(item: StockItem, color: str) -> dict:
    return {**item.to_record(), "color": color}


def item_output(item: ShoppingItem | StockItem, message: str) -> dict:
    hs = get_engine()
    return {
        "success": True,
        "message": message,
        "data": {"item": {**item.to_record(), "color": hs.categories.color_of(item.category)}},
    }


# --- Shopping list commands ---


@app.command()
def add(
    item: Annotated[str, typer.Argument(help="Item name to add")],
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Category")
    ] = None,
) -> None:
    """Add an item to the shopping list."""
    try:
        added = get_engine().shopping.add_item(item, category=category)
        result = item_output(added, f"Added {added.name} to shopping list")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command(name="list")
def list_items(
    search: Annotated[str | None, typer.Option("--search", "-s", help="Search by name")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
    sort: Annotated[SortMode | None, typer.Option("--sort", help="Sort order")] = None,
) -> None:
    """View the shopping list."""
    try:
        hs = get_engine()
        view = hs.view_state(search_text=search or "", category_filter=category or "")
        if sort is not None:
            view.sort_mode = sort
        rows: list[ShoppingRow] = list(hs.current_shopping_view(view))

        result = {
            "success": True,
            "data": {
                "shopping": [shopping_dict(row.item, row.color) for row in rows],
                "total_items": len(rows),
                "updated_at": hs.snapshot.updated_at,
                "updated_by": hs.snapshot.updated_by,
            },
        }
        formatter.output(result)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def check(
    item_id: Annotated[str, typer.Argument(help="Item ID to check or uncheck")],
) -> None:
    """Check off an item (or uncheck it). Checking refills the matching stock item."""
    try:
        toggled = get_engine().shopping.toggle_item(item_id)
        if toggled is None:
            raise ItemNotFoundError(item_id)
        if toggled.checked:
            message = f"Checked {toggled.name}, stock marked sufficient"
        else:
            message = f"Unchecked {toggled.name}"
        result = item_output(toggled, message)
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def update(
    item_id: Annotated[str, typer.Argument(help="Item ID to update")],
    name: Annotated[str | None, typer.Option("--name", help="New name")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="New category")] = None,
) -> None:
    """Update a shopping list item."""
    try:
        updated = get_engine().shopping.update_item(item_id, name=name, category=category)
        if updated is None:
            raise ItemNotFoundError(item_id)
        result = item_output(updated, f"Updated {updated.name}")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def remove(
    item_id: Annotated[str, typer.Argument(help="Item ID to remove")],
) -> None:
    """Remove an item from the shopping list."""
    try:
        removed = get_engine().shopping.remove_item(item_id)
        if removed is None:
            raise ItemNotFoundError(item_id)
        result = item_output(removed, f"Removed {removed.name} from shopping list")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@app.command()
def clear() -> None:
    """Remove all checked items from the shopping list."""
    try:
        removed_count = get_engine().shopping.clear_checked()
        result = {
            "success": True,
            "message": f"Cleared {removed_count} checked items",
            "data": {"removed_count": removed_count},
        }
        formatter.output(result, result["message"])
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Stock subcommand group ---
stock_app = typer.Typer(help="Household stock commands")
app.add_typer(stock_app, name="stock")


@stock_app.command("add")
def stock_add(
    item: Annotated[str, typer.Argument(help="Item name")],
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
    status: Annotated[
        StockStatus, typer.Option("--status", help="Stock status")
    ] = StockStatus.SUFFICIENT,
    note: Annotated[str, typer.Option("--note", "-n", help="Note")] = "",
) -> None:
    """Add an item to the stock list."""
    try:
        added = get_engine().stock.add_item(item, category=category, status=status, note=note)
        result = item_output(added, f"Added {added.name} to stock")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("list")
def stock_list(
    search: Annotated[str | None, typer.Option("--search", "-s", help="Search by name")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Filter by category")
    ] = None,
    status: Annotated[
        StockStatus | None, typer.Option("--status", help="Filter by status")
    ] = None,
) -> None:
    """View the stock list, most recently updated first."""
    try:
        hs = get_engine()
        view = hs.view_state(
            search_text=search or "", category_filter=category or "", status_filter=status
        )
        rows: list[StockRow] = list(hs.current_stock_view(view))

        result = {
            "success": True,
            "data": {
                "stock": [stock_dict(row.item, row.color) for row in rows],
                "total_items": len(rows),
            },
        }
        formatter.output(result)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("set")
def stock_set(
    item_id: Annotated[str, typer.Argument(help="Stock item ID")],
    status: Annotated[StockStatus, typer.Argument(help="New status")],
) -> None:
    """Set the status of a stock item."""
    try:
        updated = get_engine().stock.set_status(item_id, status)
        if updated is None:
            raise ItemNotFoundError(item_id)
        result = item_output(updated, f"{updated.name} is now {updated.status.value}")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("update")
def stock_update(
    item_id: Annotated[str, typer.Argument(help="Stock item ID")],
    name: Annotated[str | None, typer.Option("--name", help="New name")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="New category")] = None,
    status: Annotated[StockStatus | None, typer.Option("--status", help="New status")] = None,
    note: Annotated[str | None, typer.Option("--note", "-n", help="New note")] = None,
) -> None:
    """Edit a stock item."""
    try:
        updated = get_engine().stock.update_item(
            item_id, name=name, category=category, status=status, note=note
        )
        if updated is None:
            raise ItemNotFoundError(item_id)
        result = item_output(updated, f"Updated {updated.name}")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("remove")
def stock_remove(
    item_id: Annotated[str, typer.Argument(help="Stock item ID")],
) -> None:
    """Remove an item from the stock list."""
    try:
        removed = get_engine().stock.remove_item(item_id)
        if removed is None:
            raise ItemNotFoundError(item_id)
        result = item_output(removed, f"Removed {removed.name} from stock")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("cart")
def stock_cart(
    item_id: Annotated[str, typer.Argument(help="Stock item ID")],
) -> None:
    """Put a stock item on the shopping list."""
    try:
        added = get_engine().stock.add_to_cart(item_id)
        if added is None:
            raise ItemNotFoundError(item_id)
        result = item_output(added, f"Added {added.name} to shopping list")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@stock_app.command("depleted")
def stock_depleted() -> None:
    """View stock items that are low or out."""
    try:
        hs = get_engine()
        items = hs.stock.depleted()
        result = {
            "success": True,
            "data": {
                "stock": [stock_dict(i, hs.categories.color_of(i.category)) for i in items],
                "total_items": len(items),
            },
        }
        formatter.output(result, f"{len(items)} items running low or out")
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Category subcommand group ---
category_app = typer.Typer(help="Category commands")
app.add_typer(category_app, name="category")


def categories_output(message: str = "") -> dict:
    return {
        "success": True,
        "message": message,
        "data": {"categories": [info._asdict() for info in get_engine().categories.list()]},
    }


@category_app.command("list")
def category_list() -> None:
    """View categories with their colors."""
    try:
        formatter.output(categories_output())
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@category_app.command("add")
def category_add(
    name: Annotated[str, typer.Argument(help="Category name")],
) -> None:
    """Register a new category."""
    try:
        added = get_engine().categories.add(name)
        result = categories_output(f"Added category {added}")
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@category_app.command("remove")
def category_remove(
    name: Annotated[str, typer.Argument(help="Category name")],
) -> None:
    """Remove a category. Items keep their category name."""
    try:
        removed = get_engine().categories.remove(name)
        message = f"Removed category {name}" if removed else f"Category {name} is not registered"
        result = categories_output(message)
        formatter.output(result, result["message"])
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


# --- Backup subcommand group ---
backup_app = typer.Typer(help="Backup commands")
app.add_typer(backup_app, name="backup")


def backups_output(message: str = "") -> dict:
    return {
        "success": True,
        "message": message,
        "data": {
            "backups": [
                {"key": b.key, "timestamp": b.timestamp, "created_at": b.created_at}
                for b in get_engine().snapshots.list_backups()
            ]
        },
    }


@backup_app.command("create")
def backup_create() -> None:
    """Back up the current data."""
    try:
        key = get_engine().snapshots.backup()
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if key is None:
        formatter.error("Nothing to back up or the backup could not be written", "BACKUP_FAILED")
        raise typer.Exit(code=1)
    result = backups_output(f"Created backup {key}")
    formatter.output(result, result["message"])


@backup_app.command("list")
def backup_list() -> None:
    """View available backups, newest first."""
    try:
        formatter.output(backups_output())
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


@backup_app.command("restore")
def backup_restore(
    key: Annotated[str, typer.Argument(help="Backup key")],
) -> None:
    """Restore a backup. The current data is backed up first."""
    try:
        restored = get_engine().snapshots.restore(key)
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)

    if not restored:
        formatter.error(f"Backup '{key}' not found or invalid", error_code="BACKUP_NOT_FOUND")
        raise typer.Exit(code=1)
    result = backups_output(f"Restored backup {key}")
    formatter.output(result, result["message"])


# --- Exchange ---


@app.command()
def export(
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="File or directory to write to")
    ] = None,
    stdout: Annotated[bool, typer.Option("--stdout", help="Write the snapshot to stdout")] = False,
) -> None:
    """Export all data as a JSON snapshot for another device."""
    payload = get_engine().export()

    if stdout:
        sys.stdout.write(payload.data.decode("utf-8") + "\n")
        return

    target = output or Path.cwd() / payload.filename
    if target.is_dir():
        target = target / payload.filename

    try:
        target.write_bytes(payload.data)
    except OSError as e:
        formatter.error(f"Could not write {target}: {e}. Try --stdout instead.", "IO_ERROR")
        raise typer.Exit(code=1)

    result = {
        "success": True,
        "message": f"Exported to {target}",
        "data": {
            "file": str(target),
            "content_type": payload.content_type,
            "size": len(payload.data),
        },
    }
    formatter.output(result, result["message"])


@app.command(name="import")
def import_snapshot(
    file: Annotated[Path, typer.Argument(help="Snapshot file to import")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Apply without asking")] = False,
) -> None:
    """Replace local data with a snapshot from another device.

    Shows what the file contains and asks before replacing anything. The
    current data is backed up first.
    """
    try:
        data = file.read_bytes()
    except OSError as e:
        formatter.error(f"Could not read {file}: {e}", error_code="IO_ERROR")
        raise typer.Exit(code=1)

    hs = get_engine()
    try:
        summary = hs.importer.stage(data)
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)

    summary_data = summary.model_dump()
    if not yes:
        if formatter.json_mode:
            hs.importer.cancel()
            result = {
                "success": True,
                "message": "Import not applied; re-run with --yes to replace local data",
                "data": {"import_summary": summary_data, "committed": False},
            }
            formatter.output(result)
            return

        formatter.output({"success": True, "data": {"import_summary": summary_data}})
        if not typer.confirm("Replace local data with this snapshot?"):
            hs.importer.cancel()
            formatter.output({"success": True, "data": {}}, "Import cancelled")
            return

    try:
        hs.importer.commit()
    except HomeStockError as e:
        formatter.error(str(e), error_code=e.error_code)
        raise typer.Exit(code=1)

    result = {
        "success": True,
        "message": "Imported snapshot",
        "data": {"import_summary": summary_data, "committed": True},
    }
    formatter.output(result, result["message"])


# --- Device settings ---
device_app = typer.Typer(help="Device-local settings")
app.add_typer(device_app, name="device")


@device_app.command("name")
def device_name(
    name: Annotated[
        str | None, typer.Argument(help="Name recorded as the last updater; omit to show")
    ] = None,
) -> None:
    """Show or set the name this device records in updatedBy."""
    try:
        settings = get_engine().settings
        if name is not None:
            settings.actor = name
            if settings.actor:
                message = f"Device name set to {settings.actor}"
            else:
                message = "Device name cleared"
        else:
            message = f"Device name: {settings.actor or '(not set)'}"
        result = {"success": True, "message": message, "data": {"actor": settings.actor}}
        formatter.output(result, result["message"])
    except Exception as e:
        formatter.error(str(e))
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
