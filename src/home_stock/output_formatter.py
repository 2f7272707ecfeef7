"""Output formatting for CLI and programmatic use."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

STATUS_STYLES = {
    "sufficient": "[green]sufficient[/green]",
    "low": "[yellow]low[/yellow]",
    "none": "[red]none[/red]",
}


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()
        self.warnings: list[str] = []

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout, with any warnings raised along the way."""
        if self.warnings:
            data = {**data, "warnings": list(self.warnings)}
        print(json.dumps(data, ensure_ascii=False, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "shopping" in payload:
            self._render_shopping_list(data)
        elif "stock" in payload:
            self._render_stock_list(data)
        elif "categories" in payload:
            self._render_categories(data)
        elif "backups" in payload:
            self._render_backups(data)
        elif "import_summary" in payload:
            self._render_import_summary(data)
        elif "item" in payload and isinstance(payload["item"], dict):
            self._render_item(data)

    @staticmethod
    def _dot(color: str) -> str:
        return f"[{color}]●[/]"

    def _render_shopping_list(self, data: dict) -> None:
        """Render the shopping list."""
        items = data["data"]["shopping"]

        if not items:
            self.console.print("[dim]No items on the shopping list[/dim]")
            return

        table = Table(title="Shopping List", show_header=True, header_style="bold cyan")
        table.add_column("", justify="center")
        table.add_column("Item", style="cyan", no_wrap=False)
        table.add_column("Category")
        table.add_column("ID", style="dim")

        for item in items:
            check = "[green]✓[/green]" if item.get("checked") else "○"
            name = escape(item.get("name", ""))
            if item.get("checked"):
                name = f"[strike dim]{name}[/strike dim]"
            table.add_row(
                check,
                name,
                f"{self._dot(item['color'])} {escape(item.get('category', ''))}",
                item["id"],
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_stock_list(self, data: dict) -> None:
        """Render the stock list."""
        items = data["data"]["stock"]

        if not items:
            self.console.print("[dim]No items in stock[/dim]")
            return

        table = Table(title="Stock", show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Category")
        table.add_column("Status")
        table.add_column("Note", style="dim")
        table.add_column("ID", style="dim")

        for item in items:
            status = item.get("status", "sufficient")
            table.add_row(
                escape(item.get("name", "")),
                f"{self._dot(item['color'])} {escape(item.get('category', ''))}",
                STATUS_STYLES.get(status, status),
                escape(item.get("note") or ""),
                item["id"],
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_item(self, data: dict) -> None:
        """Render a single item."""
        item = data["data"]["item"]

        panel_content = f"""[bold]{escape(item.get("name", ""))}[/bold]

Category: {escape(item.get("category", ""))}"""
        if "status" in item:
            panel_content += f"\nStatus: {STATUS_STYLES.get(item['status'], item['status'])}"
        if "checked" in item:
            panel_content += f"\nChecked: {'yes' if item['checked'] else 'no'}"
        if item.get("note"):
            panel_content += f"\nNote: {escape(item['note'])}"
        panel_content += f"\nID: {item['id']}"

        panel = Panel(panel_content, title="Item Details", border_style="green")
        self.console.print(panel)

    def _render_categories(self, data: dict) -> None:
        """Render the category registry."""
        table = Table(title="Categories", show_header=True, header_style="bold cyan")
        table.add_column("", justify="center")
        table.add_column("Category")
        table.add_column("Color", style="dim")
        table.add_column("Built-in", justify="center")

        for cat in data["data"]["categories"]:
            table.add_row(
                self._dot(cat["color"]),
                escape(cat["name"]),
                cat["color"],
                "✓" if cat["is_default"] else "",
            )

        self.console.print(table)

    def _render_backups(self, data: dict) -> None:
        """Render available backups, newest first."""
        backups = data["data"]["backups"]

        if not backups:
            self.console.print("[dim]No backups yet[/dim]")
            return

        table = Table(title="Backups", show_header=True, header_style="bold cyan")
        table.add_column("Created")
        table.add_column("Key", style="dim")

        for backup in backups:
            table.add_row(backup["created_at"], backup["key"])

        self.console.print(table)

    def _render_import_summary(self, data: dict) -> None:
        """Render what a staged import would bring in."""
        summary = data["data"]["import_summary"]

        panel_content = f"""Shopping items: {summary["shopping_count"]}
Stock items: {summary["stock_count"]}
Categories: {summary["category_count"]}"""
        if summary.get("updated_at"):
            panel_content += f"\nUpdated at: {summary['updated_at']}"
        if summary.get("updated_by"):
            panel_content += f"\nUpdated by: {summary['updated_by']}"

        panel = Panel(panel_content, title="Import", border_style="yellow")
        self.console.print(panel)

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            if self.warnings:
                output["warnings"] = list(self.warnings)
            print(json.dumps(output, ensure_ascii=False))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        In JSON mode warnings are attached to the next output document so
        stdout stays a single JSON value.

        Args:
            message: Warning message
        """
        if self.json_mode:
            self.warnings.append(message)
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
