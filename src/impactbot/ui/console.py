"""Rich-powered console output for impactbot."""

from __future__ import annotations

from typing import Any

from rich.console import Console as RichConsole
from rich.markdown import Markdown
from rich.table import Table


class Console:
    """Terminal output for impactbot using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def markdown(self, text: str) -> None:
        """Render markdown text."""
        self.console.print(Markdown(text))

    def show_columns(self, file_path: str, columns: list[Any]) -> None:
        """Display the columns an extractor found in a file."""
        table = Table(title=f"Columns in {file_path}", border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Column", style="bold")
        table.add_column("Details", style="dim")

        for i, column in enumerate(columns, 1):
            if isinstance(column, dict):
                details = ", ".join(f"{k}={v}" for k, v in column.items() if k != "name")
                table.add_row(str(i), str(column.get("name", "")), details)
            else:
                table.add_row(str(i), str(column), "")

        self.console.print(table)

    def show_run_stats(self, stats: dict[str, int]) -> None:
        """Display the headline numbers of a run."""
        table = Table(title="Impact Analysis", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")
        for label, count in stats.items():
            table.add_row(label, str(count))
        self.console.print(table)
