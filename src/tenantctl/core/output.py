"""Command output for tenantctl.

Command results (``print_data``) always go to stdout. Status messages go to
stdout for the human formats and to stderr for json and yaml, so that
``tenantctl -o json ...`` prints exactly one parseable document on stdout.
Errors always go to stderr.
"""

import json
from enum import Enum
from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from tabulate import tabulate


class OutputFormat(str, Enum):
    """Supported output formats."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"
    RAW = "raw"

    @property
    def structured(self) -> bool:
        """Machine-readable document formats."""
        return self in (OutputFormat.JSON, OutputFormat.YAML)


Rows = list[dict[str, Any]]


class OutputFormatter:
    """Writes command results and status messages in the selected format."""

    def __init__(
        self,
        format: OutputFormat = OutputFormat.TABLE,
        color: bool = True,
        quiet: bool = False,
    ):
        self.format = format
        self.color = color
        self.quiet = quiet
        self._stdout = Console(force_terminal=color, no_color=not color)
        self._stderr = Console(stderr=True, no_color=not color)

    @property
    def _messages(self) -> Console:
        return self._stderr if self.format.structured else self._stdout

    def _message(self, marker: str, message: str) -> None:
        if self.quiet:
            return
        prefix = f"{marker} " if marker else ""
        self._messages.print(f"{prefix}{escape(message)}")

    def print(self, message: str, style: str | None = None) -> None:
        """Plain status line; ``style`` is a Rich style name."""
        if self.quiet:
            return
        self._messages.print(escape(message), style=style)

    def print_error(self, message: str) -> None:
        """Errors are shown even in quiet mode."""
        self._stderr.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        self._message("[yellow]Warning:[/yellow]", message)

    def print_success(self, message: str) -> None:
        self._message("[green]✓[/green]", message)

    def print_info(self, message: str) -> None:
        self._message("[blue]ℹ[/blue]", message)

    def print_data(
        self,
        data: Rows | dict[str, Any],
        headers: list[str] | None = None,
        title: str | None = None,
    ) -> None:
        """Write a command result to stdout.

        Args:
            data: A record, or a list of records sharing the same keys
            headers: Columns to show for table and raw output, default all
            title: Table caption, ignored by the other formats
        """
        if self.format == OutputFormat.JSON:
            self._document(json.dumps(data, indent=2, default=str), "json")
        elif self.format == OutputFormat.YAML:
            self._document(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), "yaml")
        elif self.format == OutputFormat.RAW:
            click.echo(_plain(data, headers))
        else:
            self._stdout.print(_table(data, headers, title))

    def _document(self, text: str, lexer: str) -> None:
        if self.color:
            self._stdout.print(Syntax(text, lexer, theme="monokai"))
        else:
            click.echo(text.rstrip("\n"))


def _columns(rows: Rows, headers: list[str] | None) -> list[str]:
    return headers or list(rows[0].keys())


def _plain(data: Rows | dict[str, Any], headers: list[str] | None) -> str:
    """Aligned plain-text columns for shell pipelines."""
    if isinstance(data, dict):
        return "\n".join(f"{key}: {value}" for key, value in data.items())
    if not data:
        return ""
    columns = _columns(data, headers)
    return tabulate([[row.get(c, "") for c in columns] for row in data], headers=columns, tablefmt="plain")


def _table(data: Rows | dict[str, Any], headers: list[str] | None, title: str | None) -> Table | str:
    if not data:
        return "[dim]No data to display[/dim]"

    table = Table(title=title, show_header=True, header_style="bold cyan")
    if isinstance(data, dict):
        table.add_column("Field", style="dim")
        table.add_column("Value")
        for key, value in data.items():
            table.add_row(str(key), escape(str(value)))
        return table

    columns = _columns(data, headers)
    for column in columns:
        table.add_column(column)
    for row in data:
        table.add_row(*[escape(str(row.get(c, ""))) for c in columns])
    return table


def format_duration(seconds: float) -> str:
    """Format seconds as a short human-readable duration."""
    for unit, size in (("h", 3600), ("m", 60)):
        if seconds >= size:
            return f"{seconds / size:.1f}{unit}"
    return f"{seconds:.1f}s"
