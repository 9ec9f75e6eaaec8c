"""
Rendering functions for gitcms output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from typing import Any, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from .domain import FileItem, RevisionHistoryEntry, SchemaInfo, TemplateInfo

console = Console()


def _table(title: Optional[str]) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def render_table(headers: List[str], rows: List[List[Any]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = _table(title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*['' if val is None else str(val) for val in row])

    console.print(table)


def render_files_table(items: Sequence[FileItem]) -> None:
    if not items:
        console.print("[yellow]No files found.[/yellow]")
        return

    table = _table("Files")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Namespace", style="blue")
    table.add_column("Path", style="dim")
    table.add_column("Revision", style="dim")

    for item in items:
        name = item.display_name if item.is_valid_format else f"[yellow]{item.display_name}[/yellow]"
        table.add_row(name, item.schema_type or "-", item.namespace, item.path, item.revision_id[:7])

    console.print(table)


def render_history_table(entries: Sequence[RevisionHistoryEntry], title: Optional[str] = None) -> None:
    if not entries:
        console.print("[yellow]No history found.[/yellow]")
        return

    table = _table(title or "History")
    table.add_column("Commit", style="cyan")
    table.add_column("Date", style="green")
    table.add_column("Author")
    table.add_column("Message")

    for entry in entries:
        message = entry.message.splitlines()[0] if entry.message else ""
        table.add_row(entry.short_id, entry.author.date, entry.author.name, message)

    console.print(table)


def render_schemas_table(schemas: Sequence[SchemaInfo]) -> None:
    render_table(
        ["ID", "Title", "Version", "Fields", "Description"],
        [
            [s.id, s.title, s.version or "-", ", ".join(f.name for f in s.fields), s.description]
            for s in schemas
        ],
        title="Schemas",
    )


def render_templates_table(templates: Sequence[TemplateInfo]) -> None:
    render_table(
        ["ID", "Schema", "Variables", "Description"],
        [[t.id, t.schema_type, ", ".join(t.variables), t.description] for t in templates],
        title="Templates",
    )
