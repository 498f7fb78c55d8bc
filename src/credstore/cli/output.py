"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from credstore.core.types import OperationResult
from credstore.exceptions import CredStoreError
from credstore.schema.models import ChildRelation, EntitySchema

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def _dump(self, data: Any) -> None:
        print(json.dumps(data, default=str, indent=2))

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array."""
        if self.json_mode:
            self._dump(data)
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[_cell(row.get(col, "")) for col in columns])
            console.print(table)

    def print_schema(
        self,
        schema: EntitySchema,
        parents: list[tuple[EntitySchema, str]] | None = None,
    ) -> None:
        """Print an entity schema with its columns and relations."""
        if self.json_mode:
            details = schema.to_dict()
            details["parents"] = [
                {"entity": parent.name, "key": key} for parent, key in parents or []
            ]
            self._dump(details)
            return

        console.print(f"\n[bold]Entity:[/bold] {schema.name}")
        console.print(f"Table: {schema.table}")
        console.print(f"Primary key: {schema.primary_key}")
        if schema.require_actor:
            console.print("Writes require an actor")
        if schema.description:
            console.print(f"Description: {schema.description}")

        columns_table = Table(show_header=True, header_style="bold cyan")
        columns_table.add_column("#", justify="right")
        columns_table.add_column("Column")
        columns_table.add_column("Field")
        columns_table.add_column("JSON")
        for position, (column, field) in enumerate(zip(schema.columns, schema.fields), 1):
            columns_table.add_row(
                str(position),
                column,
                field,
                "✓" if column in schema.json_columns else "",
            )
        console.print(f"\n[bold]Columns ({len(schema.columns)}):[/bold]")
        console.print(columns_table)

        if schema.children:
            console.print(f"\n[bold]Children ({len(schema.children)}):[/bold]")
            console.print(_relations_table(schema.children))

        if parents:
            console.print("\n[bold]Referenced by:[/bold]")
            for parent, key in parents:
                console.print(f"  {parent.name}.{key}")

    def print_result(self, result: OperationResult) -> None:
        """Print the data of a successful operation result."""
        if self.json_mode:
            self._dump(result.to_dict())
            return
        if result.message:
            console.print(f"✓ {result.message}", style="green")
        if result.data is not None:
            console.print(result.data)

    def print_failure(self, result: OperationResult) -> None:
        """Print a failed operation result."""
        if self.json_mode:
            self._dump(result.to_dict())
            return
        text = result.message or "Operation failed"
        if result.context:
            context_str = "\n".join(f"{k}: {v}" for k, v in result.context.items())
            text = f"{text}\n\n{context_str}"
        console.print(Panel(text, title=f"[red]Error ({result.error})[/red]", border_style="red"))

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message."""
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            self._dump(output)
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message."""
        if self.json_mode:
            if isinstance(error, CredStoreError):
                self._dump(error.to_dict())
            else:
                self._dump({"error": type(error).__name__, "message": str(error)})
        else:
            error_text = str(error)
            if isinstance(error, CredStoreError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"
            console.print(Panel(error_text, title="[red]Error[/red]", border_style="red"))

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.)."""
        if self.json_mode:
            self._dump(data)
        else:
            console.print(data)


def _relations_table(children: tuple[ChildRelation, ...]) -> Table:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key")
    table.add_column("Child Entity")
    table.add_column("Parent ID Column")
    for child in children:
        table.add_row(child.key, child.child_entity, child.parent_id_column)
    return table


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)
