"""Schema commands: list, describe, init."""

from typing import Annotated

import typer

from credstore.cli.context import CLIContext
from credstore.cli.output import OutputFormatter

# Create schema subcommand group
app = typer.Typer(help="Inspect entity schemas and initialize tables")


@app.command("list")
def schema_list(ctx: typer.Context) -> None:
    """List all registered entities."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        store = cli_ctx.get_store()
        if cli_ctx.json_output:
            formatter.print_data(store.entity_names())
        else:
            table_data = []
            for schema in store.registry:
                table_data.append(
                    {
                        "Name": schema.name,
                        "Table": schema.table,
                        "Columns": len(schema.columns),
                        "Children": ", ".join(child.key for child in schema.children),
                    }
                )
            formatter.print_table(
                f"Entities ({len(table_data)} total)",
                sorted(table_data, key=lambda row: row["Name"]),
                ["Name", "Table", "Columns", "Children"],
            )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()


@app.command("describe")
def schema_describe(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity or table name")],
) -> None:
    """Show columns, field names and relations of an entity."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        registry = cli_ctx.get_store().registry
        schema = registry.require(entity_name)
        formatter.print_schema(schema, registry.parents_of(schema.name))
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()


@app.command("init")
def schema_init(ctx: typer.Context) -> None:
    """Create missing tables and verify the headers of existing ones."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        store = cli_ctx.get_store(create_tables=False)
        created = store.ensure_tables()
        formatter.print_success(
            "Tables ready",
            {"tables": len(store.registry), "created": created},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()
