"""Record commands: create, get, list, patch, delete."""

from typing import Annotated

import typer

from credstore.cli.context import CLIContext
from credstore.cli.output import OutputFormatter
from credstore.cli.parsing import parse_filters, parse_json_object, read_json_file
from credstore.core.types import ListOptions

# Create data subcommand group
app = typer.Typer(help="Manage entity records")


@app.command("create")
def data_create(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name (e.g. Facilities)")],
    data_json: Annotated[
        str | None,
        typer.Argument(help="Record data as JSON object"),
    ] = None,
    from_file: Annotated[
        str | None,
        typer.Option("--from-file", "-f", help="Load the record from a JSON file"),
    ] = None,
) -> None:
    """Create a record.

    Examples:

        credstore data create Facilities '{"name": "Acme Clinic", "state": "NY"}'

        credstore data create Providers --from-file provider.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        if from_file:
            data = read_json_file(from_file)
        elif data_json:
            data = parse_json_object(data_json)
        else:
            raise typer.BadParameter("Either provide data as JSON string or use --from-file")
        result = cli_ctx.get_store().create_entity(entity_name, data)
    except typer.BadParameter:
        raise
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    formatter.print_result(result)


@app.command("get")
def data_get(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
    record_id: Annotated[str, typer.Argument(help="Record ID")],
) -> None:
    """Get a record with its child relations.

    Examples:

        credstore data get Facilities 550e8400-e29b-41d4-a716-446655440000
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        result = cli_ctx.get_store().get_entity_details(entity_name, record_id)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    formatter.print_result(result)


@app.command("list")
def data_list(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
    search: Annotated[
        str | None,
        typer.Option("--search", "-s", help="Case-insensitive free-text search"),
    ] = None,
    filters: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="field=value (comma-separate alternatives)"),
    ] = None,
    sort_by: Annotated[
        str | None,
        typer.Option("--sort", help="Field to sort by"),
    ] = None,
    desc: Annotated[
        bool,
        typer.Option("--desc", help="Sort descending"),
    ] = False,
    page: Annotated[
        int | None,
        typer.Option("--page", "-p", min=1, help="Page number (1-based)"),
    ] = None,
    page_size: Annotated[
        int | None,
        typer.Option("--page-size", min=1, help="Records per page"),
    ] = None,
) -> None:
    """List records with filtering, search, sorting and pagination.

    Examples:

        credstore data list Facilities --filter state=NY,NJ --sort name

        credstore data list Providers --search smith --page 2
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        options = ListOptions(
            search_term=search,
            filters=parse_filters(filters),
            sort_by=sort_by,
            sort_order="desc" if desc else "asc",
            page=page,
            page_size=page_size,
        )
        store = cli_ctx.get_store()
        schema = store.registry.require(entity_name)
        result = store.list_entities(entity_name, options)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    if cli_ctx.json_output:
        formatter.print_result(result)
        return

    listing = result.data
    formatter.print_table(
        f"{schema.name} (page {listing['page']}, {listing['total_records']} total)",
        listing["data"],
        schema.fields,
    )
    if listing["skipped"]:
        formatter.print_success(
            f"{len(listing['skipped'])} row(s) skipped (undecodable)",
            {"rows": [s["context"].get("row") for s in listing["skipped"]]},
        )


@app.command("patch")
def data_patch(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
    record_id: Annotated[str, typer.Argument(help="Record ID")],
    data_json: Annotated[str, typer.Argument(help="Changed fields as JSON object")],
) -> None:
    """Update the fields of a record whose values differ.

    Examples:

        credstore data patch Facilities 550e8400 '{"status": "Active"}'
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        partial = parse_json_object(data_json)
        result = cli_ctx.get_store().patch_entity(entity_name, record_id, partial)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    formatter.print_result(result)


@app.command("delete")
def data_delete(
    ctx: typer.Context,
    entity_name: Annotated[str, typer.Argument(help="Entity name")],
    record_id: Annotated[str, typer.Argument(help="Record ID")],
    force: Annotated[
        bool,
        typer.Option("--force", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Delete a record and its child rows.

    Examples:

        credstore data delete Facilities 550e8400 --force
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    if not force and not cli_ctx.json_output:
        typer.confirm(f"Delete {entity_name} {record_id} and its child rows?", abort=True)

    try:
        result = cli_ctx.get_store().delete_entity_cascade(entity_name, record_id)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    formatter.print_result(result)
