"""Credentialing request commands."""

from typing import Annotated

import typer

from credstore.cli.context import CLIContext
from credstore.cli.output import OutputFormatter
from credstore.core.types import ListOptions
from credstore.workflow import RequestDesk

app = typer.Typer(help="Work the credentialing request queue")

LIST_COLUMNS = ["id", "type", "status", "priority", "ownerName", "dueDate", "updatedAt"]


@app.command("list")
def requests_list(
    ctx: typer.Context,
    status: Annotated[
        str | None,
        typer.Option("--status", help="Status filter (comma-separate alternatives)"),
    ] = None,
    search: Annotated[
        str | None,
        typer.Option("--search", "-s", help="Search type, status, notes and owner"),
    ] = None,
    page: Annotated[int | None, typer.Option("--page", "-p", min=1)] = None,
) -> None:
    """List requests with their owner's name, newest first.

    Examples:

        credstore requests list --status "New,In Progress"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        options = ListOptions(
            search_term=search,
            filters={"status": status} if status else {},
            sort_by="createdAt",
            sort_order="desc",
            page=page,
        )
        result = RequestDesk(cli_ctx.get_store()).list_requests(options)
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
        f"Requests (page {listing['page']}, {listing['total_records']} total)",
        listing["data"],
        LIST_COLUMNS,
    )


@app.command("counts")
def requests_counts(
    ctx: typer.Context,
    owner: Annotated[
        str | None,
        typer.Option("--owner", help="Only count requests owned by this email"),
    ] = None,
) -> None:
    """Show the number of requests per status."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        result = RequestDesk(cli_ctx.get_store()).status_counts(owner_email=owner)
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
    formatter.print_table(
        f"Requests by status ({result.data['open']} open, {result.data['total']} total)",
        [{"Status": s, "Count": n} for s, n in result.data["counts"].items()],
        ["Status", "Count"],
    )


@app.command("transition")
def requests_transition(
    ctx: typer.Context,
    request_id: Annotated[str, typer.Argument(help="Request ID")],
    status: Annotated[str, typer.Argument(help="New status")],
    note: Annotated[
        str | None,
        typer.Option("--note", "-n", help="Comment to attach to the request"),
    ] = None,
) -> None:
    """Move a request to a new status.

    Examples:

        credstore requests transition 550e8400 Approved --note "Board approved"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        result = RequestDesk(cli_ctx.get_store()).transition(request_id, status, note=note)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1) from e
    finally:
        cli_ctx.close()

    if not result.success:
        formatter.print_failure(result)
        raise typer.Exit(code=1)
    formatter.print_result(result)
