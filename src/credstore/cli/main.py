"""CredStore CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import credstore
from credstore.cli.context import CLIContext

# Create main Typer app
app = typer.Typer(
    name="credstore",
    help="CredStore CLI - provider credentialing records",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="CREDSTORE_URL",
            help="Store URL (memory://, sqlite:///path.db or postgresql://...)",
        ),
    ] = None,
    echo: Annotated[
        bool,
        typer.Option("--echo", "-e", help="Echo SQL statements to console"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON (machine-readable)"),
    ] = False,
    actor: Annotated[
        str | None,
        typer.Option(
            "--actor",
            "-a",
            envvar="CREDSTORE_ACTOR",
            help="Email recorded as the author of writes",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log operations and audit events to stderr"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # Store in Typer context for command access
    ctx.obj = CLIContext.create(database, echo=echo, json_output=json_output, actor=actor)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"credstore v{credstore.__version__}")


# Register command groups
from credstore.cli.commands import data, requests, schema  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(data.app, name="data")
app.add_typer(requests.app, name="requests")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
