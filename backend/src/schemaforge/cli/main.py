"""SchemaForge CLI entry point."""

import click

from schemaforge.config import configure_logging


@click.group()
@click.option(
    "--log-level",
    envvar="SCHEMAFORGE_LOG_LEVEL",
    default="WARNING",
    show_default=True,
    help="Logging level (DEBUG, INFO, WARNING, ERROR).",
)
def cli(log_level: str):
    """SchemaForge — schema-driven data-access engine CLI."""
    configure_logging(log_level)


# Register subcommand groups
from schemaforge.cli.schema_cmd import schema  # noqa: E402

cli.add_command(schema)
