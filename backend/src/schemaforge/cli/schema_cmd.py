"""Schema CLI commands — validate, list and show."""

import json
from pathlib import Path

import click

from schemaforge.config import EngineSettings
from schemaforge.errors import SchemaNotFoundError, SchemaValidationError
from schemaforge.schema.resolver import SchemaResolver
from schemaforge.schema.validator import validate_schema_dir, validate_schema_file


def _schema_path(override: Path | None) -> Path:
    """Schema directory from --schema-path, else SCHEMAFORGE_SCHEMA_PATH."""
    if override is not None:
        return override
    return EngineSettings.from_env().schema_path


schema_path_option = click.option(
    "--schema-path",
    "schema_path",
    default=None,
    type=click.Path(path_type=Path),
    help="Schema directory (defaults to SCHEMAFORGE_SCHEMA_PATH).",
)


@click.group()
def schema():
    """Schema document commands."""
    pass


@schema.command()
@schema_path_option
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single schema file instead of the whole schema directory.",
)
def validate(schema_path: Path | None, strict: bool, target_path: Path | None):
    """Validate schema documents against the document JSON Schema."""
    if target_path is not None:
        issues = validate_schema_file(target_path)
        if strict:
            for issue in issues:
                issue.severity = "error"
    else:
        root = _schema_path(schema_path)
        if not root.is_dir():
            click.echo(f"Error: Schema directory not found at {root}", err=True)
            raise SystemExit(1)
        issues = validate_schema_dir(root, strict=strict)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    click.echo(click.style("All schemas are valid.", fg="green", bold=True))


@schema.command("list")
@schema_path_option
@click.option("--connection", default=None, help="Include connection-specific documents.")
def list_cmd(schema_path: Path | None, connection: str | None):
    """List the models that have a schema document."""
    root = _schema_path(schema_path)
    if not root.is_dir():
        click.echo(f"Error: Schema directory not found at {root}", err=True)
        raise SystemExit(1)

    resolver = SchemaResolver.from_path(root)
    models = resolver.list_models(connection)
    if not models:
        click.echo("No schema documents found.")
        return

    click.echo(f"Found {len(models)} model(s):")
    for model in models:
        try:
            document = resolver.resolve(model, connection)
        except SchemaValidationError as e:
            click.echo(click.style(f"  ✗ {model} ({e})", fg="red"))
            continue
        click.echo(
            f"  ✓ {model} (table: {document.table}, {len(document.fields)} fields, "
            f"{len(document.relationships)} relationship(s))"
        )


@schema.command()
@schema_path_option
@click.argument("model")
@click.option("--context", default=None, help="Context: list, form, create, edit, detail, meta.")
@click.option("--connection", default=None, help="Database connection name.")
def show(schema_path: Path | None, model: str, context: str | None, connection: str | None):
    """Print a resolved schema (optionally projected onto a context) as JSON."""
    resolver = SchemaResolver.from_path(_schema_path(schema_path))
    try:
        projection = resolver.project_for_context(model, context, connection)
    except (SchemaNotFoundError, SchemaValidationError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(json.dumps(projection.to_dict(), indent=2, default=str))
