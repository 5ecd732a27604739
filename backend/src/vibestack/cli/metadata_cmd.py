"""Metadata CLI commands - validate and list routes."""

import click

from vibestack.api.settings import AppSettings
from vibestack.enrichers import register_builtin_enrichers
from vibestack.metadata.loader import MetadataLoader
from vibestack.metadata.validator import validate_metadata_dir
from vibestack.persistence.database import Database
from vibestack.routing.registry import build_route_configs
from vibestack.routing.types import EntityRouteConfig


def load_route_configs(settings: AppSettings) -> list[EntityRouteConfig]:
    """Load metadata and resolve it into route configs without connecting to storage.

    Raises:
        ValueError: MetadataError for unresolvable references, or an unknown column type
        KeyError: A metadata document lacks a required key
    """
    register_builtin_enrichers()
    loader = MetadataLoader(settings.metadata_path)
    loader.load_all()
    database = Database(settings.database)
    database.define_tables(loader.list_tables())
    return build_route_configs(loader, database.tables)


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
def validate(strict: bool):
    """Validate metadata YAML files and resolve every resource."""
    settings = AppSettings.from_env()
    metadata_path = settings.metadata_path

    if not metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
        raise SystemExit(1)

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    schema_issues = validate_metadata_dir(metadata_path, strict=strict)
    errors = [i for i in schema_issues if i.severity == "error"]
    warnings = [i for i in schema_issues if i.severity == "warning"]

    for issue in schema_issues:
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

    # ── Reference resolution ────────────────────────────────────────────────
    try:
        configs = load_route_configs(settings)
    except (ValueError, KeyError) as e:
        click.echo(click.style(f"\nResolution failed: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(f"\nResolved {len(configs)} resources:")
    for config in configs:
        click.echo(
            f"  ✓ {config.path} ({config.entity_name}, "
            f"{len(config.relationships)} relationships)"
        )

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))


@metadata.command()
def routes():
    """Print every generated method and path."""
    settings = AppSettings.from_env()
    try:
        configs = load_route_configs(settings)
    except (ValueError, KeyError) as e:
        click.echo(click.style(f"Resolution failed: {e}", fg="red"), err=True)
        raise SystemExit(1)

    for config in configs:
        base = f"/api{config.path}"
        click.echo(click.style(f"{config.entity_name} ({config.context})", bold=True))
        click.echo(f"  GET    {base}")
        click.echo(f"  POST   {base}")
        click.echo(f"  GET    {base}/{{id}}")
        click.echo(f"  PUT    {base}/{{id}}")
        for rel in config.relationships:
            click.echo(f"  POST   {base}/{{id}}/{rel.slug}")
            click.echo(f"  PATCH  {base}/{{id}}/{rel.slug}/{{relatedId}}")
            click.echo(f"  DELETE {base}/{{id}}/{rel.slug}/{{relatedId}}")
            if settings.legacy_relationship_put:
                click.echo(f"  PUT    {base}/{{id}}/{rel.slug}/{{relatedId}}  (deprecated)")
