"""Vibestack CLI entry point."""

import click


@click.group()
def cli():
    """Vibestack - metadata-driven catalog API CLI."""
    pass


# Register subcommand groups
from vibestack.cli.db_cmd import db  # noqa: E402
from vibestack.cli.metadata_cmd import metadata  # noqa: E402

cli.add_command(metadata)
cli.add_command(db)
