"""Database CLI commands."""

import click

from vibestack.api.settings import AppSettings
from vibestack.metadata.loader import MetadataLoader
from vibestack.persistence.database import Database


@click.group()
def db():
    """Database commands."""
    pass


@db.command()
def init():
    """Create every table declared in metadata."""
    settings = AppSettings.from_env()
    loader = MetadataLoader(settings.metadata_path)
    loader.load_all()

    database = Database(settings.database)
    database.define_tables(loader.list_tables())
    database.connect()
    try:
        database.create_all()
    finally:
        database.close()

    click.echo(f"Initialized {len(database.tables)} tables at {settings.database.url}")
