"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibestack.api.exception_handlers import register_exception_handlers
from vibestack.api.settings import AppSettings
from vibestack.api.system import create_system_router
from vibestack.enrichers import register_builtin_enrichers
from vibestack.metadata.loader import MetadataLoader
from vibestack.metadata.validator import validate_metadata_dir
from vibestack.persistence.database import Database
from vibestack.routing.factory import create_entity_router
from vibestack.routing.registry import build_route_configs

logger = logging.getLogger(__name__)


def _report_schema_issues(settings: AppSettings) -> None:
    """Validate metadata YAML against JSON Schemas (warn on errors, don't block startup)."""
    schema_issues = validate_metadata_dir(settings.metadata_path)
    if not schema_issues:
        return
    error_count = sum(1 for i in schema_issues if i.severity == "error")
    warn_count = sum(1 for i in schema_issues if i.severity == "warning")
    for issue in schema_issues:
        if issue.severity == "error":
            logger.error("Metadata schema error: %s", issue)
        else:
            logger.warning("Metadata schema warning: %s", issue)
    logger.warning(
        "Metadata validation: %d error(s), %d warning(s). "
        "Run 'vibestack metadata validate' for details.",
        error_count,
        warn_count,
    )


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the application: load metadata, declare tables and mount one router per resource."""
    settings = settings or AppSettings.from_env()
    logging.getLogger("vibestack").setLevel(settings.log_level)

    register_builtin_enrichers()
    _report_schema_issues(settings)

    metadata_loader = MetadataLoader(settings.metadata_path)
    metadata_loader.load_all()

    database = Database(settings.database)
    database.define_tables(metadata_loader.list_tables())
    resources = build_route_configs(metadata_loader, database.tables)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect and create tables on startup, dispose the engine on shutdown."""
        database.connect()
        database.create_all()
        logger.info("Serving %d resource(s)", len(resources))
        yield
        database.close()

    app = FastAPI(
        title="Vibestack API",
        description="Metadata-driven catalog resources and relationships",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.resources = resources

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(
        create_system_router(get_database=lambda: database, get_resources=lambda: resources),
        prefix="/api",
    )
    for config in resources:
        app.include_router(
            create_entity_router(
                config,
                get_database=lambda: database,
                legacy_put=settings.legacy_relationship_put,
            ),
            prefix="/api",
        )

    return app
