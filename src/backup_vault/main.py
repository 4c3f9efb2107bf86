"""FastAPI application entrypoint for Backup Vault."""

from contextlib import asynccontextmanager
from typing import Any

import yaml
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backup_vault import __version__
from backup_vault.api import files_router, history_router
from backup_vault.config import Settings, StackConfig, settings
from backup_vault.core.files.service import FilesService
from backup_vault.core.files.storage import ObjectStorage, create_object_storage
from backup_vault.core.history.ledger import HistoryLedger
from backup_vault.exceptions import (
    BackupVaultError,
    ConfigurationError,
    ObjectNotFoundError,
    ValidationError,
)
from backup_vault.observability.logging import (
    RequestIDMiddleware,
    configure_logging,
    get_logger,
)
from backup_vault.observability.metrics import (
    MetricsMiddleware,
    metrics_endpoint,
    setup_metrics,
)

logger = get_logger(__name__)


def load_config(settings: Settings) -> StackConfig:
    """Load configuration from file or environment."""
    if settings.config_file:
        if not settings.config_file.exists():
            raise ConfigurationError(
                f"Config file not found: {settings.config_file}",
                {"config_file": str(settings.config_file)},
            )
        logger.info("Loading config from file", config_file=str(settings.config_file))
        with open(settings.config_file) as f:
            config_dict = yaml.safe_load(f) or {}
        try:
            return StackConfig.from_dict(config_dict)
        except ValueError as e:
            raise ConfigurationError(f"Invalid config file: {e}") from e
    logger.info("Using environment-based configuration")
    return settings.to_stack_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Handles startup and shutdown of the object storage backend.
    """
    config: StackConfig = app.state.config
    configure_logging(
        level=config.logging.level,
        json_logs=config.logging.json_logs,
        enable_access_logs=config.logging.enable_access_logs,
    )
    logger.info("Starting Backup Vault...", storage_backend=config.storage.type)

    storage: ObjectStorage = app.state.files_service.storage
    await storage.initialize()

    logger.info("Backup Vault started successfully")

    yield

    logger.info("Shutting down Backup Vault...")
    await storage.close()
    logger.info("Shutdown complete")


def create_app(
    config: StackConfig | None = None,
    *,
    object_storage: ObjectStorage | None = None,
    ledger: HistoryLedger | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Stack configuration (loaded from settings when omitted)
        object_storage: Storage backend override (built from config when omitted)
        ledger: History ledger override (a fresh empty ledger when omitted)
    """
    config = config or load_config(settings)

    app = FastAPI(
        title="Backup Vault",
        description="File backup API over S3-compatible object storage",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.ledger = ledger if ledger is not None else HistoryLedger()
    app.state.files_service = FilesService(
        object_storage=(
            object_storage
            if object_storage is not None
            else create_object_storage(config.storage)
        ),
        ledger=app.state.ledger,
    )

    # Middleware (last added runs first)
    if config.server.enable_metrics:
        app.add_middleware(MetricsMiddleware)
        setup_metrics("backup-vault", __version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(files_router)
    app.include_router(history_router)

    add_routes(app)
    add_exception_handlers(app)

    return app


def add_routes(app: FastAPI) -> None:
    """Add health and utility routes."""

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        service: FilesService = request.app.state.files_service
        return {
            "status": "healthy",
            "version": __version__,
            "storage_backend": service.storage.backend_type,
            "history_entries": len(service.ledger),
        }

    if app.state.config.server.enable_metrics:
        app.get("/metrics", include_in_schema=False)(metrics_endpoint)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Backup Vault",
            "version": __version__,
            "endpoints": {
                "upload": "/upload",
                "download": "/download/{filename}",
                "files": "/files",
                "delete": "/delete/{filename}",
                "history": "/history",
                "delete_history": "/delete-history",
                "health": "/health",
                "docs": "/docs",
            },
        }


def _status_for(exc: BackupVaultError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, ObjectNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def add_exception_handlers(app: FastAPI) -> None:
    """Add global exception handlers."""

    @app.exception_handler(BackupVaultError)
    async def backup_vault_exception_handler(
        request: Request, exc: BackupVaultError
    ) -> JSONResponse:
        """Map Backup Vault exceptions onto HTTP responses."""
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(
                "Request failed",
                exception_type=type(exc).__name__,
                exception_message=exc.message,
                details=exc.details,
                path=request.url.path,
                method=request.method,
            )
            # Backend internals stay in the logs
            message = "An unexpected error occurred"
        else:
            logger.warning(
                "Request rejected",
                exception_type=type(exc).__name__,
                exception_message=exc.message,
                path=request.url.path,
            )
            message = exc.message

        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "message": message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error(
            "Unhandled exception",
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
            },
        )


# Create the app instance
app = create_app()


def main():
    """Run the server."""
    import uvicorn

    config = load_config(settings)
    uvicorn.run(
        "backup_vault.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
