"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from settlement_api.config import Config
from settlement_api.datasources import BinanceDataSource, ExchangeDataSource
from settlement_api.errors import InvalidInputError, SettlementError
from settlement_api.services import DepositService, SettingsCache, WithdrawalService
from settlement_api.storage import SettlementStore
from settlement_api.api import router
from settlement_api.api.dependencies import ServiceContainer, set_services

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    datasource: ExchangeDataSource | None = None,
    store: SettlementStore | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration. If None, loads from environment.
        datasource: Exchange data source. If None, a BinanceDataSource is built from config.
        store: Settlement store. If None, one is opened at config.sqlite_db_path.

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = Config.from_env()

    if datasource is None:
        datasource = BinanceDataSource(
            api_key=config.binance_api_key,
            api_secret=config.binance_api_secret,
            api_url=config.binance_api_url,
            timeout=config.binance_timeout,
            recv_window=config.binance_recv_window,
        )
    if store is None:
        store = SettlementStore(config.database_url)

    settings = SettingsCache(store, config)
    services = ServiceContainer(
        config=config,
        settings=settings,
        deposits=DepositService(
            datasource,
            store,
            settings,
            history_limit=config.deposit_history_limit,
            include_error_details=config.is_development,
        ),
        withdrawals=WithdrawalService(
            datasource,
            settings,
            include_error_details=config.is_development,
        ),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("Starting USDT settlement API")
        logger.info(f"Using Binance API: {config.binance_api_url}")
        logger.info(f"Settlement store: {store.database_url}")
        if not config.has_credentials:
            logger.warning(
                "BINANCE_API_KEY or BINANCE_API_SECRET is not set. Binance calls will fail."
            )

        await run_in_threadpool(store.create_schema)
        await settings.hydrate()
        set_services(services)

        yield

        # Shutdown
        logger.info("Shutting down...")
        set_services(None)
        await datasource.close()
        store.dispose()

    app = FastAPI(
        title="USDT Settlement API",
        description="Verifies Binance deposits by txId, rewards KES once per txId, and withdraws USDT",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(SettlementError)
    async def settlement_error_handler(request: Request, exc: SettlementError):
        # NotConfiguredError and store faults; informational outcomes never raise
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"{request.url.path}: database error: {exc}")
        return JSONResponse(status_code=500, content={"error": "Database error"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.url.path}: unhandled error")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # Include API routes
    app.include_router(router)

    # Health check endpoint
    @app.get("/api/health")
    async def health_check():
        return {"ok": True}

    return app
