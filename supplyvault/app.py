"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from supplyvault.config import Settings
from supplyvault.db.engine import Database
from supplyvault.errors import AppError
from supplyvault.gmail.client import GmailClient
from supplyvault.ingest.s3 import AttachmentStore
from supplyvault.notifications.email import EmailNotifier
from supplyvault.verification import build_default_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: database, object store, outbound clients. Shutdown: close them."""
    settings: Settings = app.state.settings
    db = Database(settings)
    app.state.db = db
    logger.info("database_engine_created")

    store = AttachmentStore(settings)
    await store.start()
    app.state.store = store

    notifier = EmailNotifier(settings)
    await notifier.start()
    app.state.notifier = notifier

    gmail = GmailClient()
    await gmail.start()
    app.state.gmail = gmail

    app.state.verifier = build_default_router(settings)
    yield
    await gmail.stop()
    await notifier.stop()
    await store.stop()
    await db.close()
    logger.info("shutdown_complete")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        response = _error(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
        message = first.get("msg", "Invalid request")
        return _error(400, f"{field}: {message}" if field else message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=request.url.path)
        return _error(500, "Internal server error")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="SupplyVault API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    _register_error_handlers(app)

    from supplyvault.routers.alerts import router as alerts_router
    from supplyvault.routers.certifications import router as certifications_router
    from supplyvault.routers.connections import router as connections_router
    from supplyvault.routers.cron import router as cron_router
    from supplyvault.routers.ingest import router as ingest_router
    from supplyvault.routers.oauth import router as oauth_router
    from supplyvault.routers.settings import router as settings_router
    from supplyvault.routers.suppliers import router as suppliers_router
    from supplyvault.routers.workers import router as workers_router

    app.include_router(alerts_router)
    app.include_router(certifications_router)
    app.include_router(suppliers_router)
    app.include_router(connections_router)
    app.include_router(settings_router)
    app.include_router(cron_router)
    app.include_router(ingest_router)
    app.include_router(workers_router)
    app.include_router(oauth_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "supplyvault-api"}

    return app
