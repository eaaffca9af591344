import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteEventStore
from src.api.deps import get_rules, get_settings
from src.api.routes.analytics_ingest import MISSING_FIELDS_MESSAGE
from src.app_shell.config import validate_ops_rules
from src.components.analytics import CrawlerConfig
from src.rules.configs import build_crawler_config
from src.shell.http.crawler_middleware import CrawlerLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, validate ops and migrate on startup (fail-fast)
    try:
        rules = get_rules()
        validate_ops_rules(rules, settings.data_dir)
        SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info("Rules loaded from %s", settings.rules_path)
    except (OSError, ValueError, RuntimeError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Errors are returned as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Validation failures use the same {"error": message} body.

    Unparseable tracking bodies are 400s like missing fields; bad query
    parameters stay 422.
    """
    errors = exc.errors()
    if any(err["loc"] and err["loc"][0] == "body" for err in errors):
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_MESSAGE})

    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": f"{field}: {message}" if field else message},
    )


def _event_store() -> SQLiteEventStore:
    return SQLiteEventStore(get_settings().db_path)


def _crawler_config() -> CrawlerConfig:
    return build_crawler_config(get_rules())


def create_app() -> FastAPI:
    app = FastAPI(
        title="Blog Analytics API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # --- Routers ---
    from src.api.routes import admin_analytics, analytics_ingest

    app.include_router(analytics_ingest.router, prefix="/api", tags=["Analytics Ingest"])
    app.include_router(admin_analytics.router, prefix="/api", tags=["Admin Analytics"])

    # --- Error bodies ---
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )

    # Crawler logging sees every request, including 404s
    app.add_middleware(
        CrawlerLoggingMiddleware,
        store_factory=_event_store,
        config_factory=_crawler_config,
    )

    # CORS (Allow Frontend)
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "analytics"}

    return app


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
