"""FastAPI application wiring for the auth server."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.errors import register_error_handlers
from .api.routes import router as auth_router
from .config import Settings, get_settings
from .domain.profile import ProfileService
from .domain.service import IdentityService
from .logging_setup import setup_logging
from .repository import AccountRepository, ReportRepository, ensure_schema
from .security.passwords import PasswordHasher
from .security.tokens import TokenService

logger = logging.getLogger(__name__)


def build_services(app: FastAPI, settings: Settings, pool: ConnectionPool) -> None:
    """Construct every component from explicit settings and attach them to ``app.state``."""
    accounts = AccountRepository(pool, settings.store_timeout_seconds)
    reports = ReportRepository(pool, settings.store_timeout_seconds)
    tokens = TokenService(
        settings.jwt_secret,
        issuer=settings.jwt_issuer,
        ttl_seconds=settings.jwt_ttl_seconds,
    )
    app.state.pool = pool
    app.state.token_service = tokens
    app.state.identity_service = IdentityService(accounts, PasswordHasher(settings.bcrypt_rounds), tokens)
    app.state.profile_service = ProfileService(accounts, reports)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application; the Postgres pool is opened by the lifespan."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
        pool = ConnectionPool(
            settings.database_url,
            min_size=settings.store_pool_min_size,
            max_size=settings.store_pool_max_size,
            timeout=settings.store_timeout_seconds,
            open=False,
        )
        pool.open()
        ensure_schema(pool)
        build_services(app, settings, pool)
        logger.info("auth server started", extra={"version": settings.version})
        try:
            yield
        finally:
            pool.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    register_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", tags=["health"])
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(auth_router)
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
