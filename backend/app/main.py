"""
FastAPI application factory.

Startup sequence:
  1. Validate settings
  2. Check DB connectivity (warn on failure - do not crash, the load
     balancer health check will report it)
  3. Mount all API routers

Dev-mode notes:
  When DEV_SKIP_AUTH=true (development only):
    - A starlette middleware reads the X-Dev-User-ID header (a user_code) and
      sets a context variable so get_current_user() can look up the user
      without a bearer token.
    - This middleware is NOT installed in staging/production.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.db import check_db_connection
from app.core.security import set_dev_user_code
from app.api.v1.health import router as health_router
from app.api.v1.users import router as users_router
from app.api.v1.numbering_sequences import router as numbering_sequences_router

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting back-office API (env=%s)", settings.environment)
    db_ok = await check_db_connection()
    if db_ok:
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection: FAILED - check DB_HOST / credentials")

    if settings.auth_disabled:
        logger.warning(
            "DEV_SKIP_AUTH=true - bearer token verification is DISABLED. "
            "This must never be enabled in staging or production."
        )
    elif not settings.jwt_configured:
        logger.warning("JWT_SECRET is not set - every authenticated request will get 503")

    yield

    logger.info("Shutting down back-office API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Back Office - API",
        version="0.1.0",
        description="Document numbering sequences for sales, purchasing and finance",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # CORS - restrict in production
    # ------------------------------------------------------------------ #
    origins = ["*"] if settings.is_development else [f"https://{settings.environment}.backoffice.internal"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Dev-mode header middleware
    # ------------------------------------------------------------------ #
    if settings.auth_disabled:
        @app.middleware("http")
        async def dev_auth_middleware(request: Request, call_next):
            """
            Reads X-Dev-User-ID (a user_code) and stores it in a context
            variable so get_current_user() can find the user.
            """
            set_dev_user_code(request.headers.get("X-Dev-User-ID"))
            return await call_next(request)

    # ------------------------------------------------------------------ #
    # Global exception handler
    # ------------------------------------------------------------------ #
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(health_router)
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(numbering_sequences_router, prefix="/api/v1")

    return app


app = create_app()
