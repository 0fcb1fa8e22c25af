"""Syno-Eager FastAPI application.

This is the main application module that:
- Initializes the FastAPI application
- Registers the global exception handler
- Registers all route handlers
- Manages application lifespan (config loading, rate limiter setup)

CORS headers are written by the request orchestrator on every dictionary
response, so no CORS middleware is installed.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from synoeager import __version__
from synoeager.app.dependencies import get_app_state
from synoeager.config.loader import ConfigLoader
from synoeager.core.rate_limiter import FixedWindowRateLimiter

# Configure structured JSON logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


def load_config_into_state() -> None:
    """Load the YAML config and rebuild the rate limiter from it.

    An explicit ``SYNO_CONFIG_PATH`` must exist; the default path is optional.
    """
    state = get_app_state()

    explicit_path = os.getenv("SYNO_CONFIG_PATH")
    config_path = explicit_path or DEFAULT_CONFIG_PATH

    logger.info(f"Loading configuration from {config_path}")
    state.config = ConfigLoader(config_path, required=bool(explicit_path)).load()

    limits = state.config.rate_limit
    state.rate_limiter = FixedWindowRateLimiter(
        max_requests=limits.max_requests,
        window_seconds=limits.window_s,
        cleanup_interval_seconds=limits.cleanup_interval_s,
    )
    logger.info(
        f"Rate limiter initialized: {limits.max_requests} requests per {limits.window_s}s per IP"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    load_config_into_state()
    if not os.getenv("OPENROUTER_API_KEY"):
        logger.warning("OPENROUTER_API_KEY is not set; LLM endpoints will answer 500")
    logger.info(f"Syno-Eager {__version__} started")

    yield

    # Shutdown
    logger.info("Shutting down Syno-Eager...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Syno-Eager",
        version=__version__,
        description=(
            "Dictionary and synonym lookup backed by an LLM: definitions, "
            "bilingual examples and synonyms, plus connotation guidance."
        ),
        lifespan=lifespan,
    )

    # Register exception handlers
    _register_exception_handlers(app)

    # Register routes
    _register_routes(app)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def _register_routes(app: FastAPI) -> None:
    """Register all route handlers."""
    from synoeager.app.routes import dictionary, health

    app.include_router(health.router)
    app.include_router(dictionary.router)


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
