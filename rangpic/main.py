"""
FastAPI application entry point with async lifespan management.

This module initializes the FastAPI application with:
- Structured logging with request correlation IDs
- Async catalog connection pooling (AsyncDBPool) and a shared origin client
- CORS middleware configuration
- Automatic route discovery and registration
- Graceful startup/shutdown handling

Architecture:
    - Logging configured before app creation (JSON/console)
    - Lifespan context manager handles pools, schema and the seed import
    - Routes are auto-discovered from rangpic/routes/
    - Configuration is loaded from environment-specific .env files
"""

from uuid import uuid4

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rangpic.core import register_routers, setup_logging
from rangpic.core.exceptions import register_exception_handlers
from rangpic.core.lifespan import app_lifespan
from rangpic.main_config import cors_config, fastapi_config, settings

# =============================================================================
# Setup Logging (before app creation)
# =============================================================================
setup_logging()

app = FastAPI(
    title=fastapi_config.title,
    description=fastapi_config.description,
    version=fastapi_config.version,
    docs_url=fastapi_config.docs_url,
    redoc_url=fastapi_config.redoc_url,
    openapi_url=fastapi_config.openapi_url,
    root_path=fastapi_config.root_path,
    lifespan=app_lifespan,
    debug=fastapi_config.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_config.origins_list,
    allow_credentials=cors_config.allow_credentials,
    allow_methods=cors_config.methods_list,
    allow_headers=cors_config.headers_list,
)

# Adds request_id to the logging context
app.add_middleware(
    CorrelationIdMiddleware,
    header_name="X-Request-ID",
    generator=lambda: uuid4().hex[:16],
    validator=None,
    transformer=lambda x: x,
)

register_exception_handlers(app)

# =============================================================================
# Auto-register all routes
# =============================================================================
register_routers(app)


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "rangpic.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
        log_config=None,  # keep the structlog setup
    )


if __name__ == "__main__":
    run()
