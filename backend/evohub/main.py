"""FastAPI application for the Evohub metering service.

Builds the dependency container at startup, mounts the versioned routers
under ``API_PREFIX`` and wires the envelope error handlers and middleware.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from evohub.api.middleware import (
    add_request_id,
    evohub_exception_handler,
    exception_logging_middleware,
    http_exception_handler,
    http_metrics_middleware,
    log_requests,
    rate_limit_exception_handler,
    rate_limit_headers_middleware,
    security_headers_middleware,
    validation_exception_handler,
)
from evohub.api.v1.api import api_router
from evohub.core.config import settings
from evohub.core.exceptions import EvohubException, RateLimitExceededException
from evohub.core.logging import logger
from evohub.core.metrics_service import metrics_lifespan


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the container, run the metrics sidecar and drain on shutdown."""
    from evohub.core import container as container_mod
    from evohub.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    initialize_container(settings)
    container = container_mod.container
    logger.info("Container initialized successfully")

    async with metrics_lifespan(app, container.metrics, settings.METRICS_ENABLED):
        yield
        container.health.shutting_down = True
        logger.info("Shutting down: stopping rate limiter cleanup")
        await container.rate_limiters.close()
        close_kv = getattr(container.kv, "close", None)
        if close_kv is not None:
            await close_kv()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router, prefix=settings.API_PREFIX)

# Starlette wraps each new middleware around the previous ones, so the last
# registered runs first. Exception logging sits innermost, request ids outermost.
app.middleware("http")(exception_logging_middleware)
app.middleware("http")(http_metrics_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(rate_limit_headers_middleware)
app.middleware("http")(security_headers_middleware)
app.middleware("http")(add_request_id)

if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-CSRF-Token"],
    )

app.exception_handler(RequestValidationError)(validation_exception_handler)
app.exception_handler(RateLimitExceededException)(rate_limit_exception_handler)
app.exception_handler(EvohubException)(evohub_exception_handler)
app.exception_handler(StarletteHTTPException)(http_exception_handler)
