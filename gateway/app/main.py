"""
FastAPI Gateway Application Factory
====================================

This is the main entry point for the CORS forwarding gateway that sits
between the Runbook AI agent page and the third-party APIs it calls.

Architecture:
    Browser agent page → Gateway (this service) → Any http(s) upstream

Routers:
    - /{path}?url=... : Origin-gated forwarding (documented form: /proxy?url=...)

Environment Variables (all optional):
    - PORT: Listening port (default: 8082)
    - HOST: Listening interface (default: 0.0.0.0)
    - LOG_LEVEL: Logging level (default: INFO)
    - UPSTREAM_TIMEOUT_SECONDS: Upstream request timeout (default: 30)

Running the Service:
    Development:
        uvicorn gateway.app.main:app --reload --port 8082

    Production:
        python -m gateway.app.main
        runbook-proxy
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from gateway.app.config import ALLOWED_ORIGINS, get_settings
from gateway.app.proxy import ProxyError, proxy_error_handler, proxy_router


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Load configuration from environment
        - Log listening port and allowed origins

    There are no shared resources to release on shutdown: every upstream
    client is scoped to its own request.
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("gateway.main")

    logger.info(
        f"Runbook AI CORS proxy listening on port {settings.PORT}",
        extra={
            "host": settings.HOST,
            "upstream_timeout": settings.UPSTREAM_TIMEOUT_SECONDS,
            "log_level": settings.LOG_LEVEL
        }
    )
    logger.info(f"Allowed origins: {', '.join(sorted(ALLOWED_ORIGINS))}")

    yield

    logger.info("Gateway shutdown complete")


# Create FastAPI application
def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - The catch-all forwarding router
        - Exception handlers

    CORS is handled by the proxy router itself, not CORSMiddleware: rejected
    preflights must get a bare 403 and allowed ones echo the requested
    headers. The docs routes are disabled so every path reaches the pipeline.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Runbook AI CORS Proxy",
        description="Origin-gated forwarding proxy for the Runbook AI agent page",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Pipeline errors: 403/400/502 JSON bodies
    app.add_exception_handler(ProxyError, proxy_error_handler)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.

        Args:
            request: FastAPI request object
            exc: Exception that was raised

        Returns:
            JSONResponse: Standardized error response
        """
        logger = logging.getLogger("gateway.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    # Forwarding router: every path, every supported method
    app.include_router(proxy_router)

    return app


# Create app instance for uvicorn
app = create_app()


def run() -> None:
    """
    Console entry point.

    uvicorn logs bind failures and exits with status 1 on its own, which is
    the fatal listener failure path.
    """
    settings = get_settings()

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
