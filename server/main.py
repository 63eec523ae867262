"""
FastAPI backend for blockchain account lookups.

Answers account identity, contract, deployment and token holding queries from
the indexer database and NEAR RPC, memoized in a shared cache.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.container import container
from core.health import get_health_status, set_startup_time
from core.logging import configure_logging, get_logger
from routers import account

# Initialize settings and logging
settings = container.settings()
configure_logging(settings)
logger = get_logger(__name__)

# Suppress noisy loggers
import logging
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting account API")
    set_startup_time()

    await container.database().startup()
    await container.cache().startup()
    await container.rpc().startup()

    logger.info("Services started successfully")
    yield

    await container.rpc().shutdown()
    await container.cache().shutdown()
    await container.database().shutdown()
    logger.info("Services shutdown complete")


class CatchAllExceptionsMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a JSON 500 response."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled exception: {type(e).__name__}: {str(e)}",
                         path=request.url.path, exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "error": f"{type(e).__name__}: {str(e)}",
                    "detail": "Internal server error"
                }
            )


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware and routes."""
    app = FastAPI(
        title="Account API",
        version="1.0.0",
        description="Blockchain account identity, contract and token holdings",
        lifespan=lifespan,
        default_response_class=ORJSONResponse
    )

    # Exception middleware BEFORE CORS to catch all errors
    app.add_middleware(CatchAllExceptionsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(account.router)

    @app.get("/health")
    async def health_check():
        """Dependency health check."""
        return await get_health_status(
            container.database(), container.cache(), container.rpc()
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting account API",
                host=settings.host, port=settings.port, debug=settings.debug)
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers
    )
