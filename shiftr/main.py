import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shiftr import __version__
from shiftr.api.v1.api import api_router
from shiftr.api.v1.endpoints.auth import login
from shiftr.core.config import settings
from shiftr.core.database import async_session_maker, engine
from shiftr.core.logging_config import setup_logging
from shiftr.db.init_db import init_db
from shiftr.middleware.logging import LoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_db(engine, async_session_maker)
    yield
    await engine.dispose()


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings are client errors (400)"""
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(errors) or "invalid request"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures; the client only learns that something went wrong"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="shiftr",
        description="Shift scheduling API with per-user overlap prevention",
        version=__version__,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=settings.ALLOWED_METHODS,
        allow_headers=settings.ALLOWED_HEADERS,
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(login.router, tags=["Authentication"])
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "message": "shiftr is running",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()


def run():
    """Run the HTTP server"""
    import uvicorn
    uvicorn.run(
        "shiftr.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        timeout_keep_alive=settings.TIMEOUT_KEEP_ALIVE,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
