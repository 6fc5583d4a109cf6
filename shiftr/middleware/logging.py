import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client = request.client.host if request.client else "unknown"

        # Process request
        response = await call_next(request)

        # Calculate processing time
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Client: {client} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        # Add process time to response headers
        response.headers["X-Process-Time"] = str(process_time)

        return response
