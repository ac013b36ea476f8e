import logging
import sys
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; repeated calls only adjust the level"""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_semantic_search", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._semantic_search = True
        root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        method = request.method
        path = request.url.path

        try:
            response: Response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception(f"{method} {path} - {type(e).__name__} after {process_time * 1000:.2f}ms")
            raise

        process_time = time.time() - start_time
        logger.info(f"{method} {path} - {response.status_code} ({process_time * 1000:.2f}ms)")
        return response
