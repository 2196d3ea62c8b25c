from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        path = request.url.path
        query_string = request.url.query
        method = request.method

        logger.info(f"Request: {method} {path} {query_string}")

        response = await call_next(request)

        # Uploads can run for minutes while media is transcoded
        process_time = time.time() - start_time
        level = logging.WARNING if process_time > 5 else logging.INFO
        logger.log(level, f"Response: {response.status_code} for {method} {path} in {process_time:.4f}s")

        return response
