from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")

PUBLIC_PREFIXES = ("/api/v1/auth", "/api/v1/password-reset", "/docs", "/redoc", "/api/v1/openapi.json")

class AuthLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # Everything under the API except sign-in flows needs a bearer token
        if not request.headers.get("Authorization"):
            if path.startswith("/api/") and not path.startswith(PUBLIC_PREFIXES):
                logger.warning(f"Protected endpoint {path} accessed without auth header")

        response = await call_next(request)

        # Log auth-related status codes
        if response.status_code in [401, 403]:
            logger.warning(f"Auth error: {response.status_code} on {path}")

        return response
