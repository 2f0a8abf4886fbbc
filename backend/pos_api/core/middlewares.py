"""
Security middlewares: response headers and request content-type checks.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from pos_shared.config.settings import settings
from pos_shared.infrastructure.correlation import CorrelationIdMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Permissions-Policy: no geolocation, microphone or camera
    - Content-Security-Policy for a JSON API
    - Strict-Transport-Security in production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        if "server" in response.headers:
            del response.headers["server"]

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Validate Content-Type for requests with body.

    POST/PUT/PATCH must send application/json (or form-urlencoded);
    multipart is only accepted on the upload paths. Returns 415 otherwise.
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}
    MULTIPART_PATHS = {"/api/products/import"}

    async def dispatch(self, request: Request, call_next):
        if request.method in self.METHODS_WITH_BODY:
            content_type = request.headers.get("content-type", "")
            if content_type and not self._allowed(request.url.path, content_type):
                return JSONResponse(
                    status_code=415,
                    content={"detail": "Tipo de contenido no soportado. Use application/json"},
                )
        return await call_next(request)

    def _allowed(self, path: str, content_type: str) -> bool:
        if content_type.startswith(("application/json", "application/x-www-form-urlencoded")):
            return True
        return path in self.MULTIPART_PATHS and content_type.startswith("multipart/form-data")


def register_middlewares(app: FastAPI) -> None:
    """
    Register the middlewares. Starlette runs them in reverse order of
    registration: correlation id first, then content-type, then headers.
    """
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
