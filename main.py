from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.requests import Request
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
import logging
import traceback

from findocs.api.auth_routes import router as auth_router
from findocs.api.submit_routes import router as submit_router
from findocs.core.auth_dependencies import set_envelope_cookie
from findocs.core.config import settings, check_settings
from findocs.core.errors import (
    FinDocsError,
    ProviderError,
    ProviderQuotaError,
    SecurityRejectionError,
    SubmissionIncompleteError,
)
from findocs.core.rate_limit import rate_limit_store
from findocs.helpers.response_builder import build_error_response

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all API responses.

    OPTIONS requests are left to CORSMiddleware, which is registered last
    so it runs first and can answer preflights itself.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if request.method != "OPTIONS":
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
            if settings.is_production:
                response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-client-address limits: one general ceiling for every endpoint and a
    stricter one for submission creation.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        window = settings.RATE_LIMIT_WINDOW_SECONDS

        allowed, retry_after = await rate_limit_store.hit(f"general:{client_ip}", settings.RATE_LIMIT_MAX, window)
        if not allowed:
            return self._too_many("Too many requests, please try again later.", retry_after)

        if request.method == "POST" and request.url.path.rstrip("/") == "/api/submit":
            allowed, retry_after = await rate_limit_store.hit(
                f"submit:{client_ip}", settings.RATE_LIMIT_SUBMIT_MAX, window
            )
            if not allowed:
                logging.getLogger("findocs.rate_limit").warning(f"Submission rate limit hit for {client_ip}")
                return self._too_many("Too many submissions, please try again later.", retry_after)

        return await call_next(request)

    @staticmethod
    def _too_many(message: str, retry_after: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"success": False, "message": message},
            headers={"Retry-After": str(retry_after)},
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_settings()
    logger.info(f"Starting {settings.PROJECT_NAME} in {settings.ENVIRONMENT} mode")
    yield

app = FastAPI(
    title="FinDocs",
    description="Customer and vehicle document submissions stored in the user's Google Drive",
    version="1.0.0",
    lifespan=lifespan
)


logger = logging.getLogger("server_exception_handler")


def _reapply_refreshed_cookie(request: Request, response: Response) -> None:
    refreshed = getattr(request.state, "refreshed_envelope", None)
    if refreshed:
        set_envelope_cookie(response, refreshed)


@app.exception_handler(FinDocsError)
async def findocs_exception_handler(request: Request, exc: FinDocsError):
    # Security rejections are already logged on the findocs.security logger
    if isinstance(exc, (ProviderError, SubmissionIncompleteError)):
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    elif not isinstance(exc, SecurityRejectionError):
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    headers = {}
    quota = exc.cause if isinstance(exc, SubmissionIncompleteError) else exc
    if isinstance(quota, ProviderQuotaError) and quota.retry_after:
        headers["Retry-After"] = str(quota.retry_after)

    response = JSONResponse(status_code=exc.status_code, content=build_error_response(exc), headers=headers)
    _reapply_refreshed_cookie(request, response)
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTPException handled: {exc.detail}")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail) if exc.detail else "Request failed"},
    )
    _reapply_refreshed_cookie(request, response)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", []) if part not in ("body", "query", "form")]
        errors.setdefault(".".join(loc) or "request", []).append(err.get("msg", "Invalid value"))
    logger.info(f"Request validation error: {errors}")
    return JSONResponse(status_code=400, content={"success": False, "message": "Request validation failed", "errors": errors})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # Details stay in the server log; the client gets a generic message
    tb = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{tb}")
    response = JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})
    _reapply_refreshed_cookie(request, response)
    return response


allowed_origins = settings.allowed_origins

# Middleware runs in reverse order of registration: CORS first, then
# security headers, then rate limiting, so 429 responses carry both.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
    ],
    max_age=3600,
)

app.include_router(auth_router)
app.include_router(submit_router)


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=not settings.is_production)
