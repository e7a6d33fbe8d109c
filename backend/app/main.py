import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from slowapi.errors import RateLimitExceeded

from app.core.config import settings, require_jwt_secret
from app.core.database import init_db
from app.core.logging_config import configure_logging
from app.core.rate_limit import limiter
from app.routes.auth import router as auth_router
from app.routes.job_applications import router as jobs_router
from app.routes.logs import router as logs_router
from app.routes.summary import router as summary_router

configure_logging()
logger = logging.getLogger(__name__)

require_jwt_secret()

APP_VERSION = "1.0.0"
_STARTED_AT = time.monotonic()

app = FastAPI(title="Job Search Tracker API", version=APP_VERSION)
logger.info(
    "Startup config: ENV=%s RATE_LIMITING=%s SUMMARY_DELAY_SECONDS=%s",
    settings.ENV,
    settings.ENABLE_RATE_LIMITING,
    settings.SUMMARY_DELAY_SECONDS,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


# Registered for Starlette's base class so unknown routes (404/405) get the same shape.
@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    message: str
    details: dict | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        det = detail.get("details")
        details = det if isinstance(det, dict) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    if exc.status_code == 404 and message == "Not Found":
        message = "Endpoint not found"

    payload: dict = {"error": _error_code(exc.status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": exc.errors()},
        },
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"},
    )


if settings.ENABLE_RATE_LIMITING:
    app.state.limiter = limiter
    # Provide our standard error shape for rate limits, instead of slowapi's default.
    app.add_exception_handler(
        RateLimitExceeded,
        lambda request, exc: JSONResponse(  # noqa: ARG005
            status_code=429,
            content={"error": "RATE_LIMITED", "message": "Too many requests"},
        ),
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    if settings.ENV != "test":
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.on_event("startup")
def _on_startup() -> None:
    # Dev convenience for a fresh SQLite file; deployed databases are migrated with Alembic.
    if settings.ENV == "dev":
        init_db()


app.include_router(auth_router)
app.include_router(jobs_router)
app.include_router(logs_router)
app.include_router(summary_router)


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    }


@app.get("/")
def root():
    return {
        "message": "Job Search Tracker API",
        "version": APP_VERSION,
        "endpoints": {
            "health": "/health",
            "logs": "/api/logs",
            "jobs": "/api/jobs",
            "summary": "/api/summary",
            "auth": "/api/auth",
        },
    }
