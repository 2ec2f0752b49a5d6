import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi.errors import RateLimitExceeded

from edulink.core.config import settings, require_settings
from edulink.core.database import test_db_connection
from edulink.core.logging import configure_logging
from edulink.core.rate_limit import limiter
from edulink.middleware.request_context import register_request_context_middleware
from edulink.routes.activity import router as activity_router
from edulink.routes.courses import router as courses_router
from edulink.routes.dashboard import router as dashboard_router
from edulink.routes.earnings import router as earnings_router
from edulink.routes.enrollments import router as enrollments_router
from edulink.routes.payments import router as payments_router
from edulink.routes.paystack_webhooks import router as paystack_webhooks_router
from edulink.routes.profiles import router as profiles_router

configure_logging()
logger = logging.getLogger(__name__)

require_settings()

app = FastAPI(title="EduLink Hub")
logger.info(
    "Startup config: ENV=%s RATE_LIMITING=%s PLATFORM_FEE_PERCENT=%s",
    settings.ENV,
    settings.ENABLE_RATE_LIMITING,
    settings.PLATFORM_FEE_PERCENT,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
    502: "UPSTREAM_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException):  # noqa: ARG001
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

    payload: dict = {"error": _error_code(exc.status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request payload",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


if settings.ENABLE_RATE_LIMITING:
    app.state.limiter = limiter
    # Standard error shape for rate limits, instead of slowapi's default.
    app.add_exception_handler(
        RateLimitExceeded,
        lambda request, exc: JSONResponse(  # noqa: ARG005
            status_code=429,
            content={"error": "RATE_LIMITED", "message": "Too many requests"},
        ),
    )

register_request_context_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profiles_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(payments_router)
app.include_router(paystack_webhooks_router)
app.include_router(activity_router)
app.include_router(dashboard_router)
app.include_router(earnings_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/health/ready")
def readiness_check():
    try:
        test_db_connection()
    except Exception as exc:
        logger.exception("Database readiness check failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    return {"status": "ok", "database": "ok"}
