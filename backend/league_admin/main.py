import logging
import os
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound

from league_admin.config import settings
from league_admin.database import init_db
from league_admin.errors import AppError, InternalError, translate_integrity_error
from league_admin.routes import (
    admin_cancellations,
    admin_disputes,
    admin_matches,
    admin_penalties,
    player_matches,
)
from league_admin.services.notification_service import get_notifier

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="League Admin API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, stack: str = None) -> JSONResponse:
    content = {"success": False, "error": code, "message": message}
    if stack and not settings.is_production:
        content["stack"] = stack
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return _error_response(400, "VALIDATION_ERROR", message)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    translated = translate_integrity_error(exc)
    logger.warning(f"{request.method} {request.url.path} hit a constraint: {exc.orig}")
    return _error_response(translated.status_code, translated.code, translated.message)


@app.exception_handler(NoResultFound)
async def no_result_handler(request: Request, exc: NoResultFound):
    return _error_response(404, "NOT_FOUND", "Resource not found")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = InternalError()
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _error_response(error.status_code, error.code, error.message, stack)


# Include routers
app.include_router(admin_matches.router)
app.include_router(admin_disputes.router)
app.include_router(admin_cancellations.router)
app.include_router(admin_penalties.router)
app.include_router(player_matches.router)


@app.on_event("startup")
def on_startup():
    init_db()
    if settings.notification_worker_enabled:
        get_notifier().start()
    logger.info(f"League Admin API started (env={settings.app_env})")


@app.on_event("shutdown")
def on_shutdown():
    if settings.notification_worker_enabled:
        get_notifier().stop()


@app.get("/api/health")
def health_check():
    return {"success": True, "data": {"status": "healthy", "environment": settings.app_env}}
