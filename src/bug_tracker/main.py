import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bug_tracker.api.bugs import router as bugs_router
from bug_tracker.config import settings
from bug_tracker.db.session import engine, init_db
from bug_tracker.errors import BugTrackerError, ConflictError, InvalidInputError
from bug_tracker.schemas.bugs import ErrorResponse, HealthResponse

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s (%s)", settings.app_name, settings.app_version, settings.environment)
    if settings.db_auto_create:
        await init_db()
        logger.info("Database tables ensured")
    logger.info("CORS enabled for: %s", settings.cors_origins)
    yield
    await engine.dispose()
    logger.info("Shutting down %s", settings.app_name)


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(bugs_router, prefix="/api/bugs", tags=["bugs"])
app.include_router(bugs_router, prefix="/bugs", tags=["bugs"])


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    logger.debug("Origin: %s", request.headers.get("origin"))
    return await call_next(request)


def _error_response(status_code: int, body: ErrorResponse, exc: Exception | None = None) -> JSONResponse:
    if exc is not None and settings.is_development:
        body.stack = "".join(traceback.format_exception(exc))
        body.error = repr(exc)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(BugTrackerError)
async def bug_tracker_error_handler(request: Request, exc: BugTrackerError):
    body = ErrorResponse(message=exc.message)
    if isinstance(exc, InvalidInputError):
        body.errors = exc.errors
    if isinstance(exc, ConflictError):
        body.field = exc.field

    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return _error_response(exc.status_code, body, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
    logger.warning("%s %s -> 400 %s", request.method, request.url.path, errors)
    body = ErrorResponse(message="Validation Error", errors=errors)
    return _error_response(status.HTTP_400_BAD_REQUEST, body, exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Route not found - {request.url.path}"
    else:
        message = str(exc.detail)
    logger.warning("%s %s -> %d %s", request.method, request.url.path, exc.status_code, message)
    return _error_response(exc.status_code, ErrorResponse(message=message))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorResponse(message="Internal Server Error"), exc)


@app.get("/health", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health():
    return HealthResponse(
        status="OK",
        message=f"{settings.app_name} is running",
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/")
async def root():
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "health": "/api/health",
            "bugs": "/api/bugs",
            "bugsAlt": "/bugs",
        },
    }
