import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.config import Settings, settings as default_settings
from taskflow.exceptions import AppError, Unauthorized, ValidationFailed
from taskflow.logging_setup import setup_logging
from taskflow.routers.auth import router as auth_router
from taskflow.routers.tasks import router as tasks_router
from taskflow.routers.users import router as users_router
from taskflow.schemas.user import PASSWORD_RULE
from taskflow.scripts.seed_demo_data import seed_demo_data
from taskflow.stores.base import Store
from taskflow.stores.factory import create_store
from taskflow.utils.responses import error_body, success_response

API_PREFIX = "/api/v1"

logger = logging.getLogger(__name__)


# (field, pydantic error type) -> message shown to clients
FIELD_MESSAGES = {
    ("username", "missing"): "Username is required",
    ("username", "string_pattern_mismatch"): "Username must contain only alphanumeric characters",
    ("username", "string_too_short"): "Username must be at least 3 characters long",
    ("username", "string_too_long"): "Username must not exceed 30 characters",
    ("email", "missing"): "Email is required",
    ("email", "value_error"): "Please provide a valid email address",
    ("password", "missing"): "Password is required",
    ("password", "string_too_short"): "Password must be at least 6 characters long",
    ("password", "value_error"): PASSWORD_RULE,
    ("title", "missing"): "Title is required",
    ("title", "string_too_short"): "Title cannot be empty",
    ("title", "string_too_long"): "Title must not exceed 200 characters",
    ("description", "string_too_long"): "Description must not exceed 1000 characters",
}


def format_validation_errors(errors) -> list[str]:
    """Flatten pydantic errors into one readable message per violation."""
    messages = []
    for err in errors:
        field = ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path"))
        known = FIELD_MESSAGES.get((field, err["type"]))
        if known:
            messages.append(known)
            continue
        if err["type"] == "missing":
            messages.append(f"{field} is required" if field else "Request body is required")
            continue
        if err["type"] == "value_error" and "error" in err.get("ctx", {}):
            msg = str(err["ctx"]["error"])
        else:
            msg = err["msg"]
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        errors = exc.errors if isinstance(exc, ValidationFailed) else None
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, errors), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_body("Validation failed", format_validation_errors(exc.errors())),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = f"Not Found - {request.url.path}"
        return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)

    # Anything unexpected: log it, hide details in production
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        stack = None if settings.is_production else "".join(traceback.format_exception(exc))
        return JSONResponse(status_code=500, content=error_body("Internal Server Error", stack=stack))


def create_app(settings: Settings | None = None, store: Store | None = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = app.state.store
        await store.initialize()
        if settings.SEED_DEMO_DATA:
            await seed_demo_data(
                store, settings.DEMO_ADMIN_PASSWORD, settings.DEMO_USER_PASSWORD, settings.BCRYPT_ROUNDS
            )
        logger.info("taskflow API started (storage=%s, env=%s)", type(store).__name__, settings.ENVIRONMENT)

        yield

        await store.close()

    app = FastAPI(
        lifespan=lifespan,
        title="Taskflow API",
        description="Task tracking with JWT auth and role-based access",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = store or create_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(tasks_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)

    @app.get(f"{API_PREFIX}/health", tags=["health"])
    def health():
        return {
            "status": "success",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/")
    def root():
        return success_response(None, "Taskflow API running")

    return app


app = create_app()
