from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import TrackerError, ValidationError
from .logging_config import configure_logging, get_logger
from .repositories import TaskRepository, UserRepository, get_repositories
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .security import PasswordHasher
from .services import Accounts, TaskOperations
from .settings import DEFAULT_TOKEN_SECRET, Settings, get_settings
from .tokens import TokenService
from .utils import error_body

logger = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "User registration and login; both return a bearer token."},
    {
        "name": "tasks",
        "description": "CRUD operations on the caller's own tasks. Requires 'Authorization: Bearer <token>'.",
    },
]


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    """
    Render client-visible failures.

    Response format:
        {
            "success": false,
            "error": "NotFoundOrForbidden",
            "message": "Task not found"
        }
    Validation errors additionally carry "detail" with the per-field errors.
    """
    detail = exc.errors if isinstance(exc, ValidationError) else None
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.message, detail))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests (e.g. invalid JSON) are reported as 400 ValidationError."""
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body("ValidationError", "Request validation failed", errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("InternalServerError", "Internal server error"),
    )


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    *,
    users: Optional[UserRepository] = None,
    tasks: Optional[TaskRepository] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Settings, stores, the password hasher and the token service are created
    here and kept on app.state; nothing is held in module globals. Pass
    users/tasks to supply repositories directly (both or neither).

    Serve with ``uvicorn --factory tracker_api.main:create_app``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if (users is None) != (tasks is None):
        raise ValueError("pass both users and tasks repositories, or neither")
    if users is None or tasks is None:
        users, tasks = get_repositories(settings)

    if settings.token_secret == DEFAULT_TOKEN_SECRET:
        logger.warning("TOKEN_SECRET is not set; using the development default")

    token_service = TokenService(settings.token_secret, ttl=timedelta(days=settings.token_ttl_days))
    hasher = PasswordHasher(
        time_cost=settings.argon2_time_cost, memory_cost=settings.argon2_memory_cost
    )

    app = FastAPI(
        title="Task Tracker",
        description="Multi-user task tracker API. Every task is visible only to the user who created it.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.tokens = token_service
    app.state.accounts = Accounts(users, hasher, token_service)
    app.state.task_operations = TaskOperations(tasks)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TrackerError, tracker_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Task Management API is running!", "backend": settings.persistence_backend}

    app.include_router(auth_router.router, prefix=settings.api_prefix)
    app.include_router(tasks_router.router, prefix=settings.api_prefix)

    logger.info("Task tracker ready (backend=%s)", settings.persistence_backend)
    return app

