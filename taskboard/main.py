"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.config import Settings, get_settings
from taskboard.models import HealthResponse, MessageResponse, Task, TaskCreate, TaskUpdate
from taskboard.store import TaskNotFoundError, TaskStore, resolve_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tasks"])


def get_store(request: Request) -> TaskStore:
    """Return the storage backend resolved for this process."""
    return request.app.state.store


@router.get("", response_model=list[Task])
async def list_tasks(store: TaskStore = Depends(get_store)) -> list[Task]:
    """List all tasks."""
    return store.list_all()


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(data: TaskCreate, store: TaskStore = Depends(get_store)) -> Task:
    """Create a new task."""
    task = store.create(data)
    logger.debug("Created task %s", task.id)
    return task


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, store: TaskStore = Depends(get_store)) -> Task:
    """Get a specific task by ID."""
    return store.get(task_id)


@router.put("/{task_id}", response_model=Task)
async def update_task(task_id: str, data: TaskUpdate, store: TaskStore = Depends(get_store)) -> Task:
    """Apply a partial update to an existing task."""
    return store.update(task_id, data)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)) -> MessageResponse:
    """Delete a task."""
    store.delete(task_id)
    logger.debug("Deleted task %s", task_id)
    return MessageResponse(message="Task deleted")


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    if location:
        return f"{'.'.join(location)}: {error.get('msg', 'invalid value')}"
    return str(error.get("msg", "Invalid request"))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _first_error_message(exc)},
    )


async def not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Task not found"})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Known paths with an unsupported method are unmatched routes too.
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Something went wrong!"},
    )


def create_app(store: TaskStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API.

    When ``store`` is omitted the backend is resolved once at startup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "store", None) is None:
            app.state.store = resolve_store(settings)
        logger.info("Storage backend: %s", app.state.store.name)
        yield

    app = FastAPI(
        title=settings.app_title,
        description="Track tasks with priorities, categories and due dates.",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(TaskNotFoundError, not_found_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", response_model=MessageResponse, tags=["System"])
    async def root() -> MessageResponse:
        return MessageResponse(message="Task Manager API is running")

    @app.get(f"{settings.api_prefix.rstrip('/')}/health", response_model=HealthResponse, tags=["System"])
    async def health_check(store: TaskStore = Depends(get_store)) -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(version=settings.version, storage=store.name)

    app.include_router(router, prefix=settings.tasks_path)
    return app


app = create_app()
