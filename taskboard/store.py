"""Task storage backends.

Two implementations share the ``TaskStore`` interface: a MongoDB-backed
store and an in-memory fallback. ``resolve_store`` picks one at startup
and the choice holds for the lifetime of the process.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, time, timedelta
from enum import Enum
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from taskboard.config import Settings
from taskboard.models import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """No task with the given id exists in the active store."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id!r} not found")


class StorageUnavailableError(RuntimeError):
    """The document store could not be reached."""


def utc_now() -> datetime:
    """Current UTC time, truncated to the millisecond precision MongoDB keeps."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def next_timestamp(previous: datetime) -> datetime:
    """Return a timestamp strictly later than ``previous``."""
    return max(utc_now(), previous + timedelta(milliseconds=1))


class TaskStore(ABC):
    """CRUD contract every storage backend satisfies."""

    name: str

    @abstractmethod
    def list_all(self) -> list[Task]:
        """Return all tasks in the order the backend keeps them."""

    @abstractmethod
    def get(self, task_id: str) -> Task:
        """Get a task by its ID. Raises TaskNotFoundError."""

    @abstractmethod
    def create(self, data: TaskCreate) -> Task:
        """Create a new task and return it."""

    @abstractmethod
    def update(self, task_id: str, data: TaskUpdate) -> Task:
        """Merge the provided fields onto a task. Raises TaskNotFoundError."""

    @abstractmethod
    def delete(self, task_id: str) -> None:
        """Delete a task. Raises TaskNotFoundError."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every task. Useful for testing."""


class InMemoryTaskStore(TaskStore):
    """Process-local task storage used when MongoDB is unreachable.

    IDs come from a counter starting at 1 and are never reused. Writes
    are serialized with a lock.
    """

    name = "memory"

    def __init__(self) -> None:
        """Initialize an empty task store."""
        self._tasks: dict[str, Task] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def list_all(self) -> list[Task]:
        """Return all tasks in creation order."""
        return list(self._tasks.values())

    def get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create(self, data: TaskCreate) -> Task:
        with self._lock:
            now = utc_now()
            task = Task(
                id=str(self._next_id),
                created_at=now,
                updated_at=now,
                **data.model_dump(),
            )
            self._next_id += 1
            self._tasks[task.id] = task
        return task

    def update(self, task_id: str, data: TaskUpdate) -> Task:
        with self._lock:
            task = self.get(task_id)
            update_data = data.changes()
            update_data["updated_at"] = next_timestamp(task.updated_at)
            updated_task = task.model_copy(update=update_data)
            self._tasks[task_id] = updated_task
        return updated_task

    def delete(self, task_id: str) -> None:
        with self._lock:
            if task_id not in self._tasks:
                raise TaskNotFoundError(task_id)
            del self._tasks[task_id]

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()
            self._next_id = 1


def _to_document(fields: dict[str, Any]) -> dict[str, Any]:
    doc = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, date) and not isinstance(value, datetime):
            # BSON has no date type; store midnight UTC.
            value = datetime.combine(value, time(), tzinfo=UTC)
        doc[key] = value
    return doc


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _from_document(doc: dict[str, Any]) -> Task:
    due_date = doc.get("due_date")
    return Task(
        id=str(doc["_id"]),
        title=doc["title"],
        description=doc.get("description", ""),
        status=doc.get("status", False),
        priority=doc.get("priority", "Medium"),
        category=doc.get("category", "Others"),
        due_date=due_date.date() if due_date is not None else None,
        created_at=_as_utc(doc["created_at"]),
        updated_at=_as_utc(doc["updated_at"]),
    )


class MongoTaskStore(TaskStore):
    """Task storage backed by a single MongoDB collection."""

    name = "mongo"

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    @classmethod
    def connect(
        cls,
        uri: str,
        *,
        database: str = "task_manager",
        collection: str = "tasks",
        timeout_ms: int = 2000,
    ) -> "MongoTaskStore":
        """Connect to MongoDB and verify the server answers.

        Raises StorageUnavailableError if the server cannot be reached.
        """
        client: MongoClient | None = None
        try:
            client = MongoClient(
                uri,
                serverSelectionTimeoutMS=timeout_ms,
                tz_aware=True,
            )
            client.admin.command("ping")
        except PyMongoError as exc:
            if client is not None:
                client.close()
            raise StorageUnavailableError(f"Cannot reach MongoDB at {uri}: {exc}") from exc
        db = client.get_default_database(default=database)
        return cls(db[collection])

    @staticmethod
    def _object_id(task_id: str) -> ObjectId:
        try:
            return ObjectId(task_id)
        except (InvalidId, TypeError) as exc:
            raise TaskNotFoundError(task_id) from exc

    def list_all(self) -> list[Task]:
        return [_from_document(doc) for doc in self._collection.find().sort("_id", 1)]

    def get(self, task_id: str) -> Task:
        doc = self._collection.find_one({"_id": self._object_id(task_id)})
        if doc is None:
            raise TaskNotFoundError(task_id)
        return _from_document(doc)

    def create(self, data: TaskCreate) -> Task:
        now = utc_now()
        doc = _to_document(data.model_dump())
        doc["created_at"] = now
        doc["updated_at"] = now
        result = self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return _from_document(doc)

    def update(self, task_id: str, data: TaskUpdate) -> Task:
        current = self.get(task_id)
        changes = _to_document(data.changes())
        changes["updated_at"] = next_timestamp(current.updated_at)
        result = self._collection.update_one({"_id": self._object_id(task_id)}, {"$set": changes})
        if result.matched_count == 0:
            raise TaskNotFoundError(task_id)
        return self.get(task_id)

    def delete(self, task_id: str) -> None:
        result = self._collection.delete_one({"_id": self._object_id(task_id)})
        if result.deleted_count == 0:
            raise TaskNotFoundError(task_id)

    def clear(self) -> None:
        self._collection.delete_many({})


def resolve_store(settings: Settings) -> TaskStore:
    """Pick the storage backend for this process.

    MongoDB when it answers at startup, otherwise the in-memory store.
    There is no later attempt to reconnect.
    """
    try:
        store = MongoTaskStore.connect(
            settings.mongodb_uri,
            database=settings.mongodb_database,
            collection=settings.mongodb_collection,
            timeout_ms=settings.mongodb_timeout_ms,
        )
    except StorageUnavailableError as exc:
        logger.warning("%s; falling back to in-memory storage", exc)
        return InMemoryTaskStore()
    logger.info("Connected to MongoDB")
    return store
