"""Client-side task state.

State changes only in response to server replies: each action moves
through pending, fulfilled or rejected, and listeners are told after
every change.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TypeVar

from taskboard.client.api import TaskAPIClient
from taskboard.models import Category, Priority, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class TaskState:
    tasks: tuple[Task, ...] = ()
    status: RequestStatus = RequestStatus.IDLE
    error: str | None = None


Listener = Callable[[TaskState], None]


@dataclass
class TaskStateStore:
    """Holds the task list and the lifecycle of the latest request."""

    api: TaskAPIClient
    _state: TaskState = field(default_factory=TaskState)
    _listeners: list[Listener] = field(default_factory=list)

    @property
    def state(self) -> TaskState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    async def _run(self, name: str, request: Awaitable[T], merge: Callable[[T], tuple[Task, ...]]) -> T:
        self._set(status=RequestStatus.LOADING, error=None)
        try:
            result = await request
        except Exception as exc:
            logger.error("%s failed: %s", name, exc)
            self._set(status=RequestStatus.FAILED, error=str(exc) or exc.__class__.__name__)
            raise
        self._set(tasks=merge(result), status=RequestStatus.SUCCEEDED)
        return result

    async def fetch_tasks(self) -> list[Task]:
        """Replace the whole list with the server's."""
        return await self._run("fetch_tasks", self.api.list_tasks(), lambda tasks: tuple(tasks))

    async def add_task(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        category: Category = Category.OTHERS,
        due_date: str | None = None,
    ) -> Task:
        request = self.api.create_task(
            title=title.strip(),
            description=description.strip(),
            priority=priority,
            category=category,
            due_date=due_date or None,
        )
        return await self._run("add_task", request, lambda task: (*self._state.tasks, task))

    async def toggle_task(self, task_id: str, current_status: bool) -> Task:
        request = self.api.update_task(task_id, status=not current_status)
        return await self._run("toggle_task", request, self._replace)

    async def delete_task(self, task_id: str) -> str:
        request = self.api.delete_task(task_id)
        return await self._run(
            "delete_task",
            request,
            lambda deleted_id: tuple(t for t in self._state.tasks if t.id != deleted_id),
        )

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self._state.tasks if t.id == task_id), None)

    def _replace(self, updated: Task) -> tuple[Task, ...]:
        return tuple(updated if t.id == updated.id else t for t in self._state.tasks)
