"""HTTP client for the Task Manager API."""

from typing import Any

import httpx
from pydantic import ValidationError

from taskboard.models import Category, Priority, Task


class TaskAPIError(Exception):
    """A request to the Task Manager API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class TaskAPIClient:
    """Async client for the task endpoints.

    Usage:
        async with TaskAPIClient("http://localhost:5001/api") as api:
            tasks = await api.list_tasks()
            task = await api.create_task(title="Buy milk")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TaskAPIError(f"Request failed: {exc}") from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            raise TaskAPIError(
                str(message or response.text or response.reason_phrase),
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TaskAPIError("Unexpected response from server", status_code=response.status_code) from exc

    @staticmethod
    def _task(data: Any) -> Task:
        try:
            return Task.model_validate(data)
        except ValidationError as exc:
            raise TaskAPIError(f"Unexpected task data from server: {exc.error_count()} error(s)") from exc

    async def list_tasks(self) -> list[Task]:
        data = await self._request("GET", "/tasks")
        if not isinstance(data, list):
            raise TaskAPIError("Unexpected response from server")
        return [self._task(item) for item in data]

    async def create_task(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        category: Category = Category.OTHERS,
        due_date: str | None = None,
    ) -> Task:
        payload: dict[str, Any] = {
            "title": title,
            "description": description,
            "priority": Priority(priority).value,
            "category": Category(category).value,
        }
        if due_date:
            payload["dueDate"] = due_date
        data = await self._request("POST", "/tasks", json=payload)
        return self._task(data)

    async def update_task(self, task_id: str, **fields: Any) -> Task:
        """Send a partial update. Keyword names use the wire (camelCase) spelling."""
        data = await self._request("PUT", f"/tasks/{task_id}", json=fields)
        return self._task(data)

    async def delete_task(self, task_id: str) -> str:
        await self._request("DELETE", f"/tasks/{task_id}")
        return task_id
