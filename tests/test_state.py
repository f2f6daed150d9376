"""Tests for the client API wrapper and task state store."""

import httpx
import pytest

from taskboard.client.api import TaskAPIClient, TaskAPIError
from taskboard.client.state import RequestStatus, TaskStateStore
from taskboard.models import Category, Priority


@pytest.mark.asyncio
async def test_initial_state(state_store: TaskStateStore) -> None:
    """Test the state before any action runs."""
    assert state_store.state.tasks == ()
    assert state_store.state.status is RequestStatus.IDLE
    assert state_store.state.error is None


@pytest.mark.asyncio
async def test_fetch_replaces_list(state_store: TaskStateStore, api: TaskAPIClient) -> None:
    """Test that fetching replaces the task list."""
    await api.create_task(title="One")
    await api.create_task(title="Two")

    statuses = []
    state_store.subscribe(lambda state: statuses.append(state.status))
    await state_store.fetch_tasks()

    assert [t.title for t in state_store.state.tasks] == ["One", "Two"]
    assert statuses == [RequestStatus.LOADING, RequestStatus.SUCCEEDED]


@pytest.mark.asyncio
async def test_add_appends_server_record(state_store: TaskStateStore) -> None:
    """Test that adding appends the record the server returned."""
    await state_store.add_task(title="First")
    task = await state_store.add_task(
        title="  Buy milk ",
        priority=Priority.LOW,
        category=Category.SHOPPING,
        due_date="2030-06-01",
    )

    assert task.title == "Buy milk"
    assert task.id == "2"
    assert [t.title for t in state_store.state.tasks] == ["First", "Buy milk"]
    assert state_store.state.tasks[-1].due_date.isoformat() == "2030-06-01"
    assert state_store.state.status is RequestStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_toggle_replaces_matching_record(state_store: TaskStateStore) -> None:
    """Test that toggling replaces only the matching task."""
    a = await state_store.add_task(title="A")
    b = await state_store.add_task(title="B")

    toggled = await state_store.toggle_task(a.id, a.status)

    assert toggled.status is True
    assert toggled.updated_at > a.updated_at
    assert state_store.state.tasks == (toggled, b)

    back = await state_store.toggle_task(a.id, toggled.status)
    assert back.status is False
    assert back.updated_at > toggled.updated_at


@pytest.mark.asyncio
async def test_delete_removes_matching_record(state_store: TaskStateStore) -> None:
    """Test that deleting removes only the matching task."""
    a = await state_store.add_task(title="A")
    b = await state_store.add_task(title="B")

    await state_store.delete_task(a.id)

    assert state_store.state.tasks == (b,)


@pytest.mark.asyncio
async def test_rejected_action_sets_error_and_keeps_tasks(state_store: TaskStateStore) -> None:
    """Test that a failed action records the error and keeps the list."""
    kept = await state_store.add_task(title="Kept")

    with pytest.raises(TaskAPIError) as excinfo:
        await state_store.delete_task("404")

    assert excinfo.value.status_code == 404
    assert state_store.state.status is RequestStatus.FAILED
    assert state_store.state.error == "Task not found"
    assert state_store.state.tasks == (kept,)


@pytest.mark.asyncio
async def test_validation_error_message_surfaces(state_store: TaskStateStore) -> None:
    """Test that server validation messages reach the state."""
    with pytest.raises(TaskAPIError) as excinfo:
        await state_store.add_task(title="   ")

    assert excinfo.value.status_code == 400
    assert "title" in state_store.state.error
    assert state_store.state.tasks == ()


@pytest.mark.asyncio
async def test_next_action_clears_previous_error(state_store: TaskStateStore) -> None:
    """Test that a new action clears the previous error."""
    with pytest.raises(TaskAPIError):
        await state_store.toggle_task("missing", False)
    await state_store.fetch_tasks()
    assert state_store.state.error is None
    assert state_store.state.status is RequestStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications(state_store: TaskStateStore) -> None:
    """Test that unsubscribed listeners are no longer called."""
    seen = []
    unsubscribe = state_store.subscribe(seen.append)
    await state_store.fetch_tasks()
    unsubscribe()
    await state_store.fetch_tasks()
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_transport_failure_becomes_api_error() -> None:
    """Test that connection failures become API errors."""
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with TaskAPIClient("http://test/api", transport=httpx.MockTransport(refuse)) as api:
        store = TaskStateStore(api)
        with pytest.raises(TaskAPIError) as excinfo:
            await store.fetch_tasks()

    assert excinfo.value.status_code is None
    assert store.state.status is RequestStatus.FAILED
    assert "connection refused" in store.state.error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status_code", "body", "message"),
    [
        (200, b"<html>proxy page</html>", "Unexpected response from server"),
        (200, b'{"not": "a list"}', "Unexpected response from server"),
        (200, b'[{"title": "no id"}]', "Unexpected task data from server"),
        (502, b'["bad", "gateway"]', '["bad", "gateway"]'),
        (503, b"", "Service Unavailable"),
    ],
)
async def test_malformed_responses_become_api_errors(status_code, body, message) -> None:
    """Test that unexpected response bodies become API errors."""

    def reply(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    async with TaskAPIClient("http://test/api", transport=httpx.MockTransport(reply)) as api:
        with pytest.raises(TaskAPIError) as excinfo:
            await api.list_tasks()

    assert excinfo.value.message.startswith(message)
