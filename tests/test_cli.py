"""Tests for the taskboard CLI."""

import httpx
import pytest
from typer.testing import CliRunner

from taskboard import cli
from taskboard.client.api import TaskAPIClient
from taskboard.main import create_app
from taskboard.models import TaskCreate

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_process_api(monkeypatch, store):
    """Point the CLI at an in-process app backed by the test store."""
    app = create_app(store=store)
    monkeypatch.setattr(
        cli,
        "make_api",
        lambda: TaskAPIClient("http://test/api", transport=httpx.ASGITransport(app=app)),
    )
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


def test_add_then_list(store) -> None:
    """Test adding a task and seeing it in the list."""
    result = runner.invoke(cli.app, ["add", "Buy milk", "-p", "Low", "-c", "Shopping", "--due", "2030-01-02"])
    assert result.exit_code == 0, result.output
    assert "Added task 1" in result.output

    result = runner.invoke(cli.app, ["list", "--sort", "priority"])
    assert result.exit_code == 0, result.output
    assert "Your Tasks (1)" in result.output
    assert "Buy milk" in result.output
    assert store.get("1").due_date.isoformat() == "2030-01-02"


def test_list_filters(store) -> None:
    """Test that list options filter the table."""
    store.create(TaskCreate(title="Alpha report", category="Work"))
    store.create(TaskCreate(title="Beta groceries", category="Shopping"))

    result = runner.invoke(cli.app, ["list", "--category", "Work"])
    assert result.exit_code == 0, result.output
    assert "Alpha report" in result.output
    assert "Beta groceries" not in result.output


def test_list_rejects_unknown_priority() -> None:
    """Test that an unknown priority filter is a usage error."""
    result = runner.invoke(cli.app, ["list", "--priority", "Urgent"])
    assert result.exit_code != 0


def test_toggle(store) -> None:
    """Test toggling a task to done."""
    task = store.create(TaskCreate(title="Flip"))
    result = runner.invoke(cli.app, ["toggle", task.id])
    assert result.exit_code == 0, result.output
    assert "marked done" in result.output
    assert store.get(task.id).status is True


def test_toggle_unknown_task_shows_error() -> None:
    """Test that toggling a missing task shows an error panel."""
    result = runner.invoke(cli.app, ["toggle", "77"])
    assert result.exit_code == 1
    assert "Failed to update task" in result.output
    assert "Task not found" in result.output


def test_delete_requires_confirmation(store) -> None:
    """Test that delete only happens after confirming."""
    task = store.create(TaskCreate(title="Maybe"))

    result = runner.invoke(cli.app, ["delete", task.id], input="n\n")
    assert result.exit_code == 0
    assert len(store.list_all()) == 1

    result = runner.invoke(cli.app, ["delete", task.id], input="y\n")
    assert result.exit_code == 0, result.output
    assert store.list_all() == []


def test_unexpected_server_reply_shows_error(monkeypatch) -> None:
    """Test that a non-JSON reply shows the error panel instead of a traceback."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    monkeypatch.setattr(cli, "make_api", lambda: TaskAPIClient("http://test/api", transport=transport))

    result = runner.invoke(cli.app, ["list"])

    assert result.exit_code == 1
    assert "Failed to load tasks" in result.output
    assert "Unexpected response from server" in result.output


def test_delete_unknown_task_fails() -> None:
    """Test that deleting a missing task exits with an error."""
    result = runner.invoke(cli.app, ["delete", "5", "--yes"])
    assert result.exit_code == 1
    assert "Failed to delete task" in result.output
