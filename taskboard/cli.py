"""Task Manager CLI - Main entry point."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.panel import Panel

from taskboard.client.api import TaskAPIClient, TaskAPIError
from taskboard.client.state import TaskStateStore
from taskboard.client.view import ALL, SortKey, ViewOptions, render_tasks
from taskboard.config import get_settings
from taskboard.logging_setup import setup_logging
from taskboard.models import Category, Priority

T = TypeVar("T")

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="taskboard",
    help="Track tasks with priorities, categories and deadlines",
    no_args_is_help=True,
)
console = Console()

PRIORITY_CHOICES = [p.value for p in Priority]
CATEGORY_CHOICES = [c.value for c in Category]


def make_api() -> TaskAPIClient:
    settings = get_settings()
    return TaskAPIClient(settings.api_url, timeout=settings.client_timeout)


def _run(action: Callable[[TaskStateStore], Awaitable[T]], failure: str) -> T:
    """Run one client action; on failure show an error panel and exit 1."""

    async def runner() -> T:
        async with make_api() as api:
            return await action(TaskStateStore(api))

    try:
        return asyncio.run(runner())
    except TaskAPIError as exc:
        logger.error("%s: %s", failure, exc.message)
        console.print(Panel(f"[red]{failure}[/red]\n\n{exc.message}", title="Error", border_style="red"))
        raise typer.Exit(code=1) from exc


def _check_choice(value: str, choices: list[str], option: str, allow_all: bool = False) -> str:
    allowed = [ALL, *choices] if allow_all else choices
    if value not in allowed:
        raise typer.BadParameter(f"must be one of {', '.join(allowed)}", param_hint=option)
    return value


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")) -> None:
    settings = get_settings()
    setup_logging(level="DEBUG" if verbose else settings.log_level, log_file=settings.log_path)


@app.command("list")
def list_cmd(
    search: str = typer.Option("", "--search", "-s", help="Match title or description"),
    priority: str = typer.Option(ALL, "--priority", "-p", help="All, Low, Medium or High"),
    category: str = typer.Option(ALL, "--category", "-c", help="All, Personal, Work, Shopping or Others"),
    sort: str = typer.Option(SortKey.CREATED_AT.value, "--sort", help="createdAt, dueDate or priority"),
):
    """Show tasks, filtered and sorted."""
    _check_choice(priority, PRIORITY_CHOICES, "--priority", allow_all=True)
    _check_choice(category, CATEGORY_CHOICES, "--category", allow_all=True)
    _check_choice(sort, [k.value for k in SortKey], "--sort")
    options = ViewOptions.parse(search=search, priority=priority, category=category, sort_by=sort)

    async def action(store: TaskStateStore):
        store.subscribe(lambda state: logger.debug("state: %s", state.status.value))
        await store.fetch_tasks()
        return store.state.tasks

    tasks = _run(action, "Failed to load tasks.")
    render_tasks(tasks, options, console)


@app.command("add")
def add_cmd(
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
    priority: str = typer.Option(Priority.MEDIUM.value, "--priority", "-p", help="Low, Medium or High"),
    category: str = typer.Option(Category.OTHERS.value, "--category", "-c", help="Personal, Work, Shopping or Others"),
    due: str | None = typer.Option(None, "--due", help="Deadline as YYYY-MM-DD"),
):
    """Add a new task."""
    _check_choice(priority, PRIORITY_CHOICES, "--priority")
    _check_choice(category, CATEGORY_CHOICES, "--category")
    if not title.strip():
        raise typer.BadParameter("title cannot be empty", param_hint="TITLE")

    async def action(store: TaskStateStore):
        return await store.add_task(
            title=title,
            description=description,
            priority=Priority(priority),
            category=Category(category),
            due_date=due,
        )

    task = _run(action, "Failed to add task. Please try again.")
    console.print(f"[green]Added task {task.id}:[/green] {task.title}")


@app.command("toggle")
def toggle_cmd(task_id: str = typer.Argument(..., help="Task ID")):
    """Mark a task done, or not done again."""

    async def action(store: TaskStateStore):
        await store.fetch_tasks()
        task = store.find(task_id)
        if task is None:
            raise TaskAPIError("Task not found", status_code=404)
        return await store.toggle_task(task.id, task.status)

    task = _run(action, "Failed to update task. Please try again.")
    state = "done" if task.status else "not done"
    console.print(f"[green]Task {task.id} marked {state}.[/green]")


@app.command("delete")
def delete_cmd(
    task_id: str = typer.Argument(..., help="Task ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a task."""
    if not yes and not typer.confirm("Are you sure you want to delete this task?"):
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit()

    async def action(store: TaskStateStore):
        return await store.delete_task(task_id)

    _run(action, "Failed to delete task. Please try again.")
    console.print(f"[green]Task {task_id} deleted.[/green]")


@app.command("serve")
def serve_cmd(
    port: int | None = typer.Option(None, "--port", help="Port to listen on"),
    host: str | None = typer.Option(None, "--host", help="Interface to bind"),
):
    """Run the REST API server."""
    from taskboard.server import serve

    settings = get_settings()
    overrides = {k: v for k, v in {"port": port, "host": host}.items() if v is not None}
    serve(settings.model_copy(update=overrides) if overrides else settings)


if __name__ == "__main__":
    app()
