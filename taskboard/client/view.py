"""Filtered and sorted views of the task list, and their rendering.

Everything here is derived from the current tasks and view options on
each render; nothing is stored.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from rich.console import Console
from rich.table import Table
from rich.text import Text

from taskboard.models import Category, Priority, Task

ALL = "All"

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}
PRIORITY_STYLE = {Priority.HIGH: "bold red", Priority.MEDIUM: "yellow", Priority.LOW: "green"}


class SortKey(str, Enum):
    CREATED_AT = "createdAt"
    DUE_DATE = "dueDate"
    PRIORITY = "priority"


@dataclass(frozen=True)
class ViewOptions:
    search: str = ""
    priority: Priority | None = None
    category: Category | None = None
    sort_by: SortKey = SortKey.CREATED_AT

    @classmethod
    def parse(
        cls,
        search: str = "",
        priority: str = ALL,
        category: str = ALL,
        sort_by: str = SortKey.CREATED_AT.value,
    ) -> "ViewOptions":
        """Build options from user input, where "All" disables a filter."""
        return cls(
            search=search,
            priority=None if priority == ALL else Priority(priority),
            category=None if category == ALL else Category(category),
            sort_by=SortKey(sort_by),
        )


def matches(task: Task, options: ViewOptions) -> bool:
    needle = options.search.lower()
    matches_search = needle in (task.title or "").lower() or needle in (task.description or "").lower()
    matches_priority = options.priority is None or task.priority == options.priority
    matches_category = options.category is None or task.category == options.category
    return matches_search and matches_priority and matches_category


def filter_tasks(tasks: Iterable[Task], options: ViewOptions) -> list[Task]:
    return [task for task in tasks if matches(task, options)]


def sort_tasks(tasks: Iterable[Task], sort_by: SortKey) -> list[Task]:
    """Return a new sorted list; ties keep their input order."""
    if sort_by is SortKey.DUE_DATE:
        # Undated tasks go last.
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or date.min))
    if sort_by is SortKey.PRIORITY:
        return sorted(tasks, key=lambda t: PRIORITY_ORDER[t.priority])
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


def visible_tasks(tasks: Iterable[Task], options: ViewOptions) -> list[Task]:
    return sort_tasks(filter_tasks(tasks, options), options.sort_by)


def render_tasks(tasks: Iterable[Task], options: ViewOptions, console: Console, today: date | None = None) -> None:
    """Print the visible tasks as a table."""
    today = today or date.today()
    shown = visible_tasks(tasks, options)

    if not shown:
        console.print(f"[bold]Your Tasks ({len(shown)})[/bold]")
        console.print("[dim]No tasks found. Try adjusting your filters or add a new task![/dim]")
        return

    table = Table(title=f"Your Tasks ({len(shown)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Done", justify="center")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Category", style="magenta")
    table.add_column("Deadline")

    for task in shown:
        title = Text(task.title, style="strike dim" if task.status else "")
        if task.description:
            title.append(f"\n{task.description}", style="dim")
        deadline = Text("")
        if task.due_date is not None:
            overdue = task.due_date < today
            deadline = Text(task.due_date.isoformat(), style="bold red" if overdue else "")
            if overdue:
                deadline.append(" (overdue)", style="red")
        table.add_row(
            task.id,
            "[green]✓[/green]" if task.status else "",
            title,
            Text(task.priority.value, style=PRIORITY_STYLE[task.priority]),
            task.category.value,
            deadline,
        )

    console.print(table)
