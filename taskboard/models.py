"""Pydantic models for the Task Manager API.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """How urgent a task is."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Category(str, Enum):
    """Which area of life a task belongs to."""

    PERSONAL = "Personal"
    WORK = "Work"
    SHOPPING = "Shopping"
    OTHERS = "Others"


def _blank_to_none(value: Any) -> Any:
    # An empty date input means "no deadline".
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TaskCreate(_CamelModel):
    """Request body for creating a new task."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="The task title (required, 1-200 characters after trimming)",
    )
    description: str = Field(default="", description="Optional free-form details")
    status: bool = Field(default=False, description="Whether the task has been completed")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    category: Category = Field(default=Category.OTHERS, description="Task category")
    due_date: date | None = Field(default=None, description="Optional deadline")

    @field_validator("description", "status", "priority", "category", mode="before")
    @classmethod
    def null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, value: Any) -> Any:
        return _blank_to_none(value)


class TaskUpdate(_CamelModel):
    """Request body for updating an existing task.

    Only the fields present in the request are applied.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=200,
        description="New title for the task",
    )
    description: str | None = Field(default=None, description="New description")
    status: bool | None = Field(default=None, description="New completion status")
    priority: Priority | None = Field(default=None, description="New priority")
    category: Category | None = Field(default=None, description="New category")
    due_date: date | None = Field(default=None, description="New deadline, or null to clear")

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> dict:
        """Return the explicitly provided fields, keyed by attribute name."""
        data = self.model_dump(exclude_unset=True)
        if "description" in data and data["description"] is None:
            data["description"] = ""
        # Only a deadline can be cleared; other nulls leave the field as is.
        return {key: value for key, value in data.items() if value is not None or key == "due_date"}


class Task(_CamelModel):
    """A task item in the task manager."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique identifier for the task")
    title: str = Field(..., description="The task title")
    description: str = Field(default="", description="Optional free-form details")
    status: bool = Field(default=False, description="Whether the task has been completed")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    category: Category = Field(default=Category.OTHERS, description="Task category")
    due_date: date | None = Field(default=None, description="Optional deadline")
    created_at: datetime = Field(..., description="When the task was created")
    updated_at: datetime = Field(..., description="When the task was last updated")


class MessageResponse(BaseModel):
    """Plain message body used for confirmations and errors."""

    message: str


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str = "healthy"
    version: str = "1.0.0"
    storage: str
