"""
Task Pydantic schemas
Request, filter and response models for Task API endpoints
Reference: https://fastapi.tiangolo.com/tutorial/body/
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskreload.models.task import TaskPriority, TaskStatus


def _blank_to_none(value: Any) -> Any:
    """Treat an empty string the same as an absent field"""
    if isinstance(value, str) and value == "":
        return None
    return value


class TaskCreate(BaseModel):
    """
    Schema for creating a new task

    Empty or missing status/priority fall back to pending/medium.
    """
    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field("", description="Task description")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return TaskStatus.PENDING if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return TaskPriority.MEDIUM if v is None else v


class TaskUpdate(BaseModel):
    """
    Schema for updating a task
    All fields are optional for partial updates; empty strings count as "not supplied"
    Reference: https://fastapi.tiangolo.com/tutorial/body-updates/
    """
    title: Optional[str] = Field(None, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: Optional[TaskStatus] = Field(None, description="Task status")
    priority: Optional[TaskPriority] = Field(None, description="Task priority")

    @field_validator("title", "description", "status", "priority", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def changes(self) -> dict[str, str]:
        """Fields that should overwrite the stored task, as plain strings"""
        return {
            field: value.value if isinstance(value, (TaskStatus, TaskPriority)) else value
            for field, value in self.model_dump(exclude_none=True).items()
        }


class TaskFilter(BaseModel):
    """
    Query parameters for listing tasks
    Both unset means no filtering; both set are combined with AND
    Reference: https://fastapi.tiangolo.com/tutorial/query-param-models/
    """
    status: Optional[TaskStatus] = Field(None, description="Filter by status")
    priority: Optional[TaskPriority] = Field(None, description="Filter by priority")

    @field_validator("status", "priority", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)


class TaskResponse(BaseModel):
    """
    Schema for task response
    Includes database-generated fields
    """
    id: int = Field(..., description="Task ID")
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    # Plain strings: the table itself doesn't constrain these columns
    status: str = Field(..., description="Task status")
    priority: str = Field(..., description="Task priority")
    created_at: datetime = Field(..., description="Timestamp when task was created")
    updated_at: datetime = Field(..., description="Timestamp when task was last updated")

    model_config = ConfigDict(from_attributes=True)  # Allow creation from ORM objects

    @field_validator("description", mode="before")
    @classmethod
    def null_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class TaskEnvelope(BaseModel):
    """
    Response envelope for single-task endpoints
    data is null on errors and on delete
    """
    success: bool
    data: Optional[TaskResponse] = None
    message: Optional[str] = None
    error: Optional[str] = None


class TaskListEnvelope(BaseModel):
    """
    Response envelope for the task list endpoint
    data is always an array, never null
    """
    success: bool
    data: list[TaskResponse] = Field(default_factory=list)
    total: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
