"""
Pydantic schemas for API request/response models
"""

from taskreload.api.v1.schemas.task import (
    TaskCreate,
    TaskEnvelope,
    TaskFilter,
    TaskListEnvelope,
    TaskResponse,
    TaskUpdate,
)

__all__ = [
    "TaskCreate",
    "TaskEnvelope",
    "TaskFilter",
    "TaskListEnvelope",
    "TaskResponse",
    "TaskUpdate",
]
