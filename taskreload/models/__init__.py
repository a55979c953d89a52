"""
Database models
All SQLAlchemy models should be defined here or imported here
"""

# Import Base for models to inherit from
from taskreload.core.database import Base
from taskreload.models.task import Task, TaskPriority, TaskStatus

# Export all models for easy imports
__all__ = [
    "Base",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
