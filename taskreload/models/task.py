"""
Task database model
SQLAlchemy model for tasks
Reference: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from taskreload.core.database import Base


class TaskStatus(str, Enum):
    """Task status enumeration."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    """Task priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Note: status and priority are stored as plain strings, not database enums
# Pydantic schemas handle enum validation at the API boundary


class Task(Base):
    """
    Task model representing a task in the database

    Attributes:
        id: Primary key, auto-incrementing integer (never reused)
        title: Task title (required)
        description: Task description (defaults to empty string)
        status: pending, in_progress, completed or cancelled (default: pending)
        priority: low, medium or high (default: medium)
        created_at: Timestamp when task was created (set once on insert)
        updated_at: Timestamp when task was last updated (refreshed on every update)

    Reference: https://docs.sqlalchemy.org/en/20/orm/mapped_sql_expressions.html
    """
    __tablename__ = "tasks"
    # AUTOINCREMENT keeps SQLite from reusing ids of deleted rows
    # Reference: https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#sqlite-auto-incrementing-behavior
    __table_args__ = {"sqlite_autoincrement": True}

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Task fields
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.PENDING.value,
        server_default=TaskStatus.PENDING.value,
        index=True,
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
        server_default=TaskPriority.MEDIUM.value,
        index=True,
    )

    # Timestamps
    # The task store sets both explicitly; server defaults cover rows inserted by hand
    # Reference: https://docs.sqlalchemy.org/en/20/core/defaults.html#server-side-defaults
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of Task"""
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}', priority='{self.priority}')>"
