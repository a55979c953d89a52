"""
Task store
Sole owner of persistent task state; every operation is one round-trip to the database
Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskreload.api.v1.schemas.task import TaskFilter
from taskreload.core.exceptions import StorageError, TaskNotFoundError
from taskreload.models.task import Task

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time in UTC, microsecond precision"""
    return datetime.now(timezone.utc)


class TaskStore:
    """
    Persistence operations for tasks

    Each mutation commits on its own. Update and delete don't report
    "no such row"; callers check exists() first.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            # Connection is likely already gone; the caller still gets the first error
            logger.warning(f"Rollback failed: {type(e).__name__}: {e}")

    async def insert(self, task: Task) -> Task:
        """
        Insert a new task

        The caller has already validated the title. id comes from the
        auto-increment column; created_at and updated_at share one clock reading.

        Args:
            task: Unsaved Task instance

        Returns:
            The same Task with id and timestamps populated

        Raises:
            StorageError: If the insert fails
        """
        now = utcnow()
        task.created_at = now
        task.updated_at = now
        self.db.add(task)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorageError("Failed to insert task") from e

        logger.info(f"Created task {task.id}")
        return task

    async def get_by_id(self, task_id: int) -> Task:
        """
        Retrieve a single task by ID, read fresh from the database

        Args:
            task_id: ID of the task to retrieve

        Returns:
            Task object

        Raises:
            TaskNotFoundError: If no row matches
            StorageError: On any other database failure
        """
        # populate_existing overwrites whatever the session already holds for this row
        # Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/api.html#populate-existing
        query = (
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
            task = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to retrieve task {task_id}") from e

        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def get_all(self, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        """
        Retrieve tasks with optional status/priority filtering

        Args:
            task_filter: Optional filter; unset fields don't constrain

        Returns:
            List of Task objects, newest first (empty list if none match)

        Raises:
            StorageError: If the query fails
        """
        query = select(Task).execution_options(populate_existing=True)

        if task_filter is not None:
            if task_filter.status is not None:
                query = query.where(Task.status == task_filter.status.value)
            if task_filter.priority is not None:
                query = query.where(Task.priority == task_filter.priority.value)

        # Order by creation date (newest first), id breaks ties
        query = query.order_by(Task.created_at.desc(), Task.id.desc())

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise StorageError("Failed to retrieve tasks") from e
        return list(result.scalars().all())

    async def update(self, task_id: int, task: Task) -> None:
        """
        Overwrite title, description, status and priority of a task

        This is a full overwrite, not a patch: the caller merges partial
        input into ``task`` first. updated_at is refreshed to now.

        Args:
            task_id: ID of the row to overwrite
            task: Task carrying the new field values

        Raises:
            StorageError: If the update fails
        """
        query = (
            update(Task)
            .where(Task.id == task_id)
            .values(
                title=task.title,
                description=task.description,
                status=task.status,
                priority=task.priority,
                updated_at=utcnow(),
            )
        )
        try:
            await self.db.execute(query)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorageError(f"Failed to update task {task_id}") from e

        logger.info(f"Updated task {task_id}")

    async def delete(self, task_id: int) -> None:
        """
        Delete a task if present (no error when the row doesn't exist)

        Args:
            task_id: ID of the task to delete

        Raises:
            StorageError: If the delete fails
        """
        try:
            await self.db.execute(delete(Task).where(Task.id == task_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorageError(f"Failed to delete task {task_id}") from e

        logger.info(f"Deleted task {task_id}")

    async def exists(self, task_id: int) -> bool:
        """
        Check whether a task with this ID exists

        Raises:
            StorageError: If the query fails
        """
        try:
            result = await self.db.execute(
                select(Task.id).where(Task.id == task_id).limit(1)
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check existence of task {task_id}") from e
        return result.scalar_one_or_none() is not None
