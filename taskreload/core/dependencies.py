"""
Shared FastAPI dependencies
Reference: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskreload.core.database import get_db
from taskreload.services.task import TaskStore


def get_task_store(db: AsyncSession = Depends(get_db)) -> TaskStore:
    """
    Build a task store around the request's database session

    Usage:
        @router.get("/tasks")
        async def list_tasks(store: TaskStore = Depends(get_task_store)):
            ...
    """
    return TaskStore(db)
