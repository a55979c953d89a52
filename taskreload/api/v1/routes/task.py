"""
Task API routes
CRUD endpoints for task management
Every response uses the envelope {success, data, message?, error?, total?}
Reference: https://fastapi.tiangolo.com/tutorial/sql-databases/
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from pydantic import BaseModel, ValidationError

from taskreload.api.v1.schemas.task import (
    TaskCreate,
    TaskEnvelope,
    TaskFilter,
    TaskListEnvelope,
    TaskResponse,
    TaskUpdate,
)
from taskreload.core.dependencies import get_task_store
from taskreload.core.exceptions import StorageError, TaskNotFoundError
from taskreload.models.task import Task
from taskreload.services.task import TaskStore

logger = logging.getLogger(__name__)

# Ids must fit a signed 64-bit INTEGER column; anything else is a bad id, not a database error
TaskId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1, description="Task ID")]


def _json_body(model: type[BaseModel]) -> dict:
    """
    OpenAPI request body for a route that reads and validates the body itself
    Reference: https://fastapi.tiangolo.com/advanced/path-operation-advanced-configuration/#custom-openapi-path-operation-schema
    """
    schema = model.model_json_schema(ref_template="#/components/schemas/{model}")
    schema.pop("$defs", None)
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": schema}},
        }
    }


def _merge(current: Task, task_data: TaskUpdate) -> Task:
    """
    Lay the supplied (non-empty) fields over the current task

    Returns a detached Task so the session never sees a half-edited row.
    """
    merged = Task(
        title=current.title,
        description=current.description,
        status=current.status,
        priority=current.priority,
    )
    for field, value in task_data.changes().items():
        setattr(merged, field, value)
    return merged


# Create router for task endpoints
router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],  # Groups endpoints in API documentation
    responses={
        400: {"description": "Invalid request"},
        500: {"description": "Internal server error"},
    },
)


@router.get(
    "",
    response_model=TaskListEnvelope,
    response_model_exclude_unset=True,
    summary="List tasks",
    description="Retrieve all tasks, optionally filtered by status and priority (newest first)",
    status_code=status.HTTP_200_OK,
)
async def get_tasks(
    filters: Annotated[TaskFilter, Query()],
    store: TaskStore = Depends(get_task_store),
) -> TaskListEnvelope:
    """
    Get a list of tasks

    Supports:
    - Filtering by status (pending, in_progress, completed, cancelled)
    - Filtering by priority (low, medium, high)

    Returns:
        TaskListEnvelope with data always an array and total set to its length
    """
    try:
        tasks = await store.get_all(filters)
    except StorageError as e:
        logger.error(f"Error retrieving tasks: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error retrieving tasks",
        ) from e

    return TaskListEnvelope(
        success=True,
        data=[TaskResponse.model_validate(task) for task in tasks],
        total=len(tasks),
        message="tasks retrieved successfully",
    )


@router.get(
    "/{task_id}",
    response_model=TaskEnvelope,
    response_model_exclude_unset=True,
    summary="Get task by ID",
    description="Retrieve a single task by its ID",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Task not found"}
    },
)
async def get_task(
    task_id: TaskId,
    store: TaskStore = Depends(get_task_store),
) -> TaskEnvelope:
    """
    Get a single task by ID

    Raises:
        HTTPException: 404 if task is not found, 500 on database failure
    """
    try:
        task = await store.get_by_id(task_id)
    except TaskNotFoundError as e:
        logger.info(e.message)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="task not found",
        ) from e
    except StorageError as e:
        logger.error(f"Error retrieving task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error retrieving task",
        ) from e

    return TaskEnvelope(
        success=True,
        data=TaskResponse.model_validate(task),
        message="task retrieved successfully",
    )


@router.post(
    "",
    response_model=TaskEnvelope,
    response_model_exclude_unset=True,
    summary="Create task",
    description="Create a new task; status defaults to pending and priority to medium",
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    task_data: TaskCreate,
    store: TaskStore = Depends(get_task_store),
) -> TaskEnvelope:
    """
    Create a new task

    Invalid bodies (missing or empty title, unknown status/priority) never
    reach this function; they are answered with 400 "invalid task data".

    Returns:
        Created task including its id and timestamps
    """
    task = Task(
        title=task_data.title,
        description=task_data.description,
        status=task_data.status.value,
        priority=task_data.priority.value,
    )
    try:
        task = await store.insert(task)
    except StorageError as e:
        logger.error(f"Error creating task: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error creating task",
        ) from e

    return TaskEnvelope(
        success=True,
        data=TaskResponse.model_validate(task),
        message="task created successfully",
    )


@router.put(
    "/{task_id}",
    response_model=TaskEnvelope,
    response_model_exclude_unset=True,
    summary="Update task",
    description="Update an existing task; only non-empty fields are applied",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Task not found"}
    },
    openapi_extra=_json_body(TaskUpdate),
)
async def update_task(
    task_id: TaskId,
    request: Request,
    store: TaskStore = Depends(get_task_store),
) -> TaskEnvelope:
    """
    Update an existing task

    The existence check runs before the body is read, so a missing task is
    a 404 even when the body is malformed. Empty or absent fields keep their
    current value.

    Raises:
        HTTPException: 400 on bad body, 404 if task is not found, 500 on database failure
    """
    try:
        exists = await store.exists(task_id)
    except StorageError as e:
        logger.error(f"Error checking task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error checking task existence",
        ) from e
    if not exists:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="task not found",
        )

    try:
        task_data = TaskUpdate.model_validate_json(await request.body())
    except ValidationError as e:
        logger.debug(f"Invalid update body for task {task_id}: {e.errors()}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid update data",
        ) from e

    try:
        current = await store.get_by_id(task_id)
    except (TaskNotFoundError, StorageError) as e:
        # Deleted between the existence check and this read counts as a failure too
        logger.error(f"Error retrieving current task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error retrieving current task",
        ) from e

    try:
        await store.update(task_id, _merge(current, task_data))
    except StorageError as e:
        logger.error(f"Error updating task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error updating task",
        ) from e

    # Read back the authoritative post-update state
    try:
        updated = await store.get_by_id(task_id)
    except (TaskNotFoundError, StorageError) as e:
        logger.error(f"Error retrieving updated task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error retrieving updated task",
        ) from e

    return TaskEnvelope(
        success=True,
        data=TaskResponse.model_validate(updated),
        message="task updated successfully",
    )


@router.delete(
    "/{task_id}",
    response_model=TaskEnvelope,
    response_model_exclude_unset=True,
    summary="Delete task",
    description="Delete a task by ID",
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Task not found"}
    },
)
async def delete_task(
    task_id: TaskId,
    store: TaskStore = Depends(get_task_store),
) -> TaskEnvelope:
    """
    Delete a task

    Raises:
        HTTPException: 404 if task is not found, 500 on database failure
    """
    try:
        exists = await store.exists(task_id)
    except StorageError as e:
        logger.error(f"Error checking task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error checking task existence",
        ) from e
    if not exists:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="task not found",
        )

    try:
        await store.delete(task_id)
    except StorageError as e:
        logger.error(f"Error deleting task {task_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="error deleting task",
        ) from e

    return TaskEnvelope(
        success=True,
        data=None,
        message="task deleted successfully",
    )
