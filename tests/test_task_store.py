"""Tests for the task store against a temporary SQLite database."""

import asyncio

import pytest

from taskreload.api.v1.schemas.task import TaskFilter, TaskResponse
from taskreload.core.database import Base
from taskreload.core.exceptions import StorageError, TaskNotFoundError
from taskreload.models.task import Task, TaskPriority, TaskStatus


def as_dict(task: Task) -> dict:
    return TaskResponse.model_validate(task).model_dump()


def new_task(title="Write report", description="", status="pending", priority="medium") -> Task:
    return Task(title=title, description=description, status=status, priority=priority)


class TestInsert:
    async def test_insert_assigns_id_and_timestamps(self, store):
        task = await store.insert(new_task())

        assert task.id is not None and task.id > 0
        assert task.created_at is not None
        assert task.created_at == task.updated_at

    async def test_ids_increase_and_are_not_reused(self, store):
        first = await store.insert(new_task("one"))
        second = await store.insert(new_task("two"))
        await store.delete(second.id)
        third = await store.insert(new_task("three"))

        assert first.id < second.id < third.id

    async def test_get_by_id_after_insert_matches(self, store, other_store):
        task = await store.insert(
            new_task("Plan sprint", "Backlog grooming", "in_progress", "high")
        )

        fetched = await other_store.get_by_id(task.id)

        assert as_dict(fetched) == as_dict(task)


class TestGetById:
    async def test_missing_id_raises_not_found(self, store):
        with pytest.raises(TaskNotFoundError) as exc_info:
            await store.get_by_id(999)
        assert exc_info.value.task_id == 999


class TestGetAll:
    async def test_empty_table_returns_empty_list(self, store):
        tasks = await store.get_all(TaskFilter())
        assert tasks == []

    async def test_no_filter_returns_newest_first(self, store):
        ids = [(await store.insert(new_task(f"task {i}"))).id for i in range(3)]

        tasks = await store.get_all()

        assert [t.id for t in tasks] == list(reversed(ids))

    async def test_filter_by_status(self, store):
        done_old = await store.insert(new_task("a", status="completed"))
        await store.insert(new_task("b", status="pending"))
        done_new = await store.insert(new_task("c", status="completed"))
        await store.insert(new_task("d", status="cancelled"))

        tasks = await store.get_all(TaskFilter(status=TaskStatus.COMPLETED))

        assert [t.id for t in tasks] == [done_new.id, done_old.id]
        assert all(t.status == "completed" for t in tasks)

    async def test_filters_combine_with_and(self, store):
        match = await store.insert(new_task("a", status="pending", priority="high"))
        await store.insert(new_task("b", status="pending", priority="low"))
        await store.insert(new_task("c", status="completed", priority="high"))

        tasks = await store.get_all(
            TaskFilter(status=TaskStatus.PENDING, priority=TaskPriority.HIGH)
        )

        assert [t.id for t in tasks] == [match.id]


class TestUpdate:
    async def test_update_overwrites_fields_and_refreshes_updated_at(self, store, other_store):
        task = await store.insert(new_task("A", "B", "pending", "low"))
        before = as_dict(await other_store.get_by_id(task.id))
        await asyncio.sleep(0.01)

        await store.update(task.id, new_task("A2", "B2", "completed", "high"))

        after = as_dict(await other_store.get_by_id(task.id))
        assert after["title"] == "A2"
        assert after["description"] == "B2"
        assert after["status"] == "completed"
        assert after["priority"] == "high"
        assert after["created_at"] == before["created_at"]
        assert after["updated_at"] > before["updated_at"]

    async def test_update_missing_id_is_silent(self, store):
        await store.update(12345, new_task("ghost"))
        assert await store.exists(12345) is False


class TestDeleteAndExists:
    async def test_delete_removes_row(self, store):
        task = await store.insert(new_task())
        assert await store.exists(task.id) is True

        await store.delete(task.id)

        assert await store.exists(task.id) is False
        with pytest.raises(TaskNotFoundError):
            await store.get_by_id(task.id)

    async def test_delete_missing_id_is_idempotent(self, store):
        await store.delete(424242)
        await store.delete(424242)


class TestStorageErrors:
    async def test_driver_failure_becomes_storage_error(self, database, store):
        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        with pytest.raises(StorageError):
            await store.get_all()
        with pytest.raises(StorageError):
            await store.exists(1)
        with pytest.raises(StorageError):
            await store.insert(new_task())
