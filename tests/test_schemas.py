"""Tests for request/response schemas and settings parsing."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from taskreload.api.v1.schemas.task import TaskCreate, TaskFilter, TaskResponse, TaskUpdate
from taskreload.core.config import Settings
from taskreload.models.task import TaskPriority, TaskStatus


class TestTaskCreate:
    def test_defaults(self):
        data = TaskCreate(title="x")
        assert data.status is TaskStatus.PENDING
        assert data.priority is TaskPriority.MEDIUM
        assert data.description == ""

    def test_null_description_becomes_empty(self):
        assert TaskCreate(title="x", description=None).description == ""

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            TaskCreate(title="x", status="later")


class TestTaskUpdate:
    def test_changes_skip_empty_and_missing(self):
        data = TaskUpdate.model_validate({"title": "", "status": "completed"})
        assert data.changes() == {"status": "completed"}

    def test_changes_returns_plain_strings(self):
        data = TaskUpdate(priority="high", description="notes")
        changes = data.changes()
        assert changes == {"priority": "high", "description": "notes"}
        assert type(changes["priority"]) is str


class TestTaskFilter:
    def test_blank_values_are_unset(self):
        task_filter = TaskFilter(status="", priority="")
        assert task_filter.status is None
        assert task_filter.priority is None

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValidationError):
            TaskFilter(priority="urgent")


class TestTaskResponse:
    def test_naive_timestamps_are_utc(self):
        naive = datetime(2026, 1, 2, 3, 4, 5, 123456)
        response = TaskResponse(
            id=1,
            title="x",
            description=None,
            status="pending",
            priority="medium",
            created_at=naive,
            updated_at=naive,
        )
        assert response.created_at == naive.replace(tzinfo=timezone.utc)
        assert response.description == ""


class TestSettings:
    def test_cors_comma_separated(self):
        settings = Settings(CORS_ORIGINS="http://a.test, http://b.test", _env_file=None)
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_cors_json_array(self):
        settings = Settings(CORS_ORIGINS='["http://a.test"]', _env_file=None)
        assert settings.cors_origins_list == ["http://a.test"]

    def test_cors_empty(self):
        assert Settings(CORS_ORIGINS="", _env_file=None).cors_origins_list == []
