"""Tests for domain entities and the tasks.json mapping."""

from datetime import datetime, timezone

import pytest

from ticketsync.core.domain.entities import (
    Subtask,
    Task,
    TaskMetadata,
    TaskTree,
    parse_task_id,
)
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.exceptions import TaskNotFoundError, TaskStoreError


# =============================================================================
# TaskMetadata
# =============================================================================


class TestTaskMetadata:
    """Tests for the metadata mapping."""

    def test_known_keys_promoted(self):
        meta = TaskMetadata.from_dict(
            {"refId": "US001", "remoteTicketKey": "PROJ-1", "lastStatusUpdate": "2024-01-01T00:00:00Z"}
        )
        assert meta.ref_id == "US001"
        assert meta.remote_ticket_key == "PROJ-1"
        assert meta.last_status_update == "2024-01-01T00:00:00Z"
        assert meta.extra == {}

    def test_unknown_keys_round_trip(self):
        data = {"refId": "US001", "owner": "sam", "labels": ["a"]}
        assert TaskMetadata.from_dict(data).to_dict() == data

    @pytest.mark.parametrize(
        "legacy_key,value,expected",
        [("jiraKey", "PROJ-3", "PROJ-3"), ("githubIssueId", 17, "17"), ("azureWorkItemId", 204, "204")],
    )
    def test_legacy_link_keys(self, legacy_key, value, expected):
        meta = TaskMetadata.from_dict({legacy_key: value})
        assert meta.remote_ticket_key == expected
        assert meta.to_dict() == {"remoteTicketKey": expected}

    def test_current_key_wins_over_legacy(self):
        meta = TaskMetadata.from_dict({"remoteTicketKey": "PROJ-9", "jiraKey": "PROJ-3"})
        assert meta.remote_ticket_key == "PROJ-9"

    def test_empty(self):
        assert TaskMetadata.from_dict(None).to_dict() == {}

    def test_touch_status(self):
        meta = TaskMetadata()
        meta.touch_status(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        assert meta.last_status_update == "2024-01-15T10:30:00Z"


# =============================================================================
# Task / Subtask
# =============================================================================


class TestTaskMapping:
    """Tests for Task and Subtask serialization."""

    def test_from_dict(self, sample_document):
        task = Task.from_dict(sample_document["tasks"][0])

        assert task.id == 1
        assert task.status is TaskStatus.PENDING
        assert task.priority is Priority.HIGH
        assert task.test_strategy == "Pipeline runs green"
        assert [s.id for s in task.subtasks] == [1, 2]
        assert task.subtasks[1].status is TaskStatus.DONE
        assert task.subtasks[1].priority is None

    def test_unknown_fields_preserved(self):
        data = {"id": "4", "title": "x", "status": "done", "complexity": 8}

        task = Task.from_dict(data)

        assert task.id == 4
        assert task.to_dict()["complexity"] == 8

    def test_to_dict_layout(self):
        task = Task(id=1, title="A", priority=Priority.LOW, dependencies=[2])
        task.subtasks.append(Subtask(id=1, title="B", parent_task_id=1))

        data = task.to_dict()

        assert data["status"] == "pending"
        assert data["priority"] == "low"
        assert data["testStrategy"] == ""
        assert data["subtasks"][0]["parentTaskId"] == 1
        assert "priority" not in data["subtasks"][0]

    def test_missing_id(self):
        with pytest.raises(TaskStoreError, match="missing an id"):
            Task.from_dict({"title": "no id"})

    def test_non_integer_id(self):
        with pytest.raises(TaskStoreError, match="not an integer"):
            Task.from_dict({"id": "abc"})

    def test_ticket_key_and_ref_id(self):
        task = Task.from_dict({"id": 1, "metadata": {"refId": "US001", "remoteTicketKey": "P-1"}})
        assert task.ref_id == "US001"
        assert task.ticket_key == "P-1"

    def test_next_subtask_id(self):
        task = Task(id=1, subtasks=[Subtask(id=1), Subtask(id=4)])
        assert task.next_subtask_id() == 5
        assert Task(id=2).next_subtask_id() == 1

    def test_compound_id(self):
        assert Subtask(id=3).compound_id(12) == "12.3"


# =============================================================================
# Ids and tree
# =============================================================================


class TestParseTaskId:
    """Tests for id parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [("3", (3, None)), (3, (3, None)), ("3.2", (3, 2)), (" 10.1 ", (10, 1))],
    )
    def test_valid(self, value, expected):
        assert parse_task_id(value) == expected

    @pytest.mark.parametrize("value", ["abc", "3.x", "", "1.2.3"])
    def test_invalid(self, value):
        with pytest.raises(TaskNotFoundError, match="Invalid task id"):
            parse_task_id(value)


class TestTaskTree:
    """Tests for the document wrapper."""

    def test_round_trip_preserves_top_level_keys(self, sample_document):
        tree = TaskTree.from_dict(sample_document)
        assert tree.to_dict()["meta"] == {"projectName": "demo"}

    def test_requires_tasks_list(self):
        with pytest.raises(TaskStoreError):
            TaskTree.from_dict({"tasks": {}})

    def test_resolve(self, sample_document):
        tree = TaskTree.from_dict(sample_document)

        task, subtask = tree.resolve("1.2")
        assert task.id == 1
        assert subtask.title == "Add badge"
        assert tree.resolve("2") == (tree.get_task(2), None)

    def test_resolve_missing(self, sample_document):
        tree = TaskTree.from_dict(sample_document)

        with pytest.raises(TaskNotFoundError, match="Task 5 not found"):
            tree.resolve("5")
        with pytest.raises(TaskNotFoundError, match="Subtask 7 not found in parent task 1"):
            tree.resolve("1.7")

    def test_counts_and_ids(self, sample_document):
        tree = TaskTree.from_dict(sample_document)
        assert tree.entity_count == 4
        assert tree.next_task_id() == 3
        assert TaskTree().next_task_id() == 1
