"""
Tests for the task lifecycle operations.

Each operation changes tasks.json first and then asks the sync service to
mirror the change remotely; remote failures never undo the local change.
"""

import json
from unittest.mock import MagicMock, call

import pytest

from ticketsync.adapters.storage import JsonTaskStore
from ticketsync.application.sync import PARENT_HAS_NO_TICKET, ConversionOutcome, TicketingSyncService
from ticketsync.application.tasks import (
    add_subtask,
    clear_subtasks,
    remove_subtask,
    remove_task,
    set_task_status,
    split_ids,
    task_exists,
    update_task,
)
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.exceptions import (
    InvalidStatusError,
    TaskNotFoundError,
    TaskOperationError,
)
from ticketsync.core.ports.ticketing import IssueTrackerError


def _link_subtask(store, parent_id, subtask_id, key):
    tree = store.read()
    tree.find_subtask(parent_id, subtask_id).metadata.remote_ticket_key = key
    store.write(tree)


# =============================================================================
# set_task_status
# =============================================================================


class TestSetTaskStatus:
    """Tests for status changes."""

    def test_updates_status_and_timestamp(self, store, read_tasks):
        result = set_task_status(store, "2", "review")

        assert result.success is True
        assert result.updated_ids == ["2"]
        stored = read_tasks()["tasks"][1]
        assert stored["status"] == "review"
        assert stored["metadata"]["lastStatusUpdate"].endswith("Z")

    def test_done_cascades_to_unfinished_subtasks(self, store, read_tasks):
        result = set_task_status(store, "1", TaskStatus.DONE)

        assert result.cascaded_ids == ["1.1"]
        subtasks = read_tasks()["tasks"][0]["subtasks"]
        assert [s["status"] for s in subtasks] == ["done", "done"]
        assert "lastStatusUpdate" in subtasks[0]["metadata"]

    def test_other_statuses_do_not_cascade(self, store, read_tasks):
        result = set_task_status(store, "1", "in-progress")

        assert result.cascaded_ids == []
        assert read_tasks()["tasks"][0]["subtasks"][0]["status"] == "pending"

    def test_completed_alias(self, store):
        result = set_task_status(store, "2", "completed")

        assert result.status is TaskStatus.DONE

    def test_subtask_and_list_of_ids(self, store, read_tasks):
        result = set_task_status(store, "1.1, 2", "deferred")

        assert result.updated_ids == ["1.1", "2"]
        data = read_tasks()
        assert data["tasks"][0]["subtasks"][0]["status"] == "deferred"
        assert data["tasks"][1]["status"] == "deferred"

    def test_invalid_status_raises(self, store):
        with pytest.raises(InvalidStatusError, match="Invalid status value: finished"):
            set_task_status(store, "1", "finished")

    def test_unknown_id_writes_nothing(self, store, read_tasks):
        before = read_tasks()

        with pytest.raises(TaskNotFoundError):
            set_task_status(store, "2,42", "done")

        assert read_tasks() == before

    def test_remote_update_for_each_changed_entity(self, store, sync_service, mock_provider):
        result = set_task_status(store, "1,2", "done", sync_service=sync_service)

        # 1 and 1.1 have no ticket; only PROJ-20 is moved
        mock_provider.update_ticket_status.assert_called_once_with("PROJ-20", TaskStatus.DONE)
        assert len(result.ticketing) == 3
        assert all(outcome.success for outcome in result.ticketing)

    def test_remote_failure_keeps_local_change(self, store, sync_service, mock_provider, read_tasks):
        mock_provider.update_ticket_status.side_effect = IssueTrackerError("Jira API error 500")

        result = set_task_status(store, "2", "done", sync_service=sync_service)

        assert read_tasks()["tasks"][1]["status"] == "done"
        assert result.ticketing[0].success is False
        assert result.ticketing[0].error == "Jira API error 500"

    def test_unexpected_service_error_is_contained(self, store, read_tasks):
        service = MagicMock()
        service.update_task_status.side_effect = RuntimeError("boom")

        result = set_task_status(store, "2", "done", sync_service=service)

        assert result.success is True
        assert result.ticketing == []
        assert read_tasks()["tasks"][1]["status"] == "done"


# =============================================================================
# remove_task
# =============================================================================


class TestRemoveTask:
    """Tests for task and subtask removal."""

    def test_removes_task_and_deletes_ticket(self, store, sync_service, mock_provider, read_tasks):
        result = remove_task(store, "2", sync_service=sync_service)

        assert result.success is True
        assert result.messages == ["Successfully removed task 2"]
        assert [t["id"] for t in read_tasks()["tasks"]] == [1]
        mock_provider.delete_ticket.assert_called_once_with("PROJ-20")
        assert result.ticketing[0].ticket_key == "PROJ-20"

    def test_removed_task_takes_subtask_tickets_along(self, store, sync_service, mock_provider):
        tree = store.read()
        task = tree.get_task(1)
        task.metadata.remote_ticket_key = "PROJ-10"
        task.subtasks[1].metadata.remote_ticket_key = "PROJ-12"
        store.write(tree)

        remove_task(store, "1", sync_service=sync_service)

        deleted = [c.args[0] for c in mock_provider.delete_ticket.call_args_list]
        assert deleted == ["PROJ-10", "PROJ-12"]

    def test_unlinked_task_makes_no_remote_calls(self, store, sync_service, mock_provider):
        result = remove_task(store, "1", sync_service=sync_service)

        assert result.success is True
        mock_provider.ticket_exists.assert_not_called()
        mock_provider.delete_ticket.assert_not_called()

    def test_removes_subtask(self, store, read_tasks):
        result = remove_task(store, "1.2")

        assert result.messages == ["Successfully removed subtask 1.2"]
        assert result.removed_tasks[0].parent_task_id == 1
        assert [s["id"] for s in read_tasks()["tasks"][0]["subtasks"]] == [1]

    def test_partial_failure_still_removes_valid_ids(self, store, read_tasks):
        result = remove_task(store, "1,99")

        assert result.success is False
        assert result.errors == ["Error processing ID 99: Task 99 not found"]
        assert [t["id"] for t in read_tasks()["tasks"]] == [2]

    def test_empty_ids(self, store):
        result = remove_task(store, " , ")

        assert result.success is False
        assert result.errors == ["No valid task IDs provided."]

    def test_nothing_removed_writes_nothing(self, store, tasks_file):
        before = tasks_file.stat().st_mtime_ns

        remove_task(store, "42")

        assert tasks_file.stat().st_mtime_ns == before

    def test_vanished_ticket_counts_as_deleted(self, store, sync_service, mock_provider):
        mock_provider.ticket_exists.return_value = False

        result = remove_task(store, "2", sync_service=sync_service)

        assert result.ticketing[0].success is True
        mock_provider.delete_ticket.assert_not_called()

    def test_to_dict(self, store):
        data = remove_task(store, "2").to_dict()

        assert data["success"] is True
        assert data["removedTasks"][0]["id"] == 2
        assert data["ticketing"] == []


# =============================================================================
# add_subtask
# =============================================================================


class TestAddSubtask:
    """Tests for adding subtasks."""

    def test_new_subtask_gets_next_id_and_ref_id(self, store, read_tasks):
        result = add_subtask(
            store,
            1,
            data={"title": "Cache deps", "description": "pip cache", "dependencies": [1]},
        )

        assert result.compound_id == "1.3"
        assert result.converted_from is None
        stored = read_tasks()["tasks"][0]["subtasks"][2]
        assert stored["title"] == "Cache deps"
        assert stored["status"] == "pending"
        assert stored["dependencies"] == [1]
        assert stored["parentTaskId"] == 1
        assert stored["metadata"]["refId"] == "T001-03"

    def test_ref_id_generated_without_integration(self, store, disabled_service, read_tasks):
        add_subtask(store, 2, data={"title": "Notes"}, sync_service=disabled_service)

        assert read_tasks()["tasks"][1]["subtasks"][0]["metadata"]["refId"] == "T002-01"

    def test_creates_ticket_under_linked_parent(self, store, sync_service, mock_provider):
        result = add_subtask(store, 2, data={"title": "Changelog"}, sync_service=sync_service)

        assert result.ticketing.success is True
        assert result.ticketing.ticket_key == "PROJ-1"
        ticket, parent_key = mock_provider.create_task.call_args[0]
        assert parent_key == "PROJ-20"
        assert ticket.ref_id == "T002-01"
        assert store.read().find_subtask(2, 1).ticket_key == "PROJ-1"

    def test_unlinked_parent_reports_failure(self, store, sync_service, read_tasks):
        result = add_subtask(store, 1, data={"title": "Lint"}, sync_service=sync_service)

        assert result.ticketing.success is False
        assert result.ticketing.error == PARENT_HAS_NO_TICKET
        assert len(read_tasks()["tasks"][0]["subtasks"]) == 3

    def test_converts_existing_task(self, store, read_tasks):
        result = add_subtask(store, 1, existing_task_id=2)

        assert result.converted_from == 2
        assert result.compound_id == "1.3"
        data = read_tasks()
        assert [t["id"] for t in data["tasks"]] == [1]
        converted = data["tasks"][0]["subtasks"][2]
        assert converted["title"] == "Release"
        assert converted["status"] == "in-progress"
        assert converted["metadata"]["remoteTicketKey"] == "PROJ-20"
        assert converted["metadata"]["refId"] == "T001-03"

    def test_cannot_be_own_subtask(self, store):
        with pytest.raises(TaskOperationError, match="itself"):
            add_subtask(store, 1, existing_task_id=1)

    def test_rejects_circular_dependency(self, store):
        # Task 2 depends on task 1
        with pytest.raises(TaskOperationError, match="circular"):
            add_subtask(store, 2, existing_task_id=1)

    def test_rejects_task_that_is_already_a_subtask(self, tasks_file, store, sample_document):
        sample_document["tasks"][1]["parentTaskId"] = 5
        tasks_file.write_text(json.dumps(sample_document))

        with pytest.raises(TaskOperationError, match="already a subtask of task 5"):
            add_subtask(store, 1, existing_task_id=2)

    def test_requires_task_or_data(self, store):
        with pytest.raises(TaskOperationError):
            add_subtask(store, 1)

    def test_missing_parent(self, store):
        with pytest.raises(TaskNotFoundError):
            add_subtask(store, 9, data={"title": "x"})


# =============================================================================
# remove_subtask
# =============================================================================


class TestRemoveSubtask:
    """Tests for removing and converting subtasks."""

    def test_delete_without_ticket(self, store, sync_service, mock_provider, read_tasks):
        result = remove_subtask(store, "1.1", sync_service=sync_service)

        assert result.converted_task is None
        assert result.ticketing is None
        assert [s["id"] for s in read_tasks()["tasks"][0]["subtasks"]] == [2]
        mock_provider.delete_ticket.assert_not_called()

    def test_delete_removes_ticket(self, store, sync_service, mock_provider):
        _link_subtask(store, 1, 1, "PROJ-11")

        result = remove_subtask(store, "1.1", sync_service=sync_service)

        mock_provider.delete_ticket.assert_called_once_with("PROJ-11")
        assert result.ticketing.success is True

    def test_convert_to_task(self, store, read_tasks):
        result = remove_subtask(store, "1.1", convert_to_task=True)

        task = result.converted_task
        assert task.id == 3
        assert task.priority is Priority.HIGH
        assert task.dependencies == [1]
        assert task.ref_id == "US003"

        data = read_tasks()
        assert [t["id"] for t in data["tasks"]] == [1, 2, 3]
        assert data["tasks"][2]["title"] == "Write workflow"
        assert [s["id"] for s in data["tasks"][0]["subtasks"]] == [2]

    def test_convert_keeps_existing_parent_dependency(self, store):
        result = remove_subtask(store, "1.2", convert_to_task=True)

        assert result.converted_task.dependencies == [1]

    def test_convert_moves_ticket(self, store, sync_service, mock_provider):
        _link_subtask(store, 1, 1, "PROJ-11")

        result = remove_subtask(store, "1.1", convert_to_task=True, sync_service=sync_service)

        assert isinstance(result.ticketing, ConversionOutcome)
        assert result.ticketing.success is True
        mock_provider.update_ticket_status.assert_called_once_with("PROJ-11", TaskStatus.CANCELLED)
        assert store.read().get_task(3).ticket_key == "PROJ-1"

    def test_convert_with_failing_cancel_still_creates(self, store, sync_service, mock_provider):
        """A cancel failure is a warning; the new task still gets its ticket."""
        _link_subtask(store, 1, 1, "PROJ-11")
        mock_provider.update_ticket_status.side_effect = IssueTrackerError("no transition")

        result = remove_subtask(store, "1.1", convert_to_task=True, sync_service=sync_service)

        assert result.ticketing.cancelled.success is False
        assert result.ticketing.created.ticket_key == "PROJ-1"
        assert len(result.ticketing.warnings) == 1
        tree = store.read()
        assert tree.get_task(3).ticket_key == "PROJ-1"
        assert tree.find_subtask(1, 1) is None

    def test_requires_compound_id(self, store):
        with pytest.raises(TaskOperationError, match="Invalid subtask ID format"):
            remove_subtask(store, "1")

    def test_missing_subtask(self, store):
        with pytest.raises(TaskNotFoundError, match="Subtask 9 not found in parent task 1"):
            remove_subtask(store, "1.9")

    def test_id_resolving_to_a_task_is_rejected(self, store):
        fake_tree = MagicMock()
        fake_tree.resolve.return_value = (store.read().get_task(1), None)
        fake_store = MagicMock()
        fake_store.read.return_value = fake_tree

        with pytest.raises(TaskOperationError, match="1.1 does not name a subtask"):
            remove_subtask(fake_store, "1.1")
        fake_store.write.assert_not_called()


# =============================================================================
# clear_subtasks
# =============================================================================


class TestClearSubtasks:
    """Tests for clearing all subtasks of tasks."""

    @pytest.fixture
    def three_task_store(self, tmp_path, document_factory):
        path = tmp_path / "three.json"
        path.write_text(json.dumps(document_factory(3, 2)))
        return JsonTaskStore(path)

    def test_clears_and_cancels_linked_tickets(self, store, sync_service, mock_provider, read_tasks):
        _link_subtask(store, 1, 1, "PROJ-11")
        _link_subtask(store, 1, 2, "PROJ-12")

        result = clear_subtasks(store, "1", sync_service=sync_service)

        assert read_tasks()["tasks"][0]["subtasks"] == []
        assert result.cleared_ids == ["1.1", "1.2"]
        assert result.cleared_count == 2
        assert mock_provider.update_ticket_status.call_args_list == [
            call("PROJ-11", TaskStatus.CANCELLED),
            call("PROJ-12", TaskStatus.CANCELLED),
        ]
        assert [o.ticket_key for o in result.ticketing] == ["PROJ-11", "PROJ-12"]
        assert all(o.success for o in result.ticketing)

    def test_comma_separated_ids(self, three_task_store, ticketing_config, mock_provider):
        tree = three_task_store.read()
        for task in tree.tasks:
            for subtask in task.subtasks:
                subtask.metadata.remote_ticket_key = f"PROJ-{task.id}{subtask.id}"
        three_task_store.write(tree)
        service = TicketingSyncService(ticketing_config, mock_provider, three_task_store)

        result = clear_subtasks(three_task_store, "1,3", sync_service=service)

        assert result.cleared_ids == ["1.1", "1.2", "3.1", "3.2"]
        assert mock_provider.update_ticket_status.call_count == 4
        tree = three_task_store.read()
        assert tree.get_task(1).subtasks == []
        assert len(tree.get_task(2).subtasks) == 2
        assert tree.get_task(3).subtasks == []

    def test_unlinked_subtasks_make_no_remote_calls(self, store, sync_service, mock_provider, read_tasks):
        result = clear_subtasks(store, "1", sync_service=sync_service)

        assert result.cleared_ids == ["1.1", "1.2"]
        assert result.ticketing == []
        mock_provider.update_ticket_status.assert_not_called()
        assert read_tasks()["tasks"][0]["subtasks"] == []

    def test_task_without_subtasks_is_skipped(self, store, tasks_file):
        before = tasks_file.read_text()

        result = clear_subtasks(store, "2")

        assert result.skipped_ids == [2]
        assert result.cleared_ids == []
        assert tasks_file.read_text() == before

    def test_unknown_task_writes_nothing(self, store, read_tasks):
        with pytest.raises(TaskNotFoundError):
            clear_subtasks(store, "1,99")

        assert len(read_tasks()["tasks"][0]["subtasks"]) == 2

    def test_subtask_id_rejected(self, store):
        with pytest.raises(TaskOperationError, match="1.1 is a subtask id"):
            clear_subtasks(store, "1.1")

    def test_remote_failure_keeps_local_change(self, store, sync_service, mock_provider, read_tasks):
        _link_subtask(store, 1, 1, "PROJ-11")
        mock_provider.update_ticket_status.side_effect = IssueTrackerError("Jira API error 500")

        result = clear_subtasks(store, "1", sync_service=sync_service)

        assert read_tasks()["tasks"][0]["subtasks"] == []
        assert result.ticketing[0].success is False
        assert result.ticketing[0].error == "Jira API error 500"

    def test_disabled_integration_makes_no_remote_calls(self, store, disabled_service, mock_provider):
        _link_subtask(store, 1, 1, "PROJ-11")

        result = clear_subtasks(store, "1", sync_service=disabled_service)

        assert result.ticketing[0].is_not_available
        mock_provider.update_ticket_status.assert_not_called()


# =============================================================================
# update_task
# =============================================================================


class TestUpdateTask:
    """Tests for content edits."""

    def test_updates_fields_and_ticket(self, store, sync_service, mock_provider, read_tasks):
        result = update_task(
            store, "2", {"title": "Release 1.0", "priority": "high"}, sync_service=sync_service
        )

        stored = read_tasks()["tasks"][1]
        assert stored["title"] == "Release 1.0"
        assert stored["priority"] == "high"
        assert result.changed_fields == ["title", "priority"]
        assert result.ticketing.success is True
        ticket_key, ticket = mock_provider.update_ticket.call_args.args
        assert ticket_key == "PROJ-20"
        assert ticket.title == "Release 1.0"
        assert ticket.priority is Priority.HIGH

    def test_task_test_strategy(self, store, read_tasks):
        update_task(store, 1, {"testStrategy": "Run the workflow on a fork"})

        assert read_tasks()["tasks"][0]["testStrategy"] == "Run the workflow on a fork"

    def test_unlinked_subtask_skips_ticket(self, store, sync_service, mock_provider, read_tasks):
        result = update_task(store, "1.1", {"description": "Workflow YAML"}, sync_service=sync_service)

        assert read_tasks()["tasks"][0]["subtasks"][0]["description"] == "Workflow YAML"
        assert result.ticketing.action == "skipped"
        mock_provider.update_ticket.assert_not_called()

    def test_subtask_has_no_test_strategy(self, store):
        with pytest.raises(TaskOperationError, match="testStrategy"):
            update_task(store, "1.1", {"testStrategy": "x"})

    def test_status_is_not_editable(self, store, read_tasks):
        with pytest.raises(TaskOperationError, match="Cannot update status"):
            update_task(store, "2", {"status": "done"})

        assert read_tasks()["tasks"][1]["status"] == "in-progress"

    def test_requires_fields(self, store):
        with pytest.raises(TaskOperationError, match="No fields"):
            update_task(store, "2", {})

    def test_empty_title_rejected(self, store, read_tasks):
        with pytest.raises(TaskOperationError, match="title cannot be empty"):
            update_task(store, "2", {"title": "  "})

        assert read_tasks()["tasks"][1]["title"] == "Release"

    def test_unchanged_values_write_nothing(self, store, sync_service, mock_provider, tasks_file):
        before = tasks_file.read_text()

        result = update_task(store, "2", {"title": "Release"}, sync_service=sync_service)

        assert result.changed is False
        assert result.ticketing is None
        assert tasks_file.read_text() == before
        mock_provider.update_ticket.assert_not_called()

    def test_remote_failure_keeps_local_change(self, store, sync_service, mock_provider, read_tasks):
        mock_provider.update_ticket.side_effect = IssueTrackerError("Jira API error 400")

        result = update_task(store, "2", {"details": "Cut from main"}, sync_service=sync_service)

        assert read_tasks()["tasks"][1]["details"] == "Cut from main"
        assert result.ticketing.success is False
        assert result.ticketing.error == "Jira API error 400"

    def test_unknown_task(self, store):
        with pytest.raises(TaskNotFoundError):
            update_task(store, "99", {"title": "x"})


# =============================================================================
# Lookup
# =============================================================================


class TestLookup:
    """Tests for id helpers."""

    @pytest.mark.parametrize(
        "task_id,expected",
        [
            ("1", True),
            (2, True),
            ("1.2", True),
            ("1.3", False),
            ("7", False),
            ("abc", False),
            ("", False),
        ],
    )
    def test_task_exists(self, store, task_id, expected):
        assert task_exists(store.read(), task_id) is expected

    def test_split_ids(self):
        assert split_ids("1, 2.3,,4 ") == ["1", "2.3", "4"]
        assert split_ids(5) == ["5"]
        assert split_ids([1, "2.1"]) == ["1", "2.1"]
