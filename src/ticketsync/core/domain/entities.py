"""
Domain Entities - Tasks and subtasks from the local task store.

Entities are mutable and identified by their integer id (subtask ids are
unique only within their parent). They serialize to and from the camelCase
JSON layout of ``tasks.json`` without losing keys they do not model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ticketsync.core.exceptions import TaskNotFoundError, TaskStoreError

from .enums import Priority, TaskStatus


# Link keys written by earlier, provider-specific versions of the tool.
LEGACY_TICKET_KEYS = ("jiraKey", "githubIssueId", "azureWorkItemId")


@dataclass
class TaskMetadata:
    """
    Typed view over an entity's metadata mapping.

    Known keys are promoted to fields; everything else is kept in ``extra``
    and written back unchanged.
    """

    ref_id: str | None = None
    remote_ticket_key: str | None = None
    last_status_update: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TaskMetadata:
        if not data:
            return cls()
        extra = dict(data)
        ref_id = extra.pop("refId", None)
        ticket_key = extra.pop("remoteTicketKey", None)
        for legacy_key in LEGACY_TICKET_KEYS:
            legacy_value = extra.pop(legacy_key, None)
            if ticket_key is None and legacy_value is not None:
                ticket_key = str(legacy_value)
        return cls(
            ref_id=ref_id,
            remote_ticket_key=ticket_key,
            last_status_update=extra.pop("lastStatusUpdate", None),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        if self.ref_id is not None:
            data["refId"] = self.ref_id
        if self.remote_ticket_key is not None:
            data["remoteTicketKey"] = self.remote_ticket_key
        if self.last_status_update is not None:
            data["lastStatusUpdate"] = self.last_status_update
        return data

    def touch_status(self, when: datetime | None = None) -> None:
        """Record the time of a status change as an ISO-8601 UTC timestamp."""
        moment = when or datetime.now(timezone.utc)
        self.last_status_update = moment.isoformat().replace("+00:00", "Z")


@dataclass
class WorkItem:
    """Fields shared by tasks and subtasks."""

    id: int
    title: str = ""
    description: str = ""
    details: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority | None = None
    dependencies: list[int | str] = field(default_factory=list)
    metadata: TaskMetadata = field(default_factory=TaskMetadata)

    # Unmodelled keys from the JSON object, preserved on write
    extra_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def ref_id(self) -> str | None:
        return self.metadata.ref_id

    @property
    def ticket_key(self) -> str | None:
        return self.metadata.remote_ticket_key

    def _base_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra_fields)
        data.update(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "details": self.details,
                "status": self.status.value,
                "dependencies": list(self.dependencies),
            }
        )
        if self.priority is not None:
            data["priority"] = self.priority.value
        data["metadata"] = self.metadata.to_dict()
        return data


_BASE_KEYS = {"id", "title", "description", "details", "status", "priority", "dependencies", "metadata"}


def _parse_base(data: dict[str, Any], extra_keys: set[str]) -> dict[str, Any]:
    if "id" not in data:
        raise TaskStoreError(f"Task entry is missing an id: {data!r}")
    try:
        item_id = int(data["id"])
    except (TypeError, ValueError) as e:
        raise TaskStoreError(f"Task id is not an integer: {data['id']!r}", cause=e) from e

    priority = data.get("priority")
    return {
        "id": item_id,
        "title": data.get("title") or "",
        "description": data.get("description") or "",
        "details": data.get("details") or "",
        "status": TaskStatus.from_string(data.get("status") or "pending"),
        "priority": Priority.from_string(priority) if priority else None,
        "dependencies": list(data.get("dependencies") or []),
        "metadata": TaskMetadata.from_dict(data.get("metadata")),
        "extra_fields": {
            k: v for k, v in data.items() if k not in _BASE_KEYS and k not in extra_keys
        },
    }


@dataclass
class Subtask(WorkItem):
    """
    A subtask owned by a task.

    ``parent_task_id`` is only recorded when the subtask was created by
    converting an existing task, or is being detached from its parent.
    """

    parent_task_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Subtask:
        parsed = _parse_base(data, {"parentTaskId"})
        parent = data.get("parentTaskId")
        return cls(parent_task_id=int(parent) if parent is not None else None, **parsed)

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        if self.parent_task_id is not None:
            data["parentTaskId"] = self.parent_task_id
        return data

    def compound_id(self, parent_id: int) -> str:
        return f"{parent_id}.{self.id}"


@dataclass
class Task(WorkItem):
    """A top-level task, owning an ordered list of subtasks."""

    test_strategy: str = ""
    subtasks: list[Subtask] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        parsed = _parse_base(data, {"testStrategy", "subtasks"})
        return cls(
            test_strategy=data.get("testStrategy") or "",
            subtasks=[Subtask.from_dict(s) for s in data.get("subtasks") or []],
            **parsed,
        )

    def to_dict(self) -> dict[str, Any]:
        data = self._base_dict()
        data["testStrategy"] = self.test_strategy
        data["subtasks"] = [subtask.to_dict() for subtask in self.subtasks]
        return data

    def find_subtask(self, subtask_id: int) -> Subtask | None:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None

    def next_subtask_id(self) -> int:
        return max((s.id for s in self.subtasks), default=0) + 1


def parse_task_id(value: str | int) -> tuple[int, int | None]:
    """
    Split a task id or compound subtask id ("3" or "3.2").

    Returns:
        (task_id, subtask_id) where subtask_id is None for plain task ids.

    Raises:
        TaskNotFoundError: If the id is not numeric.
    """
    text = str(value).strip()
    try:
        if "." in text:
            parent, sub = text.split(".", 1)
            return int(parent), int(sub)
        return int(text), None
    except ValueError:
        raise TaskNotFoundError(f"Invalid task id: {value}", task_id=value) from None


@dataclass
class TaskTree:
    """The whole tasks document."""

    tasks: list[Task] = field(default_factory=list)

    # Other top-level keys in tasks.json (e.g. "meta"), preserved on write
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskTree:
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise TaskStoreError("Tasks document has no 'tasks' list")
        extra = {k: v for k, v in data.items() if k != "tasks"}
        return cls(tasks=[Task.from_dict(t) for t in data["tasks"]], extra=extra)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data["tasks"] = [task.to_dict() for task in self.tasks]
        return data

    def find_task(self, task_id: int) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_task(self, task_id: int) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found", task_id=task_id)
        return task

    def find_subtask(self, parent_id: int, subtask_id: int) -> Subtask | None:
        task = self.find_task(parent_id)
        return task.find_subtask(subtask_id) if task else None

    def resolve(self, task_id: str | int) -> tuple[Task, Subtask | None]:
        """
        Look up a task or compound subtask id.

        Raises:
            TaskNotFoundError: If the task or subtask does not exist.
        """
        parent_id, subtask_id = parse_task_id(task_id)
        task = self.get_task(parent_id)
        if subtask_id is None:
            return task, None
        subtask = task.find_subtask(subtask_id)
        if subtask is None:
            raise TaskNotFoundError(
                f"Subtask {subtask_id} not found in parent task {parent_id}",
                task_id=str(task_id),
            )
        return task, subtask

    def next_task_id(self) -> int:
        return max((t.id for t in self.tasks), default=0) + 1

    @property
    def entity_count(self) -> int:
        """Number of tasks plus all of their subtasks."""
        return len(self.tasks) + sum(len(t.subtasks) for t in self.tasks)
