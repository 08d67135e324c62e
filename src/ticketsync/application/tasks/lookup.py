"""
Task lookup helpers.
"""

from ticketsync.core.domain.entities import TaskTree, parse_task_id
from ticketsync.core.exceptions import TaskNotFoundError


def task_exists(tree: TaskTree, task_id: str | int) -> bool:
    """
    Check whether a task ("3") or subtask ("3.2") exists.

    Malformed ids count as missing.
    """
    try:
        parent_id, subtask_id = parse_task_id(task_id)
    except TaskNotFoundError:
        return False

    task = tree.find_task(parent_id)
    if task is None:
        return False
    if subtask_id is None:
        return True
    return task.find_subtask(subtask_id) is not None


def split_ids(ids: str | int | list[str | int]) -> list[str]:
    """Normalize "1,2.3, 4" (or a list) into trimmed, non-empty id strings."""
    if isinstance(ids, (list, tuple)):
        parts = [str(i) for i in ids]
    else:
        parts = str(ids).split(",")
    return [p.strip() for p in parts if p.strip()]
