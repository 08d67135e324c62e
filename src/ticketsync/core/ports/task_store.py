"""
Task Store Port - Abstract interface for the local task tree.

The sync service treats read and write as atomic and synchronous: read always
reflects the latest state on disk and write is durable when it returns.
There is no locking; two processes writing the same store race and the last
writer wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ticketsync.core.domain.entities import TaskTree


class TaskStorePort(ABC):
    """Reads and writes the complete task tree."""

    @property
    @abstractmethod
    def path(self) -> Path:
        """Location of the backing document."""
        ...

    @abstractmethod
    def read(self) -> TaskTree:
        """
        Load the task tree.

        Raises:
            TaskStoreError: If the document is missing or malformed.
        """
        ...

    @abstractmethod
    def write(self, tree: TaskTree) -> None:
        """
        Persist the task tree, replacing the previous contents.

        Raises:
            TaskStoreError: If the document cannot be written.
        """
        ...

    def exists(self) -> bool:
        return self.path.exists()
