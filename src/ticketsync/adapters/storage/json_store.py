"""
JSON Task Store - Reads and writes the local tasks.json file.

Writes are atomic: the tree is serialized to a temporary file in the same
directory and renamed over the original.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from ticketsync.core.domain.entities import TaskTree
from ticketsync.core.exceptions import TaskStoreError
from ticketsync.core.ports.task_store import TaskStorePort


class JsonTaskStore(TaskStorePort):
    """File-backed task store."""

    def __init__(self, path: str | Path, indent: int = 2, dry_run: bool = False):
        self._path = Path(path)
        self.indent = indent
        self.dry_run = dry_run
        self.logger = logging.getLogger("JsonTaskStore")

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def read(self) -> TaskTree:
        if not self.exists():
            raise TaskStoreError(f"Tasks file not found: {self._path}", path=str(self._path))

        try:
            with self._path.open(encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise TaskStoreError(
                f"Invalid JSON in {self._path}: {e.msg} (line {e.lineno})",
                path=str(self._path),
                cause=e,
            ) from e
        except OSError as e:
            raise TaskStoreError(
                f"Could not read {self._path}: {e}", path=str(self._path), cause=e
            ) from e

        if not isinstance(data, dict):
            raise TaskStoreError(
                f"Expected a JSON object in {self._path}", path=str(self._path)
            )

        tree = TaskTree.from_dict(data)
        self.logger.debug(f"Read {len(tree.tasks)} tasks from {self._path}")
        return tree

    def write(self, tree: TaskTree) -> None:
        if self.dry_run:
            self.logger.info(f"[DRY-RUN] Would write {len(tree.tasks)} tasks to {self._path}")
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(tree.to_dict(), f, indent=self.indent, ensure_ascii=False)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise TaskStoreError(
                f"Could not write {self._path}: {e}", path=str(self._path), cause=e
            ) from e

        self.logger.debug(f"Wrote {len(tree.tasks)} tasks to {self._path}")
