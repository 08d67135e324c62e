"""
File Config Provider - Load configuration from the project config file.

Supported files, searched in this order in the project root:
- .taskmasterconfig (JSON)
- .ticketsync.yaml / .ticketsync.yml (YAML)

Settings are read from the ``ticketing`` section, then the ``global``
section, then top-level keys, using the camelCase names of FILE_KEYS.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from ticketsync.core.exceptions import ConfigFileError
from ticketsync.core.ports.config_provider import AppConfig, ConfigProviderPort

from .schema import FILE_KEYS, build_app_config


CONFIG_FILE_NAMES = (".taskmasterconfig", ".ticketsync.yaml", ".ticketsync.yml")
SECTIONS = ("ticketing", "global")


class FileConfigProvider(ConfigProviderPort):
    """Configuration provider backed by a JSON or YAML file."""

    def __init__(
        self,
        config_path: Path | None = None,
        project_root: Path | None = None,
    ):
        """
        Initialize the provider.

        Args:
            config_path: Explicit config file (auto-detected if not given)
            project_root: Directory to search and resolve paths against
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.logger = logging.getLogger("FileConfigProvider")
        self._values: dict[str, Any] = {}
        self.config_path = Path(config_path) if config_path else self._find_config_file()

        if self.config_path is not None:
            self._values = self._normalize(self._read_file(self.config_path))

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return f"File ({self.config_path})" if self.config_path else "File (none)"

    def load(self) -> AppConfig:
        return build_app_config(self.get, self.project_root)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def validate(self) -> list[str]:
        return self.load().validate()

    def values(self) -> dict[str, Any]:
        """All normalized values read from the file."""
        return dict(self._values)

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _find_config_file(self) -> Path | None:
        for file_name in CONFIG_FILE_NAMES:
            candidate = self.project_root / file_name
            if candidate.is_file():
                return candidate
        return None

    def _read_file(self, path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ConfigFileError(f"Config file not found: {path}", path=str(path))

        try:
            text = path.read_text(encoding="utf-8")
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(text) or {}
            else:
                data = json.loads(text) if text.strip() else {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigFileError(f"Invalid config file {path}: {e}", path=str(path), cause=e) from e
        except OSError as e:
            raise ConfigFileError(f"Could not read {path}: {e}", path=str(path), cause=e) from e

        if not isinstance(data, dict):
            raise ConfigFileError(f"Config file {path} must contain a mapping", path=str(path))

        self.logger.debug(f"Loaded config from {path}")
        return data

    @staticmethod
    def _normalize(data: dict[str, Any]) -> dict[str, Any]:
        # Later layers win: top level, then global, then ticketing
        layers = [data] + [data[s] for s in reversed(SECTIONS) if isinstance(data.get(s), dict)]
        values: dict[str, Any] = {}
        for layer in layers:
            for file_key, config_key in FILE_KEYS.items():
                if layer.get(file_key) is not None:
                    values[config_key] = layer[file_key]
        return values
