"""
Environment Config Provider - Load configuration from environment variables.

Supports:
- Environment variables (TICKETING_SYSTEM, JIRA_API_TOKEN, GITHUB_TOKEN, ...)
- .env files
- Command line argument overrides

Values are layered over a FileConfigProvider: file < .env < environment < CLI.
"""

import logging
import os
from pathlib import Path
from typing import Any

from ticketsync.core.ports.config_provider import AppConfig, ConfigProviderPort

from .file_provider import FileConfigProvider
from .schema import BOOL_KEYS, ENV_KEYS, build_app_config, coerce_value


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider that loads from environment variables and .env files.
    """

    CLI_KEYS = {
        "tasks_file": "tasks_path",
        "dry_run": "dry_run",
        "verbose": "verbose",
        "ticketing_system": "ticketing_system",
    }

    def __init__(
        self,
        project_root: Path | None = None,
        env_file: Path | None = None,
        cli_overrides: dict[str, Any] | None = None,
        file_provider: FileConfigProvider | None = None,
    ):
        """
        Initialize the config provider.

        Args:
            project_root: Project directory (defaults to the working directory)
            env_file: Path to .env file (auto-detected if not specified)
            cli_overrides: Command line argument overrides
            file_provider: Config file layer (auto-created if not specified)
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.logger = logging.getLogger("EnvironmentConfigProvider")
        self._env_file = env_file
        self._cli_overrides = cli_overrides or {}
        self._file_provider = file_provider or FileConfigProvider(project_root=self.project_root)

        self._values: dict[str, Any] = self._file_provider.values()
        self._load_env_file()
        self._load_environment()
        self._apply_cli_overrides()

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Environment"

    def load(self) -> AppConfig:
        """Load complete configuration."""
        return build_app_config(self.get, self.project_root)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        key = key.lower().replace("-", "_")
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        key = key.lower().replace("-", "_")
        self._values[key] = value

    def validate(self) -> list[str]:
        """Validate configuration."""
        return self.load().validate()

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _load_env_file(self) -> None:
        """Load values from .env file."""
        env_file = self._find_env_file()
        if not env_file:
            return

        for line in env_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            if key.startswith("export "):
                key = key[len("export ") :].strip()

            config_key = ENV_KEYS.get(key)
            if config_key:
                self._values[config_key] = self._convert(
                    config_key, value.strip().strip('"').strip("'")
                )

        self.logger.debug(f"Loaded .env from {env_file}")

    def _find_env_file(self) -> Path | None:
        if self._env_file is not None:
            return self._env_file if self._env_file.is_file() else None

        project_env = self.project_root / ".env"
        if project_env.is_file():
            return project_env
        return None

    def _load_environment(self) -> None:
        """Load values from environment variables."""
        for env_key, config_key in ENV_KEYS.items():
            raw_value = os.environ.get(env_key)
            if raw_value is not None:
                self._values[config_key] = self._convert(config_key, raw_value)

    def _apply_cli_overrides(self) -> None:
        """Apply CLI argument overrides."""
        for cli_key, config_key in self.CLI_KEYS.items():
            if self._cli_overrides.get(cli_key) is not None:
                self._values[config_key] = self._cli_overrides[cli_key]

    @staticmethod
    def _convert(config_key: str, raw_value: str) -> Any:
        """Convert boolean-ish values of flag keys."""
        if config_key in BOOL_KEYS:
            return coerce_value(raw_value)
        return raw_value
