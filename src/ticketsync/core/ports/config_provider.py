"""
Configuration Provider Port - Abstract interface for configuration.

Implementations:
- FileConfigProvider: Load from the project config file (.taskmasterconfig
  JSON, or .ticketsync.yaml)
- EnvironmentConfigProvider: Load from env vars and .env, layered over a
  file provider
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ticketsync.core.domain.enums import TicketingSystem


def _is_set(value: str | None) -> bool:
    """A value counts as set if present and not a template placeholder."""
    if not value:
        return False
    return "{{" not in value and "}}" not in value


@dataclass
class JiraConfig:
    """Configuration for Jira Cloud."""

    url: str = ""
    email: str = ""
    api_token: str = ""
    project_key: str = ""

    story_type: str = "Story"
    subtask_type: str = "Sub-task"
    default_priority: str = "Medium"

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return all(_is_set(v) for v in (self.url, self.email, self.api_token, self.project_key))

    def missing(self) -> list[str]:
        checks = {
            "jiraBaseUrl (JIRA_BASE_URL)": self.url,
            "jiraEmail (JIRA_EMAIL)": self.email,
            "jiraApiToken (JIRA_API_TOKEN)": self.api_token,
            "jiraProjectKey (JIRA_PROJECT_KEY)": self.project_key,
        }
        return [name for name, value in checks.items() if not _is_set(value)]


@dataclass
class GitHubConfig:
    """Configuration for GitHub Issues."""

    token: str = ""
    owner: str = ""
    repo: str = ""
    base_url: str = "https://api.github.com"

    labels: list[str] = field(default_factory=lambda: ["taskmaster"])
    subtask_label: str = "subtask"
    assignee: str | None = None

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return all(_is_set(v) for v in (self.token, self.owner, self.repo))

    def missing(self) -> list[str]:
        checks = {
            "githubToken (GITHUB_TOKEN)": self.token,
            "githubOwner (GITHUB_OWNER)": self.owner,
            "githubRepository (GITHUB_REPOSITORY)": self.repo,
        }
        return [name for name, value in checks.items() if not _is_set(value)]


@dataclass
class AzureDevOpsConfig:
    """Configuration for Azure DevOps work items."""

    organization: str = ""
    project: str = ""
    pat: str = ""  # Personal Access Token
    base_url: str = "https://dev.azure.com"

    # Work item type mappings
    story_type: str = "User Story"
    task_type: str = "Task"
    area_path: str | None = None

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return all(_is_set(v) for v in (self.organization, self.project, self.pat))

    def missing(self) -> list[str]:
        checks = {
            "azureOrganization (AZURE_ORGANIZATION)": self.organization,
            "azureProjectName (AZURE_PROJECT_NAME)": self.project,
            "azurePersonalAccessToken (AZURE_PERSONAL_ACCESS_TOKEN)": self.pat,
        }
        return [name for name, value in checks.items() if not _is_set(value)]


@dataclass
class TicketingConfig:
    """Which ticketing system is active, and its settings."""

    enabled: bool = False
    system: TicketingSystem | None = None

    jira: JiraConfig = field(default_factory=JiraConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    azure_devops: AzureDevOpsConfig = field(default_factory=AzureDevOpsConfig)

    @property
    def provider_config(self) -> JiraConfig | GitHubConfig | AzureDevOpsConfig | None:
        """Settings of the selected system, or None if none is selected."""
        if self.system is TicketingSystem.JIRA:
            return self.jira
        if self.system is TicketingSystem.GITHUB:
            return self.github
        if self.system is TicketingSystem.AZURE_DEVOPS:
            return self.azure_devops
        return None

    @property
    def is_active(self) -> bool:
        """Enabled, a system selected, and that system fully configured."""
        provider = self.provider_config
        return self.enabled and provider is not None and provider.is_valid()

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid or disabled)
        """
        if not self.enabled:
            return []
        provider = self.provider_config
        if provider is None:
            return ["Ticketing is enabled but ticketingSystem is not set (jira|github|azdevops)"]
        return [f"Missing {name}" for name in provider.missing()]

    def secrets(self) -> list[str]:
        """Credential values that must never appear in logs."""
        values = [self.jira.api_token, self.github.token, self.azure_devops.pat]
        return [v for v in values if v]


@dataclass
class AppConfig:
    """Complete application configuration."""

    ticketing: TicketingConfig = field(default_factory=TicketingConfig)

    # Paths
    project_root: Path = field(default_factory=Path.cwd)
    tasks_path: Path | None = None

    dry_run: bool = False
    verbose: bool = False

    def resolved_tasks_path(self) -> Path:
        if self.tasks_path is not None:
            return self.tasks_path
        return self.project_root / "tasks" / "tasks.json"

    def validate(self) -> list[str]:
        return self.ticketing.validate()


class ConfigProviderPort(ABC):
    """
    Abstract interface for configuration providers.

    Configuration can come from various sources:
    - The project config file
    - Environment variables and .env files
    - Command line arguments
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """
        Load configuration from source.

        Returns:
            Complete application configuration
        """
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration value.

        Args:
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value
        """
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set
        """
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """
        Validate loaded configuration.

        Returns:
            List of validation errors
        """
        ...
