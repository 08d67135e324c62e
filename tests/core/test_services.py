"""Tests for the ticketing provider factory."""

from ticketsync.adapters.azure_devops import AzureDevOpsAdapter
from ticketsync.adapters.github import GitHubAdapter
from ticketsync.adapters.jira import JiraAdapter
from ticketsync.core.domain.enums import TicketingSystem
from ticketsync.core.ports.config_provider import (
    AzureDevOpsConfig,
    GitHubConfig,
    TicketingConfig,
)
from ticketsync.core.services import create_ticketing_provider


class TestCreateTicketingProvider:
    """Tests for provider selection."""

    def test_disabled_returns_none(self, jira_config):
        config = TicketingConfig(enabled=False, system=TicketingSystem.JIRA, jira=jira_config)
        assert create_ticketing_provider(config) is None

    def test_no_system_returns_none(self):
        assert create_ticketing_provider(TicketingConfig(enabled=True)) is None

    def test_jira(self, ticketing_config):
        provider = create_ticketing_provider(ticketing_config, dry_run=True)

        assert isinstance(provider, JiraAdapter)
        assert provider.is_configured()
        provider.close()

    def test_github(self):
        config = TicketingConfig(
            enabled=True,
            system=TicketingSystem.GITHUB,
            github=GitHubConfig(token="ghp_test", owner="acme", repo="app"),
        )

        provider = create_ticketing_provider(config)

        assert isinstance(provider, GitHubAdapter)
        provider.close()

    def test_azure_devops(self):
        config = TicketingConfig(
            enabled=True,
            system=TicketingSystem.AZURE_DEVOPS,
            azure_devops=AzureDevOpsConfig(organization="acme", project="App", pat="pat-value"),
        )

        provider = create_ticketing_provider(config)

        assert isinstance(provider, AzureDevOpsAdapter)
        provider.close()

    def test_unconfigured_provider_reports_it(self):
        config = TicketingConfig(enabled=True, system=TicketingSystem.GITHUB)

        provider = create_ticketing_provider(config)

        assert provider is not None
        assert provider.is_configured() is False
        provider.close()


class TestTicketingConfig:
    """Tests for configuration validation."""

    def test_disabled_is_valid(self):
        assert TicketingConfig().validate() == []

    def test_enabled_without_system(self):
        errors = TicketingConfig(enabled=True).validate()
        assert errors == ["Ticketing is enabled but ticketingSystem is not set (jira|github|azdevops)"]

    def test_missing_values_listed(self):
        config = TicketingConfig(enabled=True, system=TicketingSystem.GITHUB)

        errors = config.validate()

        assert errors == [
            "Missing githubToken (GITHUB_TOKEN)",
            "Missing githubOwner (GITHUB_OWNER)",
            "Missing githubRepository (GITHUB_REPOSITORY)",
        ]

    def test_placeholders_count_as_missing(self, jira_config):
        jira_config.api_token = "{{JIRA_API_TOKEN}}"
        config = TicketingConfig(enabled=True, system=TicketingSystem.JIRA, jira=jira_config)

        assert config.validate() == ["Missing jiraApiToken (JIRA_API_TOKEN)"]
        assert config.is_active is False

    def test_secrets(self, ticketing_config):
        assert ticketing_config.secrets() == ["jira-secret-token"]
