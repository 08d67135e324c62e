"""
Service Factories - Wire concrete adapters to the core ports.

The active ticketing provider is chosen by the ``ticketingSystem`` setting.
Adapters are imported lazily so that only the selected provider's module is
loaded.

Usage:
    config = EnvironmentConfigProvider(project_root=root).load()
    provider = create_ticketing_provider(config.ticketing)
    service = TicketingSyncService(config.ticketing, provider, store)
"""

import logging

from .domain.enums import TicketingSystem
from .ports.config_provider import TicketingConfig
from .ports.ticketing import TicketingProviderPort


logger = logging.getLogger("Services")


def create_ticketing_provider(
    config: TicketingConfig,
    dry_run: bool = False,
) -> TicketingProviderPort | None:
    """
    Create the provider adapter for the configured ticketing system.

    Args:
        config: Ticketing configuration.
        dry_run: If True, the adapter logs write operations instead of
            performing them.

    Returns:
        The provider, or None when integration is disabled or no system is
        selected.

    Raises:
        ValueError: If the configured system has no adapter.
    """
    if not config.enabled or config.system is None:
        logger.debug("Ticketing integration disabled; no provider created")
        return None

    system = config.system
    if not isinstance(system, TicketingSystem):
        system = TicketingSystem.from_string(str(system))

    if system is TicketingSystem.JIRA:
        from ticketsync.adapters.jira import JiraAdapter

        return JiraAdapter(config=config.jira, dry_run=dry_run)

    if system is TicketingSystem.GITHUB:
        from ticketsync.adapters.github import GitHubAdapter

        return GitHubAdapter(config=config.github, dry_run=dry_run)

    if system is TicketingSystem.AZURE_DEVOPS:
        from ticketsync.adapters.azure_devops import AzureDevOpsAdapter

        return AzureDevOpsAdapter(config=config.azure_devops, dry_run=dry_run)

    raise ValueError(f"Unknown ticketing system: {system}")
