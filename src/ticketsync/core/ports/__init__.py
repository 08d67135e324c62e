"""
Ports - Abstract interfaces the core depends on.

Adapters implement these to connect ticketsync to real ticketing systems,
task storage and configuration sources.
"""

from .config_provider import (
    AppConfig,
    AzureDevOpsConfig,
    ConfigProviderPort,
    GitHubConfig,
    JiraConfig,
    TicketingConfig,
)
from .task_store import TaskStorePort
from .ticketing import (
    AccessDeniedError,
    AuthenticationError,
    CreatedTicket,
    IssueTrackerError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ResourceNotFoundError,
    TicketData,
    TicketingProviderPort,
    TrackerError,
    TransientError,
    TransitionError,
)


__all__ = [
    "AccessDeniedError",
    "AppConfig",
    "AuthenticationError",
    "AzureDevOpsConfig",
    "ConfigProviderPort",
    "CreatedTicket",
    "GitHubConfig",
    "IssueTrackerError",
    "JiraConfig",
    "NotFoundError",
    "PermissionError",
    "RateLimitError",
    "ResourceNotFoundError",
    "TaskStorePort",
    "TicketData",
    "TicketingConfig",
    "TicketingProviderPort",
    "TrackerError",
    "TransientError",
    "TransitionError",
]
