"""
GitHub Adapter - GitHub Issues implementation of TicketingProviderPort.
"""

from .adapter import GitHubAdapter
from .client import GitHubApiClient


__all__ = ["GitHubAdapter", "GitHubApiClient"]
