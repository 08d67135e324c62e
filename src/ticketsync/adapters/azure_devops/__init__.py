"""
Azure DevOps Adapter - Azure Boards implementation of TicketingProviderPort.
"""

from .adapter import AzureDevOpsAdapter
from .client import AzureDevOpsApiClient


__all__ = ["AzureDevOpsAdapter", "AzureDevOpsApiClient"]
