"""
Jira Adapter - Jira Cloud implementation of TicketingProviderPort.
"""

from .adapter import JiraAdapter, text_to_adf
from .client import JiraApiClient


__all__ = ["JiraAdapter", "JiraApiClient", "text_to_adf"]
