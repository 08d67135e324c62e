"""
Jira API Client - Low-level HTTP client for Jira Cloud REST API v3.

This handles the raw HTTP communication with Jira.
The JiraAdapter uses this to implement the TicketingProviderPort.
"""

from typing import Any

from ticketsync.adapters.http import BaseApiClient
from ticketsync.core.ports.ticketing import IssueTrackerError


class JiraApiClient(BaseApiClient):
    """
    Low-level Jira REST API client.

    Authenticates with HTTP basic auth (account email + API token).
    """

    SERVICE_NAME = "Jira"
    API_VERSION = "3"

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        dry_run: bool = False,
        **kwargs: Any,
    ):
        """
        Initialize the Jira client.

        Args:
            base_url: Jira instance URL (e.g., https://company.atlassian.net)
            email: User email for authentication
            api_token: API token
            dry_run: If True, don't make write operations
            **kwargs: Retry/timeout settings passed to BaseApiClient
        """
        self.base_url = base_url.rstrip("/")
        super().__init__(
            api_url=f"{self.base_url}/rest/api/{self.API_VERSION}",
            auth=(email, api_token),
            dry_run=dry_run,
            **kwargs,
        )
        self._current_user: dict[str, Any] | None = None

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    def get_issue(self, issue_key: str, fields: list[str] | None = None) -> dict[str, Any]:
        params = {"fields": ",".join(fields)} if fields else None
        return self.get(f"issue/{issue_key}", params=params)

    def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Create an issue.

        Returns:
            Jira's response ({"id", "key", "self"}), or {} in dry-run mode.
        """
        return self.post("issue", json={"fields": fields})

    def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        self.put(f"issue/{issue_key}", json={"fields": fields})

    def delete_issue(self, issue_key: str) -> None:
        self.delete(f"issue/{issue_key}", params={"deleteSubtasks": "true"})

    def search_jql(
        self,
        jql: str,
        fields: list[str],
        max_results: int = 50,
    ) -> list[dict[str, Any]]:
        """
        Execute a JQL search query.

        Returns:
            List of matching issues.
        """
        data = self.get(
            "search/jql",
            params={"jql": jql, "fields": ",".join(fields), "maxResults": max_results},
        )
        return data.get("issues", []) if isinstance(data, dict) else []

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def get_transitions(self, issue_key: str) -> list[dict[str, Any]]:
        data = self.get(f"issue/{issue_key}/transitions")
        return data.get("transitions", []) if isinstance(data, dict) else []

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self.post(f"issue/{issue_key}/transitions", json={"transition": {"id": transition_id}})

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def get_myself(self) -> dict[str, Any]:
        """Get the authenticated user. Cached after the first call."""
        if self._current_user is None:
            self._current_user = self.get("myself")
        return self._current_user

    def test_connection(self) -> bool:
        try:
            self.get_myself()
            return True
        except IssueTrackerError:
            return False

    @property
    def is_connected(self) -> bool:
        return self._current_user is not None
