"""
GitHub API Client - Low-level HTTP client for the GitHub REST API.

This handles the raw HTTP communication with GitHub.
The GitHubAdapter uses this to implement the TicketingProviderPort.

GitHub REST API documentation:
https://docs.github.com/en/rest/issues
"""

from typing import Any

from ticketsync.adapters.http import BaseApiClient
from ticketsync.core.ports.ticketing import IssueTrackerError


class GitHubApiClient(BaseApiClient):
    """
    Low-level GitHub REST API client scoped to one repository.

    Authenticates with a personal access token (classic or fine-grained).
    """

    SERVICE_NAME = "GitHub"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        dry_run: bool = False,
        **kwargs: Any,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: Personal access token
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: API base URL (override for GitHub Enterprise)
            dry_run: If True, don't make write operations
            **kwargs: Retry/timeout settings passed to BaseApiClient
        """
        self.owner = owner
        self.repo = repo
        super().__init__(
            api_url=base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": self.API_VERSION,
            },
            dry_run=dry_run,
            **kwargs,
        )
        self._current_user: dict[str, Any] | None = None

    @property
    def repo_path(self) -> str:
        return f"repos/{self.owner}/{self.repo}"

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    def get_issue(self, number: int | str) -> dict[str, Any]:
        return self.get(f"{self.repo_path}/issues/{number}")

    def create_issue(
        self,
        title: str,
        body: str = "",
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = labels
        if assignees:
            payload["assignees"] = assignees
        return self.post(f"{self.repo_path}/issues", json=payload)

    def update_issue(self, number: int | str, **fields: Any) -> dict[str, Any]:
        return self.patch(f"{self.repo_path}/issues/{number}", json=fields)

    def search_issues(self, terms: str, max_results: int = 30) -> list[dict[str, Any]]:
        """
        Search issues in this repository by title.

        Args:
            terms: Text to look for in issue titles.
        """
        query = f'repo:{self.owner}/{self.repo} is:issue in:title "{terms}"'
        data = self.get("search/issues", params={"q": query, "per_page": max_results})
        return data.get("items", []) if isinstance(data, dict) else []

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def get_authenticated_user(self) -> dict[str, Any]:
        if self._current_user is None:
            self._current_user = self.get("user")
        return self._current_user

    def test_connection(self) -> bool:
        try:
            self.get_authenticated_user()
            self.get(self.repo_path)
            return True
        except IssueTrackerError:
            return False
