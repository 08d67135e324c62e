"""
Azure DevOps API Client - Low-level HTTP client for the Work Item Tracking API.

This handles the raw HTTP communication with Azure DevOps.
The AzureDevOpsAdapter uses this to implement the TicketingProviderPort.

Work items are created and updated with JSON Patch documents:
https://learn.microsoft.com/en-us/rest/api/azure/devops/wit/work-items
"""

from typing import Any

from ticketsync.adapters.http import BaseApiClient
from ticketsync.core.ports.ticketing import IssueTrackerError


JSON_PATCH = {"Content-Type": "application/json-patch+json"}


def field_op(path: str, value: Any, op: str = "add") -> dict[str, Any]:
    """Build one JSON Patch operation against a work item field."""
    return {"op": op, "path": f"/fields/{path}", "value": value}


class AzureDevOpsApiClient(BaseApiClient):
    """
    Low-level Azure DevOps REST API client scoped to one project.

    Authenticates with a personal access token via basic auth (empty user).
    """

    SERVICE_NAME = "Azure DevOps"
    API_VERSION = "7.0"

    def __init__(
        self,
        organization: str,
        project: str,
        pat: str,
        base_url: str = "https://dev.azure.com",
        dry_run: bool = False,
        **kwargs: Any,
    ):
        """
        Initialize the Azure DevOps client.

        Args:
            organization: Organization name
            project: Project name
            pat: Personal access token with work item read/write scope
            base_url: Service URL (override for Azure DevOps Server)
            dry_run: If True, don't make write operations
            **kwargs: Retry/timeout settings passed to BaseApiClient
        """
        self.organization = organization
        self.project = project
        self.org_url = f"{base_url.rstrip('/')}/{organization}"
        super().__init__(
            api_url=f"{self.org_url}/{project}/_apis",
            auth=("", pat),
            dry_run=dry_run,
            **kwargs,
        )

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"api-version": self.API_VERSION}
        if extra:
            params.update(extra)
        return params

    def work_item_url(self, work_item_id: int | str) -> str:
        return f"{self.api_url}/wit/workItems/{work_item_id}"

    # -------------------------------------------------------------------------
    # Work Items
    # -------------------------------------------------------------------------

    def get_work_item(self, work_item_id: int | str) -> dict[str, Any]:
        return self.get(f"wit/workitems/{work_item_id}", params=self._params())

    def create_work_item(
        self, work_item_type: str, operations: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """
        Create a work item of the given type.

        Args:
            work_item_type: e.g. "User Story", "Task"
            operations: JSON Patch operations setting fields and relations

        Returns:
            The created work item, or {} in dry-run mode.
        """
        return self.post(
            f"wit/workitems/${work_item_type}",
            json=operations,
            params=self._params(),
            headers=JSON_PATCH,
        )

    def update_work_item(
        self, work_item_id: int | str, operations: list[dict[str, Any]]
    ) -> dict[str, Any]:
        return self.patch(
            f"wit/workitems/{work_item_id}",
            json=operations,
            params=self._params(),
            headers=JSON_PATCH,
        )

    def delete_work_item(self, work_item_id: int | str) -> None:
        self.delete(f"wit/workitems/{work_item_id}", params=self._params())

    def query_wiql(self, query: str) -> list[int]:
        """
        Run a WIQL query.

        Returns:
            Ids of matching work items.
        """
        # Read-only despite POST, so it bypasses dry-run
        data = self.request("POST", "wit/wiql", json={"query": query}, params=self._params())
        if not isinstance(data, dict):
            return []
        return [item["id"] for item in data.get("workItems", [])]

    def get_work_items(self, ids: list[int], fields: list[str]) -> list[dict[str, Any]]:
        if not ids:
            return []
        data = self.get(
            "wit/workitems",
            params=self._params(
                {"ids": ",".join(str(i) for i in ids), "fields": ",".join(fields)}
            ),
        )
        return data.get("value", []) if isinstance(data, dict) else []

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def test_connection(self) -> bool:
        try:
            self.get(
                f"{self.org_url}/_apis/projects/{self.project}",
                params=self._params(),
            )
            return True
        except IssueTrackerError:
            return False
