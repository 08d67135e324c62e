"""
Azure DevOps Adapter - Implements TicketingProviderPort for Azure Boards.

Key mappings:
- Task -> User Story work item
- Subtask -> Task work item with a Hierarchy-Reverse (parent) relation
- Status -> System.State (New / Active / Resolved / Closed / Removed)
- Priority -> Microsoft.VSTS.Common.Priority (1 / 2 / 3)
- Title -> "<refId>: <title>"
"""

import logging
from typing import Any

from ticketsync.core.domain.enums import Priority, TaskStatus, TicketingSystem
from ticketsync.core.domain.reference_ids import title_matches_ref_id, to_legacy_ref_id
from ticketsync.core.ports.config_provider import AzureDevOpsConfig
from ticketsync.core.ports.ticketing import (
    CreatedTicket,
    IssueTrackerError,
    NotFoundError,
    TicketData,
    TicketingProviderPort,
)

from .client import AzureDevOpsApiClient, field_op


STATUS_MAP = {
    TaskStatus.PENDING: "New",
    TaskStatus.IN_PROGRESS: "Active",
    TaskStatus.REVIEW: "Resolved",
    TaskStatus.DONE: "Closed",
    TaskStatus.DEFERRED: "New",
    TaskStatus.CANCELLED: "Removed",
}

PRIORITY_MAP = {
    Priority.HIGH: "1",
    Priority.MEDIUM: "2",
    Priority.LOW: "3",
}

PARENT_LINK = "System.LinkTypes.Hierarchy-Reverse"


def _escape_wiql(value: str) -> str:
    return value.replace("'", "''")


class AzureDevOpsAdapter(TicketingProviderPort):
    """
    Azure DevOps implementation of the TicketingProviderPort.

    Ticket keys are work item ids rendered as strings ("1234").
    """

    def __init__(
        self,
        config: AzureDevOpsConfig,
        dry_run: bool = False,
        client: AzureDevOpsApiClient | None = None,
    ):
        self.config = config
        self._dry_run = dry_run
        self.logger = logging.getLogger("AzureDevOpsAdapter")
        self._client = client or AzureDevOpsApiClient(
            organization=config.organization,
            project=config.project,
            pat=config.pat,
            base_url=config.base_url,
            dry_run=dry_run,
        )

    @property
    def name(self) -> str:
        return TicketingSystem.AZURE_DEVOPS.display_name

    def is_configured(self) -> bool:
        return self.config.is_valid()

    def test_connection(self) -> bool:
        return self._client.test_connection()

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Write Operations
    # -------------------------------------------------------------------------

    def create_story(self, ticket: TicketData) -> CreatedTicket:
        return self._create(self.config.story_type, self._build_operations(ticket))

    def create_task(self, ticket: TicketData, parent_key: str) -> CreatedTicket:
        operations = self._build_operations(ticket)
        operations.append(
            {
                "op": "add",
                "path": "/relations/-",
                "value": {"rel": PARENT_LINK, "url": self._client.work_item_url(parent_key)},
            }
        )
        return self._create(self.config.task_type, operations)

    def update_ticket_status(self, ticket_key: str, status: TaskStatus) -> bool:
        state = self.map_status_to_ticket(status)
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would set work item {ticket_key} to {state}")
            return True

        self._client.update_work_item(ticket_key, [field_op("System.State", state)])
        self.logger.info(f"Set work item {ticket_key} to {state}")
        return True

    def update_ticket(self, ticket_key: str, ticket: TicketData) -> bool:
        operations = self._content_operations(ticket)
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would update work item {ticket_key}")
            return True

        self._client.update_work_item(ticket_key, operations)
        self.logger.info(f"Updated work item {ticket_key}")
        return True

    def delete_ticket(self, ticket_key: str) -> bool:
        self._client.delete_work_item(ticket_key)
        self.logger.info(f"Deleted work item {ticket_key}")
        return True

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Read Operations
    # -------------------------------------------------------------------------

    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        project = _escape_wiql(self.config.project)
        clauses = " OR ".join(
            f"[System.Title] CONTAINS '{_escape_wiql(term)}'"
            for term in (ref_id, to_legacy_ref_id(ref_id))
        )
        query = (
            "SELECT [System.Id] FROM WorkItems "
            f"WHERE [System.TeamProject] = '{project}' AND ({clauses}) "
            "ORDER BY [System.CreatedDate] DESC"
        )
        ids = self._client.query_wiql(query)
        for item in self._client.get_work_items(ids, fields=["System.Id", "System.Title"]):
            if title_matches_ref_id(item.get("fields", {}).get("System.Title"), ref_id):
                return str(item["id"])
        return None

    def ticket_exists(self, ticket_key: str) -> bool:
        try:
            self._client.get_work_item(ticket_key)
            return True
        except NotFoundError:
            return False

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def map_status_to_ticket(self, status: TaskStatus) -> str:
        return STATUS_MAP[status]

    def map_priority_to_ticket(self, priority: Priority) -> str:
        return PRIORITY_MAP.get(priority, "2")

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _content_operations(self, ticket: TicketData) -> list[dict[str, Any]]:
        title = f"{ticket.ref_id}: {ticket.title}" if ticket.ref_id else ticket.title
        description = ticket.body_text().replace("\n", "<br/>")
        return [
            field_op("System.Title", title),
            field_op("System.Description", description),
            field_op(
                "Microsoft.VSTS.Common.Priority",
                int(self.map_priority_to_ticket(ticket.priority)),
            ),
        ]

    def _build_operations(self, ticket: TicketData) -> list[dict[str, Any]]:
        operations = self._content_operations(ticket)
        if self.config.area_path:
            operations.append(field_op("System.AreaPath", self.config.area_path))
        if ticket.labels:
            operations.append(field_op("System.Tags", "; ".join(ticket.labels)))
        return operations

    def _create(self, work_item_type: str, operations: list[dict[str, Any]]) -> CreatedTicket:
        data = self._client.create_work_item(work_item_type, operations)
        if self._dry_run:
            return CreatedTicket(key="DRY-RUN")

        work_item_id = data.get("id")
        if work_item_id is None:
            raise IssueTrackerError(f"Azure DevOps did not return an id for a {work_item_type}")
        self.logger.info(f"Created {work_item_type} {work_item_id}")
        url = data.get("_links", {}).get("html", {}).get("href") or data.get("url")
        return CreatedTicket(key=str(work_item_id), id=str(work_item_id), url=url)
