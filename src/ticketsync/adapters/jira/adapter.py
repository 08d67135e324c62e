"""
Jira Adapter - Implements TicketingProviderPort for Jira Cloud.

Key mappings:
- Task -> Story issue type
- Subtask -> Sub-task issue type with a parent link
- Status -> workflow transition whose name or target status matches
- Priority -> High / Medium / Low
- Title -> "<refId>-<title>"
"""

import logging
from typing import Any

from ticketsync.core.domain.enums import Priority, TaskStatus, TicketingSystem
from ticketsync.core.domain.reference_ids import (
    ReferenceIdGenerator,
    title_matches_ref_id,
    to_legacy_ref_id,
)
from ticketsync.core.ports.config_provider import JiraConfig
from ticketsync.core.ports.ticketing import (
    CreatedTicket,
    IssueTrackerError,
    NotFoundError,
    TicketData,
    TicketingProviderPort,
)

from .client import JiraApiClient


STATUS_MAP = {
    TaskStatus.PENDING: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "In Review",
    TaskStatus.DONE: "Done",
    TaskStatus.DEFERRED: "To Do",
    TaskStatus.CANCELLED: "Cancelled",
}

PRIORITY_MAP = {
    Priority.HIGH: "High",
    Priority.MEDIUM: "Medium",
    Priority.LOW: "Low",
}


def text_to_adf(text: str) -> dict[str, Any]:
    """
    Convert plain text to an Atlassian Document Format document.

    Blank lines separate paragraphs; single newlines become hard breaks.
    """
    content: list[dict[str, Any]] = []
    for block in text.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        nodes: list[dict[str, Any]] = []
        for i, line in enumerate(block.split("\n")):
            if i:
                nodes.append({"type": "hardBreak"})
            if line:
                nodes.append({"type": "text", "text": line})
        content.append({"type": "paragraph", "content": nodes})
    return {"type": "doc", "version": 1, "content": content}


class JiraAdapter(TicketingProviderPort):
    """
    Jira implementation of the TicketingProviderPort.

    Translates local tasks into Jira stories and sub-tasks.
    """

    def __init__(
        self,
        config: JiraConfig,
        dry_run: bool = False,
        client: JiraApiClient | None = None,
    ):
        """
        Initialize the Jira adapter.

        Args:
            config: Jira configuration
            dry_run: If True, don't make changes
            client: Pre-built API client (mainly for tests)
        """
        self.config = config
        self._dry_run = dry_run
        self.logger = logging.getLogger("JiraAdapter")
        self._client = client or JiraApiClient(
            base_url=config.url,
            email=config.email,
            api_token=config.api_token,
            dry_run=dry_run,
        )

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return TicketingSystem.JIRA.display_name

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
        fields = self._build_fields(ticket, self.config.story_type)
        return self._create(fields)

    def create_task(self, ticket: TicketData, parent_key: str) -> CreatedTicket:
        fields = self._build_fields(ticket, self.config.subtask_type)
        fields["parent"] = {"key": parent_key}
        return self._create(fields)

    def update_ticket_status(self, ticket_key: str, status: TaskStatus) -> bool:
        target = self.map_status_to_ticket(status)
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would transition {ticket_key} to {target}")
            return True

        issue = self._client.get_issue(ticket_key, fields=["status"])
        current = issue.get("fields", {}).get("status", {}).get("name", "")
        if current.lower() == target.lower():
            self.logger.debug(f"{ticket_key} already in status {target}")
            return True

        transitions = self._client.get_transitions(ticket_key)
        transition = next(
            (
                t
                for t in transitions
                if t.get("name", "").lower() == target.lower()
                or t.get("to", {}).get("name", "").lower() == target.lower()
            ),
            None,
        )
        if transition is None:
            available = ", ".join(t.get("name", "?") for t in transitions)
            self.logger.warning(
                f"No transition to '{target}' for {ticket_key}. Available: {available}"
            )
            return False

        self._client.transition_issue(ticket_key, transition["id"])
        self.logger.info(f"Transitioned {ticket_key} to {target}")
        return True

    def update_ticket(self, ticket_key: str, ticket: TicketData) -> bool:
        fields: dict[str, Any] = {
            "summary": ReferenceIdGenerator.format_title_for_ticket(ticket.ref_id, ticket.title),
            "description": text_to_adf(ticket.body_text()),
            "priority": {"name": self.map_priority_to_ticket(ticket.priority)},
        }
        self._client.update_issue(ticket_key, fields)
        self.logger.info(f"Updated {ticket_key}: {fields['summary']}")
        return True

    def delete_ticket(self, ticket_key: str) -> bool:
        self._client.delete_issue(ticket_key)
        self.logger.info(f"Deleted {ticket_key}")
        return True

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Read Operations
    # -------------------------------------------------------------------------

    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        legacy = to_legacy_ref_id(ref_id)
        jql = (
            f'project = "{self.config.project_key}" '
            f'AND (summary ~ "{ref_id}" OR summary ~ "{legacy}") ORDER BY created DESC'
        )
        issues = self._client.search_jql(jql, fields=["summary"])
        for issue in issues:
            summary = issue.get("fields", {}).get("summary", "")
            if title_matches_ref_id(summary, ref_id):
                return issue.get("key")
        return None

    def ticket_exists(self, ticket_key: str) -> bool:
        try:
            self._client.get_issue(ticket_key, fields=["status"])
            return True
        except NotFoundError:
            return False

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def map_status_to_ticket(self, status: TaskStatus) -> str:
        return STATUS_MAP[status]

    def map_priority_to_ticket(self, priority: Priority) -> str:
        return PRIORITY_MAP.get(priority, self.config.default_priority)

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _build_fields(self, ticket: TicketData, issue_type: str) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "project": {"key": self.config.project_key},
            "summary": ReferenceIdGenerator.format_title_for_ticket(ticket.ref_id, ticket.title),
            "description": text_to_adf(ticket.body_text()),
            "issuetype": {"name": issue_type},
            "priority": {"name": self.map_priority_to_ticket(ticket.priority)},
        }
        if ticket.labels:
            fields["labels"] = [label.replace(" ", "-") for label in ticket.labels]
        return fields

    def _create(self, fields: dict[str, Any]) -> CreatedTicket:
        data = self._client.create_issue(fields)
        if self._dry_run:
            return CreatedTicket(key="DRY-RUN")

        key = data.get("key")
        if not key:
            raise IssueTrackerError(f"Jira did not return a key for '{fields['summary']}'")
        self.logger.info(f"Created {fields['issuetype']['name']} {key}: {fields['summary']}")
        return CreatedTicket(
            key=key,
            id=data.get("id"),
            url=f"{self._client.base_url}/browse/{key}",
        )
