"""
GitHub Adapter - Implements TicketingProviderPort for GitHub Issues.

Key mappings:
- Task -> Issue
- Subtask -> Issue with the subtask label and a "Parent: #N" line
  (GitHub issues have no native parent link over REST)
- Status -> "status:<value>" label; done/cancelled also close the issue
- Priority -> "priority:<value>" label
- Title -> "[<refId>] <title>"
- Delete -> close as not planned with the "deleted" label, since issues
  cannot be deleted through the REST API
"""

import logging
from typing import Any

from ticketsync.core.domain.enums import Priority, TaskStatus, TicketingSystem
from ticketsync.core.domain.reference_ids import title_matches_ref_id, to_legacy_ref_id
from ticketsync.core.ports.config_provider import GitHubConfig
from ticketsync.core.ports.ticketing import (
    CreatedTicket,
    IssueTrackerError,
    NotFoundError,
    TicketData,
    TicketingProviderPort,
)

from .client import GitHubApiClient


STATUS_LABEL_PREFIX = "status:"
PRIORITY_LABEL_PREFIX = "priority:"
DELETED_LABEL = "deleted"


class GitHubAdapter(TicketingProviderPort):
    """
    GitHub Issues implementation of the TicketingProviderPort.

    Ticket keys are issue numbers rendered as strings ("42").
    """

    def __init__(
        self,
        config: GitHubConfig,
        dry_run: bool = False,
        client: GitHubApiClient | None = None,
    ):
        """
        Initialize the GitHub adapter.

        Args:
            config: GitHub configuration
            dry_run: If True, don't make changes
            client: Pre-built API client (mainly for tests)
        """
        self.config = config
        self._dry_run = dry_run
        self.logger = logging.getLogger("GitHubAdapter")
        self._client = client or GitHubApiClient(
            token=config.token,
            owner=config.owner,
            repo=config.repo,
            base_url=config.base_url,
            dry_run=dry_run,
        )

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Properties
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return TicketingSystem.GITHUB.display_name

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
        return self._create(ticket, self._build_body(ticket), self._build_labels(ticket))

    def create_task(self, ticket: TicketData, parent_key: str) -> CreatedTicket:
        body = f"{self._build_body(ticket)}\n\nParent: #{parent_key.lstrip('#')}"
        labels = self._build_labels(ticket) + [self.config.subtask_label]
        return self._create(ticket, body, labels)

    def update_ticket_status(self, ticket_key: str, status: TaskStatus) -> bool:
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would set #{ticket_key} to {status.value}")
            return True

        issue = self._client.get_issue(ticket_key)
        labels = [
            label["name"]
            for label in issue.get("labels", [])
            if not label["name"].startswith(STATUS_LABEL_PREFIX)
        ]
        labels.append(self.map_status_to_ticket(status))

        fields: dict[str, Any] = {"labels": labels}
        if status.is_closed():
            reason = "completed" if status is TaskStatus.DONE else "not_planned"
            fields.update(state="closed", state_reason=reason)
        elif issue.get("state") == "closed":
            fields.update(state="open", state_reason="reopened")

        self._client.update_issue(ticket_key, **fields)
        self.logger.info(f"Updated #{ticket_key} to {status.value}")
        return True

    def update_ticket(self, ticket_key: str, ticket: TicketData) -> bool:
        title = self._format_title(ticket)
        if self._dry_run:
            self.logger.info(f"[DRY-RUN] Would update #{ticket_key}: {title}")
            return True

        issue = self._client.get_issue(ticket_key)
        body = self._build_body(ticket)
        # Subtask issues keep their link to the parent issue
        parent_line = next(
            (
                line
                for line in (issue.get("body") or "").splitlines()
                if line.startswith("Parent: #")
            ),
            None,
        )
        if parent_line:
            body = f"{body}\n\n{parent_line}"

        labels = [
            label["name"]
            for label in issue.get("labels", [])
            if not label["name"].startswith(PRIORITY_LABEL_PREFIX)
        ]
        labels.append(self.map_priority_to_ticket(ticket.priority))

        self._client.update_issue(ticket_key, title=title, body=body, labels=labels)
        self.logger.info(f"Updated #{ticket_key}: {title}")
        return True

    def delete_ticket(self, ticket_key: str) -> bool:
        issue = self._client.get_issue(ticket_key)
        labels = [label["name"] for label in issue.get("labels", [])]
        if DELETED_LABEL not in labels:
            labels.append(DELETED_LABEL)
        self._client.update_issue(
            ticket_key, state="closed", state_reason="not_planned", labels=labels
        )
        self.logger.info(f"Closed #{ticket_key} as deleted")
        return True

    # -------------------------------------------------------------------------
    # TicketingProviderPort Implementation - Read Operations
    # -------------------------------------------------------------------------

    def find_ticket_by_ref_id(self, ref_id: str) -> str | None:
        for terms in (ref_id, to_legacy_ref_id(ref_id)):
            for item in self._client.search_issues(terms):
                if self._is_deleted(item):
                    continue
                if title_matches_ref_id(item.get("title"), ref_id):
                    return str(item["number"])
        return None

    def ticket_exists(self, ticket_key: str) -> bool:
        try:
            issue = self._client.get_issue(ticket_key)
        except NotFoundError:
            return False
        return not self._is_deleted(issue)

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def map_status_to_ticket(self, status: TaskStatus) -> str:
        return f"{STATUS_LABEL_PREFIX}{status.value}"

    def map_priority_to_ticket(self, priority: Priority) -> str:
        return f"{PRIORITY_LABEL_PREFIX}{priority.value}"

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_deleted(issue: dict[str, Any]) -> bool:
        return any(label.get("name") == DELETED_LABEL for label in issue.get("labels", []))

    def _build_body(self, ticket: TicketData) -> str:
        body = ticket.body_text()
        footer = f"Taskmaster ID: {ticket.local_id}" if ticket.local_id else ""
        if ticket.ref_id:
            footer = f"{footer}\nReference: {ticket.ref_id}".strip()
        return f"{body}\n\n---\n{footer}" if footer else body

    def _build_labels(self, ticket: TicketData) -> list[str]:
        labels = list(self.config.labels)
        labels.append(self.map_priority_to_ticket(ticket.priority))
        labels.append(self.map_status_to_ticket(ticket.status))
        labels.extend(ticket.labels)
        return labels

    @staticmethod
    def _format_title(ticket: TicketData) -> str:
        return f"[{ticket.ref_id}] {ticket.title}" if ticket.ref_id else ticket.title

    def _create(self, ticket: TicketData, body: str, labels: list[str]) -> CreatedTicket:
        title = self._format_title(ticket)
        assignees = [self.config.assignee] if self.config.assignee else None
        data = self._client.create_issue(title, body=body, labels=labels, assignees=assignees)
        if self._dry_run:
            return CreatedTicket(key="DRY-RUN")

        number = data.get("number")
        if number is None:
            raise IssueTrackerError(f"GitHub did not return an issue number for '{title}'")
        self.logger.info(f"Created issue #{number}: {title}")
        return CreatedTicket(key=str(number), id=str(data.get("id")), url=data.get("html_url"))
