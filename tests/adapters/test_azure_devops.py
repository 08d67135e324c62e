"""
Tests for AzureDevOpsAdapter and AzureDevOpsApiClient.
"""

from unittest.mock import MagicMock

import pytest

from ticketsync.adapters.azure_devops import AzureDevOpsAdapter, AzureDevOpsApiClient
from ticketsync.adapters.azure_devops.client import field_op
from ticketsync.core.domain.enums import Priority, TaskStatus
from ticketsync.core.ports.config_provider import AzureDevOpsConfig
from ticketsync.core.ports.ticketing import IssueTrackerError, NotFoundError, TicketData


@pytest.fixture
def azure_config():
    return AzureDevOpsConfig(organization="acme", project="App", pat="pat-value")


@pytest.fixture
def client():
    client = MagicMock()
    client.work_item_url.side_effect = (
        lambda wid: f"https://dev.azure.com/acme/App/_apis/wit/workItems/{wid}"
    )
    return client


@pytest.fixture
def adapter(azure_config, client):
    return AzureDevOpsAdapter(config=azure_config, client=client)


# =============================================================================
# Client
# =============================================================================


class TestAzureDevOpsApiClient:
    """Tests for the low-level client."""

    @pytest.fixture
    def api(self, mock_session):
        return AzureDevOpsApiClient(organization="acme", project="App", pat="pat-value")

    def test_urls_and_auth(self, api, mock_session):
        assert api.api_url == "https://dev.azure.com/acme/App/_apis"
        assert api.work_item_url(5) == "https://dev.azure.com/acme/App/_apis/wit/workItems/5"
        assert mock_session.auth == ("", "pat-value")

    def test_create_uses_json_patch(self, api, mock_session, response_factory):
        mock_session.request.return_value = response_factory(200, {"id": 12})

        api.create_work_item("User Story", [field_op("System.Title", "x")])

        args, kwargs = mock_session.request.call_args
        assert args == ("POST", "https://dev.azure.com/acme/App/_apis/wit/workitems/$User Story")
        assert kwargs["headers"] == {"Content-Type": "application/json-patch+json"}
        assert kwargs["params"] == {"api-version": "7.0"}
        assert kwargs["json"] == [{"op": "add", "path": "/fields/System.Title", "value": "x"}]

    def test_wiql_runs_in_dry_run(self, mock_session, response_factory):
        api = AzureDevOpsApiClient(organization="acme", project="App", pat="p", dry_run=True)
        mock_session.request.return_value = response_factory(200, {"workItems": [{"id": 3}, {"id": 4}]})

        assert api.query_wiql("SELECT ...") == [3, 4]

    def test_get_work_items_empty_ids(self, api, mock_session):
        assert api.get_work_items([], fields=["System.Title"]) == []
        mock_session.request.assert_not_called()

    def test_get_work_items(self, api, mock_session, response_factory):
        mock_session.request.return_value = response_factory(200, {"value": [{"id": 3}]})

        assert api.get_work_items([3, 4], fields=["System.Id", "System.Title"]) == [{"id": 3}]
        params = mock_session.request.call_args.kwargs["params"]
        assert params["ids"] == "3,4"
        assert params["fields"] == "System.Id,System.Title"

    def test_test_connection(self, api, mock_session, response_factory):
        mock_session.request.return_value = response_factory(200, {"name": "App"})

        assert api.test_connection() is True
        assert mock_session.request.call_args.args[1] == "https://dev.azure.com/acme/_apis/projects/App"


# =============================================================================
# Adapter
# =============================================================================


class TestAzureDevOpsCreate:
    """Tests for work item creation."""

    def test_create_story(self, adapter, client):
        client.create_work_item.return_value = {
            "id": 101,
            "_links": {"html": {"href": "https://dev.azure.com/acme/App/_workitems/edit/101"}},
        }
        ticket = TicketData(title="Set up CI", ref_id="US001", description="a\nb", priority=Priority.HIGH)

        created = adapter.create_story(ticket)

        assert created.key == "101"
        assert created.url.endswith("/edit/101")
        work_item_type, operations = client.create_work_item.call_args.args
        assert work_item_type == "User Story"
        assert field_op("System.Title", "US001: Set up CI") in operations
        assert field_op("System.Description", "a<br/>b") in operations
        assert field_op("Microsoft.VSTS.Common.Priority", 1) in operations

    def test_create_task_adds_parent_relation(self, adapter, client):
        client.create_work_item.return_value = {"id": 102}

        adapter.create_task(TicketData(title="[Subtask] Lint", ref_id="T001-01"), "101")

        work_item_type, operations = client.create_work_item.call_args.args
        assert work_item_type == "Task"
        assert operations[-1] == {
            "op": "add",
            "path": "/relations/-",
            "value": {
                "rel": "System.LinkTypes.Hierarchy-Reverse",
                "url": "https://dev.azure.com/acme/App/_apis/wit/workItems/101",
            },
        }

    def test_area_path(self, azure_config, client):
        azure_config.area_path = "App\\Team"
        client.create_work_item.return_value = {"id": 1}
        adapter = AzureDevOpsAdapter(config=azure_config, client=client)

        adapter.create_story(TicketData(title="x"))

        operations = client.create_work_item.call_args.args[1]
        assert field_op("System.AreaPath", "App\\Team") in operations

    def test_missing_id(self, adapter, client):
        client.create_work_item.return_value = {}

        with pytest.raises(IssueTrackerError):
            adapter.create_story(TicketData(title="x"))


class TestAzureDevOpsStatus:
    """Tests for state updates."""

    @pytest.mark.parametrize(
        "status,state",
        [
            (TaskStatus.PENDING, "New"),
            (TaskStatus.IN_PROGRESS, "Active"),
            (TaskStatus.REVIEW, "Resolved"),
            (TaskStatus.DONE, "Closed"),
            (TaskStatus.CANCELLED, "Removed"),
        ],
    )
    def test_sets_state(self, adapter, client, status, state):
        assert adapter.update_ticket_status("101", status) is True
        client.update_work_item.assert_called_once_with("101", [field_op("System.State", state)])

    def test_dry_run(self, azure_config, client):
        adapter = AzureDevOpsAdapter(config=azure_config, dry_run=True, client=client)

        adapter.update_ticket_status("101", TaskStatus.DONE)
        client.update_work_item.assert_not_called()


class TestAzureDevOpsUpdate:
    """Tests for content updates of existing work items."""

    def test_update_sends_content_fields_only(self, azure_config, client):
        azure_config.area_path = "App\\Team"
        adapter = AzureDevOpsAdapter(config=azure_config, client=client)
        ticket = TicketData(
            title="Set up CI", ref_id="US001", description="a\nb", priority=Priority.LOW, labels=["ci"]
        )

        assert adapter.update_ticket("101", ticket) is True

        client.update_work_item.assert_called_once_with(
            "101",
            [
                field_op("System.Title", "US001: Set up CI"),
                field_op("System.Description", "a<br/>b"),
                field_op("Microsoft.VSTS.Common.Priority", 3),
            ],
        )

    def test_update_dry_run(self, azure_config, client):
        adapter = AzureDevOpsAdapter(config=azure_config, dry_run=True, client=client)

        assert adapter.update_ticket("101", TicketData(title="x")) is True
        client.update_work_item.assert_not_called()


class TestAzureDevOpsLookup:
    """Tests for WIQL search, existence and deletion."""

    def test_find_by_ref_id(self, adapter, client):
        client.query_wiql.return_value = [7, 8]
        client.get_work_items.return_value = [
            {"id": 7, "fields": {"System.Title": "US0012: Other"}},
            {"id": 8, "fields": {"System.Title": "US001: Set up CI"}},
        ]

        assert adapter.find_ticket_by_ref_id("US001") == "8"
        query = client.query_wiql.call_args.args[0]
        assert "[System.TeamProject] = 'App'" in query
        assert "[System.Title] CONTAINS 'US001'" in query
        assert "[System.Title] CONTAINS 'US-001'" in query

    def test_find_escapes_quotes(self, client):
        config = AzureDevOpsConfig(organization="acme", project="Bob's", pat="p")
        client.query_wiql.return_value = []
        client.get_work_items.return_value = []
        adapter = AzureDevOpsAdapter(config=config, client=client)

        assert adapter.find_ticket_by_ref_id("US001") is None
        assert "'Bob''s'" in client.query_wiql.call_args.args[0]

    def test_ticket_exists(self, adapter, client):
        client.get_work_item.return_value = {"id": 1}
        assert adapter.ticket_exists("1") is True

    def test_ticket_missing(self, adapter, client):
        client.get_work_item.side_effect = NotFoundError("gone")
        assert adapter.ticket_exists("1") is False

    def test_delete(self, adapter, client):
        assert adapter.delete_ticket("101") is True
        client.delete_work_item.assert_called_once_with("101")
