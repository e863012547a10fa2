"""Tests for the httpx-backed Archon API client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from httpx import Response

from archon_tui.client import ArchonClient
from archon_tui.retry import RetryPolicy
from archon_tui.tui.exceptions import ArchonAPIError, ArchonConnectionError

BASE_URL = "http://archon.test"

TASK_PAYLOAD = {
    "id": "t1",
    "title": "Write docs",
    "status": "todo",
    "task_order": 10,
    "feature": "docs",
    "project_id": "p1",
    "created_at": "2024-01-01T10:00:00Z",
    "updated_at": "2024-01-02T10:00:00.123456Z",
}


@pytest.fixture
def client() -> ArchonClient:
    """Client with instant retries."""
    return ArchonClient(BASE_URL, retry_policy=RetryPolicy(backoff_seconds=0.0))


class TestListTasks:
    """Tests for ArchonClient.list_tasks."""

    @respx.mock
    def test_parses_tasks(self, client: ArchonClient) -> None:
        """Tasks envelope should be parsed into Task objects."""
        respx.get(f"{BASE_URL}/api/tasks").mock(
            return_value=Response(200, json={"tasks": [TASK_PAYLOAD]})
        )

        tasks = client.list_tasks()

        assert len(tasks) == 1
        assert tasks[0].id == "t1"
        assert tasks[0].feature == "docs"
        assert tasks[0].updated_at is not None

    @respx.mock
    def test_query_parameters(self, client: ArchonClient) -> None:
        """Project, status, include_closed and page size should be sent."""
        route = respx.get(f"{BASE_URL}/api/tasks").mock(
            return_value=Response(200, json={"tasks": []})
        )

        client.list_tasks(project_id="p1", status="doing")

        params = route.calls.last.request.url.params
        assert params["project_id"] == "p1"
        assert params["status"] == "doing"
        assert params["include_closed"] == "true"
        assert params["per_page"] == "100"

    @respx.mock
    def test_no_project_parameter_for_all_tasks(self, client: ArchonClient) -> None:
        """Listing all tasks should not send a project_id."""
        route = respx.get(f"{BASE_URL}/api/tasks").mock(
            return_value=Response(200, json={"tasks": []})
        )

        client.list_tasks()

        assert "project_id" not in route.calls.last.request.url.params

    @respx.mock
    def test_bearer_token(self) -> None:
        """API key should be sent as a bearer token."""
        route = respx.get(f"{BASE_URL}/api/tasks").mock(
            return_value=Response(200, json={"tasks": []})
        )

        with ArchonClient(BASE_URL, api_key="secret") as client:
            client.list_tasks()

        assert route.calls.last.request.headers["Authorization"] == "Bearer secret"


class TestMutations:
    """Tests for update and delete."""

    @respx.mock
    def test_update_task_envelope(self, client: ArchonClient) -> None:
        """PUT should send the fields and unwrap the task envelope."""
        route = respx.put(f"{BASE_URL}/api/tasks/t1").mock(
            return_value=Response(200, json={"task": {**TASK_PAYLOAD, "status": "review"}})
        )

        task = client.update_task("t1", {"status": "review"})

        assert task.status == "review"
        assert json.loads(route.calls.last.request.content) == {"status": "review"}

    @respx.mock
    def test_update_task_bare_payload(self, client: ArchonClient) -> None:
        """A bare task object in the response is accepted too."""
        respx.put(f"{BASE_URL}/api/tasks/t1").mock(
            return_value=Response(200, json={**TASK_PAYLOAD, "feature": "api"})
        )

        assert client.update_task("t1", {"feature": "api"}).feature == "api"

    @respx.mock
    def test_delete_task(self, client: ArchonClient) -> None:
        """DELETE should hit the task URL."""
        route = respx.delete(f"{BASE_URL}/api/tasks/t1").mock(return_value=Response(204))

        client.delete_task("t1")

        assert route.called

    @respx.mock
    def test_update_not_retried(self, client: ArchonClient) -> None:
        """Non-idempotent requests must not be retried."""
        route = respx.put(f"{BASE_URL}/api/tasks/t1").mock(side_effect=httpx.ConnectError)

        with pytest.raises(ArchonConnectionError):
            client.update_task("t1", {"status": "done"})

        assert route.call_count == 1


class TestProjectsAndHealth:
    """Tests for projects listing and health check."""

    @respx.mock
    def test_list_projects(self, client: ArchonClient) -> None:
        """Projects envelope should be parsed."""
        respx.get(f"{BASE_URL}/api/projects").mock(
            return_value=Response(
                200, json={"projects": [{"id": "p1", "title": "Archon", "pinned": True}]}
            )
        )

        projects = client.list_projects()

        assert [p.title for p in projects] == ["Archon"]
        assert projects[0].pinned is True

    @respx.mock
    def test_health_check_ok(self, client: ArchonClient) -> None:
        """A 200 health response should not raise."""
        respx.get(f"{BASE_URL}/api/health").mock(return_value=Response(200, json={"status": "ok"}))
        client.health_check()


class TestErrors:
    """Tests for error translation."""

    @respx.mock
    def test_http_error_status(self, client: ArchonClient) -> None:
        """Status >= 400 should raise ArchonAPIError with the body."""
        respx.get(f"{BASE_URL}/api/tasks").mock(return_value=Response(404, text="not found"))

        with pytest.raises(ArchonAPIError) as exc_info:
            client.list_tasks()

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "API error (status 404): not found"

    @respx.mock
    def test_server_error_not_retried(self, client: ArchonClient) -> None:
        """API errors are not transport failures and are not retried."""
        route = respx.get(f"{BASE_URL}/api/health").mock(return_value=Response(500, text="boom"))

        with pytest.raises(ArchonAPIError):
            client.health_check()

        assert route.call_count == 1

    @respx.mock
    def test_connection_refused_retried(self, client: ArchonClient) -> None:
        """Connect failures should be retried and then reported."""
        route = respx.get(f"{BASE_URL}/api/tasks").mock(side_effect=httpx.ConnectError)

        with pytest.raises(ArchonConnectionError, match="^connection refused"):
            client.list_tasks()

        assert route.call_count == 3

    @respx.mock
    def test_timeout(self, client: ArchonClient) -> None:
        """Timeouts should raise ArchonConnectionError mentioning the timeout."""
        respx.get(f"{BASE_URL}/api/projects").mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(ArchonConnectionError, match="^request timeout"):
            client.list_projects()

    @respx.mock
    def test_recovers_after_transient_failure(self, client: ArchonClient) -> None:
        """A GET that fails once and then succeeds should return data."""
        respx.get(f"{BASE_URL}/api/tasks").mock(
            side_effect=[httpx.ConnectError("refused"), Response(200, json={"tasks": [TASK_PAYLOAD]})]
        )

        assert [t.id for t in client.list_tasks()] == ["t1"]
