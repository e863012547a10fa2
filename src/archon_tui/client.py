"""HTTP client for the Archon task server."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .retry import RetryPolicy
from .tui.exceptions import ArchonAPIError, ArchonConnectionError
from .tui.models import Project, Task

logger = logging.getLogger(__name__)

TASKS_PER_PAGE = 100


class ArchonClient:
    """Task and project API client backed by httpx."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Server root, e.g. http://localhost:8181
            api_key: Optional bearer token
            timeout: Per-request timeout in seconds
            retry_policy: Backoff used for GET requests
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/json",
                "User-Agent": "archon-tui",
            }
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.Client(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> ArchonClient:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request and translate transport and status failures.

        Raises:
            ArchonConnectionError: On timeouts and connection failures
            ArchonAPIError: When the server answers with status >= 400
        """
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as err:
            raise ArchonConnectionError(f"request timeout: {err}") from err
        except httpx.TransportError as err:
            raise ArchonConnectionError(f"connection refused: {err}") from err

        if response.status_code >= 400:
            logger.debug(
                "API request failed",
                extra={
                    "extra_context": {
                        "method": method,
                        "url": url,
                        "status_code": response.status_code,
                    }
                },
            )
            raise ArchonAPIError(response.status_code, response.text)
        return response

    def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.retry_policy.call(lambda: self._request("GET", url, **kwargs))

    def list_tasks(
        self,
        project_id: str | None = None,
        status: str | None = None,
        include_closed: bool = True,
    ) -> list[Task]:
        """Fetch tasks, optionally scoped to a project and status.

        Args:
            project_id: Only tasks of this project when given
            status: Only tasks with this status when given
            include_closed: Include done tasks

        Returns:
            Tasks in server order
        """
        params: dict[str, Any] = {"per_page": TASKS_PER_PAGE}
        if project_id:
            params["project_id"] = project_id
        if status:
            params["status"] = status
        if include_closed:
            params["include_closed"] = "true"

        payload = self._get("/api/tasks", params=params).json()
        items = payload.get("tasks", []) if isinstance(payload, dict) else payload
        return [Task.from_dict(item) for item in items or ()]

    def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        """Apply a partial update and return the server's copy of the task."""
        payload = self._request("PUT", f"/api/tasks/{task_id}", json=fields).json()
        if isinstance(payload, dict) and isinstance(payload.get("task"), dict):
            payload = payload["task"]
        return Task.from_dict(payload)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")

    def list_projects(self) -> list[Project]:
        payload = self._get("/api/projects").json()
        items = payload.get("projects", []) if isinstance(payload, dict) else payload
        return [Project.from_dict(item) for item in items or ()]

    def health_check(self) -> None:
        """Raise unless the server answers the health endpoint."""
        self._get("/api/health")
