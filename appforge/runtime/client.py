"""HTTP client for a running AppForge server."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class AppForgeClient:
    """
    Thin async client over the server's HTTP API.

    Usage:
        async with AppForgeClient("http://localhost:8000", user_id="user_123") as client:
            project = await client.create_project("build a counter")
            messages = await client.list_messages(project["id"])
    """

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        user_id: str | None = None,
        plan: str | None = None,
        timeout: float | httpx.Timeout | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.user_id = user_id
        self.plan = plan
        self._client = httpx.AsyncClient(
            base_url=self.api_url, timeout=timeout, transport=transport
        )

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        if self.plan:
            headers["X-User-Plan"] = self.plan
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._get_headers(), **kwargs)
        response.raise_for_status()
        return response.json()

    async def send_event(self, name: str, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Send an event and return the executions it started."""
        result = await self._request("POST", "/events", json={"name": name, "data": data})
        return result["executions"]

    async def get_execution(self, execution_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/executions/{execution_id}")

    async def create_project(self, value: str) -> dict[str, Any]:
        return await self._request("POST", "/projects", json={"value": value})

    async def list_projects(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/projects")

    async def get_project(self, project_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/projects/{project_id}")

    async def create_message(self, project_id: str, value: str) -> dict[str, Any]:
        return await self._request(
            "POST", "/messages", json={"value": value, "projectId": project_id}
        )

    async def list_messages(self, project_id: str) -> list[dict[str, Any]]:
        return await self._request("GET", "/messages", params={"projectId": project_id})

    async def usage_status(self) -> dict[str, Any] | None:
        return await self._request("GET", "/usage/status")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AppForgeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
