"""
Solidtime REST API client.

A thin async wrapper over the organization-scoped endpoints of the Solidtime
API (``{base_url}/api/v1/organizations/{organization_id}/...``). Every method
is exactly one HTTP request; there is no caching and no retry. Non-success
responses raise SolidtimeAPIError with the upstream message untouched.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from solidtime_mcp.config import SolidtimeConfig
from solidtime_mcp.models import (
    Client,
    Member,
    Organization,
    Page,
    Project,
    Task,
    TimeEntry,
)


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class SolidtimeAPIError(Exception):
    """Non-success response from the Solidtime API."""

    def __init__(self, status_code: int, message: str, method: str = "", url: str = ""):
        self.status_code = status_code
        self.message = message
        self.method = method
        self.url = url
        super().__init__(f"HTTP {status_code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SolidtimeAPIError":
        """Pull the API's own error message out of a failed response."""
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
        if not message:
            message = response.text.strip() or response.reason_phrase or "Request failed"
        return cls(
            response.status_code,
            message,
            method=response.request.method,
            url=str(response.request.url),
        )


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop unset filters; send booleans the way the API expects them."""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned or None


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class SolidtimeClient:
    """Client for a single Solidtime organization."""

    def __init__(
        self,
        config: SolidtimeConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.config = config
        self.organization_id = config.organization_id
        self.timeout = timeout
        self._transport = transport
        self._org_url = f"{config.api_url}/organizations/{config.organization_id}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str = "",
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send one request relative to the organization URL.

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            SolidtimeAPIError: For non-2xx responses
            httpx.HTTPError: For transport failures (timeouts, refused connections)
        """
        url = f"{self._org_url}{path}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.request(
                method,
                url,
                headers=self._headers(),
                json=data,
                params=_clean_params(params),
            )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = SolidtimeAPIError.from_response(e.response)
            logger.warning("%s %s failed: %s", method, url, error)
            raise error from e

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _get_page(self, path: str, model: type, params: Optional[Dict[str, Any]] = None) -> Page:
        body = await self._request("GET", path, params=params) or {}
        return Page(
            data=[model.model_validate(item) for item in body.get("data") or []],
            meta=body.get("meta") or {},
            links=body.get("links") or {},
        )

    async def _get_one(self, method: str, path: str, model: type, data: Optional[Dict[str, Any]] = None):
        body = await self._request(method, path, data=data)
        return model.model_validate(body["data"])

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------

    async def create_time_entry(
        self,
        member_id: str,
        start: str,
        end: Optional[str] = None,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        billable: Optional[bool] = None,
    ) -> TimeEntry:
        payload = _drop_none({
            "member_id": member_id,
            "start": start,
            "end": end,
            "description": description,
            "project_id": project_id,
            "task_id": task_id,
            "tags": tags,
            "billable": billable,
        })
        logger.debug("Creating time entry with data: %s", json.dumps(payload, indent=2))
        return await self._get_one("POST", "/time-entries", TimeEntry, data=payload)

    async def update_time_entry(self, entry_id: str, **fields: Any) -> TimeEntry:
        """Partial update; only the given fields are sent."""
        return await self._get_one("PUT", f"/time-entries/{entry_id}", TimeEntry, data=fields)

    async def get_time_entries(
        self,
        member_id: Optional[str] = None,
        project_id: Optional[str] = None,
        client_id: Optional[str] = None,
        task_id: Optional[str] = None,
        active: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Page:
        """List time entries. `active=True` restricts to entries without an end."""
        params = {
            "member_id": member_id,
            "project_id": project_id,
            "client_id": client_id,
            "task_id": task_id,
            "active": active,
            "limit": limit,
            "offset": offset,
        }
        return await self._get_page("/time-entries", TimeEntry, params=params)

    async def get_time_entry(self, entry_id: str) -> TimeEntry:
        return await self._get_one("GET", f"/time-entries/{entry_id}", TimeEntry)

    async def delete_time_entry(self, entry_id: str) -> None:
        await self._request("DELETE", f"/time-entries/{entry_id}")

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_projects(self, is_archived: Optional[bool] = None) -> Page:
        return await self._get_page("/projects", Project, params={"is_archived": is_archived})

    async def get_project(self, project_id: str) -> Project:
        return await self._get_one("GET", f"/projects/{project_id}", Project)

    async def create_project(
        self,
        name: str,
        color: str,
        client_id: Optional[str] = None,
        billable: Optional[bool] = None,
        billable_rate: Optional[int] = None,
        is_public: Optional[bool] = None,
        estimated_time: Optional[int] = None,
    ) -> Project:
        payload = _drop_none({
            "name": name,
            "color": color,
            "client_id": client_id,
            "billable": billable,
            "billable_rate": billable_rate,
            "is_public": is_public,
            "estimated_time": estimated_time,
        })
        return await self._get_one("POST", "/projects", Project, data=payload)

    async def update_project(self, project_id: str, **fields: Any) -> Project:
        return await self._get_one("PUT", f"/projects/{project_id}", Project, data=fields)

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", f"/projects/{project_id}")

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    async def get_clients(self, is_archived: Optional[bool] = None) -> Page:
        return await self._get_page("/clients", Client, params={"is_archived": is_archived})

    async def get_client(self, client_id: str) -> Client:
        return await self._get_one("GET", f"/clients/{client_id}", Client)

    async def create_client(self, name: str) -> Client:
        return await self._get_one("POST", "/clients", Client, data={"name": name})

    async def update_client(
        self,
        client_id: str,
        name: Optional[str] = None,
        is_archived: Optional[bool] = None,
    ) -> Client:
        payload = _drop_none({"name": name, "is_archived": is_archived})
        return await self._get_one("PUT", f"/clients/{client_id}", Client, data=payload)

    async def delete_client(self, client_id: str) -> None:
        await self._request("DELETE", f"/clients/{client_id}")

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def get_tasks(self, project_id: str, is_done: Optional[bool] = None) -> Page:
        return await self._get_page(
            f"/projects/{project_id}/tasks", Task, params={"is_done": is_done}
        )

    async def create_task(self, project_id: str, name: str, is_done: Optional[bool] = None) -> Task:
        payload = _drop_none({"name": name, "is_done": is_done})
        return await self._get_one("POST", f"/projects/{project_id}/tasks", Task, data=payload)

    async def update_task(
        self,
        project_id: str,
        task_id: str,
        name: Optional[str] = None,
        is_done: Optional[bool] = None,
    ) -> Task:
        payload = _drop_none({"name": name, "is_done": is_done})
        return await self._get_one(
            "PUT", f"/projects/{project_id}/tasks/{task_id}", Task, data=payload
        )

    # ------------------------------------------------------------------
    # Organization & members
    # ------------------------------------------------------------------

    async def get_organization(self) -> Organization:
        return await self._get_one("GET", "", Organization)

    async def get_members(self) -> Page:
        return await self._get_page("/members", Member)

    async def get_current_member(self) -> Member:
        return await self._get_one("GET", "/members/me", Member)
