"""Pytest configuration and fixtures.

The Solidtime API is replaced by FakeSolidtime, an in-memory store served
through httpx.MockTransport, so every test exercises the real client code
without touching the network.
"""
import asyncio
import itertools
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import pytest

from solidtime_mcp.client import SolidtimeClient
from solidtime_mcp.config import SolidtimeConfig
from solidtime_mcp.timer import ActiveTimerController


BASE_URL = "http://solidtime.test"
API_TOKEN = "test-token-123"
ORG_ID = "org-1"
MEMBER_ID = "m1"
OTHER_MEMBER_ID = "m2"
ORG_PREFIX = f"/api/v1/organizations/{ORG_ID}"


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


class FakeSolidtime:
    """Just enough of the Solidtime API to drive the client."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.requests: List[httpx.Request] = []
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.projects: Dict[str, Dict[str, Any]] = {}
        self.clients: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.members: List[Dict[str, Any]] = [
            {"id": MEMBER_ID, "name": "Ada Lovelace", "email": "ada@example.com", "role": "owner"},
            {"id": OTHER_MEMBER_ID, "name": "Grace Hopper", "email": None, "role": "employee"},
        ]
        self.organization = {"id": ORG_ID, "name": "Analytical Engines", "currency": "EUR"}

        # Hold active-entry queries until this many have arrived, forcing
        # concurrent starts to interleave.
        self.hold_active_queries = 0
        self._held = 0
        self._release = asyncio.Event()

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_entry(self, member_id: str = MEMBER_ID, start: str = "2025-09-25T08:00:00Z",
                  end: Optional[str] = None, description: Optional[str] = None) -> Dict[str, Any]:
        entry = {
            "id": self.next_id("te"),
            "description": description,
            "start": start,
            "end": end,
            "project_id": None,
            "task_id": None,
            "tags": [],
            "billable": False,
            "user_id": "u-" + member_id,
            "member_id": member_id,
            "organization_id": ORG_ID,
        }
        self.entries[entry["id"]] = entry
        return entry

    def active_entries(self, member_id: str = MEMBER_ID) -> List[Dict[str, Any]]:
        return [
            e for e in self.entries.values()
            if e["member_id"] == member_id and e["end"] is None
        ]

    def writes(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.headers.get("Authorization") != f"Bearer {API_TOKEN}":
            return httpx.Response(401, json={"message": "Unauthenticated."})

        path = request.url.path
        if not path.startswith(ORG_PREFIX):
            return httpx.Response(403, json={"message": "This action is unauthorized."})

        parts = [p for p in path[len(ORG_PREFIX):].split("/") if p]
        body = json.loads(request.content) if request.content else {}
        method = request.method

        if not parts:
            return httpx.Response(200, json={"data": self.organization})

        resource = parts[0]
        if resource == "time-entries":
            return await self._time_entries(method, parts[1:], body, request.url.params)
        if resource == "projects":
            if len(parts) >= 3 and parts[2] == "tasks":
                return self._tasks(method, parts[1], parts[3:], body, request.url.params)
            return self._crud(self.projects, "proj", method, parts[1:], body)
        if resource == "clients":
            return self._crud(self.clients, "cl", method, parts[1:], body)
        if resource == "members":
            if parts[1:] == ["me"]:
                return httpx.Response(200, json={"data": self.members[0]})
            return httpx.Response(200, json={"data": self.members, "meta": {"total": len(self.members)}})

        return httpx.Response(404, json={"message": "Not found."})

    async def _time_entries(self, method, rest, body, params) -> httpx.Response:
        if not rest:
            if method == "GET":
                return await self._list_entries(params)
            if method == "POST":
                return self._create_entry(body)

        entry = self.entries.get(rest[0]) if rest else None
        if entry is None:
            return httpx.Response(404, json={"message": "Time entry not found."})
        if method == "GET":
            return httpx.Response(200, json={"data": entry})
        if method == "PUT":
            updated = {**entry, **body}
            if updated.get("end") and _parse(updated["end"]) < _parse(updated["start"]):
                return httpx.Response(422, json={"message": "The end must be after start."})
            self.entries[entry["id"]] = updated
            return httpx.Response(200, json={"data": updated})
        if method == "DELETE":
            del self.entries[entry["id"]]
            return httpx.Response(204)
        return httpx.Response(405, json={"message": "Method not allowed."})

    async def _list_entries(self, params) -> httpx.Response:
        entries = list(self.entries.values())
        for key in ("member_id", "project_id", "client_id", "task_id"):
            if key in params:
                entries = [e for e in entries if e.get(key) == params[key]]
        if params.get("active") == "true":
            entries = [e for e in entries if e["end"] is None]
        elif params.get("active") == "false":
            entries = [e for e in entries if e["end"] is not None]
        # Snapshot before any hold so interleaved callers see the same state
        entries = [dict(e) for e in entries]

        if params.get("active") == "true" and self.hold_active_queries:
            self._held += 1
            if self._held >= self.hold_active_queries:
                self._release.set()
            await self._release.wait()

        total = len(entries)
        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", 100))
        page = entries[offset:offset + limit]
        return httpx.Response(200, json={"data": page, "meta": {"total": total}, "links": {}})

    def _create_entry(self, body) -> httpx.Response:
        member_ids = {m["id"] for m in self.members}
        if body.get("member_id") not in member_ids:
            return httpx.Response(422, json={"message": "The selected member id is invalid."})
        if not body.get("start"):
            return httpx.Response(422, json={"message": "The start field is required."})
        if body.get("end") and _parse(body["end"]) < _parse(body["start"]):
            return httpx.Response(422, json={"message": "The end must be after start."})

        entry = self.add_entry(member_id=body["member_id"], start=body["start"], end=body.get("end"))
        for key in ("description", "project_id", "task_id", "billable"):
            if key in body:
                entry[key] = body[key]
        entry["tags"] = body.get("tags") or []
        return httpx.Response(201, json={"data": entry})

    def _crud(self, store, prefix, method, rest, body) -> httpx.Response:
        if not rest:
            if method == "GET":
                return httpx.Response(200, json={"data": list(store.values()), "meta": {}})
            if method == "POST":
                item = {"id": self.next_id(prefix), "is_archived": False, **body}
                store[item["id"]] = item
                return httpx.Response(201, json={"data": item})

        item = store.get(rest[0]) if rest else None
        if item is None:
            return httpx.Response(404, json={"message": "Not found."})
        if method == "GET":
            return httpx.Response(200, json={"data": item})
        if method == "PUT":
            item.update(body)
            return httpx.Response(200, json={"data": item})
        if method == "DELETE":
            del store[item["id"]]
            return httpx.Response(204)
        return httpx.Response(405, json={"message": "Method not allowed."})

    def _tasks(self, method, project_id, rest, body, params) -> httpx.Response:
        if project_id not in self.projects:
            return httpx.Response(404, json={"message": "Project not found."})
        if not rest and method == "GET":
            tasks = [t for t in self.tasks.values() if t["project_id"] == project_id]
            if "is_done" in params:
                tasks = [t for t in tasks if t["is_done"] == (params["is_done"] == "true")]
            return httpx.Response(200, json={"data": tasks, "meta": {}})
        if not rest and method == "POST":
            task = {"id": self.next_id("task"), "project_id": project_id, "is_done": False, **body}
            self.tasks[task["id"]] = task
            return httpx.Response(201, json={"data": task})
        task = self.tasks.get(rest[0]) if rest else None
        if task is None:
            return httpx.Response(404, json={"message": "Task not found."})
        task.update(body)
        return httpx.Response(200, json={"data": task})


def _fail_on_request(request: httpx.Request) -> httpx.Response:
    pytest.fail(f"Unexpected request: {request.method} {request.url}")


@pytest.fixture
def fake_api():
    return FakeSolidtime()


@pytest.fixture
def config():
    return SolidtimeConfig(
        base_url=BASE_URL,
        api_token=API_TOKEN,
        organization_id=ORG_ID,
        default_member_id=MEMBER_ID,
    )


@pytest.fixture
def config_without_default():
    return SolidtimeConfig(base_url=BASE_URL, api_token=API_TOKEN, organization_id=ORG_ID)


@pytest.fixture
def client(config, fake_api):
    return SolidtimeClient(config, transport=httpx.MockTransport(fake_api))


@pytest.fixture
def timer(client, config):
    return ActiveTimerController(client, config)


@pytest.fixture
def offline_transport():
    """A transport that fails the test if any request is made."""
    return httpx.MockTransport(_fail_on_request)
