"""Text rendering for tool responses."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from solidtime_mcp.models import Client, Member, Project, Task, TimeEntry


CHARACTER_LIMIT = 25000  # Maximum response size in characters


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


def _parse_instant(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def entry_duration_ms(entry: TimeEntry, now: Optional[datetime] = None) -> int:
    """Elapsed milliseconds; running entries are measured up to `now`."""
    start = _parse_instant(entry.start)
    if entry.end:
        end = _parse_instant(entry.end)
    else:
        end = now or datetime.now(timezone.utc)
    return int((end - start).total_seconds() * 1000)


def format_duration(ms: int) -> str:
    """
    Convert a duration in milliseconds to "Xh Ym".

    Args:
        ms: Duration in milliseconds

    Returns:
        Formatted time string (e.g., "2h 30m", "0h 5m")
    """
    ms = max(ms, 0)
    hours = ms // 3600000
    minutes = (ms % 3600000) // 60000
    return f"{hours}h {minutes}m"


def format_seconds(seconds: Optional[int]) -> str:
    if seconds is None:
        return "Not set"
    return format_duration(seconds * 1000)


def truncate_response(content: str, items_count: int) -> str:
    """
    Truncate response if it exceeds CHARACTER_LIMIT with helpful guidance.

    Args:
        content: Response content to check
        items_count: Number of items in the response

    Returns:
        Original content or truncated content with guidance
    """
    if len(content) <= CHARACTER_LIMIT:
        return content

    truncated = content[:CHARACTER_LIMIT]
    last_newline = truncated.rfind('\n')
    if last_newline > 0:
        truncated = truncated[:last_newline]

    truncated += (
        f"\n\n---\n**Response Truncated**: Showing partial results of {items_count} items "
        f"due to size limit ({len(content):,} characters). To see more:\n"
        f"- Use pagination with `limit` and `offset` parameters\n"
        f"- Add filters to narrow down results\n"
    )
    return truncated


def _render(lines: List[str], payload: Dict[str, Any], count: int, fmt: ResponseFormat) -> str:
    if fmt == ResponseFormat.JSON:
        result = json.dumps(payload, indent=2)
    else:
        result = "\n".join(lines)
    return truncate_response(result, count)


# ----------------------------------------------------------------------------
# Per-resource renderers
# ----------------------------------------------------------------------------

def render_time_entries(
    entries: Sequence[TimeEntry],
    fmt: ResponseFormat = ResponseFormat.MARKDOWN,
    now: Optional[datetime] = None,
) -> str:
    if not entries:
        return "No time entries found"

    lines = []
    rows = []
    for entry in entries:
        duration = format_duration(entry_duration_ms(entry, now))
        status = "active" if entry.is_active else "completed"
        lines.append(
            f"• {entry.description or '(No description)'} - {duration} ({status})"
        )
        rows.append({
            "id": entry.id,
            "description": entry.description,
            "start": entry.start,
            "end": entry.end,
            "duration": duration,
            "active": entry.is_active,
            "project_id": entry.project_id,
            "task_id": entry.task_id,
            "tags": entry.tags,
            "billable": entry.billable,
            "member_id": entry.member_id,
        })

    return _render(lines, {"total": len(rows), "time_entries": rows}, len(rows), fmt)


def render_projects(projects: Sequence[Project], fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    if not projects:
        return "No projects found"

    lines = [
        f"• {p.name} (ID: {p.id}){' [ARCHIVED]' if p.is_archived else ''}"
        for p in projects
    ]
    payload = {
        "total": len(projects),
        "projects": [
            {
                "id": p.id,
                "name": p.name,
                "color": p.color,
                "client_id": p.client_id,
                "billable": p.billable,
                "is_archived": p.is_archived,
                "estimated_time": format_seconds(p.estimated_time) if p.estimated_time else None,
                "spent_time": format_seconds(p.spent_time) if p.spent_time else None,
            }
            for p in projects
        ],
    }
    return _render(lines, payload, len(projects), fmt)


def render_clients(clients: Sequence[Client], fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    if not clients:
        return "No clients found"

    lines = [
        f"• {c.name} (ID: {c.id}){' [ARCHIVED]' if c.archived else ''}"
        for c in clients
    ]
    payload = {
        "total": len(clients),
        "clients": [
            {"id": c.id, "name": c.name, "archived": c.archived}
            for c in clients
        ],
    }
    return _render(lines, payload, len(clients), fmt)


def render_tasks(tasks: Sequence[Task], fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    if not tasks:
        return "No tasks found"

    lines = [f"• {t.name} (ID: {t.id}){' ✓' if t.is_done else ''}" for t in tasks]
    payload = {
        "total": len(tasks),
        "tasks": [
            {"id": t.id, "name": t.name, "project_id": t.project_id, "is_done": t.is_done}
            for t in tasks
        ],
    }
    return _render(lines, payload, len(tasks), fmt)


def render_members(members: Sequence[Member], fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    if not members:
        return "No members found"

    lines = [
        f"• {m.name or '(No name)'} (ID: {m.id}){f' - {m.email}' if m.email else ''}"
        for m in members
    ]
    payload = {
        "total": len(members),
        "members": [
            {"id": m.id, "name": m.name, "email": m.email, "role": m.role}
            for m in members
        ],
    }
    return _render(lines, payload, len(members), fmt)
