"""
Active-timer lifecycle for Solidtime members.

Solidtime itself does not stop a running entry when a new one is created, so
the controller keeps "at most one open entry per member" on a best-effort
basis: start closes the member's active entry before opening a new one.

The close and the create are two separate requests with no lock between
them. Two overlapping starts for the same member (or a start racing the web
UI) can both succeed and leave two open entries. Nothing is cached; every
decision is made from a fresh query.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional

from solidtime_mcp.client import SolidtimeClient
from solidtime_mcp.config import SolidtimeConfig
from solidtime_mcp.models import TimeEntry


logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_UTC_FRACTION = re.compile(r"\.\d+Z$")


class MemberRequiredError(ValueError):
    """No member ID was given and no default is configured."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render an aware datetime as the API's `Y-m-d\\TH:i:s\\Z` format."""
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def normalize_timestamp(value: str, local_tz: Optional[tzinfo] = None) -> str:
    """
    Convert a caller-supplied ISO 8601 timestamp to the API's UTC format.

    Values already ending in ``Z`` are kept as-is apart from dropping any
    fractional seconds. Values with an offset are converted to UTC. Values
    without any zone are read as local time (``local_tz``, or the process
    zone when None) and converted.

    Raises:
        ValueError: If the value is not an ISO 8601 timestamp
    """
    value = value.strip()
    if value.endswith("Z"):
        # Validate, but keep the caller's text
        _parse_iso(value[:-1] + "+00:00", value)
        return _UTC_FRACTION.sub("Z", value)

    moment = _parse_iso(value, value)
    if moment.tzinfo is None:
        if local_tz is not None:
            moment = moment.replace(tzinfo=local_tz)
        else:
            moment = moment.astimezone()
    return format_timestamp(moment.replace(microsecond=0))


def _parse_iso(text: str, original: str) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(
            f"Invalid timestamp '{original}'. Use ISO 8601, e.g. 2025-09-25T14:00:00Z"
        ) from None


class ActiveTimerController:
    """Start, stop and add time entries for organization members."""

    def __init__(
        self,
        client: SolidtimeClient,
        config: SolidtimeConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.config = config
        self.clock = clock

    def resolve_member(self, member_id: Optional[str] = None) -> str:
        """Explicit member ID, else the configured default."""
        resolved = member_id or self.config.default_member_id
        if not resolved:
            raise MemberRequiredError(
                "member_id is required or SOLIDTIME_DEFAULT_MEMBER_ID must be set"
            )
        return resolved

    async def ensure_no_active(self, member_id: str) -> Optional[TimeEntry]:
        """
        Close the member's running entry, if any.

        Only the first active entry in the API's order is closed; should the
        store ever hold several, the rest stay open.

        Returns:
            The closed entry, or None if nothing was running
        """
        page = await self.client.get_time_entries(member_id=member_id, active=True)
        if not page.data:
            return None

        active = page.data[0]
        stopped = await self.client.update_time_entry(
            active.id, end=format_timestamp(self.clock())
        )
        logger.info("Stopped active time entry %s for member %s", stopped.id, member_id)
        return stopped

    async def start(
        self,
        member_id: Optional[str] = None,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        billable: bool = False,
    ) -> TimeEntry:
        """Stop whatever is running for the member, then open a new entry."""
        member = self.resolve_member(member_id)

        await self.ensure_no_active(member)

        entry = await self.client.create_time_entry(
            member_id=member,
            start=format_timestamp(self.clock()),
            description=description,
            project_id=project_id,
            task_id=task_id,
            tags=tags,
            billable=billable,
        )
        logger.info("Started time entry %s for member %s", entry.id, member)
        return entry

    async def stop(self, member_id: Optional[str] = None) -> Optional[TimeEntry]:
        member = self.resolve_member(member_id)
        return await self.ensure_no_active(member)

    async def add_completed(
        self,
        start: str,
        end: str,
        member_id: str,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        billable: bool = False,
        local_tz: Optional[tzinfo] = None,
    ) -> TimeEntry:
        """Record a finished interval. Does not touch the running timer."""
        if not member_id:
            raise MemberRequiredError(
                "member_id is required. Use solidtime_list_members to find valid member IDs."
            )

        return await self.client.create_time_entry(
            member_id=member_id,
            start=normalize_timestamp(start, local_tz),
            end=normalize_timestamp(end, local_tz),
            description=description,
            project_id=project_id,
            task_id=task_id,
            tags=tags,
            billable=billable,
        )
