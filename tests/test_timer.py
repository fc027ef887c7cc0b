"""Tests for ActiveTimerController and timestamp normalization."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from solidtime_mcp.client import SolidtimeAPIError, SolidtimeClient
from solidtime_mcp.timer import (
    ActiveTimerController,
    MemberRequiredError,
    format_timestamp,
    normalize_timestamp,
)

from conftest import MEMBER_ID, OTHER_MEMBER_ID


def _parse(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


class TestNormalizeTimestamp:
    """Tests for converting caller timestamps to the API format."""

    def test_utc_marked_value_is_kept_verbatim(self):
        assert normalize_timestamp("2025-09-25T14:00:00Z") == "2025-09-25T14:00:00Z"

    def test_fractional_seconds_are_stripped(self):
        assert normalize_timestamp("2025-09-25T14:00:00.000Z") == "2025-09-25T14:00:00Z"
        assert normalize_timestamp("2025-09-25T14:00:00.123456Z") == "2025-09-25T14:00:00Z"

    def test_naive_value_in_utc_zone(self):
        assert normalize_timestamp("2025-09-25T14:00:00", timezone.utc) == "2025-09-25T14:00:00Z"

    def test_naive_value_is_read_as_local_time(self):
        berlin_summer = timezone(timedelta(hours=2))
        assert normalize_timestamp("2025-09-25T14:00:00", berlin_summer) == "2025-09-25T12:00:00Z"

    def test_naive_value_uses_process_zone_by_default(self):
        expected = datetime(2025, 9, 25, 14, 0).astimezone().astimezone(timezone.utc)
        assert normalize_timestamp("2025-09-25T14:00:00") == expected.strftime("%Y-%m-%dT%H:%M:%SZ")

    def test_offset_value_is_converted(self):
        assert normalize_timestamp("2025-09-25T16:30:00+02:00") == "2025-09-25T14:30:00Z"

    def test_naive_value_with_fraction(self):
        assert normalize_timestamp("2025-09-25T14:00:00.500", timezone.utc) == "2025-09-25T14:00:00Z"

    @pytest.mark.parametrize("value", ["yesterday", "2025-13-01T00:00:00Z", ""])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError, match="Invalid timestamp"):
            normalize_timestamp(value)


def test_format_timestamp_converts_to_utc():
    moment = datetime(2025, 9, 25, 16, 0, 30, 999999, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(moment) == "2025-09-25T14:00:30Z"


class TestResolveMember:

    def test_explicit_member_wins(self, timer):
        assert timer.resolve_member(OTHER_MEMBER_ID) == OTHER_MEMBER_ID

    def test_falls_back_to_configured_default(self, timer):
        assert timer.resolve_member(None) == MEMBER_ID
        assert timer.resolve_member("") == MEMBER_ID

    def test_missing_member_raises(self, config_without_default, offline_transport):
        controller = ActiveTimerController(
            SolidtimeClient(config_without_default, transport=offline_transport),
            config_without_default,
        )
        with pytest.raises(MemberRequiredError, match="member_id is required"):
            controller.resolve_member(None)


@pytest.mark.asyncio
class TestStart:
    """Tests for starting timers."""

    async def test_start_without_active_entry(self, timer, fake_api):
        before = datetime.now(timezone.utc).replace(microsecond=0)

        entry = await timer.start(description="Writing docs", billable=True)

        after = datetime.now(timezone.utc)
        assert entry.end is None
        assert entry.member_id == MEMBER_ID
        assert entry.description == "Writing docs"
        assert entry.billable is True
        assert before <= _parse(entry.start) <= after
        assert len(fake_api.entries) == 1
        # One active query, one create, no update
        assert [r.method for r in fake_api.requests] == ["GET", "POST"]

    async def test_start_closes_existing_active_entry(self, timer, fake_api):
        running = fake_api.add_entry(start="2025-09-25T08:00:00Z", description="Old work")

        entry = await timer.start(description="New work")

        closed = fake_api.entries[running["id"]]
        assert closed["end"] is not None
        assert _parse(closed["end"]) >= _parse(closed["start"])
        assert entry.id != running["id"]
        assert entry.end is None
        assert [e["id"] for e in fake_api.active_entries()] == [entry.id]
        assert [r.method for r in fake_api.requests] == ["GET", "PUT", "POST"]

    async def test_start_passes_links_and_tags(self, timer, fake_api):
        entry = await timer.start(
            member_id=OTHER_MEMBER_ID,
            project_id="proj-9",
            task_id="task-9",
            tags=["tag-a", "tag-b"],
        )

        assert entry.member_id == OTHER_MEMBER_ID
        assert entry.project_id == "proj-9"
        assert entry.task_id == "task-9"
        assert entry.tags == ["tag-a", "tag-b"]

    async def test_start_only_touches_own_member(self, timer, fake_api):
        other = fake_api.add_entry(member_id=OTHER_MEMBER_ID)

        await timer.start()

        assert fake_api.entries[other["id"]]["end"] is None

    async def test_start_without_member_makes_no_request(self, config_without_default, offline_transport):
        controller = ActiveTimerController(
            SolidtimeClient(config_without_default, transport=offline_transport),
            config_without_default,
        )

        with pytest.raises(MemberRequiredError):
            await controller.start(description="Nothing")

    async def test_concurrent_starts_can_leave_two_open_entries(self, timer, fake_api):
        """Close-then-create is not atomic; overlapping starts may both open entries."""
        fake_api.hold_active_queries = 2

        first, second = await asyncio.gather(
            timer.start(description="first"),
            timer.start(description="second"),
        )

        assert first.id != second.id
        active_ids = {e["id"] for e in fake_api.active_entries()}
        assert active_ids == {first.id, second.id}

    async def test_remote_error_propagates(self, timer, fake_api):
        with pytest.raises(SolidtimeAPIError) as exc_info:
            await timer.start(member_id="ghost")

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "The selected member id is invalid."


@pytest.mark.asyncio
class TestStop:
    """Tests for stopping timers."""

    async def test_stop_without_active_entry(self, timer, fake_api):
        result = await timer.stop()

        assert result is None
        assert fake_api.writes() == []

    async def test_stop_closes_active_entry(self, timer, fake_api):
        running = fake_api.add_entry(start="2025-09-25T08:00:00Z")

        stopped = await timer.stop()

        assert stopped is not None
        assert stopped.id == running["id"]
        assert stopped.end is not None
        assert _parse(stopped.end) >= _parse(stopped.start)
        assert fake_api.active_entries() == []

    async def test_second_stop_finds_nothing(self, timer, fake_api):
        fake_api.add_entry()

        assert await timer.stop() is not None
        assert await timer.stop() is None

    async def test_stop_uses_injected_clock(self, client, config, fake_api):
        fixed = datetime(2025, 9, 25, 10, 15, 0, 123000, tzinfo=timezone.utc)
        controller = ActiveTimerController(client, config, clock=lambda: fixed)
        fake_api.add_entry(start="2025-09-25T08:00:00Z")

        stopped = await controller.stop()

        assert stopped.end == "2025-09-25T10:15:00Z"

    async def test_only_first_active_entry_is_closed(self, timer, fake_api):
        first = fake_api.add_entry(start="2025-09-25T08:00:00Z")
        second = fake_api.add_entry(start="2025-09-25T09:00:00Z")

        stopped = await timer.stop()

        assert stopped.id == first["id"]
        assert fake_api.entries[second["id"]]["end"] is None

    async def test_stop_without_member_makes_no_request(self, config_without_default, offline_transport):
        controller = ActiveTimerController(
            SolidtimeClient(config_without_default, transport=offline_transport),
            config_without_default,
        )

        with pytest.raises(MemberRequiredError):
            await controller.stop()

    async def test_stop_for_explicit_member(self, timer, fake_api):
        mine = fake_api.add_entry(member_id=MEMBER_ID)
        theirs = fake_api.add_entry(member_id=OTHER_MEMBER_ID)

        stopped = await timer.stop(OTHER_MEMBER_ID)

        assert stopped.id == theirs["id"]
        assert fake_api.entries[mine["id"]]["end"] is None


@pytest.mark.asyncio
class TestAddCompleted:
    """Tests for recording finished entries."""

    async def test_utc_values_are_stored_verbatim(self, timer, fake_api):
        entry = await timer.add_completed(
            start="2025-09-25T14:00:00Z",
            end="2025-09-25T16:00:00Z",
            member_id="m1",
        )

        assert entry.start == "2025-09-25T14:00:00Z"
        assert entry.end == "2025-09-25T16:00:00Z"
        assert entry.billable is False

    async def test_naive_start_is_converted_from_local_zone(self, timer, fake_api):
        entry = await timer.add_completed(
            start="2025-09-25T14:00:00",
            end="2025-09-25T16:00:00Z",
            member_id="m1",
            local_tz=timezone.utc,
        )

        assert entry.start == "2025-09-25T14:00:00Z"
        assert entry.end == "2025-09-25T16:00:00Z"

    async def test_does_not_touch_running_timer(self, timer, fake_api):
        running = fake_api.add_entry(start="2025-09-25T17:00:00Z")

        await timer.add_completed(
            start="2025-09-25T14:00:00Z",
            end="2025-09-25T16:00:00Z",
            member_id=MEMBER_ID,
            description="Meeting",
            project_id="proj-1",
            tags=["t1"],
            billable=True,
        )

        assert fake_api.entries[running["id"]]["end"] is None
        assert [r.method for r in fake_api.requests] == ["POST"]

    async def test_requires_member(self, timer, fake_api):
        with pytest.raises(MemberRequiredError):
            await timer.add_completed(
                start="2025-09-25T14:00:00Z",
                end="2025-09-25T16:00:00Z",
                member_id="",
            )
        assert fake_api.requests == []

    async def test_end_before_start_is_rejected_by_api(self, timer):
        with pytest.raises(SolidtimeAPIError, match="The end must be after start."):
            await timer.add_completed(
                start="2025-09-25T16:00:00Z",
                end="2025-09-25T14:00:00Z",
                member_id=MEMBER_ID,
            )

    async def test_bad_timestamp_fails_before_request(self, timer, fake_api):
        with pytest.raises(ValueError):
            await timer.add_completed(start="soon", end="later", member_id=MEMBER_ID)
        assert fake_api.requests == []
