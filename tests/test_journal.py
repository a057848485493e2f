"""
Tests for the audit log and the daily timeline recorder.
"""
from datetime import datetime, timedelta

import pytest

from vault_hygiene.journal import AuditLog, TimelineRecorder
from vault_hygiene.models import AuditType


def local(*args):
    """Aware datetime in the local timezone."""
    return datetime(*args).astimezone()


class TestAuditLog:
    """Append-only event journal."""

    async def test_add_log(self, storage):
        audit = AuditLog(storage)
        event = await audit.add_log("create", "Added password for Email")
        assert event.type is AuditType.CREATE
        assert event.msg == "Added password for Email"
        assert " - " in event.time_string

    async def test_newest_first(self, storage):
        audit = AuditLog(storage)
        start = local(2026, 10, 19, 9, 0)
        for minutes, msg in ((0, "first"), (5, "second"), (10, "third")):
            await audit.add_log(AuditType.WARNING, msg, now=start + timedelta(minutes=minutes))
        assert [e.msg for e in await audit.events()] == ["third", "second", "first"]

    async def test_writes_never_rewrite(self, storage):
        audit = AuditLog(storage)
        await audit.add_log("create", "one")
        await audit.add_log("delete", "two")
        rows = await storage.get_all("audit")
        assert [row["id"] for row in rows] == [1, 2]

    async def test_unknown_type(self, storage):
        with pytest.raises(ValueError):
            await AuditLog(storage).add_log("update", "nope")

    async def test_clear(self, storage):
        audit = AuditLog(storage)
        await audit.add_log("create", "one")
        await audit.clear()
        events = await audit.events()
        assert len(events) == 1
        assert events[0].type is AuditType.WARNING
        assert events[0].msg == "Audit log cleared by user"


class TestTimelineRecorder:
    """At most one snapshot per local day."""

    async def test_first_snapshot_recorded(self, storage):
        recorder = TimelineRecorder(storage)
        snapshot = await recorder.record_snapshot(80, 1, 2, now=local(2026, 10, 19, 10, 0))
        assert snapshot is not None
        assert snapshot.health_score == 80
        assert (await recorder.snapshots()) == [snapshot]

    async def test_same_day_is_noop(self, storage):
        recorder = TimelineRecorder(storage)
        await recorder.record_snapshot(80, 1, 2, now=local(2026, 10, 19, 10, 0))
        again = await recorder.record_snapshot(40, 5, 6, now=local(2026, 10, 19, 18, 30))
        assert again is None
        snapshots = await recorder.snapshots()
        assert len(snapshots) == 1
        assert snapshots[0].health_score == 80

    async def test_next_day_appends_in_order(self, storage):
        recorder = TimelineRecorder(storage)
        await recorder.record_snapshot(70, 2, 0, now=local(2026, 10, 20, 8, 0))
        await recorder.record_snapshot(60, 3, 0, now=local(2026, 10, 19, 23, 59))
        snapshots = await recorder.snapshots()
        assert [s.health_score for s in snapshots] == [60, 70]
        assert snapshots[0].timestamp < snapshots[1].timestamp
