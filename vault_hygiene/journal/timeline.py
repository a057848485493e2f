"""
Timeline Recorder — at most one health snapshot per local calendar day.
"""
import logging
from datetime import date, datetime
from typing import Optional

from ..conf import TIMELINE_COLLECTION
from ..models import TimelineSnapshot, utcnow
from ..storage import Storage

logger = logging.getLogger("vault_hygiene.journal")


def local_day(moment: datetime) -> date:
    """Calendar day of ``moment`` in the local timezone."""
    return moment.astimezone().date()


class TimelineRecorder:
    """Daily history of the vault health metrics."""

    def __init__(self, storage: Storage):
        self._storage = storage

    async def snapshots(self) -> list[TimelineSnapshot]:
        """All snapshots, oldest first."""
        rows = await self._storage.get_all(TIMELINE_COLLECTION)
        snapshots = [TimelineSnapshot.model_validate(row) for row in rows]
        snapshots.sort(key=lambda s: s.timestamp)
        return snapshots

    async def record_snapshot(
        self,
        score: int,
        weak_count: int,
        reuse_count: int,
        now: Optional[datetime] = None,
    ) -> Optional[TimelineSnapshot]:
        """Store today's snapshot unless one already exists.

        Args:
            score: Current health score.
            weak_count: Items labelled weak.
            reuse_count: Items in the reuse map.
            now: Reference time; defaults to the current time.

        Returns:
            The new snapshot, or None when today already has one.
        """
        moment = now or utcnow()
        today = local_day(moment)
        for existing in await self.snapshots():
            if local_day(existing.timestamp) == today:
                return None
        snapshot = TimelineSnapshot(
            timestamp=moment,
            health_score=score,
            weak_count=weak_count,
            reuse_count=reuse_count,
        )
        await self._storage.put(TIMELINE_COLLECTION, snapshot.model_dump())
        logger.debug("Timeline snapshot recorded: score=%d", score)
        return snapshot
