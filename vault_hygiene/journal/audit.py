"""
Audit Log — append-only journal of vault events.

Security Note:
    Messages name items by title only; never include passwords.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from ..conf import AUDIT_COLLECTION
from ..models import AuditEvent, AuditType, utcnow
from ..storage import Storage

logger = logging.getLogger("vault_hygiene.journal")


def format_time(moment: datetime) -> str:
    """Locale-formatted local time and date, e.g. ``14:03:11 - 10/19/26``."""
    local = moment.astimezone()
    return f"{local.strftime('%X')} - {local.strftime('%x')}"


class AuditLog:
    """Journal over the ``audit`` collection.

    Writes append a new event; nothing is ever rewritten. Reads return
    events newest first.
    """

    def __init__(self, storage: Storage):
        self._storage = storage

    async def add_log(
        self,
        type: Union[AuditType, str],
        msg: str,
        now: Optional[datetime] = None,
    ) -> AuditEvent:
        """Append an event.

        Args:
            type: ``create``, ``delete`` or ``warning``.
            msg: Human-readable message.
            now: Event time; defaults to the current time.

        Returns:
            The stored event.

        Raises:
            ValueError: If type is not a known event type.
        """
        moment = now or utcnow()
        event = AuditEvent(
            timestamp=moment,
            type=AuditType(type),
            msg=msg,
            time_string=format_time(moment),
        )
        await self._storage.put(AUDIT_COLLECTION, event.model_dump())
        logger.debug("Audit event recorded: type=%s", event.type.value)
        return event

    async def events(self) -> list[AuditEvent]:
        """All events, newest first."""
        rows = await self._storage.get_all(AUDIT_COLLECTION)
        rows.sort(key=lambda row: row.get("id", 0), reverse=True)
        events = [AuditEvent.model_validate(row) for row in rows]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events

    async def clear(self) -> AuditEvent:
        """Drop every event, then record that the log was cleared."""
        await self._storage.clear(AUDIT_COLLECTION)
        logger.info("Audit log cleared")
        return await self.add_log(AuditType.WARNING, "Audit log cleared by user")
