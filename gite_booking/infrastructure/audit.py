"""Audit sink implementations"""
import logging
from typing import List, Optional

from gite_booking.domain.enums import AuditEntity
from gite_booking.domain.repositories import AuditSink
from gite_booking.domain.value_objects import AuditEvent

logger = logging.getLogger(__name__)


class InMemoryAuditSink(AuditSink):
    """Keeps audit events in memory, newest last"""

    def __init__(self):
        self._events: List[AuditEvent] = []

    async def record(self, event: AuditEvent) -> None:
        self._events.append(event)
        logger.debug(f"Audit {event.action} on {event.entity_type.value} {event.entity_id}")

    def recent(self, count: int = 50) -> List[AuditEvent]:
        """Most recent events first"""
        return list(reversed(self._events[-count:]))

    def for_entity(self, entity_type: AuditEntity, entity_id: Optional[str] = None) -> List[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and (entity_id is None or e.entity_id == str(entity_id))
        ]
