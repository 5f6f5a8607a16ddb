"""
Audit trail for every action the agent takes on a fax file.

Each event carries a severity and a numeric category (the event ID operators
filter on). Events go to the ``faxagent.audit`` logger, which ``setup_logging``
wires to its own rotating audit file, and a bounded in-memory history backs
the status API.
"""
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Deque, List, Optional

AUDIT_LOGGER_NAME = "faxagent.audit"


class AuditCategory(IntEnum):
    """Event IDs, stable across releases."""

    CONFIG = 0
    RENAMED = 1
    CACHED = 2
    DELETED = 3
    ERROR = 4

    @property
    def label(self) -> str:
        return self.name.title()


class AuditSeverity(str, Enum):
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"


_LOG_LEVELS = {
    AuditSeverity.INFORMATION: logging.INFO,
    AuditSeverity.WARNING: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
}


@dataclass(frozen=True, kw_only=True)
class AuditEvent:
    """
    A single recorded action.

    Attributes:
        message: Human readable description, including sender/receiver text.
        severity: Information, Warning or Error.
        category: Numeric event category.
        event_id: Unique identifier for the event instance.
        timestamp: UTC time the event was recorded.
    """

    message: str
    severity: AuditSeverity
    category: AuditCategory
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditLogger:
    def __init__(self, history_size: int = 500, logger_name: str = AUDIT_LOGGER_NAME):
        self._logger = logging.getLogger(logger_name)
        self._history: Deque[AuditEvent] = deque(maxlen=history_size)

    def record(
        self, message: str, severity: AuditSeverity, category: AuditCategory
    ) -> AuditEvent:
        event = AuditEvent(message=message, severity=severity, category=category)
        self._history.append(event)
        self._logger.log(
            _LOG_LEVELS[severity],
            message,
            extra={
                "audit_category": int(category),
                "audit_category_name": category.label,
                "audit_event_id": event.event_id,
            },
        )
        return event

    def recent(self, limit: Optional[int] = None) -> List[AuditEvent]:
        """Newest events last. ``limit`` keeps only the newest N."""
        events = list(self._history)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def events_in_category(self, category: AuditCategory) -> List[AuditEvent]:
        return [event for event in self._history if event.category == category]
