"""
Audit Trail

Each session, sync and mutation outcome is recorded as an AuditEvent:
- written as one JSON line through structlog (stdlib logging underneath)
- kept in a short in-memory history, newest last

Recording is async so flows can await it inline, and it never raises:
a broken log handler must not turn a saved expense into an error.
Events from one user action share a correlation id.
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

_LEVELS = {
    AuditSeverity.DEBUG: logging.DEBUG,
    AuditSeverity.INFO: logging.INFO,
    AuditSeverity.WARNING: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
    AuditSeverity.CRITICAL: logging.CRITICAL,
}


def configure_logging(level: str = "INFO") -> None:
    """Send JSON lines to stderr at the given level (e.g. from LOG_LEVEL)."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """Writes audit events to the log and remembers the latest ones."""

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("expense_tracker.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)

    @property
    def history(self) -> list[AuditEvent]:
        """Recent events, oldest first."""
        return list(self._history)

    def recent(self, event_type: Optional[AuditEventType] = None) -> list[AuditEvent]:
        """Recent events, newest first, optionally of one type."""
        return [
            event for event in reversed(self._history)
            if event_type is None or event.event_type == event_type
        ]

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False when the log write failed; the event is still kept
        in the history.
        """
        self._history.append(event)
        try:
            self._logger.log(_LEVELS[event.severity], "audit_event", **event.to_log_dict())
        except Exception:
            return False
        return True

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record a failure that has no dedicated event type."""
        await self.log(
            AuditEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                details=details,
                correlation_id=correlation_id,
            )
        )


def create_correlation_id() -> UUID:
    """New id for one user action (a login, a click on Aplicar, ...)."""
    return uuid4()
