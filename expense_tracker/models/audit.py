"""
Audit Models for Expense Tracker

Every significant action in the client is logged for audit purposes.
This provides:
1. Traceability of what the user did and what the server answered
2. Debugging information when a request fails
3. A record of which recurring expenses were applied and when

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


MAX_DESCRIPTION_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every operation of the session, sync and mutation layers has its own type.
    """
    # Session
    SESSION_RESTORED = "session_restored"
    SESSION_RESTORE_FAILED = "session_restore_failed"
    USER_LOGGED_IN = "user_logged_in"
    USER_REGISTERED = "user_registered"
    AUTH_FAILED = "auth_failed"
    USER_LOGGED_OUT = "user_logged_out"

    # Synchronization
    DATA_SYNCED = "data_synced"
    SYNC_FAILED = "sync_failed"

    # Mutations
    EXPENSE_CREATED = "expense_created"
    EXPENSE_DELETED = "expense_deleted"
    RECURRING_EXPENSE_CREATED = "recurring_expense_created"
    RECURRING_EXPENSE_APPLIED = "recurring_expense_applied"
    RECURRING_EXPENSE_DELETED = "recurring_expense_deleted"
    RECURRING_APPLY_BLOCKED = "recurring_apply_blocked"
    MUTATION_FAILED = "mutation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'recurring_expense', 'user')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Server id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., login followed by sync)"
    )

    description: str = Field(
        ...,
        max_length=MAX_DESCRIPTION_LENGTH,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    @field_validator('description', mode='before')
    @classmethod
    def clip_description(cls, v: Any) -> Any:
        """Long text is cut, never rejected; an event must always build."""
        if isinstance(v, str) and len(v) > MAX_DESCRIPTION_LENGTH:
            return v[:MAX_DESCRIPTION_LENGTH - 3] + "..."
        return v

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, name, amount, correlation_id)
        event = AuditEventBuilder.mutation_failed("delete_expense", message, correlation_id)
    """

    @staticmethod
    def session_restored(user_id: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="user",
            entity_id=str(user_id),
            correlation_id=correlation_id,
            description="Stored session token accepted by the server",
        )

    @staticmethod
    def session_restore_failed(error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORE_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Stored session could not be restored; token cleared",
            error_message=error_message,
        )

    @staticmethod
    def user_authenticated(
        user_id: int,
        email: str,
        registered: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.USER_REGISTERED
            if registered
            else AuditEventType.USER_LOGGED_IN
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="user",
            entity_id=str(user_id),
            correlation_id=correlation_id,
            description="User registered" if registered else "User logged in",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(
        mode: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Authentication failed ({mode})",
            details={"mode": mode},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(user_id: Optional[int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            entity_type="user",
            entity_id=str(user_id) if user_id is not None else None,
            description="User logged out; local session cleared",
            is_user_action=True,
        )

    @staticmethod
    def data_synced(
        expense_count: int,
        recurring_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SYNCED,
            correlation_id=correlation_id,
            description=(
                f"Synchronized {expense_count} expenses and "
                f"{recurring_count} recurring expenses"
            ),
            details={
                "expense_count": expense_count,
                "recurring_count": recurring_count,
            },
        )

    @staticmethod
    def sync_failed(error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Synchronization with the server failed",
            error_message=error_message,
        )

    @staticmethod
    def expense_created(
        expense_id: int,
        name: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description="Expense created",
            details={"name": name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: int,
        released_recurring_ids: list[int],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description="Expense deleted",
            details={"released_recurring_ids": released_recurring_ids},
            is_user_action=True,
        )

    @staticmethod
    def recurring_expense_created(
        recurring_id: int,
        name: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_EXPENSE_CREATED,
            entity_type="recurring_expense",
            entity_id=str(recurring_id),
            correlation_id=correlation_id,
            description="Recurring expense created",
            details={"name": name, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def recurring_expense_applied(
        recurring_id: int,
        expense_id: Optional[int],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_EXPENSE_APPLIED,
            entity_type="recurring_expense",
            entity_id=str(recurring_id),
            correlation_id=correlation_id,
            description="Recurring expense applied for the current month",
            details={"expense_id": expense_id},
            is_user_action=True,
        )

    @staticmethod
    def recurring_apply_blocked(
        recurring_id: int,
        last_applied_at: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_APPLY_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="recurring_expense",
            entity_id=str(recurring_id),
            correlation_id=correlation_id,
            description="Recurring expense already applied this month; request not sent",
            details={"last_applied_at": last_applied_at},
            is_user_action=True,
        )

    @staticmethod
    def recurring_expense_deleted(recurring_id: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_EXPENSE_DELETED,
            entity_type="recurring_expense",
            entity_id=str(recurring_id),
            correlation_id=correlation_id,
            description="Recurring expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        operation: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_id=str(entity_id) if entity_id is not None else None,
            correlation_id=correlation_id,
            description=f"Operation failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
