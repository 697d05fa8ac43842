"""
Audit trail of settings changes and connection tests.
Entries go to the admin_audit table next to the settings row.
"""

from typing import Any

from opentelemetry import trace
from sqlalchemy.orm import Session

from app.logging_config import get_structured_logger
from app.models import AdminAudit
from app.services.base import BaseService

logger = get_structured_logger(__name__)

SENSITIVE_FIELDS = ("password", "token", "secret", "key", "authorization")
REDACTED_VALUE = "[REDACTED]"


def redact_sensitive(value: Any) -> Any:
    """Copy of ``value`` with every sensitive-looking dict entry replaced."""
    if isinstance(value, dict):
        return {
            k: REDACTED_VALUE
            if any(field in str(k).lower() for field in SENSITIVE_FIELDS)
            else redact_sensitive(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact_sensitive(item) for item in value]
    return value


class AuditService(BaseService):
    """Writes and reads admin_audit entries."""

    def __init__(self):
        super().__init__("audit")

    def log_operation(
        self,
        db: Session,
        actor_subject: str | None,
        operation: str,
        target_type: str | None = None,
        target_id: str | None = None,
        request_payload: dict[str, Any] | None = None,
        result: dict[str, Any] | None = None,
        success: bool = True,
    ) -> AdminAudit:
        """Record one operation. The payload is redacted before it is stored."""
        with self.trace_operation(
            "log_operation",
            {
                "audit.actor_subject": actor_subject,
                "audit.operation": operation,
                "audit.success": success,
            },
        ) as span:
            entry = AdminAudit(
                actor_subject=actor_subject,
                operation=operation,
                target_type=target_type,
                target_id=target_id,
                request_payload=redact_sensitive(request_payload) if request_payload else None,
                result=result,
                success=success,
            )
            try:
                db.add(entry)
                db.commit()
            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                db.rollback()
                raise

            db.refresh(entry)
            span.set_attribute("audit.entry_id", entry.id)
            return entry

    def safe_log_operation(self, db: Session, **kwargs: Any) -> bool:
        """
        Same as log_operation, but a failing audit write is only logged.
        Returns whether the entry was written.
        """
        try:
            self.log_operation(db=db, **kwargs)
        except Exception as e:
            logger.log_operation(
                level=40,  # ERROR
                message=f"Audit logging failed: {e}",
                operation="audit_log_failed",
                actor_subject=kwargs.get("actor_subject"),
                extra_fields={
                    "audit_operation": kwargs.get("operation"),
                    "exception_type": type(e).__name__,
                },
            )
            return False
        return True
