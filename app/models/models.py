"""
SQLAlchemy models for the Quality Report settings service.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

PLUGIN_CONFIGURATION_ROW_ID = 1


class PluginConfiguration(Base):
    """Plugin configuration table - a single row holding the global settings."""

    __tablename__ = "plugin_configuration"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=PLUGIN_CONFIGURATION_ROW_ID
    )
    application_url: Mapped[str | None] = mapped_column(String, nullable=True)
    api_url: Mapped[str | None] = mapped_column(String, nullable=True)
    resource_id: Mapped[str | None] = mapped_column(String, nullable=True)
    # Compact JWE, never the plaintext key
    sealed_api_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AdminAudit(Base):
    """Admin audit table - audit log for settings changes and connection tests."""

    __tablename__ = "admin_audit"

    __table_args__ = (
        Index("ix_admin_audit_actor_subject", "actor_subject"),
        Index("ix_admin_audit_operation", "operation"),
        Index("ix_admin_audit_timestamp", "timestamp"),
        Index("ix_admin_audit_operation_timestamp", "operation", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_subject: Mapped[str | None] = mapped_column(String, nullable=True)
    operation: Mapped[str] = mapped_column(String, nullable=False)
    target_type: Mapped[str | None] = mapped_column(String, nullable=True)
    target_id: Mapped[str | None] = mapped_column(String, nullable=True)
    request_payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    result: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    success: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
