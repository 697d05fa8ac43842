"""
SQLAlchemy models for the Quality Report settings service.
"""

from app.models.base import Base
from app.models.models import (
    PLUGIN_CONFIGURATION_ROW_ID,
    AdminAudit,
    PluginConfiguration,
)

__all__ = [
    "Base",
    "PLUGIN_CONFIGURATION_ROW_ID",
    "AdminAudit",
    "PluginConfiguration",
]
