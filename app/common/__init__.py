"""
Common models shared across the Quality Report settings service.
"""

from app.common.configuration import QualityReportConfiguration
from app.common.validation import ValidationReason, ValidationResult

__all__ = [
    "QualityReportConfiguration",
    "ValidationReason",
    "ValidationResult",
]
