"""
Outcome of a settings validation, as shown next to the settings form.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationReason(str, Enum):
    """Why a validation failed."""

    INPUT = "input"
    CONNECTIVITY = "connectivity"
    RESOURCE_ACCESS = "resource_access"
    TRANSPORT = "transport"


class ValidationResult(BaseModel):
    """Tagged ok/error outcome with a short human-readable message."""

    model_config = ConfigDict(frozen=True)

    status: Literal["ok", "error"] = Field(
        ...,
        description="Whether the settings passed validation",
        examples=["ok"],
    )
    message: str = Field(
        ...,
        description="Message displayed next to the settings form",
        examples=["Connection Successful."],
    )
    reason: ValidationReason | None = Field(
        None,
        description="Failure category, absent on success",
    )

    @classmethod
    def ok(cls, message: str) -> "ValidationResult":
        return cls(status="ok", message=message)

    @classmethod
    def error(
        cls, message: str, reason: ValidationReason | None = None
    ) -> "ValidationResult":
        return cls(status="error", message=message, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"
