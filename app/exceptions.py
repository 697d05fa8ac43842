"""
Custom exceptions for the Quality Report settings service.
"""


class AdministratorPermissionError(Exception):
    """
    Raised when the caller lacks administrator rights.
    Should result in HTTP 403 Forbidden response.
    """

    def __init__(self, subject: str | None = None):
        self.subject = subject
        message = "Administrator permission required"
        if subject:
            message += f" (caller: {subject})"
        super().__init__(message)


class SettingsFormError(ValueError):
    """Raised when a submitted settings form is missing a field or has an unusable value."""

    def __init__(self, field_name: str, problem: str | None = None):
        self.field_name = field_name
        self.problem = problem
        if problem:
            super().__init__(f"Settings form field '{field_name}' {problem}")
        else:
            super().__init__(f"Settings form is missing field '{field_name}'")


class QualityApiError(Exception):
    """Raised when the quality API returns a payload we cannot interpret."""
