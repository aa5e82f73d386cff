"""Custom exceptions for study sessions."""


class StudySessionError(Exception):
    """Base exception for study session errors."""
    pass


class FormValidationError(StudySessionError):
    """Form input rejected; nothing was activated."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ContentGenerationError(StudySessionError):
    """Study content could not be generated."""
    pass


class InvalidTransitionError(StudySessionError):
    """Event is not allowed in the current session state."""
    pass
