"""Error taxonomy shared by the orchestration layers."""
from __future__ import annotations


class OrchestrationError(Exception):
    """Base class for all orchestration failures."""


class ValidationError(OrchestrationError):
    """Raised when a user action is rejected before any state changes."""


class UnsupportedFileTypeError(ValidationError):
    """Raised when an upload does not use an allowed file extension."""


class MissingCredentialError(ValidationError):
    """Raised when a remote call is requested without a configured credential."""


class UnknownFileError(ValidationError):
    """Raised when a file identity is not present in the registry."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"file not found: {file_id}")
        self.file_id = file_id


class GatewayError(OrchestrationError):
    """Raised by gateway implementations when a remote call does not succeed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AlreadyPendingError(OrchestrationError):
    """Raised when an execution is requested for a file that already has one in flight."""

    def __init__(self, file_id: str) -> None:
        super().__init__(f"an execution is already running for file {file_id}")
        self.file_id = file_id


class DuplicateFileError(OrchestrationError):
    """Raised when a file identity is registered twice."""


class InvalidTransitionError(OrchestrationError):
    """Raised when a terminal outcome is recorded for a file that is not pending."""
