"""Domain layer definitions."""

from .errors import (
    AlreadyPendingError,
    DuplicateFileError,
    GatewayError,
    InvalidTransitionError,
    MissingCredentialError,
    OrchestrationError,
    UnknownFileError,
    UnsupportedFileTypeError,
    ValidationError,
)
from .files import ExecutionRecord, ExecutionState, ExecutionStatus, ReadModel, UploadedFile, UploadOutcome

__all__ = [
    "AlreadyPendingError",
    "DuplicateFileError",
    "ExecutionRecord",
    "ExecutionState",
    "ExecutionStatus",
    "GatewayError",
    "InvalidTransitionError",
    "MissingCredentialError",
    "OrchestrationError",
    "ReadModel",
    "UnknownFileError",
    "UnsupportedFileTypeError",
    "UploadOutcome",
    "UploadedFile",
    "ValidationError",
]
