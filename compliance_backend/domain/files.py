"""Domain entities for uploaded files and workflow executions."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionState(str, Enum):
    """Per-file position in the execution lifecycle."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A file accepted by the upload service, kept for the whole session."""

    id: str
    name: str
    byte_size: int
    extension: str
    mime_type: str
    uploaded_at: int
    source_bytes: bytes = field(default=b"", repr=False)
    created_by: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.byte_size,
            "extension": self.extension,
            "mime_type": self.mime_type,
            "created_by": self.created_by,
            "uploaded_at": self.uploaded_at,
        }


@dataclass(frozen=True, slots=True)
class ExecutionRecord:
    """One workflow run for one file.

    ``payload`` holds the parsed run result. It is always set for completed
    records and is also kept on failed records when the service answered
    with a non-successful run status.
    """

    id: str
    file_id: str
    status: ExecutionStatus
    started_at: int
    payload: Any | None = None
    error_message: str | None = None
    finished_at: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status is not ExecutionStatus.RUNNING

    def to_dict(self) -> dict[str, Any]:
        payload = self.payload
        if payload is not None and hasattr(payload, "model_dump"):
            payload = payload.model_dump()
        return {
            "id": self.id,
            "file_id": self.file_id,
            "status": self.status.value,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "error": self.error_message,
            "result": payload,
        }


@dataclass(frozen=True, slots=True)
class ReadModel:
    """Presentation-facing projection of one file's execution state."""

    pending: bool
    latest: ExecutionRecord | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "latest": self.latest.to_dict() if self.latest else None,
        }


@dataclass(slots=True)
class UploadOutcome:
    """Result of an upload attempt; exactly one of ``file`` and ``error`` is set."""

    file: UploadedFile | None = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.file is not None and self.error is None
