"""Contracts for the remote upload and workflow services.

The orchestration layer only depends on these protocols. Any failure on the
remote side (transport errors, non-success responses, unreadable bodies) is
reported by raising :class:`~compliance_backend.domain.GatewayError`.
"""
from __future__ import annotations

from typing import Protocol

from compliance_backend.core.schema import UploadResponse, WorkflowRunResult
from compliance_backend.domain import GatewayError


class UploadGateway(Protocol):
    """Contract for the upload collaborator."""

    async def upload(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str | None,
        user_id: str,
        credential: str,
    ) -> UploadResponse:
        """Upload ``content`` and return the stored file record."""


class WorkflowGateway(Protocol):
    """Contract for the evaluation workflow collaborator."""

    async def execute(self, file_id: str, *, credential: str, user_id: str) -> WorkflowRunResult:
        """Run the evaluation workflow for an uploaded file and return the run."""


class NotConfiguredGateway:
    """Fallback used when no remote service is configured."""

    async def upload(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str | None,
        user_id: str,
        credential: str,
    ) -> UploadResponse:
        raise GatewayError("upload service is not configured")

    async def execute(self, file_id: str, *, credential: str, user_id: str) -> WorkflowRunResult:
        raise GatewayError("workflow service is not configured")
