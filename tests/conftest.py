from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from compliance_backend.application import Credentials, OrchestrationController
from compliance_backend.core.schema import UploadResponse, WorkflowRunResult
from compliance_backend.domain import GatewayError, UploadedFile


SUCCESS_PAYLOAD = {
    "status": "succeeded",
    "outputs": {
        "judgement": [
            {"original_item": "req1", "assessment": {"compliance_status": "○", "reasoning": "ok"}},
        ]
    },
    "elapsed_time": 1.23,
    "total_tokens": 500,
    "total_steps": 3,
}


class FakeUploadGateway:
    """Upload gateway returning queued responses or raising queued errors."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.responses: list[UploadResponse | GatewayError] = []
        self._counter = 0

    async def upload(self, filename, content, *, content_type, user_id, credential):
        self.calls.append(
            {
                "filename": filename,
                "content": content,
                "content_type": content_type,
                "user_id": user_id,
                "credential": credential,
            }
        )
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, GatewayError):
                raise response
            return response
        self._counter += 1
        return UploadResponse(
            id=f"f{self._counter}",
            name=filename,
            size=len(content),
            extension=Path(filename).suffix.lstrip(".").lower(),
            mime_type=content_type or "application/octet-stream",
            created_by=user_id,
            created_at=1_700_000_000,
        )


class FakeWorkflowGateway:
    """Workflow gateway that can be held open with an event to simulate slow runs."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.results: dict[str, list[object]] = {}
        self.gates: dict[str, asyncio.Event] = {}

    def queue(self, file_id: str, *results: object) -> None:
        self.results.setdefault(file_id, []).extend(results)

    async def execute(self, file_id, *, credential, user_id):
        self.calls.append(file_id)
        gate = self.gates.get(file_id)
        if gate is not None:
            await gate.wait()
        queued = self.results.get(file_id)
        result = queued.pop(0) if queued else dict(SUCCESS_PAYLOAD)
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, dict):
            return WorkflowRunResult.from_response(result)
        return result


def make_file(file_id: str = "f1", name: str = "doc.pdf", size: int = 1024) -> UploadedFile:
    return UploadedFile(
        id=file_id,
        name=name,
        byte_size=size,
        extension=Path(name).suffix.lstrip("."),
        mime_type="application/pdf",
        uploaded_at=1_700_000_000,
        source_bytes=b"%PDF-1.4",
    )


@pytest.fixture()
def upload_gateway() -> FakeUploadGateway:
    return FakeUploadGateway()


@pytest.fixture()
def workflow_gateway() -> FakeWorkflowGateway:
    return FakeWorkflowGateway()


@pytest.fixture()
def controller(upload_gateway, workflow_gateway) -> OrchestrationController:
    return OrchestrationController(
        upload_gateway=upload_gateway,
        workflow_gateway=workflow_gateway,
        credentials=Credentials(upload_credential="upload-key", workflow_credential="workflow-key", user_id="user-123"),
    )
