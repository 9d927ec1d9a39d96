"""Integration with the Dify file upload and workflow run HTTP API."""
from __future__ import annotations

import json
import mimetypes
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError as PydanticValidationError

from compliance_backend.core.logger import get_logger
from compliance_backend.core.schema import UploadResponse, WorkflowRunResult
from compliance_backend.domain import GatewayError

logger = get_logger(__name__)


class DifyClient:
    """Client for the Dify ``files/upload`` and ``workflows/run`` endpoints.

    Implements both the upload and the workflow gateway contracts. Every
    call is attempted exactly once.
    """

    def __init__(
        self,
        *,
        api_base: str = "https://api.dify.ai/v1",
        workflow_input: str = "file",
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_base = api_base.rstrip("/")
        self._workflow_input = workflow_input
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _auth_headers(credential: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {credential}"}

    @staticmethod
    def _guess_content_type(filename: str, content_type: str | None) -> str:
        if content_type:
            return content_type
        guessed, _ = mimetypes.guess_type(filename)
        return guessed or "application/octet-stream"

    def _build_workflow_body(self, file_id: str, user_id: str) -> dict[str, Any]:
        return {
            "inputs": {
                self._workflow_input: {
                    "type": "document",
                    "transfer_method": "local_file",
                    "upload_file_id": file_id,
                }
            },
            "user": user_id,
            "response_mode": "blocking",
        }

    async def _post(self, action: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", action, exc)
            raise GatewayError(f"{action} request failed: {exc}") from exc

        if not response.is_success:
            detail = response.text
            logger.warning("%s failed with status %s: %s", action, response.status_code, detail)
            raise GatewayError(
                f"{action} failed: {response.status_code} {response.reason_phrase}\ndetails: {detail}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise GatewayError(f"{action} response could not be parsed", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise GatewayError(f"{action} response is not a JSON object", status_code=response.status_code)
        return body

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def upload(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str | None,
        user_id: str,
        credential: str,
    ) -> UploadResponse:
        files = {"file": (filename, content, self._guess_content_type(filename, content_type))}
        body = await self._post(
            "upload",
            f"{self._api_base}/files/upload",
            headers=self._auth_headers(credential),
            files=files,
            data={"user": user_id},
        )
        try:
            return UploadResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise GatewayError("upload response has an unexpected shape") from exc

    async def execute(self, file_id: str, *, credential: str, user_id: str) -> WorkflowRunResult:
        body = await self._post(
            "workflow execution",
            f"{self._api_base}/workflows/run",
            headers=self._auth_headers(credential),
            json=self._build_workflow_body(file_id, user_id),
        )
        try:
            return WorkflowRunResult.from_response(body)
        except PydanticValidationError as exc:
            raise GatewayError("workflow response has an unexpected shape") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
