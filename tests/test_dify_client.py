from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from compliance_backend.domain import GatewayError
from compliance_backend.infrastructure.dify import DifyClient


def _client(handler) -> tuple[DifyClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DifyClient(api_base="https://dify.example.com/v1", http_client=http_client), http_client


def test_upload_posts_multipart_with_bearer_token():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = request.content
        return httpx.Response(
            201,
            json={
                "id": "72fa9618-8f89-4a37-9b33-7e1178a24a67",
                "name": "doc.pdf",
                "size": 1024,
                "extension": "pdf",
                "mime_type": "application/pdf",
                "created_by": "6ad1ab0a-73ff-4ac1-b9e4-cdb312f71f13",
                "created_at": 1577836800,
            },
        )

    client, http_client = _client(handler)

    async def scenario():
        try:
            return await client.upload(
                "doc.pdf",
                b"%PDF-1.4",
                content_type=None,
                user_id="user-123",
                credential="app-upload",
            )
        finally:
            await client.aclose()
            await http_client.aclose()

    response = asyncio.run(scenario())

    assert captured["url"] == "https://dify.example.com/v1/files/upload"
    assert captured["auth"] == "Bearer app-upload"
    body = captured["body"]
    assert b'name="user"' in body
    assert b"user-123" in body
    assert b'filename="doc.pdf"' in body
    assert b"application/pdf" in body

    assert response.id == "72fa9618-8f89-4a37-9b33-7e1178a24a67"
    assert response.size == 1024
    assert response.created_at == 1577836800


def test_execute_runs_blocking_workflow_and_unwraps_data():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "workflow_run_id": "run-1",
                "task_id": "task-1",
                "data": {
                    "id": "run-1",
                    "workflow_id": "wf-1",
                    "status": "succeeded",
                    "outputs": {
                        "judgement": [
                            {
                                "original_item": "24/7 support",
                                "assessment": {
                                    "compliance_status": "△",
                                    "reasoning": "business hours only",
                                    "alternative_solution": "on-call rotation",
                                },
                            }
                        ]
                    },
                    "error": None,
                    "elapsed_time": 4.2,
                    "total_tokens": 812,
                    "total_steps": 5,
                    "created_at": 1705407629,
                    "finished_at": 1705407633,
                },
            },
        )

    client, http_client = _client(handler)

    async def scenario():
        try:
            return await client.execute("file-1", credential="app-workflow", user_id="user-123")
        finally:
            await http_client.aclose()

    result = asyncio.run(scenario())

    assert captured["url"] == "https://dify.example.com/v1/workflows/run"
    assert captured["auth"] == "Bearer app-workflow"
    assert captured["body"] == {
        "inputs": {
            "file": {
                "type": "document",
                "transfer_method": "local_file",
                "upload_file_id": "file-1",
            }
        },
        "user": "user-123",
        "response_mode": "blocking",
    }
    assert result.id == "run-1"
    assert result.succeeded
    assert result.judgement[0].status == "△"
    assert result.judgement[0].assessment.alternative_solution == "on-call rotation"
    assert result.total_tokens == 812


def test_error_response_raises_gateway_error_with_status():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"code": "invalid_param", "message": "file is required"})

    client, http_client = _client(handler)

    async def scenario():
        try:
            await client.execute("file-1", credential="key", user_id="user-123")
        finally:
            await http_client.aclose()

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status_code == 400
    assert "400" in excinfo.value.message
    assert "file is required" in excinfo.value.message


def test_transport_error_raises_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, http_client = _client(handler)

    async def scenario():
        try:
            await client.upload("a.png", b"\x89PNG", content_type="image/png", user_id="u", credential="k")
        finally:
            await http_client.aclose()

    with pytest.raises(GatewayError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status_code is None
    assert "connection refused" in excinfo.value.message


def test_unparsable_body_raises_gateway_error():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway timeout</html>")

    client, http_client = _client(handler)

    async def scenario():
        try:
            await client.execute("file-1", credential="key", user_id="user-123")
        finally:
            await http_client.aclose()

    with pytest.raises(GatewayError):
        asyncio.run(scenario())


def test_rejects_base_without_scheme():
    with pytest.raises(ValueError):
        DifyClient(api_base="api.dify.ai/v1")
