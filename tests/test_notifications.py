import json

import httpx
import pytest
from fastapi import HTTPException

from services.notification_service import service as email_service
from services.notification_service.schemas import EmailRequest
from services.notification_service.service import EmailService
from shared.config import settings


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_send_posts_to_resend():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_1"})

    async with _mock_client(handler) as client:
        await EmailService.send(
            EmailRequest(to="mary@example.com", subject="Your turkey", html="<p>Ready</p>"),
            client=client,
        )

    assert seen["url"] == settings.RESEND_API_URL
    assert seen["auth"] == f"Bearer {settings.RESEND_API_KEY}"
    assert seen["body"]["to"] == ["mary@example.com"]
    assert seen["body"]["from"] == settings.EMAIL_FROM


async def test_provider_error_raises_500():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "boom"})

    async with _mock_client(handler) as client:
        with pytest.raises(HTTPException) as exc_info:
            await EmailService.send(
                EmailRequest(to=["a@example.com"], subject="Hi", html="<p>Hi</p>"),
                client=client,
            )
    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Failed to send"


async def test_non_json_success_still_counts_as_sent():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="queued")

    async with _mock_client(handler) as client:
        await EmailService.send(
            EmailRequest(to="mary@example.com", subject="Your turkey", html="<p>Ready</p>"),
            client=client,
        )

    def empty(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202)

    async with _mock_client(empty) as client:
        await EmailService.send(
            EmailRequest(to="mary@example.com", subject="Your turkey", html="<p>Ready</p>"),
            client=client,
        )


async def test_send_email_endpoint(admin_client, monkeypatch):
    sent = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "email_2"})

    monkeypatch.setattr(
        email_service.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler)),
    )

    resp = await admin_client.post(
        "/api/admin/send-email",
        json={"to": ["a@example.com", "b@example.com"], "subject": "Pickup", "html": "<b>Tomorrow</b>"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert sent[0]["to"] == ["a@example.com", "b@example.com"]


async def test_send_email_validation(admin_client):
    resp = await admin_client.post("/api/admin/send-email", json={"to": "not-an-email", "subject": "x", "html": "y"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


async def test_send_email_requires_session(client):
    resp = await client.post(
        "/api/admin/send-email", json={"to": "a@example.com", "subject": "x", "html": "y"}
    )
    assert resp.status_code == 401
