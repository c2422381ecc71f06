import httpx
import structlog
from fastapi import HTTPException, status

from shared.config import settings

from .schemas import EmailRequest

logger = structlog.get_logger(__name__)


class EmailService:
    @staticmethod
    async def send(data: EmailRequest, client: httpx.AsyncClient | None = None) -> None:
        """Sends one email through Resend's REST API."""
        recipients = data.to if isinstance(data.to, list) else [data.to]
        payload = {
            "from": settings.EMAIL_FROM,
            "to": recipients,
            "subject": data.subject,
            "html": data.html,
        }
        headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

        try:
            if client is None:
                async with httpx.AsyncClient(timeout=10.0) as own_client:
                    resp = await own_client.post(settings.RESEND_API_URL, json=payload, headers=headers)
            else:
                resp = await client.post(settings.RESEND_API_URL, json=payload, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("email_send_failed", recipients=len(recipients), error=str(exc))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send",
            )

        # The email is out once the status is 2xx; the id is only logged
        try:
            provider_id = resp.json().get("id") if resp.content else None
        except ValueError:
            provider_id = None
        logger.info("email_sent", recipients=len(recipients), provider_id=provider_id)
