"""Resend HTTP API client for transactional email.

Sends are single-shot: there is no retry loop, callers treat delivery as
best-effort and log failures. Without an API key the message is logged
instead of sent, which is how development sign-in links are surfaced.
"""

from typing import Optional

import httpx
import structlog

from intranet.config import get_settings

settings = get_settings()
logger = structlog.get_logger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the provider rejects or cannot be reached."""


class ResendEmailClient:
    """Client for the Resend email API."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, sender: Optional[str] = None):
        self.api_key = settings.RESEND_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.RESEND_API_URL).rstrip("/")
        self.sender = sender or settings.EMAIL_FROM
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> dict:
        if not self.configured:
            logger.info("Email not sent, no provider configured", to=to, subject=subject, text=text)
            return {"id": None, "skipped": True}

        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            async with httpx.AsyncClient(timeout=15) as client:
                response = await client.post(f"{self.base_url}/emails", json=payload, headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error_text = e.response.text[:200] if e.response.text else "No response body"
            raise EmailDeliveryError(f"Resend rejected email: {e.response.status_code} - {error_text}") from e
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Resend unreachable: {e}") from e

        result = response.json()
        logger.info("Email sent", to=to, subject=subject, message_id=result.get("id"))
        return result

    async def send_sign_in_link(self, to: str, url: str) -> dict:
        subject = "Sign in to the intranet"
        text = f"Use the link below to sign in. It expires in {settings.VERIFICATION_TOKEN_HOURS} hours.\n\n{url}\n"
        html = (
            "<p>Use the button below to sign in. "
            f"The link expires in {settings.VERIFICATION_TOKEN_HOURS} hours.</p>"
            f'<p><a href="{url}">Sign in</a></p>'
            "<p>If you did not request this email you can ignore it.</p>"
        )
        return await self.send(to, subject, html, text)
