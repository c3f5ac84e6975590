"""Minimal async client for the SendGrid v3 mail-send API."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ...config import settings
from ...errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str | None = None


class SendGridClient:
    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.sendgrid_api_key
        self.sender = sender or settings.sender_email
        self.base_url = (base_url or settings.sendgrid_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds

    def _payload(self, message: EmailMessage) -> dict:
        # SendGrid requires text/plain to precede text/html.
        content = [{"type": "text/plain", "value": message.text}]
        if message.html:
            content.append({"type": "text/html", "value": message.html})
        return {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.sender},
            "subject": message.subject,
            "content": content,
        }

    async def send(self, message: EmailMessage, channel: str = "email") -> None:
        if not self.api_key or not self.sender:
            raise DeliveryError(channel, "SendGrid API key or sender address is not configured.")
        if not message.to:
            raise DeliveryError(channel, "Recipient address is missing.")

        url = f"{self.base_url}/v3/mail/send"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                response = await client.post(url, json=self._payload(message), headers=headers)
        except httpx.HTTPError as exc:
            raise DeliveryError(channel, f"SendGrid request failed: {exc!r}") from exc

        if response.status_code >= 300:
            raise DeliveryError(
                channel,
                f"SendGrid rejected the message with status {response.status_code}: {response.text[:200]}",
            )
        logger.debug(f"SendGrid accepted {channel} message to {message.to}")
