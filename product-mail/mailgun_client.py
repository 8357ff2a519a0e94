"""Mailgun transactional send API over httpx."""

import logging
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.mailgun.net"


class EmailSendError(Exception):
    pass


class MailProvider(Protocol):
    async def send(self, sender: str, subject: str, text: str, recipient: str) -> tuple[str, str]:
        """Submit one message and return (message id, provider status text)."""
        ...


class MailgunClient:
    """Send plain-text messages via the Mailgun messages endpoint."""

    def __init__(
        self,
        domain: str,
        api_key: str,
        api_base: str = DEFAULT_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.domain = domain
        self._api_key = api_key
        self.api_base = api_base.rstrip("/")
        self._transport = transport

    def __repr__(self) -> str:
        return f"MailgunClient(domain={self.domain!r}, api_base={self.api_base!r})"

    @property
    def messages_url(self) -> str:
        return f"{self.api_base}/v3/{self.domain}/messages"

    async def send(self, sender: str, subject: str, text: str, recipient: str) -> tuple[str, str]:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.messages_url,
                    auth=("api", self._api_key),
                    data={
                        "from": sender,
                        "to": recipient,
                        "subject": subject,
                        "text": text,
                    },
                    timeout=30.0,
                )
        except httpx.HTTPError as e:
            raise EmailSendError(f"Mailgun request failed: {e}") from e

        if not response.is_success:
            raise EmailSendError(f"Mailgun returned {response.status_code}: {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise EmailSendError(f"Mailgun returned a non-JSON body: {response.text}") from e

        return payload.get("id", ""), payload.get("message", "")
