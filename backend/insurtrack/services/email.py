"""HTTP client for the Resend transactional e-mail API, plus template rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Protocol

import httpx
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from insurtrack.core.config import settings
from insurtrack.core.errors import EmailDeliveryError
from insurtrack.core.logging import get_logger

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


def format_inr(amount: Decimal | float | int | None) -> str:
    """Format a rupee amount with Indian digit grouping: 1234567.5 -> ₹12,34,567.50."""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    if fraction == "00":
        return f"{sign}₹{whole}"
    return f"{sign}₹{whole}.{fraction}"


_env.filters["inr"] = format_inr


def render_template(name: str, **context: Any) -> str:
    """Render a template from ``insurtrack/templates``."""
    return _env.get_template(name).render(**context)


@dataclass
class EmailMessage:
    to: list[str]
    subject: str
    html: str
    text: str = ""
    tags: dict[str, str] = field(default_factory=dict)


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> str: ...


class ResendClient:
    """Handles authenticated HTTP calls to the Resend e-mail API."""

    def __init__(
        self,
        api_key: str,
        *,
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def send(self, message: EmailMessage) -> str:
        """Send one e-mail. Returns the provider message id."""
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")

        payload: dict[str, Any] = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        if message.tags:
            payload["tags"] = [{"name": k, "value": v} for k, v in message.tags.items()]

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise EmailDeliveryError(
                "Resend rejected the e-mail",
                details={"status_code": exc.response.status_code, "body": exc.response.text[:500]},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise EmailDeliveryError(f"Failed to send e-mail with Resend: {exc}") from exc

        message_id = body.get("id")
        if not message_id:
            raise EmailDeliveryError("Resend did not return a message id")

        logger.info("E-mail sent", to=message.to, subject=message.subject, message_id=message_id)
        return message_id


def get_email_sender() -> EmailSender:
    """Default sender built from settings; overridden in tests."""
    return ResendClient(
        settings.RESEND_API_KEY,
        sender=settings.EMAIL_FROM,
        api_url=settings.RESEND_API_URL,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )
