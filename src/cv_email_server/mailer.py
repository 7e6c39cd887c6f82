"""Outbound email capability.

One contract, ``Mailer.send(to, subject, body) -> message id``, shared by the
``send_email`` tool and the REST endpoint. Input is validated with
SendEmailRequest before the mailer is ever called.
"""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, EmailStr, field_validator

from .config import SmtpConfig

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """The mail relay refused or failed to take the message."""


class SendEmailRequest(BaseModel):
    """Validated email request.

    All three fields are required and must not be blank.
    """

    recipient: EmailStr
    subject: str
    body: str

    @field_validator("subject", "body")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


@runtime_checkable
class Mailer(Protocol):
    """Anything that can deliver a plain-text email."""

    async def send(self, to: str, subject: str, body: str) -> str:
        """Deliver a message and return its Message-ID.

        Raises:
            DeliveryError: If delivery fails
        """
        ...


async def deliver(mailer: Mailer, request: SendEmailRequest) -> dict[str, str]:
    """Send a validated request through the mailer.

    Returns:
        ``{"messageId": ...}``
    """
    message_id = await mailer.send(str(request.recipient), request.subject, request.body)
    logger.info(f"Email to {request.recipient} accepted by relay ({message_id})")
    return {"messageId": message_id}


class SmtpMailer:
    """Mailer backed by an SMTP relay.

    Uses STARTTLS when the relay offers it and logs in when credentials
    are configured. The blocking SMTP conversation runs in a worker thread.
    """

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._config.from_address
        message["To"] = to
        message["Subject"] = subject
        domain = self._config.from_address.rpartition("@")[2] or None
        message["Message-ID"] = make_msgid(domain=domain)
        message.set_content(body)
        message.add_alternative(f"<pre>{html.escape(body)}</pre>", subtype="html")
        return message

    async def send(self, to: str, subject: str, body: str) -> str:
        if not self._config.host:
            raise DeliveryError("SMTP_HOST is not configured")

        message = self.build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery failed: {e}") from e
        return str(message["Message-ID"])

    def _deliver(self, message: EmailMessage) -> None:
        config = self._config
        with smtplib.SMTP(config.host or "", config.port, timeout=config.timeout) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=ssl.create_default_context())
                smtp.ehlo()
            if config.user:
                smtp.login(config.user, config.password or "")
            smtp.send_message(message)
