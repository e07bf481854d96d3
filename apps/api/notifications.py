from __future__ import annotations

import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Callable

from packages.core.reminders.models import DeliveryResult
from packages.core.storage.base import UserStore


logger = logging.getLogger("mynote.notifications")


def _smtp_config() -> dict:
    return {
        "host": os.getenv("SMTP_HOST", ""),
        "port": int(os.getenv("SMTP_PORT", "587")),
        "user": os.getenv("SMTP_USER", ""),
        "password": os.getenv("SMTP_PASSWORD", ""),
        "from_email": os.getenv("SMTP_FROM", ""),
        "use_tls": os.getenv("SMTP_USE_TLS", "true").lower() == "true",
    }


def send_email(to_email: str, subject: str, body: str) -> None:
    config = _smtp_config()
    if not config["host"] or not config["from_email"]:
        raise RuntimeError("SMTP is not configured. Set SMTP_HOST and SMTP_FROM.")

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = config["from_email"]
    message["To"] = to_email
    message.set_content(body)

    with smtplib.SMTP(config["host"], config["port"], timeout=30) as server:
        if config["use_tls"]:
            server.starttls()
        if config["user"]:
            server.login(config["user"], config["password"])
        server.send_message(message)


class EmailNotifier:
    """Delivers reminder messages to the e-mail address on the user record."""

    def __init__(
        self,
        users: UserStore,
        send: Callable[[str, str, str], None] = send_email,
    ) -> None:
        self._users = users
        self._send = send

    def deliver(self, user_id: int, subject: str, body: str) -> DeliveryResult:
        email = self._users.get_user_email(user_id)
        if not email:
            return DeliveryResult(ok=False, error=f"no email for user {user_id}")
        try:
            self._send(email, subject, body)
        except (RuntimeError, OSError, smtplib.SMTPException) as exc:
            return DeliveryResult(ok=False, error=str(exc))
        logger.info("email_sent user_id=%s to=%s", user_id, email)
        return DeliveryResult(ok=True)
