"""Sending test mails and domain expiry alerts over SMTP."""

from __future__ import annotations

import logging
import smtplib
import ssl
from collections.abc import Callable
from email.message import EmailMessage
from email.utils import parseaddr
from typing import Any

from .alerts import Alert
from .settings import SMTPConfiguration

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
TEST_SUBJECT = "Test E-Mail from Domain Monitor"
TEST_BODY = (
    "This is a test e-mail from the Domain Monitor application. "
    "If you received this, it's working! 🎉"
)

SMTPFactory = Callable[[str, int], Any]


class MailError(Exception):
    """A mail could not be prepared or delivered."""


def _default_factory(host: str, port: int) -> smtplib.SMTP:
    return smtplib.SMTP(host, port, timeout=DEFAULT_TIMEOUT)


def _check_address(text: str, role: str) -> str:
    _, address = parseaddr(text)
    if not address or "@" not in address:
        log.warning("❌ failed to set %s address: %r", role, text)
        raise MailError(f"failed to set {role} address: {text!r}")
    return text


class MailerService:
    """Delivers plain-text mails through the configured SMTP server."""

    def __init__(self, config: SMTPConfiguration, smtp_factory: SMTPFactory | None = None) -> None:
        if not config.host:
            raise MailError("no SMTP host given")
        if not 1 <= config.port <= 65535:
            raise MailError(f"invalid SMTP port: {config.port}")
        self.host = config.host
        self.port = config.port
        self.secure = config.secure
        self.auth_user = config.auth_user
        self.auth_pass = config.auth_pass
        self.sender = f"{config.from_name} <{config.from_address}>"
        self._factory = smtp_factory or _default_factory

    @property
    def uses_auth(self) -> bool:
        """True when both a user name and a password are configured."""
        return bool(self.auth_user and self.auth_pass)

    def _message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = _check_address(self.sender, "FROM")
        msg["To"] = _check_address(to, "TO")
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        try:
            client = self._factory(self.host, self.port)
        except (OSError, smtplib.SMTPException) as exc:
            log.warning("❌ failed to deliver mail: %s", exc)
            raise MailError(f"failed to connect to {self.host}:{self.port}: {exc}") from exc

        try:
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls(context=ssl.create_default_context())
                client.ehlo()
            elif self.secure:
                raise MailError("server does not support STARTTLS but TLS is mandatory")
            if self.uses_auth:
                client.login(self.auth_user, self.auth_pass)
            client.send_message(msg)
        except MailError:
            client.close()
            raise
        except (OSError, smtplib.SMTPException) as exc:
            client.close()
            log.warning("❌ failed to deliver mail: %s", exc)
            raise MailError(f"failed to deliver mail: {exc}") from exc

        try:
            client.quit()
        except (OSError, smtplib.SMTPException) as exc:
            # The message was accepted already; a failing goodbye is not a delivery failure.
            log.warning("⚠️ Mail delivered successfully but closing the session failed: %s", exc)
            client.close()

    def test_mail(self, to: str) -> None:
        """Send a test mail to the given address."""
        self._deliver(self._message(to, TEST_SUBJECT, TEST_BODY))
        log.info("📧 E-mail message sent to %s", to)

    def send_alert(self, to: str, fqdn: str, alert: Alert) -> None:
        """Send an expiry alert for a domain."""
        body = (
            f"Your domain {fqdn} is expiring in {Alert(alert)}. "
            "Please renew it as soon as possible."
        )
        self._deliver(self._message(to, f"Domain Expiration Alert: {fqdn}", body))
        log.info("📧 E-mail message sent to %s", to)


def create_mailer(config: SMTPConfiguration) -> MailerService | None:
    """Return a mailer for the configuration, or None if SMTP is unusable."""
    if not config.enabled:
        log.info("SMTP is not enabled")
        return None
    try:
        return MailerService(config)
    except MailError as exc:
        log.warning("failed to create mail client: %s", exc)
        return None