from __future__ import annotations

import logging
import smtplib
import ssl
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from pydantic import SecretStr

from .config import Settings
from .errors import DeliveryError
from .message import OutboundMessage, to_email_message

log = logging.getLogger(__name__)


class Mailer(Protocol):
    def verify(self) -> None: ...

    def send(self, message: OutboundMessage) -> str: ...


def _relay_diagnostic(exc: smtplib.SMTPException) -> str:
    """Relay code + text when the relay gave one, else the exception text."""
    if isinstance(exc, smtplib.SMTPResponseException):
        text = exc.smtp_error
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        return f"{exc.smtp_code} {text}".strip()
    return str(exc)


class SmtpMailer:
    """
    Sends through an SMTP relay over implicit TLS (SMTP_SSL, usually port 465).

    Every call opens its own connection: nothing is pooled between requests.
    The envelope sender is always the authenticated account, since relays
    like Gmail reject anything else.
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: SecretStr,
        timeout: float = 20.0,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self._password = password
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP_SSL:
        context = ssl.create_default_context()
        try:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(
                f"SMTP connection to {self.host}:{self.port} failed: {exc}"
            ) from exc

        try:
            server.login(self.user, self._password.get_secret_value())
        except smtplib.SMTPAuthenticationError as exc:
            server.close()
            raise DeliveryError(f"SMTP authentication failed: {_relay_diagnostic(exc)}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            server.close()
            raise DeliveryError(f"SMTP login failed: {exc}") from exc
        return server

    @contextmanager
    def _session(self) -> Iterator[smtplib.SMTP_SSL]:
        server = self._connect()
        try:
            yield server
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError):
                # Message is already accepted (or already failed); just drop the socket.
                server.close()

    def verify(self) -> None:
        """Connect and authenticate without sending, so auth problems surface on their own."""
        with self._session():
            log.debug("SMTP credentials verified for %s:%s", self.host, self.port)

    def send(self, message: OutboundMessage) -> str:
        """Send one message and return its Message-ID."""
        if message.sender != self.user:
            raise DeliveryError("Sender must match the authenticated SMTP account")
        if not message.recipients:
            raise DeliveryError("No recipients configured")

        email_msg = to_email_message(message)
        with self._session() as server:
            try:
                refused = server.send_message(
                    email_msg,
                    from_addr=self.user,
                    to_addrs=list(message.recipients),
                )
            except smtplib.SMTPRecipientsRefused as exc:
                raise DeliveryError(
                    f"All recipients refused: {', '.join(sorted(exc.recipients))}"
                ) from exc
            except smtplib.SMTPException as exc:
                raise DeliveryError(f"SMTP send failed: {_relay_diagnostic(exc)}") from exc
            except OSError as exc:
                raise DeliveryError(f"SMTP send failed: {exc}") from exc

        if refused:
            log.warning("Relay refused some recipients: %s", sorted(refused))
        return str(email_msg["Message-ID"])


def smtp_mailer(settings: Settings) -> SmtpMailer:
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        timeout=settings.smtp_timeout,
    )
