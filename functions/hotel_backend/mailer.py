"""
Mail transport abstraction for SMTP and in-memory testing.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Optional, Protocol

from hotel_backend.errors import (
    AUTH_ERROR_CODE,
    CONNECTION_ERROR_CODE,
    MailTransportError,
)

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    """Defines the operations the API needs from an outbound mail server."""

    def send(self, message: EmailMessage) -> None:
        ...

    def verify(self) -> None:
        ...


@dataclass
class InMemoryMailTransport:
    """Test double that records messages instead of sending them."""

    sent: list[EmailMessage] = field(default_factory=list)
    fail_on: Optional[int] = None
    fail_code: str = "EMESSAGE"

    def send(self, message: EmailMessage) -> None:
        # fail_on is the zero-based index of the send call that should fail.
        if self.fail_on is not None and len(self.sent) == self.fail_on:
            self.fail_on = None
            raise MailTransportError(self.fail_code, "simulated failure")
        self.sent.append(message)

    def verify(self) -> None:
        return None

    def reset(self) -> None:
        self.sent.clear()


@dataclass
class SmtpMailTransport:
    """
    SMTP transport using STARTTLS and login credentials.

    smtplib errors are translated into MailTransportError codes so callers
    never depend on smtplib exception types.
    """

    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    timeout: float = 15.0

    def _connect(self) -> smtplib.SMTP:
        try:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        except (smtplib.SMTPConnectError, OSError) as exc:
            raise MailTransportError(CONNECTION_ERROR_CODE, str(exc)) from exc
        try:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
        except smtplib.SMTPAuthenticationError as exc:
            server.close()
            raise MailTransportError(AUTH_ERROR_CODE, str(exc)) from exc
        except smtplib.SMTPServerDisconnected as exc:
            server.close()
            raise MailTransportError(CONNECTION_ERROR_CODE, str(exc)) from exc
        except smtplib.SMTPException as exc:
            server.close()
            raise MailTransportError("ESMTP", str(exc)) from exc
        except OSError as exc:
            server.close()
            raise MailTransportError(CONNECTION_ERROR_CODE, str(exc)) from exc
        return server

    def send(self, message: EmailMessage) -> None:
        server = self._connect()
        try:
            server.send_message(message)
        except smtplib.SMTPServerDisconnected as exc:
            raise MailTransportError(CONNECTION_ERROR_CODE, str(exc)) from exc
        except smtplib.SMTPException as exc:
            raise MailTransportError("EMESSAGE", str(exc)) from exc
        except OSError as exc:
            raise MailTransportError(CONNECTION_ERROR_CODE, str(exc)) from exc
        finally:
            try:
                server.quit()
            except OSError:
                server.close()
        logger.info("Sent email subject=%r", message["Subject"])

    def verify(self) -> None:
        """Open a connection and log in, raising MailTransportError on failure."""
        server = self._connect()
        try:
            server.noop()
        finally:
            server.quit()
