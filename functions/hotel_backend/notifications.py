"""
Contact notification emails: an admin notice and a user acknowledgment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup, escape

from hotel_backend.config import Settings
from hotel_backend.mailer import MailTransport
from hotel_backend.validation import ContactSubmission

logger = logging.getLogger(__name__)

ADMIN_NOTICE_STAGE = "admin_notice"
ACKNOWLEDGMENT_STAGE = "acknowledgment"


def nl2br(value: str) -> Markup:
    return Markup("<br>").join(escape(value).split("\n"))


env = Environment(
    loader=PackageLoader("hotel_backend", "templates"),
    autoescape=select_autoescape(["html"]),
)
env.filters["nl2br"] = nl2br


def render_template(name: str, **context) -> str:
    return env.get_template(name).render(**context)


@dataclass(frozen=True)
class HotelDetails:
    """Static hotel contact details shown in outgoing emails."""

    name: str
    phone: str
    email: str
    address: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "HotelDetails":
        return cls(
            name=settings.hotel_name,
            phone=settings.hotel_phone,
            email=settings.hotel_email,
            address=settings.hotel_address,
        )


class NotificationDispatchError(Exception):
    """A send failed; ``stage`` names the message that was not delivered."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


def header_text(value: str) -> str:
    """Collapse line breaks so user text can sit in a single header line."""
    return " ".join(value.splitlines())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContactNotifier:
    """Builds and sends the two contact form emails, strictly in order."""

    def __init__(
        self,
        transport: MailTransport,
        *,
        admin_email: str,
        sender: str,
        hotel: HotelDetails,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.transport = transport
        self.admin_email = admin_email
        self.sender = sender
        self.hotel = hotel
        self.clock = clock

    @classmethod
    def from_settings(
        cls, transport: MailTransport, settings: Settings
    ) -> "ContactNotifier":
        return cls(
            transport,
            admin_email=settings.contact_admin_email,
            sender=settings.sender_address or settings.hotel_email,
            hotel=HotelDetails.from_settings(settings),
        )

    def _message(self, to: str, subject: str, text: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.hotel.name, self.sender))
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")
        return msg

    def build_admin_notice(self, submission: ContactSubmission) -> EmailMessage:
        received_at = self.clock().strftime("%Y-%m-%d %H:%M:%S %Z")
        html = render_template(
            "contact_admin_notice.html",
            submission=submission,
            hotel=self.hotel,
            received_at=received_at,
        )
        text = "\n".join(
            [
                "New contact form submission",
                f"Name: {submission.name}",
                f"Email: {submission.email}",
                f"Phone: {submission.phone}",
                f"Subject: {submission.subject}",
                "",
                submission.message,
                "",
                f"Received on: {received_at}",
            ]
        )
        msg = self._message(
            self.admin_email,
            f"New Contact Form Submission: {header_text(submission.subject)}",
            text,
            html,
        )
        msg["Reply-To"] = submission.email
        return msg

    def build_acknowledgment(self, submission: ContactSubmission) -> EmailMessage:
        html = render_template(
            "contact_acknowledgment.html", submission=submission, hotel=self.hotel
        )
        text = (
            f"Dear {submission.name},\n\n"
            f"Thank you for reaching out to {self.hotel.name}. We have received "
            "your message and our team will get back to you within 24 hours.\n\n"
            f"Subject: {submission.subject}\n"
            f"Message: {submission.message}\n\n"
            f"If you need immediate assistance, call us at {self.hotel.phone}.\n"
        )
        return self._message(
            submission.email,
            f"Thank you for contacting {self.hotel.name}",
            text,
            html,
        )

    def dispatch(self, submission: ContactSubmission) -> None:
        """
        Send the admin notice, then the acknowledgment.

        The first failure aborts the dispatch. A failed acknowledgment leaves
        the admin notice delivered; nothing is rolled back or retried.
        """
        stages = (
            (ADMIN_NOTICE_STAGE, self.build_admin_notice),
            (ACKNOWLEDGMENT_STAGE, self.build_acknowledgment),
        )
        for stage, build in stages:
            try:
                self.transport.send(build(submission))
            except Exception as exc:
                raise NotificationDispatchError(stage, exc) from exc
            logger.info("Contact %s sent", stage)
