"""
Check the outbound mail configuration and send a test email.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hotel_backend.config import Settings, get_settings
from hotel_backend.errors import MailTransportError, classify_transport_error
from hotel_backend.mailer import SmtpMailTransport
from hotel_backend.notifications import HotelDetails, render_template

logger = logging.getLogger(__name__)


def build_test_message(settings: Settings, recipient: str) -> EmailMessage:
    hotel = HotelDetails.from_settings(settings)
    sent_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S %Z")
    msg = EmailMessage()
    msg["From"] = formataddr((hotel.name, settings.sender_address or hotel.email))
    msg["To"] = recipient
    msg["Subject"] = "Test Email - Contact Form Setup Successful"
    msg.set_content(f"Test message from the {hotel.name} backend, sent {sent_at}.")
    msg.add_alternative(
        render_template("test_email.html", hotel=hotel, sent_at=sent_at),
        subtype="html",
    )
    return msg


def main() -> int:
    parser = argparse.ArgumentParser(description="Send a test email")
    parser.add_argument(
        "--to",
        type=str,
        default=None,
        help="Recipient (defaults to CONTACT_ADMIN_EMAIL)",
    )
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Only check the SMTP connection and login",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    settings = get_settings()
    host, port = settings.smtp_endpoint()
    logger.info("EMAIL_SERVICE: %s", settings.email_service)
    logger.info("SMTP endpoint: %s:%s", host or "not set", port)
    logger.info("EMAIL_USER: %s", settings.email_user or "not set")
    logger.info("EMAIL_PASS: %s", "set (hidden)" if settings.email_pass else "not set")
    logger.info("EMAIL_FROM: %s", settings.email_from or "not set")

    if not host or not settings.email_user or not settings.email_pass:
        logger.error("EMAIL_USER, EMAIL_PASS and an SMTP host must be configured")
        return 1

    transport = SmtpMailTransport(
        host=host,
        port=port,
        username=settings.email_user,
        password=settings.email_pass.get_secret_value(),
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout,
    )

    try:
        transport.verify()
        logger.info("Connection successful")
        if args.verify_only:
            return 0
        recipient = args.to or settings.contact_admin_email
        transport.send(build_test_message(settings, recipient))
    except MailTransportError as exc:
        logger.error("%s (%s)", classify_transport_error(exc).message, exc)
        return 1

    logger.info("Test email sent to %s", recipient)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
