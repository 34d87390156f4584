import smtplib
import unittest
from email.message import EmailMessage
from unittest.mock import patch

from hotel_backend.errors import MailTransportError
from hotel_backend.mailer import InMemoryMailTransport, SmtpMailTransport


def make_message() -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = "no-reply@luxuryhotel.com"
    msg["To"] = "jane@example.com"
    msg["Subject"] = "Hello"
    msg.set_content("Hello")
    return msg


class SmtpMailTransportTests(unittest.TestCase):
    def setUp(self):
        self.transport = SmtpMailTransport(
            host="smtp.test", port=587, username="user", password="pass"
        )

    @patch("hotel_backend.mailer.smtplib.SMTP")
    def test_send(self, mock_smtp):
        server = mock_smtp.return_value
        message = make_message()
        self.transport.send(message)
        mock_smtp.assert_called_once_with("smtp.test", 587, timeout=15.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "pass")
        server.send_message.assert_called_once_with(message)
        server.quit.assert_called_once()

    @patch("hotel_backend.mailer.smtplib.SMTP")
    def test_auth_failure_code(self, mock_smtp):
        mock_smtp.return_value.login.side_effect = smtplib.SMTPAuthenticationError(
            535, b"Username and Password not accepted"
        )
        with self.assertRaises(MailTransportError) as ctx:
            self.transport.send(make_message())
        self.assertEqual(ctx.exception.code, "EAUTH")
        mock_smtp.return_value.send_message.assert_not_called()

    @patch("hotel_backend.mailer.smtplib.SMTP")
    def test_connection_failure_code(self, mock_smtp):
        mock_smtp.side_effect = ConnectionRefusedError("refused")
        with self.assertRaises(MailTransportError) as ctx:
            self.transport.send(make_message())
        self.assertEqual(ctx.exception.code, "ECONNECTION")

    @patch("hotel_backend.mailer.smtplib.SMTP")
    def test_rejected_recipient_is_generic(self, mock_smtp):
        mock_smtp.return_value.send_message.side_effect = smtplib.SMTPRecipientsRefused(
            {"jane@example.com": (550, b"no such user")}
        )
        with self.assertRaises(MailTransportError) as ctx:
            self.transport.send(make_message())
        self.assertEqual(ctx.exception.code, "EMESSAGE")
        mock_smtp.return_value.quit.assert_called_once()


class InMemoryMailTransportTests(unittest.TestCase):
    def test_fails_once_at_requested_index(self):
        transport = InMemoryMailTransport(fail_on=1, fail_code="EAUTH")
        transport.send(make_message())
        with self.assertRaises(MailTransportError):
            transport.send(make_message())
        transport.send(make_message())
        self.assertEqual(len(transport.sent), 2)


if __name__ == "__main__":
    unittest.main()
