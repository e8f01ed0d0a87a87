"""Email delivery over SMTP, plus a logging sender for development."""

import logging
import smtplib
from email.message import EmailMessage

from core.errors import DeliveryError
from core.interfaces import EmailSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(EmailSender):
    """Sends HTML email through an SMTP server using STARTTLS."""

    def __init__(self, host: str, port: int = 587, username: str = None,
                 password: str = None, sender: str = None, timeout: int = 30):
        if not host:
            raise RuntimeError("SMTP_HOST is not set")
        if not sender:
            raise RuntimeError("EMAIL_FROM is not set")
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout

    def send_email(self, to: str, subject: str, html: str) -> None:
        message = EmailMessage()
        message['From'] = self.sender
        message['To'] = to
        message['Subject'] = subject
        message.set_content("This email requires an HTML-capable client.")
        message.add_alternative(html, subtype='html')

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or '')
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Could not deliver email to {to}: {e}", recipient=to) from e
        logger.info(f"Email sent to {to}: {subject}")


class LogEmailSender(EmailSender):
    """Writes emails to the log instead of sending them."""

    def send_email(self, to: str, subject: str, html: str) -> None:
        logger.info(f"[email] to={to} subject={subject!r} ({len(html)} chars)")
