"""
Outgoing email over SMTP (aiosmtplib).

The mailer never raises to its callers: every send returns True/False and
failures are logged. When SMTP is not configured, sends are skipped.
"""
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional, Sequence
from urllib.parse import quote

import aiosmtplib

from ..core.config import Settings
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MailAttachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class Mailer:
    """Async SMTP mailer configured from Settings."""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.site_url = settings.SITE_URL.rstrip("/")
        self.reset_hours = settings.RESET_TOKEN_EXPIRE_HOURS
        self.verification_hours = settings.VERIFICATION_TOKEN_EXPIRE_HOURS

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def _build_message(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str],
        attachments: Sequence[MailAttachment],
    ) -> MIMEMultipart:
        message = MIMEMultipart("mixed")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject

        body = MIMEMultipart("alternative")
        if text_content:
            body.attach(MIMEText(text_content, "plain"))
        body.attach(MIMEText(html_content, "html"))
        message.attach(body)

        for item in attachments:
            _, _, subtype = item.content_type.partition("/")
            part = MIMEApplication(item.content, _subtype=subtype or "octet-stream")
            part.add_header("Content-Disposition", "attachment", filename=item.filename)
            message.attach(part)
        return message

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        attachments: Sequence[MailAttachment] = (),
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] SMTP not configured, skipping email: {subject}")
            return False

        message = self._build_message(to_email, subject, html_content, text_content, attachments)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"[Email/SMTP] Sent email to {to_email}: {subject}")
        return True

    async def send_password_reset_email(self, to_email: str, username: str, token: str) -> bool:
        link = f"{self.site_url}/?reset_token={quote(token)}"
        subject = "Lab Notebook - Password Reset"
        text = (
            f"Hello {username},\n\n"
            f"You requested to reset your password. Open this link to choose a new one:\n{link}\n\n"
            f"The link expires in {self.reset_hours} hours. If you did not ask for this, ignore this email."
        )
        html = (
            f"<p>Hello {username},</p>"
            f"<p>You requested to reset your password. "
            f"<a href=\"{link}\">Choose a new password</a>.</p>"
            f"<p>The link expires in {self.reset_hours} hours. "
            f"If you did not ask for this, ignore this email.</p>"
        )
        return await self.send_email(to_email, subject, html, text)

    async def send_verification_email(self, to_email: str, username: str, token: str) -> bool:
        link = f"{self.site_url}/?verify_token={quote(token)}"
        subject = "Lab Notebook - Verify your email"
        text = (
            f"Hello {username},\n\nConfirm your email address by opening:\n{link}\n\n"
            f"The link expires in {self.verification_hours} hours."
        )
        html = (
            f"<p>Hello {username},</p>"
            f"<p><a href=\"{link}\">Confirm your email address</a>.</p>"
            f"<p>The link expires in {self.verification_hours} hours.</p>"
        )
        return await self.send_email(to_email, subject, html, text)

    async def send_report_email(
        self,
        to_email: str,
        sender_name: str,
        report_title: str,
        pdf_bytes: bytes,
        filename: str,
        subject: Optional[str] = None,
        message: Optional[str] = None,
    ) -> bool:
        subject = subject or f"Lab Notebook - {report_title}"
        note = message or f'Attached is the report "{report_title}".'
        text = f"{note}\n\nSent by {sender_name}"
        html = f"<p>{escape(note)}</p><p>Sent by {escape(sender_name)}</p>"
        return await self.send_email(
            to_email,
            subject,
            html,
            text,
            attachments=[MailAttachment(filename=filename, content=pdf_bytes, content_type="application/pdf")],
        )
