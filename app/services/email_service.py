"""
Email Service - transactional mail over SMTP.

When no SMTP host is configured (local development) messages are logged
instead of sent and delivery is reported as successful.
"""

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.logging_config import redact_email

logger = logging.getLogger(__name__)


class EmailService:
    """Sends password reset mail. `send` returns False on delivery failure, never raises."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.smtp_use_tls = settings.smtp_use_tls
        self.from_email = settings.email_from or settings.smtp_user
        self.from_name = settings.email_from_name
        self.frontend_url = settings.frontend_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send(self, to_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> bool:
        if not self.is_configured:
            logger.info("Email (dev mode, not sent) to=%s subject=%s", redact_email(to_email), subject)
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to_email, msg.as_string())
            else:
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=30) as server:
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email delivery failed to=%s error=%s", redact_email(to_email), e)
            return False

        logger.info("Email sent to=%s subject=%s", redact_email(to_email), subject)
        return True

    def reset_url(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={token}"

    def send_password_reset(self, to_email: str, full_name: str, token: str, expires_minutes: int) -> bool:
        """Mail the reset link. The raw token only ever exists in this message."""
        url = self.reset_url(token)
        subject = "Password Reset Request - Workify"
        html_body = f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2 style="color: #2563eb;">Password Reset Request</h2>
                <p>Hello {full_name},</p>
                <p>We received a request to reset your password. Click the button below to reset your password:</p>
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{url}"
                       style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px; display: inline-block;">
                        Reset Password
                    </a>
                </div>
                <p style="color: #666; font-size: 14px;">This link will expire in {expires_minutes} minutes.</p>
                <p style="color: #666; font-size: 14px;">If you didn't request this, please ignore this email.</p>
            </div>
        """
        text_body = (
            f"Hello {full_name},\n\n"
            f"Reset your password: {url}\n\n"
            f"This link will expire in {expires_minutes} minutes."
        )
        return self.send(to_email, subject, html_body, text_body)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service (singleton pattern)"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
