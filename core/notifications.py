# core/notifications.py
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import requests

from core.config import settings
from core.errors import TransportError
from core.logging_config import logger
from models.enums import NotificationType


# -----------------------------------------------------
# 📧 Send email (SMTP)
# -----------------------------------------------------
def send_email(
    subject: str,
    body: str,
    to: Optional[str] = None,
    recipients: Optional[List[str]] = None,
    html_body: Optional[str] = None,
) -> bool:
    """
    Send email via SMTP.

    Returns False (and logs) when there is no recipient or SMTP is not
    configured. SMTP failures are logged and re-raised.
    """
    smtp_host = settings.SMTP_HOST
    smtp_port = settings.SMTP_PORT
    smtp_user = settings.SMTP_USER
    smtp_pass = settings.SMTP_PASS

    recipient_list = recipients or ([to] if to else [])

    if not recipient_list:
        logger.warning("No recipients specified; skipping email.")
        return False

    if not all([smtp_host, smtp_port, smtp_user, smtp_pass]):
        logger.warning("Email credentials missing; skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = settings.SMTP_FROM or smtp_user
        msg["To"] = ", ".join(recipient_list)
        msg["Subject"] = subject

        msg.attach(MIMEText(body, "plain"))

        if html_body:
            msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP_SSL(
            smtp_host, smtp_port, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS
        ) as server:
            server.login(smtp_user, smtp_pass)
            server.send_message(msg)

        logger.info(f"Email sent to {', '.join(recipient_list)}")
        return True

    except Exception as e:
        logger.error(f"Email failed: {e}")
        raise


# -----------------------------------------------------
# 📱 Send SMS (HTTP gateway)
# -----------------------------------------------------
def send_sms(phone: str, message: str) -> bool:
    gateway_url = settings.SMS_GATEWAY_URL
    if not gateway_url:
        logger.warning("SMS gateway not configured; skipping SMS.")
        return False

    headers = {}
    if settings.SMS_GATEWAY_TOKEN:
        headers["Authorization"] = f"Bearer {settings.SMS_GATEWAY_TOKEN}"

    try:
        response = requests.post(
            gateway_url,
            json={"to": phone, "message": message},
            headers=headers,
            timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"SMS failed to {phone}: {e}")
        raise

    logger.info(f"SMS sent to {phone} (status {response.status_code})")
    return True


# -----------------------------------------------------
# Transport used by the expiry sweep
# -----------------------------------------------------
class NotificationSender:
    """
    One entry point for every channel.
    `send` returns True once the transport accepted the message,
    False when the channel is not configured, and raises
    TransportError when delivery was attempted and failed.
    """

    def send(self, channel: str, recipient: str, subject: str, content: str) -> bool:
        channel = NotificationType(channel)

        try:
            if channel == NotificationType.SMS:
                return send_sms(recipient, content)
            return send_email(subject=subject, body=content, to=recipient)
        except (requests.RequestException, smtplib.SMTPException, OSError) as e:
            raise TransportError(channel.value, recipient, str(e)) from e


# -----------------------------------------------------
# Message templates
# -----------------------------------------------------
def render_expiry_sms(holder_name: str, building_name: str, days: int, expiration_date: datetime) -> str:
    return (
        f"Notice: the COI of {holder_name} for {building_name} expires in {days} days "
        f"({expiration_date.date().isoformat()}). Please upload the renewal."
    )


def render_expiry_email(holder_name: str, building_name: str, days: int, expiration_date: datetime) -> tuple:
    """Returns (subject line, body)."""
    iso = expiration_date.date().isoformat()
    subject = f"COI expiring in {days} days: {building_name}"
    body = f"""
Hello {holder_name},

Your certificate of insurance for {building_name} expires on {iso} ({days} days from today).

Please upload a renewed certificate before that date to keep your building access.

COI Access Team
"""
    return subject, body


def send_coi_rejected_email(email: str, holder_name: str, coi_id: str, notes: Optional[str]) -> bool:
    subject = "Your certificate of insurance was rejected"
    body = f"""
Hello {holder_name},

Your certificate of insurance ({coi_id}) was reviewed and rejected.

Reviewer notes:
{notes or "(none)"}

Please upload a corrected certificate.

COI Access Team
"""
    sent = send_email(subject=subject, body=body, to=email)
    if sent:
        logger.info(f"COI rejection email sent to {email}")
    return sent
