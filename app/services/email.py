import logging
from email.mime.text import MIMEText

import aiosmtplib
import httpx

from app.core.config import settings
from app.errors import ConfigurationError

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when an email could not be delivered.

    ``transient`` is True for failures worth retrying (network errors,
    rate limiting, 5xx responses, dropped SMTP connections).
    """

    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient


async def _send_via_resend(to_email: str, subject: str, body: str) -> None:
    headers = {
        "Authorization": f"Bearer {settings.resend_api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "text": body,
    }
    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                settings.resend_api_url,
                json=payload,
                headers=headers,
                timeout=30.0,
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        raise EmailDeliveryError(
            f"Resend request failed with status {status_code}: {e.response.text}",
            transient=status_code == 429 or status_code >= 500,
        ) from e
    except httpx.RequestError as e:
        raise EmailDeliveryError(f"Resend request failed: {str(e)}", transient=True) from e


async def _send_via_smtp(to_email: str, subject: str, body: str) -> None:
    message = MIMEText(body, "plain")
    message["Subject"] = subject
    message["From"] = settings.email_from
    message["To"] = to_email

    send_kwargs = {
        "hostname": settings.smtp_host,
        "port": settings.smtp_port,
        "username": settings.smtp_user,
        "password": settings.smtp_password,
    }

    # Handle TLS based on smtp_use_tls configuration
    if settings.smtp_use_tls:
        # Port 587 uses STARTTLS, port 465 uses direct TLS
        if settings.smtp_port == 465:
            send_kwargs["use_tls"] = True
        else:
            send_kwargs["start_tls"] = True

    try:
        await aiosmtplib.send(message, **send_kwargs)
    except (
        aiosmtplib.SMTPConnectError,
        aiosmtplib.SMTPServerDisconnected,
        aiosmtplib.SMTPTimeoutError,
    ) as e:
        raise EmailDeliveryError(f"SMTP delivery failed: {str(e)}", transient=True) from e
    except aiosmtplib.SMTPException as e:
        raise EmailDeliveryError(f"SMTP delivery failed: {str(e)}") from e
    except OSError as e:
        raise EmailDeliveryError(f"SMTP connection failed: {str(e)}", transient=True) from e


async def send_reminder_email(to_email: str, subject: str, body: str) -> None:
    """
    Send a plain-text reminder email.

    Uses the Resend HTTP API when RESEND_API_KEY is set, otherwise SMTP.

    Raises:
        ConfigurationError: If neither transport is configured
        EmailDeliveryError: If the transport rejected or failed the delivery
    """
    if settings.resend_configured:
        await _send_via_resend(to_email, subject, body)
    elif settings.smtp_configured:
        await _send_via_smtp(to_email, subject, body)
    else:
        logger.warning(f"Email not configured - cannot send reminder to {to_email}")
        raise ConfigurationError(
            "Email delivery is not configured. Set RESEND_API_KEY or the SMTP settings."
        )
