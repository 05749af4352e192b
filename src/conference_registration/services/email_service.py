"""Email service for registration confirmations"""

import html
import logging
from typing import Dict

from fastapi import Depends

from conference_registration.backends.email_client import EmailClient
from conference_registration.config import config

logger = logging.getLogger(__name__)


class EmailService:
    """Renders and sends the confirmation email for a registration"""

    def __init__(self, email_client: EmailClient, conference_name: str):
        self.email_client = email_client
        self.conference_name = conference_name

    def build_confirmation(self, full_name: str) -> Dict[str, str]:
        """Subject plus HTML and plain-text bodies for a confirmation email"""
        conference = self.conference_name
        subject = f"Registration Confirmation - {conference}"
        safe_name = html.escape(full_name)
        safe_conference = html.escape(conference)
        html_body = f"""
<h2 style="color:#2d6cdf;">Registration Confirmation</h2>
<p>Dear <strong>{safe_name}</strong>,</p>
<p>Thank you for registering for the <b>{safe_conference}</b>.
Your registration has been successfully submitted.</p>
<p>We will review your submission and contact you soon with further details.</p>
<br>
<p>Best regards,<br>
<b>{safe_conference} Team</b></p>
"""
        text_body = f"""Dear {full_name},

Thank you for registering for the {conference}. Your registration has been successfully submitted.

We will review your submission and contact you soon with further details.

Best regards,
{conference} Team"""
        return {"subject": subject, "html": html_body, "text": text_body}

    async def send_registration_confirmation(self, email: str, full_name: str) -> bool:
        """
        Send the confirmation email. Never raises.

        Returns:
            bool: True if the email was sent, False otherwise
        """
        if not email:
            logger.info("No email provided, skipping email confirmation")
            return False

        try:
            await self.send_confirmation_or_raise(email, full_name)
            return True
        except Exception as e:
            # Registration already succeeded; delivery problems are only logged
            logger.error(f"Registration email to {email} failed: {e}")
            return False

    async def send_confirmation_or_raise(self, email: str, full_name: str) -> Dict:
        """Send the confirmation email, propagating NotifierFailure"""
        content = self.build_confirmation(full_name)
        response = await self.email_client.send_email(
            to=email,
            subject=content["subject"],
            html=content["html"],
            text=content["text"],
        )
        logger.info(f"Registration email sent to {email}")
        return response


# Global email client instance
_email_client = None


def get_email_client() -> EmailClient:
    """Get or create the global email client instance"""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient(config)
        if not _email_client.is_configured:
            logger.warning("Email transport not configured; confirmations will not be sent")
        else:
            logger.info("Initialized global email client")
    return _email_client


def get_email_service(
    email_client: EmailClient = Depends(get_email_client),
) -> EmailService:
    return EmailService(email_client, config["conference_name"])
