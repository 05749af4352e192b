import asyncio
import logging
from typing import Dict, Optional

from mailgun.client import Client

from conference_registration.errors import NotifierFailure

logger = logging.getLogger(__name__)


class EmailClient:
    def __init__(self, config: dict):
        self.mailgun_api_key = config["mailgun_api_key"]
        self.domain = config["mailgun_domain"]
        self.sender_email = config["sender_email"]
        self.sender_name = config.get("conference_name") or "Conference"

        self.client = Client(auth=("api", self.mailgun_api_key or ""))

    @property
    def is_configured(self) -> bool:
        return bool(self.mailgun_api_key and self.domain and self.sender_email)

    async def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> Dict:
        """
        Send email using Mailgun API

        Args:
            to: Recipient email address
            subject: Email subject
            html: HTML body
            text: Plain-text alternative body (optional)

        Returns:
            Dict containing Mailgun API response

        Raises:
            NotifierFailure: If the client is not configured or sending fails
        """
        if not self.is_configured:
            raise NotifierFailure(
                "Email transport is not configured "
                "(MAILGUN_API_KEY, MAILGUN_DOMAIN, SENDER_EMAIL)"
            )

        data = {
            "from": f'"{self.sender_name}" <{self.sender_email}>',
            "to": to,
            "h:Reply-To": self.sender_email,
            "subject": subject,
            "html": html,
            "o:tag": "registration-confirmation",
        }
        if text:
            data["text"] = text

        try:
            # The Mailgun SDK is blocking; keep it off the event loop
            req = await asyncio.to_thread(
                self.client.messages.create, data=data, domain=self.domain
            )
            response = req.json()
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {str(e)}")
            raise NotifierFailure(f"Email sending failed: {str(e)}") from e

        if req.status_code != 200:
            logger.error(f"Mailgun API error: {req.status_code} - {response}")
            raise NotifierFailure(f"Failed to send email: {response}")

        logger.info(f"Email sent successfully to {to}: {response.get('id', 'unknown')}")
        return response
