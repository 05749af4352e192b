"""Admin utilities for checking the email transport"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import EmailStr

from conference_registration.config import config
from conference_registration.errors import NotifierFailure
from conference_registration.services.email_service import (
    EmailService,
    get_email_service,
)

router = APIRouter(prefix="/api/test", tags=["Admin"])

logger = logging.getLogger(__name__)


@router.get(
    "/mail",
    summary="Send Test Mail",
    description="Sends a sample registration confirmation to the given address",
)
async def send_test_mail(
    email: EmailStr = Query(..., description="Recipient address"),
    x_admin_key: str = Header(..., description="Admin API key for authentication"),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Send a sample confirmation email to verify mail delivery settings.

    Requires admin API key in X-Admin-Key header.
    """
    expected_key = config.get("admin_api_key")

    if not expected_key or x_admin_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin API key"
        )

    try:
        await email_service.send_confirmation_or_raise(email, "Test User")
    except NotifierFailure as e:
        logger.error(f"Error sending test mail: {e}")
        raise HTTPException(status_code=500, detail="Mail sending failed")

    return {"success": True, "message": f"Test mail sent to {email}"}
