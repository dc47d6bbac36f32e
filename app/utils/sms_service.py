import os
from typing import Literal, Optional

import httpx
from loguru import logger
from pydantic import BaseModel

from app.errors import NotificationFailure


TWILIO_API = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
TIMEOUT_SECONDS = 10


class SMSResult(BaseModel):
    success: bool
    message_sid: Optional[str] = None
    message: Optional[str] = None


def build_message(item_title: str, status: str) -> str:
    if status == "approved":
        return (
            f'Great news! Your claim for "{item_title}" has been APPROVED. '
            "The finder will contact you soon for handover. - Lost and Found"
        )

    return (
        f'Unfortunately, your claim for "{item_title}" was not approved. '
        "Please contact support if you have questions. - Lost and Found"
    )


def send_sms_notification(
    phone: str,
    item_title: str,
    status: Literal["approved", "rejected"],
) -> SMSResult:
    account_sid = os.getenv("TWILIO_ACCOUNT_SID")
    auth_token = os.getenv("TWILIO_AUTH_TOKEN")
    from_number = os.getenv("TWILIO_PHONE_NUMBER")

    if not account_sid or not auth_token or not from_number:
        logger.info("Twilio credentials not configured, skipping SMS")
        return SMSResult(success=False, message="SMS service not configured")

    try:
        response = httpx.post(
            TWILIO_API.format(sid=account_sid),
            auth=(account_sid, auth_token),
            data={
                "To": phone,
                "From": from_number,
                "Body": build_message(item_title, status),
            },
            timeout=TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        raise NotificationFailure(f"Twilio unreachable: {e}") from e

    if response.is_error:
        logger.error(f"Twilio error: {response.text}")
        raise NotificationFailure("Failed to send SMS")

    sid = response.json().get("sid")
    logger.info(f"SMS sent successfully: {sid}")

    return SMSResult(success=True, message_sid=sid)
