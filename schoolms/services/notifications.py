"""
Guardian SMS notifications.

Messages are posted to an HTTP SMS gateway configured through SMS_PROVIDER_URL
and SMS_PROVIDER_API_KEY. When the gateway is not configured, sending is
skipped and reported as not sent.
"""
import logging
from datetime import date
import httpx
from schoolms.core.config import settings
from schoolms.models.people import Student

logger = logging.getLogger(__name__)


def sms_configured() -> bool:
    return bool(settings.SMS_PROVIDER_URL and settings.SMS_PROVIDER_API_KEY)


async def send_sms(phone: str, message: str) -> bool:
    """Send one SMS. Returns True when the gateway accepted the message."""
    if not sms_configured():
        logger.info(f"SMS provider not configured, skipping message to {phone}")
        return False

    try:
        async with httpx.AsyncClient(timeout=settings.SMS_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.SMS_PROVIDER_URL,
                json={"to": phone, "message": message},
                headers={"Authorization": f"Bearer {settings.SMS_PROVIDER_API_KEY}"},
            )
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to send SMS to {phone}: {e}")
        return False

    logger.info(f"SMS sent to {phone}")
    return True


def absence_message(student: Student, attendance_date: date) -> str:
    guardian = student.guardian_name or "Guardian"
    return (
        f"Dear {guardian}, {student.full_name} was absent from {settings.SCHOOL_NAME} "
        f"on {attendance_date.isoformat()}. Please contact the school if this is unexpected."
    )


async def notify_absence(student: Student, attendance_date: date) -> bool:
    if not student.guardian_phone:
        logger.info(f"Student {student.id} has no guardian phone, absence notification skipped")
        return False
    return await send_sms(student.guardian_phone, absence_message(student, attendance_date))
