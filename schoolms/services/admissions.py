import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from schoolms.models.admissions import Admission
from schoolms.models.base import utcnow
from schoolms.models.enums import AdmissionStatus
from schoolms.schemas.admission import AdmissionApply, AdmissionReview, AdmissionStats
from schoolms.services.activity import record_activity
from schoolms.utils.school_time import school_today

logger = logging.getLogger(__name__)


async def _next_application_number(db: AsyncSession) -> str:
    """Applications are numbered per calendar year: ADM-YYYY-NNNN."""
    prefix = f"ADM-{school_today().year}-"
    result = await db.execute(
        select(func.count(Admission.id)).where(Admission.application_number.like(f"{prefix}%"))
    )
    return f"{prefix}{result.scalar() + 1:04d}"


async def submit_application(db: AsyncSession, data: AdmissionApply) -> Admission:
    admission = Admission(
        **data.model_dump(),
        application_number=await _next_application_number(db),
        status=AdmissionStatus.PENDING,
    )
    db.add(admission)
    await db.flush()
    record_activity(db, None, "apply", "admission", admission.id, {"application_number": admission.application_number})
    await db.commit()
    await db.refresh(admission)

    logger.info(f"Admission application {admission.application_number} received for class {admission.applying_for_class}")
    return admission


async def review_application(db: AsyncSession, admission: Admission, data: AdmissionReview, user_id: int) -> Admission:
    if data.status == AdmissionStatus.PENDING:
        raise ValueError("An application can only be approved or rejected")
    if admission.status != AdmissionStatus.PENDING:
        raise ValueError(f"Application is already {admission.status.value}")

    admission.status = data.status
    if data.notes is not None:
        admission.notes = data.notes
    admission.reviewed_at = utcnow()
    admission.reviewed_by_user_id = user_id

    record_activity(db, user_id, data.status.value, "admission", admission.id)
    await db.commit()
    await db.refresh(admission)

    logger.info(f"Admission {admission.application_number} {admission.status.value}")
    return admission


async def admission_stats(db: AsyncSession) -> AdmissionStats:
    result = await db.execute(select(Admission.status, func.count(Admission.id)).group_by(Admission.status))
    by_status = dict(result.all())
    return AdmissionStats(
        total=sum(by_status.values()),
        pending=by_status.get(AdmissionStatus.PENDING, 0),
        approved=by_status.get(AdmissionStatus.APPROVED, 0),
        rejected=by_status.get(AdmissionStatus.REJECTED, 0),
    )
