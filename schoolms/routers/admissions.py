from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_
from schoolms.core.permissions import PERM_ADMISSIONS_MANAGE
from schoolms.models.admissions import Admission
from schoolms.models.enums import AdmissionStatus
from schoolms.schemas.admission import AdmissionRead, AdmissionApply, AdmissionReview, AdmissionStats
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.admissions import admission_stats, review_application, submit_application

router = APIRouter(prefix="/admissions", tags=["Admissions"])


async def _get_admission_or_404(db: DbSession, admission_id: int) -> Admission:
    result = await db.execute(select(Admission).where(Admission.id == admission_id))
    admission = result.scalar_one_or_none()
    if not admission:
        raise HTTPException(status_code=404, detail="Application not found")
    return admission


@router.post("/apply", response_model=DataResponse[AdmissionRead])
async def apply(data: AdmissionApply, db: DbSession):
    """Public application form, no account needed"""
    admission = await submit_application(db, data)
    return DataResponse(data=AdmissionRead.model_validate(admission))


@router.get("", response_model=DataResponse[list[AdmissionRead]], dependencies=[Depends(require_permission(PERM_ADMISSIONS_MANAGE))])
async def get_admissions(
    db: DbSession,
    search: Optional[str] = None,
    status: Optional[AdmissionStatus] = None,
    applying_for_class: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Admission.student_name.ilike(pattern),
                Admission.application_number.ilike(pattern),
                Admission.guardian_name.ilike(pattern),
                Admission.guardian_phone.ilike(pattern),
            )
        )
    if status:
        conditions.append(Admission.status == status)
    if applying_for_class:
        conditions.append(Admission.applying_for_class == applying_for_class)

    result = await db.execute(
        select(Admission)
        .where(*conditions)
        .order_by(Admission.created_at.desc(), Admission.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    admissions = result.scalars().all()

    count_result = await db.execute(select(func.count(Admission.id)).where(*conditions))
    total = count_result.scalar()

    return DataResponse(
        data=[AdmissionRead.model_validate(a) for a in admissions],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.get("/stats", response_model=DataResponse[AdmissionStats], dependencies=[Depends(require_permission(PERM_ADMISSIONS_MANAGE))])
async def get_admission_stats(db: DbSession):
    return DataResponse(data=await admission_stats(db))


@router.get("/{admission_id}", response_model=DataResponse[AdmissionRead], dependencies=[Depends(require_permission(PERM_ADMISSIONS_MANAGE))])
async def get_admission(admission_id: int, db: DbSession):
    return DataResponse(data=AdmissionRead.model_validate(await _get_admission_or_404(db, admission_id)))


@router.post("/{admission_id}/review", response_model=DataResponse[AdmissionRead], dependencies=[Depends(require_permission(PERM_ADMISSIONS_MANAGE))])
async def review(admission_id: int, data: AdmissionReview, user: CurrentUser, db: DbSession):
    admission = await _get_admission_or_404(db, admission_id)
    try:
        admission = await review_application(db, admission, data, user.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DataResponse(data=AdmissionRead.model_validate(admission))
