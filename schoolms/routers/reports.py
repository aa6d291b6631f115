from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from schoolms.core.permissions import PERM_REPORTS_DASHBOARD_VIEW, PERM_REPORTS_FINANCE_VIEW
from schoolms.schemas.report import (
    AccountantOverview,
    AdminDashboardSummary,
    CollectionReport,
    MonthlyTrendItem,
    PendingDueItem,
)
from schoolms.schemas.common import DataResponse, PaginationMeta
from schoolms.deps import require_permission, DbSession
from schoolms.services.reports import (
    accountant_overview,
    admin_summary,
    collection_report,
    monthly_trend,
    pending_dues_by_student,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard/summary", response_model=DataResponse[AdminDashboardSummary], dependencies=[Depends(require_permission(PERM_REPORTS_DASHBOARD_VIEW))])
async def get_dashboard_summary(db: DbSession, today: Optional[date] = None):
    return DataResponse(data=await admin_summary(db, today))


@router.get("/finance/overview", response_model=DataResponse[AccountantOverview], dependencies=[Depends(require_permission(PERM_REPORTS_FINANCE_VIEW))])
async def get_finance_overview(db: DbSession, recent: int = Query(10, ge=1, le=50), today: Optional[date] = None):
    return DataResponse(data=await accountant_overview(db, today, recent))


@router.get("/finance/trend", response_model=DataResponse[list[MonthlyTrendItem]], dependencies=[Depends(require_permission(PERM_REPORTS_FINANCE_VIEW))])
async def get_monthly_trend(db: DbSession, months: int = Query(6, ge=1, le=24), today: Optional[date] = None):
    """`today` anchors the window; it defaults to the current school date."""
    return DataResponse(data=await monthly_trend(db, months, today))


@router.get("/finance/collections", response_model=DataResponse[CollectionReport], dependencies=[Depends(require_permission(PERM_REPORTS_FINANCE_VIEW))])
async def get_collection_report(
    db: DbSession,
    from_date: date = Query(...),
    to_date: date = Query(...),
):
    if from_date > to_date:
        raise HTTPException(status_code=400, detail="from_date cannot be after to_date")
    return DataResponse(data=await collection_report(db, from_date, to_date))


@router.get("/finance/pending-dues", response_model=DataResponse[list[PendingDueItem]], dependencies=[Depends(require_permission(PERM_REPORTS_FINANCE_VIEW))])
async def get_pending_dues(
    db: DbSession,
    class_name: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    items = await pending_dues_by_student(db, class_name)
    start = (page - 1) * page_size
    return DataResponse(
        data=items[start:start + page_size],
        meta=PaginationMeta.build(page, page_size, len(items)),
    )
