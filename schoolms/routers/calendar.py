from datetime import date, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, and_, or_
from schoolms.core.permissions import PERM_CALENDAR_MANAGE
from schoolms.models.settings import CalendarEvent
from schoolms.models.enums import CalendarEventType
from schoolms.schemas.settings import (
    BSDateRead,
    CalendarMonth,
    CalendarEventRead,
    CalendarEventCreate,
    CalendarEventUpdate,
)
from schoolms.schemas.common import DataResponse
from schoolms.deps import require_permission, CurrentUser, DbSession
from schoolms.services.activity import record_activity
from schoolms.services.nepali_calendar import (
    BS_YEAR,
    NEPALI_MONTHS,
    BSDate,
    days_in_month,
    first_weekday,
    gregorian_to_nepali,
    month_grid,
    nepali_to_gregorian,
    to_nepali_numeral,
)
from schoolms.utils.school_time import school_today

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def _bs_read(bs: BSDate, gregorian: date) -> BSDateRead:
    return BSDateRead(
        year=bs.year,
        month=bs.month,
        day=bs.day,
        month_name=bs.month_name,
        formatted=f"{to_nepali_numeral(bs.day)} {bs.month_name} {to_nepali_numeral(bs.year)}",
        gregorian=gregorian,
    )


def _event_read(event: CalendarEvent) -> CalendarEventRead:
    data = CalendarEventRead.model_validate(event)
    bs = gregorian_to_nepali(event.event_date)
    data.bs_date = str(bs) if bs else None
    return data


def _check_range(event_date: date, end_date: Optional[date]):
    if end_date and end_date < event_date:
        raise HTTPException(status_code=400, detail="End date cannot be before event date")


@router.get("/today", response_model=DataResponse[Optional[BSDateRead]])
async def get_today():
    today = school_today()
    bs = gregorian_to_nepali(today)
    return DataResponse(data=_bs_read(bs, today) if bs else None)


@router.get("/to-bs", response_model=DataResponse[BSDateRead])
async def convert_to_bs(gregorian: date = Query(...)):
    bs = gregorian_to_nepali(gregorian)
    if bs is None:
        raise HTTPException(status_code=400, detail=f"{gregorian} is outside {BS_YEAR} BS")
    return DataResponse(data=_bs_read(bs, gregorian))


@router.get("/to-ad", response_model=DataResponse[BSDateRead])
async def convert_to_ad(month: int = Query(..., ge=1, le=12), day: int = Query(..., ge=1, le=32)):
    try:
        gregorian = nepali_to_gregorian(month, day)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DataResponse(data=_bs_read(BSDate(year=BS_YEAR, month=month, day=day), gregorian))


@router.get("/months/{month}", response_model=DataResponse[CalendarMonth])
async def get_month(month: int, db: DbSession):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail=f"Month must be between 1 and 12, got {month}")

    start = nepali_to_gregorian(month, 1)
    end = start + timedelta(days=days_in_month(month) - 1)
    result = await db.execute(
        select(CalendarEvent)
        .where(
            or_(
                and_(CalendarEvent.event_date >= start, CalendarEvent.event_date <= end),
                and_(CalendarEvent.event_date < start, CalendarEvent.end_date >= start),
            )
        )
        .order_by(CalendarEvent.event_date, CalendarEvent.id)
    )

    info = NEPALI_MONTHS[month - 1]
    return DataResponse(data=CalendarMonth(
        year=BS_YEAR,
        month=month,
        month_name=info["name"],
        english_span=info["english"],
        days=days_in_month(month),
        first_weekday=first_weekday(month),
        weeks=month_grid(month),
        events=[_event_read(e) for e in result.scalars().all()],
    ))


@router.get("/events", response_model=DataResponse[list[CalendarEventRead]])
async def get_events(
    db: DbSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    event_type: Optional[CalendarEventType] = None,
):
    conditions = []
    if from_date:
        conditions.append(CalendarEvent.event_date >= from_date)
    if to_date:
        conditions.append(CalendarEvent.event_date <= to_date)
    if event_type:
        conditions.append(CalendarEvent.event_type == event_type)

    result = await db.execute(
        select(CalendarEvent).where(*conditions).order_by(CalendarEvent.event_date, CalendarEvent.id)
    )
    return DataResponse(data=[_event_read(e) for e in result.scalars().all()])


@router.post("/events", response_model=DataResponse[CalendarEventRead], dependencies=[Depends(require_permission(PERM_CALENDAR_MANAGE))])
async def create_event(data: CalendarEventCreate, user: CurrentUser, db: DbSession):
    _check_range(data.event_date, data.end_date)

    event = CalendarEvent(**data.model_dump(), created_by_user_id=user.id)
    db.add(event)
    await db.flush()
    record_activity(db, user.id, "create", "calendar_event", event.id, {"title": event.title})
    await db.commit()
    await db.refresh(event)
    return DataResponse(data=_event_read(event))


@router.patch("/events/{event_id}", response_model=DataResponse[CalendarEventRead], dependencies=[Depends(require_permission(PERM_CALENDAR_MANAGE))])
async def update_event(event_id: int, data: CalendarEventUpdate, user: CurrentUser, db: DbSession):
    result = await db.execute(select(CalendarEvent).where(CalendarEvent.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(event, field, value)
    _check_range(event.event_date, event.end_date)

    record_activity(db, user.id, "update", "calendar_event", event.id, {"fields": sorted(changes)})
    await db.commit()
    await db.refresh(event)
    return DataResponse(data=_event_read(event))


@router.delete("/events/{event_id}", response_model=DataResponse[dict], dependencies=[Depends(require_permission(PERM_CALENDAR_MANAGE))])
async def delete_event(event_id: int, user: CurrentUser, db: DbSession):
    result = await db.execute(select(CalendarEvent).where(CalendarEvent.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    await db.delete(event)
    record_activity(db, user.id, "delete", "calendar_event", event_id)
    await db.commit()
    return DataResponse(data={"message": "Event deleted successfully"})
