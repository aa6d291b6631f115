from datetime import datetime, date
from typing import Any, Optional
from pydantic import BaseModel, Field
from schoolms.models.enums import CalendarEventType


class SystemSettingsRead(BaseModel):
    id: int
    key: str
    value: Optional[str] = None
    description: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class SystemSettingsUpdate(BaseModel):
    """Key/value pairs to create or overwrite"""
    values: dict[str, Optional[str]] = Field(..., min_length=1)


class CalendarEventRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    event_date: date
    end_date: Optional[date] = None
    event_type: CalendarEventType
    bs_date: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CalendarEventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    event_date: date
    end_date: Optional[date] = None
    event_type: CalendarEventType = CalendarEventType.EVENT


class CalendarEventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[date] = None
    end_date: Optional[date] = None
    event_type: Optional[CalendarEventType] = None


class BSDateRead(BaseModel):
    year: int
    month: int
    day: int
    month_name: str
    formatted: str
    gregorian: date


class CalendarMonth(BaseModel):
    year: int
    month: int
    month_name: str
    english_span: str
    days: int
    first_weekday: int
    weeks: list[list[Optional[int]]]
    events: list[CalendarEventRead]


class ActivityLogRead(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
