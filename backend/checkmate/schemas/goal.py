from datetime import date, datetime
from typing import Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RecurrenceKind(str, Enum):
    none = "none"
    daily = "daily"
    weekly = "weekly"
    custom_days = "custom_days"
    x_per_week = "x_per_week"


class RecurrenceIn(BaseModel):
    """Recurrence as submitted by the client; validated by the engine."""

    kind: RecurrenceKind = RecurrenceKind.none
    days: Optional[list[int]] = None    # weekdays, 0 = Sunday
    count: Optional[int] = None         # x_per_week only
    any_days: bool = False              # x_per_week only


class RecurrenceRead(BaseModel):
    kind: RecurrenceKind
    days: list[int] = []
    count: Optional[int] = None
    any_days: Optional[bool] = None
    label: str


class GoalBase(BaseModel):
    title: str
    description: Optional[str] = None
    recurrence: RecurrenceIn = RecurrenceIn()
    checkins_per_day: int = 1
    start_date: date
    end_date: Optional[date] = None
    reset_time: Optional[str] = None  # 'HH:MM'


class GoalCreate(GoalBase):
    """Schema for creating a new goal."""

    user_id: str


class GoalUpdate(BaseModel):
    """Schema for editing an existing goal (all fields optional)."""

    title: Optional[str] = None
    description: Optional[str] = None
    recurrence: Optional[RecurrenceIn] = None
    checkins_per_day: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reset_time: Optional[str] = None

    # Be lenient with extra fields from clients
    model_config = ConfigDict(extra="ignore")


class ProgressRead(BaseModel):
    state: str                      # not_active, in_progress, satisfied, missed
    done: Optional[int] = None
    required: Optional[int] = None
    next_active_date: Optional[date] = None
    period_key: Optional[str] = None
    deadline: Optional[datetime] = None


class GoalRead(BaseModel):
    """Schema returned to the frontend when reading a goal."""

    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    recurrence: RecurrenceRead
    checkins_per_day: int
    start_date: date
    end_date: Optional[date] = None
    effective_end_date: date
    reset_time: Optional[str] = None
    progress: Optional[ProgressRead] = None


class CheckinUpsert(BaseModel):
    count: int = Field(..., description="Completions logged that day, 0..checkins_per_day")


class CheckinRead(BaseModel):
    goal_id: int
    day: date
    count: int


class WeekTotalRead(BaseModel):
    goal_id: int
    week_start: date
    week_end: date
    total: int


class NextActiveRead(BaseModel):
    goal_id: int
    after: date
    next_active_date: Optional[date] = None
