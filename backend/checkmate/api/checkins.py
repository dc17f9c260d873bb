from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from checkmate.api.goals import get_goal_or_404, request_now
from checkmate.core.errors import InvalidCheckinCount
from checkmate.core.time_utils import end_of_week, start_of_week
from checkmate.db import get_db
from checkmate.engine.ledger import CheckinLedger
from checkmate.engine.progress import period_bounds, period_deadline
from checkmate.engine.recurrence import is_active_on
from checkmate.schemas.goal import CheckinRead, CheckinUpsert, WeekTotalRead


router = APIRouter(prefix="/goals", tags=["checkins"])


@router.put("/{goal_id}/checkins/{day}", response_model=CheckinRead)
def set_checkin(
    goal_id: int,
    day: date,
    payload: CheckinUpsert,
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """Set (not add to) the number of check-ins logged for a day.

    Only allowed while the day's period is still open.
    """
    goal = get_goal_or_404(db, goal_id)
    at = request_now(now)

    if day > at.date():
        raise HTTPException(status_code=422, detail="Cannot check in for a future day")
    if not is_active_on(goal, day):
        raise HTTPException(status_code=422, detail=f"Goal is not active on {day.isoformat()}")
    _, last = period_bounds(goal, day)
    if period_deadline(goal, last) <= at:
        raise HTTPException(status_code=422, detail=f"Check-ins for {day.isoformat()} are closed")

    try:
        count = CheckinLedger(db).set_count(goal, day, payload.count)
    except InvalidCheckinCount as e:
        raise HTTPException(status_code=422, detail=str(e))

    return CheckinRead(goal_id=goal.id, day=day, count=count)


@router.get("/{goal_id}/checkins", response_model=list[CheckinRead])
def list_checkins(
    goal_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Recorded check-ins in [start_date, end_date], oldest first.

    Defaults to the current Sunday..Saturday week.
    """
    goal = get_goal_or_404(db, goal_id)
    today = request_now(None).date()
    start = start_date or start_of_week(today)
    end = end_date or end_of_week(start)
    if end < start:
        raise HTTPException(status_code=422, detail="end_date must be on or after start_date")

    counts = CheckinLedger(db).counts_between(goal.id, start, end)
    return [CheckinRead(goal_id=goal.id, day=d, count=c) for d, c in counts.items()]


@router.get("/{goal_id}/checkins/week", response_model=WeekTotalRead)
def get_week_total(
    goal_id: int,
    day: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    goal = get_goal_or_404(db, goal_id)
    day = day or request_now(None).date()
    return WeekTotalRead(
        goal_id=goal.id,
        week_start=start_of_week(day),
        week_end=end_of_week(day),
        total=CheckinLedger(db).week_total(goal.id, day),
    )
