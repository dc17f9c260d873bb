import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from checkmate.core.config import settings
from checkmate.core.errors import InvalidCheckinCount, InvalidDate, InvalidRecurrenceRule
from checkmate.core.time_utils import as_local_naive, hhmm_to_time, local_now, time_to_hhmm
from checkmate.db import get_db
from checkmate.engine.ledger import CheckinLedger
from checkmate.engine.progress import InProgress, Missed, NotActiveToday, Satisfied, evaluate
from checkmate.engine.recurrence import (
    CustomDays,
    XPerWeek,
    build_recurrence,
    describe,
    effective_end_date,
    next_active_date,
    validate_goal_fields,
)
from checkmate.models.goal import Goal
from checkmate.schemas.goal import (
    GoalCreate,
    GoalRead,
    GoalUpdate,
    NextActiveRead,
    ProgressRead,
    RecurrenceIn,
    RecurrenceRead,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


def request_now(now: Optional[datetime]) -> datetime:
    """Wall-clock time for a request: explicit `now` if given, else local time."""
    if now is None:
        return local_now(settings.timezone)
    return as_local_naive(now, settings.timezone)


def get_goal_or_404(db: Session, goal_id: int) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id).first()
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


def _recurrence_from(payload: RecurrenceIn):
    return build_recurrence(payload.kind.value, payload.days, payload.count, payload.any_days)


def _recurrence_read(rule) -> RecurrenceRead:
    days: list[int] = []
    count = None
    any_days = None
    if isinstance(rule, CustomDays):
        days = sorted(rule.days)
    elif isinstance(rule, XPerWeek):
        days = sorted(rule.days)
        count = rule.count
        any_days = rule.any_days
    return RecurrenceRead(kind=rule.kind, days=days, count=count, any_days=any_days, label=describe(rule))


def progress_read(status) -> ProgressRead:
    if isinstance(status, NotActiveToday):
        return ProgressRead(state=status.state, next_active_date=status.next_active_date)
    if isinstance(status, Missed):
        return ProgressRead(
            state=status.state,
            done=status.done,
            required=status.required,
            period_key=status.period_key,
            deadline=status.deadline,
        )
    if isinstance(status, (InProgress, Satisfied)):
        return ProgressRead(state=status.state, done=status.done, required=status.required)
    raise TypeError(f"Unknown progress status: {status!r}")


def goal_read(goal: Goal, progress=None) -> GoalRead:
    return GoalRead(
        id=goal.id,
        user_id=goal.user_id,
        title=goal.title,
        description=goal.description,
        recurrence=_recurrence_read(goal.recurrence),
        checkins_per_day=goal.checkins_per_day,
        start_date=goal.start_date,
        end_date=goal.end_date,
        effective_end_date=effective_end_date(goal),
        reset_time=time_to_hhmm(goal.reset_time),
        progress=progress_read(progress) if progress is not None else None,
    )


@router.post("/", response_model=GoalRead)
def create_goal(payload: GoalCreate, db: Session = Depends(get_db)):
    if not payload.title.strip():
        raise HTTPException(status_code=422, detail="title is required")

    try:
        rule = _recurrence_from(payload.recurrence)
        validate_goal_fields(payload.start_date, payload.end_date, payload.checkins_per_day)
        reset_time = hhmm_to_time(payload.reset_time) if payload.reset_time else None
    except (InvalidRecurrenceRule, InvalidDate, InvalidCheckinCount, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    goal = Goal(
        user_id=payload.user_id,
        title=payload.title.strip(),
        description=payload.description,
        checkins_per_day=payload.checkins_per_day,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reset_time=reset_time,
    )
    goal.recurrence = rule

    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info("Goal %s created for user %s (%s)", goal.id, goal.user_id, goal.recurrence_kind)

    return goal_read(goal)


@router.get("/", response_model=list[GoalRead])
def list_goals(
    user_id: str = Query(...),
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """
    List a user's goals with their progress as of `now`.

    This is what the dashboard calls to split goals into active,
    completed and missed:
      GET /goals?user_id=abc123
    """
    at = request_now(now)
    ledger = CheckinLedger(db)
    goals = (
        db.query(Goal)
        .filter(Goal.user_id == user_id)
        .order_by(Goal.start_date, Goal.id)
        .all()
    )
    return [goal_read(goal, evaluate(goal, ledger, at)) for goal in goals]


@router.get("/{goal_id}", response_model=GoalRead)
def get_goal(goal_id: int, db: Session = Depends(get_db)):
    return goal_read(get_goal_or_404(db, goal_id))


@router.put("/{goal_id}", response_model=GoalRead)
def update_goal(goal_id: int, payload: GoalUpdate, db: Session = Depends(get_db)):
    goal = get_goal_or_404(db, goal_id)
    update_data = payload.model_dump(exclude_unset=True)

    try:
        rule = goal.recurrence
        if update_data.get("recurrence") is not None:
            rule = _recurrence_from(payload.recurrence)
        update_data.pop("recurrence", None)

        if "reset_time" in update_data:
            val = update_data.pop("reset_time")
            goal.reset_time = hhmm_to_time(val) if val else None

        if "title" in update_data:
            title = (update_data.pop("title") or "").strip()
            if not title:
                raise HTTPException(status_code=422, detail="title is required")
            goal.title = title

        # Set other fields directly
        for key, value in update_data.items():
            if key in ("start_date", "checkins_per_day") and value is None:
                continue
            setattr(goal, key, value)

        validate_goal_fields(goal.start_date, goal.end_date, goal.checkins_per_day)
        goal.recurrence = rule
    except (InvalidRecurrenceRule, InvalidDate, InvalidCheckinCount, ValueError) as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))

    db.commit()
    db.refresh(goal)
    return goal_read(goal)


@router.delete("/{goal_id}")
def delete_goal(goal_id: int, db: Session = Depends(get_db)):
    goal = get_goal_or_404(db, goal_id)
    db.delete(goal)
    db.commit()
    logger.info("Goal %s deleted", goal_id)
    return {"message": "Goal deleted"}


@router.get("/{goal_id}/progress", response_model=ProgressRead)
def get_goal_progress(
    goal_id: int,
    now: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    goal = get_goal_or_404(db, goal_id)
    return progress_read(evaluate(goal, CheckinLedger(db), request_now(now)))


@router.get("/{goal_id}/next_active", response_model=NextActiveRead)
def get_next_active(
    goal_id: int,
    after: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    goal = get_goal_or_404(db, goal_id)
    if after is None:
        after = request_now(None).date()
    return NextActiveRead(goal_id=goal.id, after=after, next_active_date=next_active_date(goal, after))
