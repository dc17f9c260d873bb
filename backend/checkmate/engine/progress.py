"""Goal progress for a point in time.

A period is the unit of accountability: one day for day-scoped rules, a
Sunday..Saturday week for x-per-week rules. Each period is judged on its own;
a miss never carries over into the next period.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Tuple, Union

from checkmate.core.constants import SCOPE_WEEK
from checkmate.core.time_utils import (
    add_days,
    end_of_week,
    format_period_key,
    start_of_week,
    truncate_to_day,
)
from checkmate.engine.recurrence import NoRepeat, is_active_on, next_active_date


@dataclass(frozen=True)
class NotActiveToday:
    next_active_date: Optional[date]

    state = "not_active"


@dataclass(frozen=True)
class InProgress:
    done: int
    required: int

    state = "in_progress"


@dataclass(frozen=True)
class Satisfied:
    done: int
    required: int

    state = "satisfied"


@dataclass(frozen=True)
class Missed:
    done: int
    required: int
    period_key: str
    deadline: datetime

    state = "missed"


ProgressStatus = Union[NotActiveToday, InProgress, Satisfied, Missed]

MIDNIGHT = time(0, 0)


def period_bounds(goal, day: date) -> Tuple[date, date]:
    """First and last calendar day of the period containing day."""
    if goal.recurrence.scope == SCOPE_WEEK:
        return start_of_week(day), end_of_week(day)
    return day, day


def period_key(goal, day: date) -> str:
    return format_period_key(day, goal.recurrence.scope)


def period_deadline(goal, last_day: date) -> datetime:
    """Moment a period stops accepting check-ins.

    Every rule closes at `reset_time` on the period's last day, or at the
    midnight ending that day when no reset time is set.
    """
    if goal.reset_time is None:
        return datetime.combine(add_days(last_day, 1), MIDNIGHT)
    return datetime.combine(last_day, goal.reset_time)


def concluded_period(goal, now: datetime) -> Optional[date]:
    """
    Day identifying the period a sweep at `now` should judge, or None.

    Yesterday for day-scoped rules and the last completed Sunday..Saturday
    week for x-per-week rules; both are closed whatever the reset time.
    A one-off goal is judged once its deadline has passed.
    """
    if isinstance(goal.recurrence, NoRepeat):
        if period_deadline(goal, goal.start_date) <= now:
            return goal.start_date
        return None

    today = truncate_to_day(now)
    if goal.recurrence.scope == SCOPE_WEEK:
        last_saturday = add_days(start_of_week(today), -1)
        if last_saturday < goal.start_date:
            return None
        return start_of_week(last_saturday)

    yesterday = add_days(today, -1)
    if yesterday < goal.start_date:
        return None
    return yesterday


def _active_days_in_period(goal, day: date, horizon_years=None) -> int:
    first, last = period_bounds(goal, day)
    n = 0
    cursor = first
    while cursor <= last:
        if is_active_on(goal, cursor, horizon_years):
            n += 1
        cursor = add_days(cursor, 1)
    return n


def evaluate(goal, checkins, now: datetime, period: Optional[date] = None, horizon_years=None) -> ProgressStatus:
    """
    Progress of the goal's current period as of `now`.

    `checkins` is anything with `get_count(goal_id, day)` and
    `days_met(goal_id, day, per_day)` (a CheckinLedger or CheckinCounts).
    Pass `period` to judge the period containing that day instead of today's.

    Weekly progress counts distinct days whose count reached
    `checkins_per_day`.
    """
    today = truncate_to_day(now)
    rule = goal.recurrence

    if today < goal.start_date:
        return NotActiveToday(next_active_date(goal, add_days(goal.start_date, -1), horizon_years))

    if period is not None:
        day = truncate_to_day(period)
    elif isinstance(rule, NoRepeat):
        # a one-off goal is judged on its single day from then on
        day = goal.start_date
    else:
        if not is_active_on(goal, today, horizon_years):
            return NotActiveToday(next_active_date(goal, today, horizon_years))
        day = today

    active_days = _active_days_in_period(goal, day, horizon_years)
    if active_days == 0:
        return NotActiveToday(next_active_date(goal, day, horizon_years))

    if rule.scope == SCOPE_WEEK:
        done = checkins.days_met(goal.id, day, goal.checkins_per_day)
        # partial weeks at the edges of the range cannot demand more days than they have
        required = min(rule.count, active_days)
    else:
        done = checkins.get_count(goal.id, day)
        required = goal.checkins_per_day

    if done >= required:
        return Satisfied(done, required)

    _, last = period_bounds(goal, day)
    deadline = period_deadline(goal, last)
    if now >= deadline:
        return Missed(done, required, period_key(goal, day), deadline)
    return InProgress(done, required)
