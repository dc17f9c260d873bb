"""Recurrence rules and the activity decision for a calendar date.

A goal's rule is one of five frozen variants. Each validates itself on
construction, so an invalid combination (e.g. custom days with no days)
cannot exist past `build_recurrence`.

Evaluation functions accept any goal-like object exposing `recurrence`,
`start_date`, `end_date` and `checkins_per_day`; in practice that is
`checkmate.models.goal.Goal`.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Union

from checkmate.core.config import settings
from checkmate.core.constants import (
    KIND_CUSTOM_DAYS,
    KIND_DAILY,
    KIND_NONE,
    KIND_WEEKLY,
    KIND_X_PER_WEEK,
    MAX_SCAN_DAYS,
    SCOPE_DAY,
    WEEKDAY_NAMES,
    SCOPE_WEEK,
)
from checkmate.core.errors import InvalidCheckinCount, InvalidDate, InvalidRecurrenceRule
from checkmate.core.time_utils import add_days, add_years, day_of_week, is_within


def _weekday_set(days: Iterable[int]) -> frozenset:
    out = set()
    for d in days:
        if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6:
            raise InvalidRecurrenceRule(f"Weekday must be an integer 0..6 (0 = Sunday), got {d!r}")
        out.add(d)
    return frozenset(out)


@dataclass(frozen=True)
class NoRepeat:
    """One deadline: active only on start_date."""

    kind = KIND_NONE
    scope = SCOPE_DAY


@dataclass(frozen=True)
class Daily:
    kind = KIND_DAILY
    scope = SCOPE_DAY


@dataclass(frozen=True)
class Weekly:
    """Active on start_date's weekday."""

    kind = KIND_WEEKLY
    scope = SCOPE_DAY


@dataclass(frozen=True)
class CustomDays:
    days: frozenset

    kind = KIND_CUSTOM_DAYS
    scope = SCOPE_DAY

    def __post_init__(self):
        days = _weekday_set(self.days)
        if not days:
            raise InvalidRecurrenceRule("Custom days need at least one weekday")
        object.__setattr__(self, "days", days)


@dataclass(frozen=True)
class XPerWeek:
    """`count` check-in days per Sunday..Saturday week.

    With `any_days` every day is active and only the weekly total matters;
    otherwise `days` lists exactly `count` active weekdays.
    """

    count: int
    any_days: bool = True
    days: frozenset = field(default_factory=frozenset)

    kind = KIND_X_PER_WEEK
    scope = SCOPE_WEEK

    def __post_init__(self):
        if isinstance(self.count, bool) or not isinstance(self.count, int) or not 1 <= self.count <= 7:
            raise InvalidRecurrenceRule(f"Times per week must be 1..7, got {self.count!r}")
        days = _weekday_set(self.days or ())
        if not self.any_days and len(days) != self.count:
            raise InvalidRecurrenceRule(
                f"Expected exactly {self.count} weekdays, got {len(days)}"
            )
        object.__setattr__(self, "any_days", bool(self.any_days))
        object.__setattr__(self, "days", days)


Recurrence = Union[NoRepeat, Daily, Weekly, CustomDays, XPerWeek]


def build_recurrence(
    kind: Optional[str],
    days: Optional[Iterable[int]] = None,
    count: Optional[int] = None,
    any_days: Optional[bool] = None,
) -> Recurrence:
    """Construct a rule from stored or submitted fields."""
    kind = kind or KIND_NONE
    if kind == KIND_NONE:
        return NoRepeat()
    if kind == KIND_DAILY:
        return Daily()
    if kind == KIND_WEEKLY:
        return Weekly()
    if kind == KIND_CUSTOM_DAYS:
        return CustomDays(days=days or ())
    if kind == KIND_X_PER_WEEK:
        if count is None:
            raise InvalidRecurrenceRule("Times per week is required")
        return XPerWeek(count=count, any_days=bool(any_days), days=days or ())
    raise InvalidRecurrenceRule(f"Unknown recurrence kind: {kind!r}")


def validate_goal_fields(start_date: date, end_date: Optional[date], checkins_per_day: int) -> None:
    if end_date is not None and end_date < start_date:
        raise InvalidDate("end_date must be on or after start_date")
    if isinstance(checkins_per_day, bool) or not isinstance(checkins_per_day, int) or checkins_per_day < 1:
        raise InvalidCheckinCount("checkins_per_day must be at least 1")


def effective_end_date(goal, horizon_years: Optional[int] = None) -> date:
    """Explicit end_date, or start_date plus the default horizon."""
    if goal.end_date is not None:
        return goal.end_date
    if horizon_years is None:
        horizon_years = settings.goal_horizon_years
    return add_years(goal.start_date, horizon_years)


def is_active_on(goal, d: date, horizon_years: Optional[int] = None) -> bool:
    """Whether the goal asks for a check-in on calendar date d."""
    if not is_within(d, goal.start_date, effective_end_date(goal, horizon_years)):
        return False

    rule = goal.recurrence
    if isinstance(rule, NoRepeat):
        return d == goal.start_date
    if isinstance(rule, Daily):
        return True
    if isinstance(rule, Weekly):
        return day_of_week(d) == day_of_week(goal.start_date)
    if isinstance(rule, CustomDays):
        return day_of_week(d) in rule.days
    if isinstance(rule, XPerWeek):
        return rule.any_days or day_of_week(d) in rule.days
    raise InvalidRecurrenceRule(f"Unsupported recurrence rule: {rule!r}")


def next_active_date(goal, after: date, horizon_years: Optional[int] = None) -> Optional[date]:
    """First active date strictly after `after`, or None within the goal's range."""
    end = effective_end_date(goal, horizon_years)
    cursor = max(add_days(after, 1), goal.start_date)
    for _ in range(MAX_SCAN_DAYS + 1):
        if cursor > end:
            return None
        if is_active_on(goal, cursor, horizon_years):
            return cursor
        cursor = add_days(cursor, 1)
    return None


def describe(rule: Recurrence) -> str:
    """Short human label, e.g. 'Mon, Wed, Fri' or '3x per week'."""
    if isinstance(rule, NoRepeat):
        return "Once"
    if isinstance(rule, Daily):
        return "Every day"
    if isinstance(rule, Weekly):
        return "Every week"
    if isinstance(rule, CustomDays):
        return ", ".join(WEEKDAY_NAMES[d] for d in sorted(rule.days))
    label = f"{rule.count}x per week"
    if not rule.any_days:
        label += " (" + ", ".join(WEEKDAY_NAMES[d] for d in sorted(rule.days)) + ")"
    return label
