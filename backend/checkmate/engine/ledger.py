"""Per-goal, per-day check-in counters.

`CheckinLedger` is the database-backed ledger; `CheckinCounts` is a pure
in-memory snapshot with the same read interface, which is what the progress
resolver consumes.
"""

import logging
from datetime import date
from typing import Dict, Mapping, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkmate.core.errors import InvalidCheckinCount, StorageUnavailable
from checkmate.core.time_utils import add_days, end_of_week, start_of_week, truncate_to_day
from checkmate.models.checkin import GoalCheckin


logger = logging.getLogger(__name__)


def dialect_insert(db: Session):
    # ON CONFLICT support lives in the dialect-specific insert constructs
    name = db.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise StorageUnavailable(f"Upserts are not supported on {name}")
    return insert


def validate_count(goal, count) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidCheckinCount(f"Check-in count must be an integer, got {count!r}")
    if count < 0 or count > goal.checkins_per_day:
        raise InvalidCheckinCount(
            f"Check-in count must be between 0 and {goal.checkins_per_day}, got {count}"
        )
    return count


class CheckinCounts:
    """Read-only counts keyed by (goal_id, day)."""

    def __init__(self, counts: Optional[Mapping[Tuple[int, date], int]] = None):
        self._counts: Dict[Tuple[int, date], int] = dict(counts or {})

    @classmethod
    def for_goal(cls, goal_id: int, by_day: Mapping[date, int]) -> "CheckinCounts":
        return cls({(goal_id, d): c for d, c in by_day.items()})

    def get_count(self, goal_id: int, day: date) -> int:
        return self._counts.get((goal_id, truncate_to_day(day)), 0)

    def week_total(self, goal_id: int, day: date) -> int:
        """Sum of daily counts over the Sunday..Saturday week containing day."""
        first = start_of_week(truncate_to_day(day))
        return sum(self.get_count(goal_id, add_days(first, i)) for i in range(7))

    def days_met(self, goal_id: int, day: date, per_day: int) -> int:
        """Distinct days in day's week whose count reached per_day."""
        first = start_of_week(truncate_to_day(day))
        return sum(1 for i in range(7) if self.get_count(goal_id, add_days(first, i)) >= per_day)


class CheckinLedger:
    def __init__(self, db: Session):
        self.db = db

    def set_count(self, goal, day: date, count: int) -> int:
        """Upsert today's count for (goal, day). Last write wins."""
        day = truncate_to_day(day)
        count = validate_count(goal, count)
        insert = dialect_insert(self.db)
        stmt = insert(GoalCheckin).values(goal_id=goal.id, day=day, count=count)
        stmt = stmt.on_conflict_do_update(
            index_elements=["goal_id", "day"],
            set_={"count": stmt.excluded["count"], "updated_at": func.now()},
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Could not save check-in for goal {goal.id}: {e}") from e
        logger.info("Check-in set: goal=%s day=%s count=%s", goal.id, day, count)
        return count

    def get_count(self, goal_id: int, day: date) -> int:
        day = truncate_to_day(day)
        try:
            value = self.db.execute(
                select(GoalCheckin.count)
                .where(GoalCheckin.goal_id == goal_id)
                .where(GoalCheckin.day == day)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Could not read check-ins for goal {goal_id}: {e}") from e
        return int(value or 0)

    def counts_between(self, goal_id: int, start: date, end: date) -> Dict[date, int]:
        """Map day -> count for recorded days in [start, end]."""
        try:
            rows = self.db.execute(
                select(GoalCheckin.day, GoalCheckin.count)
                .where(GoalCheckin.goal_id == goal_id)
                .where(GoalCheckin.day >= truncate_to_day(start))
                .where(GoalCheckin.day <= truncate_to_day(end))
                .order_by(GoalCheckin.day)
            ).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Could not read check-ins for goal {goal_id}: {e}") from e
        return {day: int(count or 0) for day, count in rows}

    def week_total(self, goal_id: int, day: date) -> int:
        first = start_of_week(truncate_to_day(day))
        return sum(self.counts_between(goal_id, first, end_of_week(first)).values())

    def days_met(self, goal_id: int, day: date, per_day: int) -> int:
        first = start_of_week(truncate_to_day(day))
        counts = self.counts_between(goal_id, first, end_of_week(first))
        return sum(1 for c in counts.values() if c >= per_day)

    def snapshot(self, goal_id: int, around: date) -> CheckinCounts:
        """Counts for the weeks around a day, enough to evaluate its period."""
        around = truncate_to_day(around)
        start = add_days(start_of_week(around), -7)
        end = end_of_week(around)
        return CheckinCounts.for_goal(goal_id, self.counts_between(goal_id, start, end))
