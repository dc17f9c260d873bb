from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from checkmate.core.errors import DuplicateMiss, StorageUnavailable
from checkmate.engine.ledger import dialect_insert
from checkmate.models.miss_marker import MissMarker


class MissMarkerStore:
    """Unique (goal_id, period_key) records of dispatched penalties."""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, goal_id: int, period_key: str) -> bool:
        try:
            row = self.db.execute(
                select(MissMarker.goal_id)
                .where(MissMarker.goal_id == goal_id)
                .where(MissMarker.period_key == period_key)
            ).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Could not read miss markers for goal {goal_id}: {e}") from e
        return row is not None

    def mark(self, goal_id: int, period_key: str) -> None:
        """Insert-if-absent; raises DuplicateMiss when another run got there first."""
        insert = dialect_insert(self.db)
        stmt = (
            insert(MissMarker)
            .values(goal_id=goal_id, period_key=period_key)
            .on_conflict_do_nothing(index_elements=["goal_id", "period_key"])
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Could not record miss for goal {goal_id}: {e}") from e
        if result.rowcount == 0:
            raise DuplicateMiss(goal_id, period_key)
