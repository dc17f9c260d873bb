from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from checkmate.db import Base


class MissMarker(Base):
    """A (goal, period) whose penalty was already dispatched."""

    __tablename__ = "miss_markers"

    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), primary_key=True)
    # '2024-06-01' for day-scoped goals, '2024-W23' for x-per-week goals
    period_key = Column(String(16), primary_key=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    goal = relationship("Goal", back_populates="miss_markers")
