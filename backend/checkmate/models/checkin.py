from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from checkmate.db import Base


class GoalCheckin(Base):
    __tablename__ = "goal_checkins"
    __table_args__ = (UniqueConstraint("goal_id", "day", name="uq_goal_checkins_goal_day"),)

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)

    day = Column(Date, nullable=False)
    # Completions logged that day, 0..goal.checkins_per_day; overwritten on update
    count = Column(Integer, nullable=False, default=0)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    goal = relationship("Goal", back_populates="checkins")
