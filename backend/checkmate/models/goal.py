from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from checkmate.db import Base
from checkmate.engine.recurrence import XPerWeek, CustomDays, build_recurrence


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)

    # Opaque id from the identity provider
    user_id = Column(String, nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)

    # Recurrence rule, stored flat; read it through `recurrence`
    recurrence_kind = Column(
        String(20),
        nullable=False,
        server_default="none",   # none, daily, weekly, custom_days, x_per_week
    )
    repeat_days = Column(String(20), nullable=True)   # "1,3,5" (0 = Sunday)
    repeat_count = Column(Integer, nullable=True)     # x_per_week only
    any_days = Column(Boolean, nullable=True)         # x_per_week only

    checkins_per_day = Column(Integer, nullable=False, default=1, server_default="1")

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    # Local time-of-day that closes a period (see engine.progress.period_deadline)
    reset_time = Column(Time, nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    checkins = relationship(
        "GoalCheckin",
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    miss_markers = relationship(
        "MissMarker",
        back_populates="goal",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def recurrence(self):
        days = None
        if self.repeat_days:
            days = [int(x) for x in self.repeat_days.split(",") if x.strip()]
        return build_recurrence(self.recurrence_kind, days, self.repeat_count, self.any_days)

    @recurrence.setter
    def recurrence(self, rule):
        self.recurrence_kind = rule.kind
        self.repeat_days = None
        self.repeat_count = None
        self.any_days = None
        if isinstance(rule, CustomDays):
            self.repeat_days = ",".join(str(d) for d in sorted(rule.days))
        elif isinstance(rule, XPerWeek):
            self.repeat_count = rule.count
            self.any_days = rule.any_days
            if rule.days:
                self.repeat_days = ",".join(str(d) for d in sorted(rule.days))


# Register related mappers so Goal can be used on its own
from checkmate.models.checkin import GoalCheckin  # noqa: E402,F401
from checkmate.models.miss_marker import MissMarker  # noqa: E402,F401
