from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
from checkmate.db import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True, index=True)

    # Account the penalty post would be published to
    instagram_username = Column(String, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
