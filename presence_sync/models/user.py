"""User model."""
from sqlalchemy import Column, Integer, String, DateTime, SmallInteger
from presence_sync.database import Base
from presence_sync.models.base import PresenceState


class User(Base):
    """Platform user account.

    The presence job only reads ``id``, ``name`` and ``state`` and only writes
    ``state`` and ``last_activity_at``.
    """

    __tablename__ = "common_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    state = Column(SmallInteger, default=PresenceState.OFFLINE.value, nullable=False)
    last_activity_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, name={self.name}, state={self.state})>"
