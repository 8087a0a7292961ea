"""Login log model."""
from sqlalchemy import Column, Integer, SmallInteger, String, DateTime, Index
from datetime import datetime, UTC
from presence_sync.database import Base
from presence_sync.models.base import LoginType


class LoginLog(Base):
    """Append-only authentication log.

    The ``unique`` column holds the id of whoever logged in; its meaning depends on
    ``login_type`` (user, admin or system account).
    """

    __tablename__ = "common_login_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    unique_id = Column("unique", Integer, nullable=False)
    login_type = Column(SmallInteger, default=LoginType.USER.value, nullable=False)
    login_ip = Column(String(64), nullable=True)
    login_time = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_common_login_log_unique_type_time", "unique", "login_type", "login_time"),
    )

    def __repr__(self):
        return (f"<LoginLog(id={self.id}, unique={self.unique_id}, "
                f"login_type={self.login_type})>")
