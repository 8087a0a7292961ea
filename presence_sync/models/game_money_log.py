"""Game money log model."""
from sqlalchemy import Column, Integer, Numeric, String, DateTime, Index
from datetime import datetime, UTC
from presence_sync.database import Base


class GameMoneyLog(Base):
    """Append-only ledger of game wallet movements.

    ``member_id`` is a plain reference to ``common_user.id`` with no foreign key:
    rows may outlive the user they point to.
    """

    __tablename__ = "game_user_money_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, nullable=False)
    money = Column(Numeric(14, 2), default=0, nullable=False)  # Negative for bets, positive for payouts
    remark = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_game_user_money_logs_member_created", "member_id", "created_at"),
    )

    def __repr__(self):
        return f"<GameMoneyLog(id={self.id}, member_id={self.member_id}, money={self.money})>"
