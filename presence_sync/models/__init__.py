"""Database models."""
from presence_sync.models.base import PresenceState, LoginType
from presence_sync.models.user import User
from presence_sync.models.game_money_log import GameMoneyLog
from presence_sync.models.login_log import LoginLog

__all__ = [
    "PresenceState",
    "LoginType",
    "User",
    "GameMoneyLog",
    "LoginLog",
]
