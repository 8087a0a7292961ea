"""Base enumerations shared by the SQLAlchemy models."""
from enum import Enum


class PresenceState(int, Enum):
    """Presence flag stored in ``common_user.state``."""
    OFFLINE = 0
    ONLINE = 1


class LoginType(int, Enum):
    """Login type discriminator stored in ``common_login_log.login_type``."""
    ADMIN = 1
    USER = 2
    SYSTEM = 3
