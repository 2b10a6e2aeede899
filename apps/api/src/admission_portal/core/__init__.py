"""
Core module - Configuration, database, sessions, security, and utilities.
"""

from admission_portal.core.config import get_settings, settings
from admission_portal.core.database import Base, close_db, get_db, init_db
from admission_portal.core.security import hash_password, verify_password
from admission_portal.core.sessions import close_redis, get_redis, init_redis

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
]
