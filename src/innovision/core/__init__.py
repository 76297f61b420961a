"""
Core module - Configuration, database, security, and utilities.
"""

from innovision.core.config import get_settings, settings
from innovision.core.database import Base, close_db, get_db, init_db
from innovision.core.redis import close_redis, init_redis, is_redis_available
from innovision.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

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
    "is_redis_available",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
