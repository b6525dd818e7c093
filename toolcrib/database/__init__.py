from toolcrib.database.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin
from toolcrib.database.engine import async_session, engine
from toolcrib.database.session import get_db

__all__ = [
    "Base",
    "JSONType",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
]
