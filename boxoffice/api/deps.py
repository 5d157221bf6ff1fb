from functools import lru_cache

from boxoffice.core.config import settings
from boxoffice.db.session import SessionLocal, get_db  # noqa: F401
from boxoffice.integrations.identity import IdentityDirectory, SqlIdentityDirectory
from boxoffice.integrations.notifications import NotificationDispatcher


@lru_cache
def get_identity() -> IdentityDirectory:
    """Identity store collaborator shared by every request."""
    return SqlIdentityDirectory(SessionLocal)


@lru_cache
def get_notifications() -> NotificationDispatcher:
    """Background e-mail dispatcher shared by every request."""
    return NotificationDispatcher.from_settings(settings)
