"""Session persistence."""

from washsync.session.store import TOKEN_KEY, USER_KEY, Session, SessionStore

__all__ = [
    "Session",
    "SessionStore",
    "TOKEN_KEY",
    "USER_KEY",
]
