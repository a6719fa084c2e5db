"""Process-wide interaction and session state, owned explicitly."""

from .interactions import Comment, InteractionRecord, InteractionStore, Vote
from .session import Theme, ThemePreference, User, UserSession

__all__ = [
    "Comment",
    "InteractionRecord",
    "InteractionStore",
    "Theme",
    "ThemePreference",
    "User",
    "UserSession",
    "Vote",
]
