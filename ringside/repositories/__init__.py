"""Data access repositories."""

from .base import BaseRepository
from .profile_repository import (
    ClubRepository,
    CoachLinkRepository,
    ProfileRepository,
    UserRepository,
)
from .request_repository import (
    ConnectionRepository,
    ConnectionRequestRepository,
    MatchRequestRepository,
)

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ClubRepository",
    "ProfileRepository",
    "CoachLinkRepository",
    "ConnectionRequestRepository",
    "ConnectionRepository",
    "MatchRequestRepository",
]
