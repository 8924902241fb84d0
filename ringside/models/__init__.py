"""Database models."""

from .user import User, Club, AthleteProfile
from .coach_link import CoachLink, Availability, ClubCoach
from .request import (
    ConnectionRequest,
    ConnectionRequestStatus,
    Connection,
    MatchRequest,
    MatchRequestStatus,
)

__all__ = [
    "User", "Club", "AthleteProfile",
    "CoachLink", "Availability", "ClubCoach",
    "ConnectionRequest", "ConnectionRequestStatus", "Connection",
    "MatchRequest", "MatchRequestStatus",
]
