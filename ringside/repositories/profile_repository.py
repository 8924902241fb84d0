"""Repositories for users, clubs, athlete profiles and coach links."""

from typing import List, Optional

from ..exceptions import (
    ClubNotFoundError,
    CoachLinkNotFoundError,
    ProfileNotFoundError,
    UserNotFoundError,
)
from ..models import AthleteProfile, Club, ClubCoach, CoachLink, User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    model_class = User
    id_column = "user_id"
    not_found_error = UserNotFoundError


class ClubRepository(BaseRepository[Club]):
    model_class = Club
    not_found_error = ClubNotFoundError

    def get_owner_id(self, club_id: str) -> Optional[str]:
        """Owner of a club, or None when the club is missing or unowned."""
        row = self.db.query(Club.owner_id).filter(Club.id == club_id).first()
        return row[0] if row else None

    def get_member_profile_ids(self, club_id: str) -> List[str]:
        rows = self.db.query(AthleteProfile.id).filter(AthleteProfile.club_id == club_id).all()
        return [r[0] for r in rows]

    def get_coach_assignment(self, coach_user_id: str) -> Optional[ClubCoach]:
        """The coach's club assignment, whichever club it is."""
        return self.db.query(ClubCoach).filter(ClubCoach.coach_user_id == coach_user_id).first()


class ProfileRepository(BaseRepository[AthleteProfile]):
    model_class = AthleteProfile
    not_found_error = ProfileNotFoundError

    def get_by_owner(self, owner_id: str) -> Optional[AthleteProfile]:
        return self.db.query(AthleteProfile).filter(AthleteProfile.owner_id == owner_id).first()

    def get_owner_id(self, profile_id: str) -> Optional[str]:
        row = self.db.query(AthleteProfile.owner_id).filter(AthleteProfile.id == profile_id).first()
        return row[0] if row else None

    def get_club_owner_id(self, profile_id: str) -> Optional[str]:
        """Owner of the club the profile belongs to, in one joined read."""
        row = (
            self.db.query(Club.owner_id)
            .join(AthleteProfile, AthleteProfile.club_id == Club.id)
            .filter(AthleteProfile.id == profile_id)
            .first()
        )
        return row[0] if row else None


class CoachLinkRepository(BaseRepository[CoachLink]):
    model_class = CoachLink
    not_found_error = CoachLinkNotFoundError

    def get(self, coach_user_id: str, profile_id: str) -> Optional[CoachLink]:
        return (
            self.db.query(CoachLink)
            .filter(CoachLink.coach_user_id == coach_user_id, CoachLink.profile_id == profile_id)
            .first()
        )

    def get_scope(self, coach_user_id: str, profile_id: str) -> Optional[str]:
        row = (
            self.db.query(CoachLink.scope)
            .filter(CoachLink.coach_user_id == coach_user_id, CoachLink.profile_id == profile_id)
            .first()
        )
        return row[0] if row else None
