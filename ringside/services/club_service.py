"""Club ownership and membership changes.

Each mutation here changes an input of a cached ownership lookup, so each
one invalidates the affected permission cache entries before returning.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, ValidationError
from ..models import AthleteProfile, Club, ClubCoach
from ..permissions import Role
from ..repositories import ClubRepository, ProfileRepository, UserRepository
from .cache_invalidation import PermissionCacheInvalidator

logger = logging.getLogger(__name__)


class ClubService:
    def __init__(self, db: Session, invalidator: PermissionCacheInvalidator):
        self.db = db
        self.invalidator = invalidator
        self.clubs = ClubRepository(db)
        self.profiles = ProfileRepository(db)
        self.users = UserRepository(db)

    def set_owner(self, club_id: str, owner_user_id: Optional[str]) -> Club:
        """Give a club to a GYM_OWNER account, or clear its owner with None.

        Every member profile is invalidated too: their club-member lookups
        were answered against the previous owner.
        """
        club = self.clubs.get_by_id(club_id)
        if owner_user_id is not None:
            user = self.users.get_by_id(owner_user_id)
            if user.role != Role.GYM_OWNER.value:
                raise ValidationError("User must be a GYM_OWNER to own a club", field="owner_id")

        previous_owner = club.owner_id
        club.owner_id = owner_user_id
        self.db.commit()

        self.invalidator.invalidate_club(club_id)
        for identity in {previous_owner, owner_user_id} - {None}:
            self.invalidator.invalidate_identity(identity)
        for profile_id in self.clubs.get_member_profile_ids(club_id):
            self.invalidator.invalidate_profile(profile_id)

        logger.info(
            "Club owner changed",
            extra={"club_id": club_id, "previous_owner": previous_owner, "owner": owner_user_id},
        )
        self.db.refresh(club)
        return club

    def assign_athlete(self, profile_id: str, club_id: str) -> AthleteProfile:
        profile = self.profiles.get_by_id(profile_id)
        self.clubs.get_by_id(club_id)

        profile.club_id = club_id
        self.db.commit()
        self.invalidator.invalidate_profile(profile_id)

        logger.info("Athlete assigned to club", extra={"profile_id": profile_id, "club_id": club_id})
        self.db.refresh(profile)
        return profile

    def remove_athlete(self, profile_id: str, club_id: str) -> AthleteProfile:
        profile = self.profiles.get_by_id(profile_id)
        if profile.club_id != club_id:
            raise ValidationError("Athlete is not a member of this club", field="club_id")

        profile.club_id = None
        self.db.commit()
        self.invalidator.invalidate_profile(profile_id)

        logger.info("Athlete removed from club", extra={"profile_id": profile_id, "club_id": club_id})
        self.db.refresh(profile)
        return profile

    def assign_coach(self, coach_user_id: str, club_id: str, is_head: bool = False) -> ClubCoach:
        """Attach a COACH account to a club. A coach belongs to one club at a time."""
        user = self.users.get_by_id(coach_user_id)
        if user.role != Role.COACH.value:
            raise ValidationError("User is not a coach", field="coach_user_id")
        self.clubs.get_by_id(club_id)

        existing = self.clubs.get_coach_assignment(coach_user_id)
        if existing is not None:
            if existing.club_id == club_id:
                raise ConflictError(
                    "Coach is already assigned to this club",
                    details={"club_id": club_id, "coach_user_id": coach_user_id},
                )
            raise ConflictError(
                "Coach is already assigned to another club",
                details={"club_id": existing.club_id, "coach_user_id": coach_user_id},
            )

        assignment = ClubCoach(club_id=club_id, coach_user_id=coach_user_id, is_head=is_head)
        self.db.add(assignment)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(
                "Coach is already assigned to another club",
                details={"coach_user_id": coach_user_id},
            )
        self.invalidator.invalidate_club(club_id)
        self.invalidator.invalidate_identity(coach_user_id)

        logger.info(
            "Coach assigned to club",
            extra={"coach_user_id": coach_user_id, "club_id": club_id, "is_head": is_head},
        )
        self.db.refresh(assignment)
        return assignment

    def remove_coach(self, coach_user_id: str, club_id: str) -> None:
        existing = self.clubs.get_coach_assignment(coach_user_id)
        if existing is None or existing.club_id != club_id:
            raise ValidationError("Coach is not assigned to this club", field="club_id")

        self.db.delete(existing)
        self.db.commit()
        self.invalidator.invalidate_club(club_id)
        self.invalidator.invalidate_identity(coach_user_id)

        logger.info("Coach removed from club", extra={"coach_user_id": coach_user_id, "club_id": club_id})
