"""Coach-to-athlete links and their permission scopes."""

import logging

from sqlalchemy.orm import Session

from ..exceptions import CoachLinkNotFoundError, ConflictError, ValidationError
from ..models import CoachLink
from ..permissions import CoachScope, Role
from ..repositories import CoachLinkRepository, ProfileRepository, UserRepository
from .cache_invalidation import PermissionCacheInvalidator

logger = logging.getLogger(__name__)


class CoachService:
    """Create, rescope and remove coach links.

    Every change invalidates the athlete profile's cached lookups, so a
    revoked scope stops granting access on the next check.
    """

    def __init__(self, db: Session, invalidator: PermissionCacheInvalidator):
        self.db = db
        self.invalidator = invalidator
        self.links = CoachLinkRepository(db)
        self.profiles = ProfileRepository(db)
        self.users = UserRepository(db)

    def link(self, coach_user_id: str, profile_id: str, scope: CoachScope = CoachScope.VIEW_PROFILE) -> CoachLink:
        profile = self.profiles.get_by_id(profile_id)
        athlete = self.users.get_by_id(profile.owner_id)
        if not athlete.is_active:
            raise ValidationError("Cannot link to an inactive athlete", field="profile_id")

        coach = self.users.get_by_id(coach_user_id)
        if coach.role != Role.COACH.value:
            raise ValidationError("User is not a coach", field="coach_user_id")

        if self.links.get(coach_user_id, profile_id) is not None:
            raise ConflictError(
                "Coach-athlete link already exists",
                details={"coach_user_id": coach_user_id, "profile_id": profile_id},
            )

        link = self.links.add(CoachLink(
            coach_user_id=coach_user_id,
            profile_id=profile_id,
            scope=CoachScope(scope).value,
        ))
        self.db.commit()
        self.invalidator.invalidate_profile(profile_id)

        logger.info(
            "Coach linked to athlete",
            extra={"coach_user_id": coach_user_id, "profile_id": profile_id, "scope": link.scope},
        )
        return link

    def unlink(self, coach_user_id: str, profile_id: str) -> None:
        link = self._get(coach_user_id, profile_id)
        self.db.delete(link)
        self.db.commit()
        self.invalidator.invalidate_profile(profile_id)
        logger.info("Coach unlinked from athlete", extra={"coach_user_id": coach_user_id, "profile_id": profile_id})

    def update_scope(self, coach_user_id: str, profile_id: str, scope: CoachScope) -> CoachLink:
        link = self._get(coach_user_id, profile_id)
        link.scope = CoachScope(scope).value
        self.db.commit()
        self.invalidator.invalidate_profile(profile_id)

        logger.info(
            "Coach link scope changed",
            extra={"coach_user_id": coach_user_id, "profile_id": profile_id, "scope": link.scope},
        )
        return link

    def _get(self, coach_user_id: str, profile_id: str) -> CoachLink:
        link = self.links.get(coach_user_id, profile_id)
        if link is None:
            raise CoachLinkNotFoundError(f"{coach_user_id}:{profile_id}")
        return link
