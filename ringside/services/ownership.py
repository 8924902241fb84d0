"""Cached resource-ownership lookups used by the permission evaluator.

Each resolver builds a deterministic cache key, returns the cached boolean on
a hit, and on a miss performs exactly one database read, caches the answer
for the TTL and returns it. A missing row is a definitive ``False``, not an
error.

Key layout (the invalidation protocol deletes by these prefixes):

    perm:resource:profile:{identity}:{profile_id}
    perm:club-owner:{identity}:{club_id}
    perm:club-member:{identity}:{profile_id}
    perm:coach-link:{coach_identity}:{profile_id}:{scope}
"""

import logging
from typing import Callable

from sqlalchemy.orm import Session

from ..cache import PermissionCache
from ..permissions import CoachScope
from ..repositories import ClubRepository, CoachLinkRepository, ProfileRepository

logger = logging.getLogger(__name__)

PERMISSION_CACHE_TTL = 300

CACHE_NAMESPACE = "perm:"
PROFILE_OWNER_PREFIX = "perm:resource:profile:"
CLUB_OWNER_PREFIX = "perm:club-owner:"
CLUB_MEMBER_PREFIX = "perm:club-member:"
COACH_LINK_PREFIX = "perm:coach-link:"


def profile_owner_key(identity: str, profile_id: str) -> str:
    return f"{PROFILE_OWNER_PREFIX}{identity}:{profile_id}"


def club_owner_key(identity: str, club_id: str) -> str:
    return f"{CLUB_OWNER_PREFIX}{identity}:{club_id}"


def club_member_key(identity: str, profile_id: str) -> str:
    return f"{CLUB_MEMBER_PREFIX}{identity}:{profile_id}"


def coach_link_key(coach_identity: str, profile_id: str, scope: CoachScope) -> str:
    return f"{COACH_LINK_PREFIX}{coach_identity}:{profile_id}:{CoachScope(scope).value}"


class OwnershipResolver:
    """Single-purpose, independently cacheable relationship reads."""

    def __init__(self, db: Session, cache: PermissionCache, ttl: int = PERMISSION_CACHE_TTL):
        self.cache = cache
        self.ttl = ttl
        self.profiles = ProfileRepository(db)
        self.clubs = ClubRepository(db)
        self.coach_links = CoachLinkRepository(db)

    def _memoized(self, key: str, compute: Callable[[], bool]) -> bool:
        cached = self.cache.get(key)
        if cached is not None:
            return bool(cached)
        value = bool(compute())
        self.cache.set(key, value, self.ttl)
        logger.debug("Permission lookup cached", extra={"cache_key": key, "value": value})
        return value

    def is_profile_owner(self, identity: str, profile_id: str) -> bool:
        return self._memoized(
            profile_owner_key(identity, profile_id),
            lambda: self.profiles.get_owner_id(profile_id) == identity,
        )

    def is_club_owner(self, identity: str, club_id: str) -> bool:
        return self._memoized(
            club_owner_key(identity, club_id),
            lambda: self.clubs.get_owner_id(club_id) == identity,
        )

    def is_profile_in_club_owned_by(self, identity: str, profile_id: str) -> bool:
        return self._memoized(
            club_member_key(identity, profile_id),
            lambda: self.profiles.get_club_owner_id(profile_id) == identity,
        )

    def coach_has_link_permission(self, coach_identity: str, profile_id: str, required: CoachScope) -> bool:
        required = CoachScope(required)

        def compute() -> bool:
            scope = self.coach_links.get_scope(coach_identity, profile_id)
            return scope is not None and CoachScope(scope).satisfies(required)

        return self._memoized(coach_link_key(coach_identity, profile_id, required), compute)
