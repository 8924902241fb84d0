"""Explicit invalidation of memoized permission lookups.

Invalidation is caller-triggered: any mutation of club ownership, club
membership or coach-link scope must call the matching function in the same
logical operation. Forgetting to do so leaves a stale decision for up to the
cache TTL.
"""

import logging

from ..cache import PermissionCache
from .ownership import (
    CACHE_NAMESPACE,
    CLUB_MEMBER_PREFIX,
    CLUB_OWNER_PREFIX,
    COACH_LINK_PREFIX,
    PROFILE_OWNER_PREFIX,
)

logger = logging.getLogger(__name__)


class PermissionCacheInvalidator:
    """Deletes cached permission lookups by structured key pattern."""

    def __init__(self, cache: PermissionCache):
        self.cache = cache

    def _delete(self, patterns: list[str]) -> int:
        return sum(self.cache.delete_pattern(p) for p in patterns)

    def invalidate_identity(self, identity: str) -> int:
        """Every lookup keyed by an acting identity (owner, coach, gym owner)."""
        count = self._delete([
            f"{PROFILE_OWNER_PREFIX}{identity}:*",
            f"{COACH_LINK_PREFIX}{identity}:*",
            f"{CLUB_OWNER_PREFIX}{identity}:*",
            f"{CLUB_MEMBER_PREFIX}{identity}:*",
        ])
        logger.info("Invalidated permission cache for identity", extra={"identity": identity, "deleted": count})
        return count

    def invalidate_profile(self, profile_id: str) -> int:
        """Ownership, coach-link and club-membership lookups about one profile."""
        count = self._delete([
            f"{PROFILE_OWNER_PREFIX}*:{profile_id}",
            f"{COACH_LINK_PREFIX}*:{profile_id}:*",
            f"{CLUB_MEMBER_PREFIX}*:{profile_id}",
        ])
        logger.info("Invalidated permission cache for profile", extra={"profile_id": profile_id, "deleted": count})
        return count

    def invalidate_club(self, club_id: str) -> int:
        """Club-ownership lookups for one club."""
        count = self._delete([f"{CLUB_OWNER_PREFIX}*:{club_id}"])
        logger.info("Invalidated permission cache for club", extra={"club_id": club_id, "deleted": count})
        return count

    def invalidate_all(self) -> int:
        """Drop every permission lookup.

        Expensive: scans the whole keyspace and sends every subsequent check
        to the database. Reserved for rare corrective operations.
        """
        count = self._delete([f"{CACHE_NAMESPACE}*"])
        logger.warning("Invalidated entire permission cache", extra={"deleted": count})
        return count
