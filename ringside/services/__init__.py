"""Business logic services."""

from .cache_invalidation import PermissionCacheInvalidator
from .club_service import ClubService
from .coach_service import CoachService
from .connection_service import ConnectionService, normalize_pair
from .match_request_service import MatchingRules, MatchRequestService
from .ownership import OwnershipResolver
from .permission_service import (
    PermissionContext,
    PermissionDecision,
    PermissionEvaluator,
    ResourceRef,
    ResourceType,
)

__all__ = [
    "PermissionCacheInvalidator",
    "ClubService",
    "CoachService",
    "ConnectionService",
    "normalize_pair",
    "MatchingRules",
    "MatchRequestService",
    "OwnershipResolver",
    "PermissionContext",
    "PermissionDecision",
    "PermissionEvaluator",
    "ResourceRef",
    "ResourceType",
]
