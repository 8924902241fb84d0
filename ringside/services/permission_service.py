"""Permission evaluation: role gate, then resource gate.

This is the one place authorization decisions are made. Request handlers
call ``PermissionEvaluator.evaluate`` (or the any/all variants) and act on
the returned ``PermissionDecision``.

Design:
    - Role gate first. A role that can never hold the token is denied
      without touching the database or the cache.
    - No resource reference: the role gate is the whole answer.
    - Otherwise the resource kind selects one ``ResourceRule``. Rules for
      profiles and clubs use the cached ``OwnershipResolver``; availability
      and match-request rules first load the owning profile(s) directly.
    - An unrecognized resource kind is allowed once the role gate passed.
      This mirrors long-standing platform behaviour; it is logged and
      covered by tests and is pending product review.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from ..cache import PermissionCache
from ..models import Availability, MatchRequest
from ..permissions import CoachScope, Permission, Role
from ..permissions import role_has_all, role_has_any, role_has_permission
from .ownership import PERMISSION_CACHE_TTL, OwnershipResolver

logger = logging.getLogger(__name__)


class ResourceType(str, Enum):
    PROFILE = "profile"
    CLUB = "club"
    AVAILABILITY = "availability"
    MATCH_REQUEST = "match_request"


@dataclass(frozen=True)
class PermissionContext:
    """Who is asking. Supplied by the authentication layer."""
    user_id: str
    role: Role

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))


@dataclass(frozen=True)
class ResourceRef:
    """A specific resource instance. ``resource_type`` is a free string so
    callers may name kinds this module has no rule for."""
    resource_type: str
    resource_id: str


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = PermissionDecision(True)


def _deny(reason: str) -> PermissionDecision:
    return PermissionDecision(False, reason)


# ---------------------------------------------------------------------------
# Resource rules
# ---------------------------------------------------------------------------

class ResourceRule(ABC):
    """Resource-gate rule for one resource kind."""

    def __init__(self, db: Session, resolver: OwnershipResolver):
        self.db = db
        self.resolver = resolver

    @abstractmethod
    def check(self, context: PermissionContext, permission: Permission, resource_id: str) -> PermissionDecision:
        ...

    def _manages_profile(self, context: PermissionContext, profile_id: str, scope: CoachScope) -> bool:
        """Coach holding *scope* over the profile, gym owner of its club, or admin."""
        if context.role == Role.COACH:
            return self.resolver.coach_has_link_permission(context.user_id, profile_id, scope)
        if context.role == Role.GYM_OWNER:
            return self.resolver.is_profile_in_club_owned_by(context.user_id, profile_id)
        return context.role == Role.ADMIN


# Tokens through which a coach or gym owner acts as the athlete, and the
# coach-link scope each one requires.
_ON_BEHALF_SCOPES = {
    Permission.MATCH_CREATE_REQUEST: CoachScope.RESPOND_TO_MATCHES,
    Permission.MATCH_ACCEPT: CoachScope.RESPOND_TO_MATCHES,
    Permission.MATCH_DECLINE: CoachScope.RESPOND_TO_MATCHES,
    Permission.MATCH_CANCEL: CoachScope.RESPOND_TO_MATCHES,
    Permission.AVAILABILITY_CREATE: CoachScope.MANAGE_AVAILABILITY,
}


class ProfileRule(ResourceRule):

    def check(self, context, permission, resource_id):
        if permission.resource == "profile" and permission.scope == "own":
            if self.resolver.is_profile_owner(context.user_id, resource_id):
                return ALLOW
            return _deny("You can only perform this action on your own athlete profile")

        if permission == Permission.PROFILE_UPDATE_LINKED:
            if self._manages_profile(context, resource_id, CoachScope.EDIT_PROFILE):
                return ALLOW
            return _deny("You do not have permission to update this athlete profile")

        if permission == Permission.MATCH_READ_OWN:
            if self.resolver.is_profile_owner(context.user_id, resource_id) or self._manages_profile(
                context, resource_id, CoachScope.RESPOND_TO_MATCHES
            ):
                return ALLOW
            return _deny("You cannot view match requests for this athlete")

        scope = _ON_BEHALF_SCOPES.get(permission)
        if scope is not None:
            if self._manages_profile(context, resource_id, scope):
                return ALLOW
            return _deny("You do not manage this athlete's bookings")

        return ALLOW


class ClubRule(ResourceRule):

    _PUBLIC = frozenset({Permission.CLUB_READ_PUBLIC, Permission.CLUB_READ_MEMBERS})
    _MEMBERSHIP = frozenset({
        Permission.CLUB_MEMBER_ADD_ATHLETE,
        Permission.CLUB_MEMBER_REMOVE_ATHLETE,
        Permission.CLUB_MEMBER_ADD_COACH,
        Permission.CLUB_MEMBER_REMOVE_COACH,
    })

    def check(self, context, permission, resource_id):
        if permission in self._PUBLIC:
            return ALLOW

        if permission in self._MEMBERSHIP:
            if self.resolver.is_club_owner(context.user_id, resource_id) or context.role == Role.ADMIN:
                return ALLOW
            return _deny("Only the club owner can manage club members")

        if permission == Permission.CLUB_SET_OWNER:
            if context.role == Role.ADMIN:
                return ALLOW
            return _deny("Only administrators can set club ownership")

        return ALLOW


class AvailabilityRule(ResourceRule):

    def check(self, context, permission, resource_id):
        # Request-scoped row: read directly, not through the cache.
        row = self.db.query(Availability.profile_id).filter(Availability.id == resource_id).first()
        if row is None:
            return _deny("Availability not found")
        profile_id = row[0]

        if context.role == Role.ATHLETE:
            if permission == Permission.AVAILABILITY_READ and self.resolver.is_profile_owner(context.user_id, profile_id):
                return ALLOW
            return _deny("Athletes can only view their own availability")

        if context.role == Role.COACH:
            if self.resolver.coach_has_link_permission(context.user_id, profile_id, CoachScope.MANAGE_AVAILABILITY):
                return ALLOW
            return _deny("You do not have permission to manage this athlete's availability")

        if context.role == Role.GYM_OWNER:
            if self.resolver.is_profile_in_club_owned_by(context.user_id, profile_id):
                return ALLOW
            return _deny("You can only manage availability for athletes in your club")

        if context.role == Role.ADMIN:
            return ALLOW

        return _deny(f"Role {context.role.value} may not access availability")


class MatchRequestRule(ResourceRule):

    def check(self, context, permission, resource_id):
        row = (
            self.db.query(MatchRequest.requester_profile_id, MatchRequest.target_profile_id)
            .filter(MatchRequest.id == resource_id)
            .first()
        )
        if row is None:
            return _deny("Match request not found")
        sides = (row[0], row[1])

        if context.role == Role.ATHLETE:
            if permission == Permission.MATCH_READ_OWN and any(
                self.resolver.is_profile_owner(context.user_id, p) for p in sides
            ):
                return ALLOW
            return _deny("Athletes can only view their own match requests")

        if context.role == Role.COACH:
            if any(
                self.resolver.coach_has_link_permission(context.user_id, p, CoachScope.RESPOND_TO_MATCHES)
                for p in sides
            ):
                return ALLOW
            return _deny("You do not have permission to manage match requests for these athletes")

        if context.role == Role.GYM_OWNER:
            if any(self.resolver.is_profile_in_club_owned_by(context.user_id, p) for p in sides):
                return ALLOW
            return _deny("You can only manage match requests for athletes in your club")

        if context.role == Role.ADMIN:
            return ALLOW

        return _deny(f"Role {context.role.value} may not access match requests")


_RULES: dict[str, type[ResourceRule]] = {
    ResourceType.PROFILE.value: ProfileRule,
    ResourceType.CLUB.value: ClubRule,
    ResourceType.AVAILABILITY.value: AvailabilityRule,
    ResourceType.MATCH_REQUEST.value: MatchRequestRule,
}


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class PermissionEvaluator:
    """Combines the role matrix with resource rules.

    The cache is passed in explicitly; use ``NullPermissionCache`` to run
    with caching disabled.
    """

    def __init__(self, db: Session, cache: PermissionCache, ttl: int = PERMISSION_CACHE_TTL):
        self.resolver = OwnershipResolver(db, cache, ttl)
        self._rules = {kind: rule(db, self.resolver) for kind, rule in _RULES.items()}

    def evaluate(
        self,
        context: PermissionContext,
        permission: Permission,
        resource: Optional[ResourceRef] = None,
    ) -> PermissionDecision:
        """Decide whether *context* may use *permission*, optionally on *resource*."""
        permission = Permission(permission)
        if not role_has_permission(context.role, permission):
            return _deny(f"Role {context.role.value} does not have permission {permission.value}")

        if resource is None:
            return ALLOW

        return self._check_resource(context, permission, resource)

    def has_any_permission(
        self,
        context: PermissionContext,
        permissions: Sequence[Permission],
        resource: Optional[ResourceRef] = None,
    ) -> PermissionDecision:
        """Allowed if any one of *permissions* is allowed. Stops at the first success."""
        permissions = [Permission(p) for p in permissions]
        if not role_has_any(context.role, permissions):
            return _deny(f"Role {context.role.value} does not have any of the required permissions")

        if resource is None:
            return ALLOW

        for permission in _granted(context.role, permissions):
            decision = self._check_resource(context, permission, resource)
            if decision.allowed:
                return decision

        return _deny("No permission granted for this resource")

    def has_all_permissions(
        self,
        context: PermissionContext,
        permissions: Sequence[Permission],
        resource: Optional[ResourceRef] = None,
    ) -> PermissionDecision:
        """Allowed only if every one of *permissions* is allowed. Stops at the first denial."""
        permissions = [Permission(p) for p in permissions]
        if not role_has_all(context.role, permissions):
            return _deny(f"Role {context.role.value} does not have all required permissions")

        if resource is None:
            return ALLOW

        for permission in permissions:
            decision = self._check_resource(context, permission, resource)
            if not decision.allowed:
                return decision

        return ALLOW

    def _check_resource(
        self,
        context: PermissionContext,
        permission: Permission,
        resource: ResourceRef,
    ) -> PermissionDecision:
        rule = self._rules.get(str(getattr(resource.resource_type, "value", resource.resource_type)))
        if rule is None:
            logger.debug(
                "No resource rule for kind; role gate decides",
                extra={"resource_type": str(resource.resource_type), "permission": permission.value},
            )
            return ALLOW
        return rule.check(context, permission, resource.resource_id)


def _granted(role: Role, permissions: Iterable[Permission]) -> list[Permission]:
    return [p for p in permissions if role_has_permission(role, p)]
