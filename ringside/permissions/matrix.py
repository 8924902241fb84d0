"""Static role -> permission matrix.

The table is built once at import into read-only structures
(``MappingProxyType`` of ``frozenset``), so concurrent readers need no
locking and callers cannot mutate shared state. ``permissions_for`` hands
out a fresh ``set``.

Athletes manage their own profile and connections but not their bouts:
coaches and gym owners create and answer match requests and maintain
availability on an athlete's behalf.
"""

from types import MappingProxyType
from typing import Iterable, Mapping

from .tokens import Permission, Role

P = Permission

_ATHLETE = frozenset({
    P.PROFILE_CREATE,
    P.PROFILE_READ_OWN,
    P.PROFILE_READ_ANY,
    P.PROFILE_UPDATE_OWN,
    P.PROFILE_DELETE_OWN,
    P.PROFILE_UPLOAD_PHOTO,
    P.PROFILE_UPLOAD_VIDEO,
    P.FIGHT_READ,
    P.MATCH_READ_OWN,
    P.AVAILABILITY_READ,
    P.CLUB_READ_PUBLIC,
    P.CLUB_READ_MEMBERS,
    P.CONNECTION_SEND_REQUEST,
    P.CONNECTION_READ_OWN,
    P.CONNECTION_ACCEPT,
    P.CONNECTION_DECLINE,
    P.CONNECTION_CANCEL,
    P.CONNECTION_DELETE_OWN,
})

# Shared by coaches and gym owners: acting on behalf of an athlete.
_MANAGER = frozenset({
    P.PROFILE_READ_ANY,
    P.PROFILE_UPDATE_LINKED,
    P.MATCH_CREATE_REQUEST,
    P.MATCH_READ_OWN,
    P.MATCH_ACCEPT,
    P.MATCH_DECLINE,
    P.MATCH_CANCEL,
    P.AVAILABILITY_CREATE,
    P.AVAILABILITY_READ,
    P.AVAILABILITY_UPDATE,
    P.AVAILABILITY_DELETE,
    P.FIGHT_READ,
    P.FIGHT_MANAGE_LINKED,
    P.CLUB_READ_PUBLIC,
    P.CLUB_READ_MEMBERS,
})

_COACH = _MANAGER | {
    P.COACH_LINK_ATHLETE,
    P.COACH_UNLINK_ATHLETE,
    P.COACH_UPDATE_ATHLETE_PERMISSIONS,
}

_GYM_OWNER = _MANAGER | {
    P.CLUB_MEMBER_ADD_ATHLETE,
    P.CLUB_MEMBER_REMOVE_ATHLETE,
    P.CLUB_MEMBER_ADD_COACH,
    P.CLUB_MEMBER_REMOVE_COACH,
}

ALL_PERMISSIONS: frozenset = frozenset(Permission)

ROLE_PERMISSIONS: Mapping[Role, frozenset] = MappingProxyType({
    Role.ATHLETE: _ATHLETE,
    Role.COACH: frozenset(_COACH),
    Role.GYM_OWNER: frozenset(_GYM_OWNER),
    Role.ADMIN: ALL_PERMISSIONS,
})


def _check_matrix() -> None:
    """The matrix must be total and ADMIN must hold the whole universe."""
    missing = set(Role) - set(ROLE_PERMISSIONS)
    if missing:
        raise RuntimeError(f"Roles without a matrix entry: {sorted(r.value for r in missing)}")
    if ROLE_PERMISSIONS[Role.ADMIN] != ALL_PERMISSIONS:
        raise RuntimeError("ADMIN must hold every permission")


_check_matrix()


def role_has_permission(role: Role, permission: Permission) -> bool:
    """Check if a role grants a specific permission."""
    return permission in ROLE_PERMISSIONS[Role(role)]


def role_has_any(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check if a role grants at least one of *permissions*."""
    granted = ROLE_PERMISSIONS[Role(role)]
    return any(p in granted for p in permissions)


def role_has_all(role: Role, permissions: Iterable[Permission]) -> bool:
    """Check if a role grants every one of *permissions*."""
    granted = ROLE_PERMISSIONS[Role(role)]
    return all(p in granted for p in permissions)


def permissions_for(role: Role) -> set[Permission]:
    """Return a copy of the role's permission set. Mutating it changes nothing shared."""
    return set(ROLE_PERMISSIONS[Role(role)])
