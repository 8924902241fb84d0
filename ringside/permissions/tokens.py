"""Closed enumerations for roles, permission tokens and coach-link scopes.

Permission tokens follow ``resource:action[:scope]``. The trailing scope
(``own``, ``any``, ``linked``) tells the evaluator whether a resource gate
applies on top of the role gate.
"""

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Account role, supplied by the authentication layer."""
    ATHLETE = "ATHLETE"
    COACH = "COACH"
    GYM_OWNER = "GYM_OWNER"
    ADMIN = "ADMIN"


class CoachScope(str, Enum):
    """Permission level a coach holds over one athlete profile."""
    VIEW_PROFILE = "VIEW_PROFILE"
    EDIT_PROFILE = "EDIT_PROFILE"
    MANAGE_AVAILABILITY = "MANAGE_AVAILABILITY"
    RESPOND_TO_MATCHES = "RESPOND_TO_MATCHES"
    FULL_ACCESS = "FULL_ACCESS"

    def satisfies(self, required: "CoachScope") -> bool:
        """FULL_ACCESS satisfies every requested scope; others only themselves."""
        return self is CoachScope.FULL_ACCESS or self is required


_SCOPES = frozenset({"own", "any", "linked"})


class Permission(str, Enum):
    """Every permission token the platform knows about."""

    # Athlete profiles
    PROFILE_CREATE = "profile:create"
    PROFILE_READ_OWN = "profile:read:own"
    PROFILE_READ_ANY = "profile:read:any"
    PROFILE_UPDATE_OWN = "profile:update:own"
    PROFILE_UPDATE_LINKED = "profile:update:linked"
    PROFILE_DELETE_OWN = "profile:delete:own"
    PROFILE_UPLOAD_PHOTO = "profile:upload:photo"
    PROFILE_UPLOAD_VIDEO = "profile:upload:video"

    # Fight history
    FIGHT_CREATE = "fight:create"
    FIGHT_READ = "fight:read"
    FIGHT_UPDATE = "fight:update"
    FIGHT_DELETE = "fight:delete"
    FIGHT_MANAGE_LINKED = "fight:manage:linked"

    # Match requests
    MATCH_CREATE_REQUEST = "match:create:request"
    MATCH_READ_OWN = "match:read:own"
    MATCH_ACCEPT = "match:accept"
    MATCH_DECLINE = "match:decline"
    MATCH_CANCEL = "match:cancel"

    # Availability
    AVAILABILITY_CREATE = "availability:create"
    AVAILABILITY_READ = "availability:read"
    AVAILABILITY_UPDATE = "availability:update"
    AVAILABILITY_DELETE = "availability:delete"

    # Clubs
    CLUB_READ_PUBLIC = "club:read:public"
    CLUB_READ_MEMBERS = "club:read:members"
    CLUB_MEMBER_ADD_ATHLETE = "club:member:add:athlete"
    CLUB_MEMBER_REMOVE_ATHLETE = "club:member:remove:athlete"
    CLUB_MEMBER_ADD_COACH = "club:member:add:coach"
    CLUB_MEMBER_REMOVE_COACH = "club:member:remove:coach"
    CLUB_SET_OWNER = "club:set:owner"

    # Coach links
    COACH_LINK_ATHLETE = "coach:link:athlete"
    COACH_UNLINK_ATHLETE = "coach:unlink:athlete"
    COACH_UPDATE_ATHLETE_PERMISSIONS = "coach:update:athlete:permissions"

    # Connections
    CONNECTION_SEND_REQUEST = "connection:send:request"
    CONNECTION_READ_OWN = "connection:read:own"
    CONNECTION_ACCEPT = "connection:accept"
    CONNECTION_DECLINE = "connection:decline"
    CONNECTION_CANCEL = "connection:cancel"
    CONNECTION_DELETE_OWN = "connection:delete:own"

    # Administration
    ADMIN_READ_ALL_USERS = "admin:read:users"
    ADMIN_UPDATE_USER_STATUS = "admin:update:user:status"
    ADMIN_VERIFY_ATHLETE = "admin:verify:athlete"
    ADMIN_READ_SYSTEM_STATS = "admin:read:stats"
    ADMIN_CREATE_USER = "admin:create:user"
    ADMIN_UPDATE_USER = "admin:update:user"
    ADMIN_DELETE_USER = "admin:delete:user"
    ADMIN_CREATE_ATHLETE = "admin:create:athlete"
    ADMIN_UPDATE_ATHLETE = "admin:update:athlete"
    ADMIN_DELETE_ATHLETE = "admin:delete:athlete"
    ADMIN_CREATE_CLUB = "admin:create:club"
    ADMIN_UPDATE_CLUB = "admin:update:club"
    ADMIN_DELETE_CLUB = "admin:delete:club"

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def scope(self) -> Optional[str]:
        """The ``own``/``any``/``linked`` suffix, or None for unscoped tokens."""
        suffix = self.value.rsplit(":", 1)[-1]
        return suffix if suffix in _SCOPES else None
