"""Club ownership, athlete and coach membership, and coach-link endpoints.

These are the mutation paths behind the cached ownership lookups; each
service call invalidates the permission cache entries it affects.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, authorize, get_evaluator, get_invalidator, require_auth, require_permission
from ..database import get_db
from ..permissions import CoachScope, Permission
from ..services.cache_invalidation import PermissionCacheInvalidator
from ..services.club_service import ClubService
from ..services.coach_service import CoachService
from ..services.permission_service import PermissionEvaluator, ResourceRef, ResourceType

router = APIRouter(prefix="/api/clubs", tags=["clubs"])
coach_router = APIRouter(prefix="/api/coach-links", tags=["coach-links"])


class ClubOwnerUpdate(BaseModel):
    owner_id: Optional[str] = None


class ClubCoachAssign(BaseModel):
    is_head: bool = False


class CoachLinkCreate(BaseModel):
    profile_id: str
    scope: CoachScope = CoachScope.VIEW_PROFILE


class CoachLinkScopeUpdate(BaseModel):
    scope: CoachScope


def _club(club_id: str) -> ResourceRef:
    return ResourceRef(ResourceType.CLUB.value, club_id)


@router.put("/{club_id}/owner")
def set_club_owner(
    club_id: str,
    body: ClubOwnerUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    authorize(evaluator, auth, Permission.CLUB_SET_OWNER, _club(club_id))
    club = ClubService(db, invalidator).set_owner(club_id, body.owner_id)
    return {"club_id": club.id, "owner_id": club.owner_id}


@router.post("/{club_id}/members/{profile_id}")
def add_club_member(
    club_id: str,
    profile_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    authorize(evaluator, auth, Permission.CLUB_MEMBER_ADD_ATHLETE, _club(club_id))
    profile = ClubService(db, invalidator).assign_athlete(profile_id, club_id)
    return {"profile_id": profile.id, "club_id": profile.club_id}


@router.delete("/{club_id}/members/{profile_id}", status_code=204)
def remove_club_member(
    club_id: str,
    profile_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    authorize(evaluator, auth, Permission.CLUB_MEMBER_REMOVE_ATHLETE, _club(club_id))
    ClubService(db, invalidator).remove_athlete(profile_id, club_id)
    return Response(status_code=204)


@router.post("/{club_id}/coaches/{coach_user_id}", status_code=201)
def add_club_coach(
    club_id: str,
    coach_user_id: str,
    body: Optional[ClubCoachAssign] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    authorize(evaluator, auth, Permission.CLUB_MEMBER_ADD_COACH, _club(club_id))
    is_head = body.is_head if body is not None else False
    assignment = ClubService(db, invalidator).assign_coach(coach_user_id, club_id, is_head=is_head)
    return {"club_id": assignment.club_id, "coach_user_id": assignment.coach_user_id, "is_head": assignment.is_head}


@router.delete("/{club_id}/coaches/{coach_user_id}", status_code=204)
def remove_club_coach(
    club_id: str,
    coach_user_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    authorize(evaluator, auth, Permission.CLUB_MEMBER_REMOVE_COACH, _club(club_id))
    ClubService(db, invalidator).remove_coach(coach_user_id, club_id)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Coach links: the coach manages their own links
# ---------------------------------------------------------------------------

@coach_router.post("", status_code=201)
def link_athlete(
    body: CoachLinkCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.COACH_LINK_ATHLETE)),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    link = CoachService(db, invalidator).link(auth.user_id, body.profile_id, body.scope)
    return {"coach_user_id": link.coach_user_id, "profile_id": link.profile_id, "scope": link.scope}


@coach_router.put("/{profile_id}")
def update_link_scope(
    profile_id: str,
    body: CoachLinkScopeUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.COACH_UPDATE_ATHLETE_PERMISSIONS)),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    link = CoachService(db, invalidator).update_scope(auth.user_id, profile_id, body.scope)
    return {"coach_user_id": link.coach_user_id, "profile_id": link.profile_id, "scope": link.scope}


@coach_router.delete("/{profile_id}", status_code=204)
def unlink_athlete(
    profile_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.COACH_UNLINK_ATHLETE)),
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
):
    CoachService(db, invalidator).unlink(auth.user_id, profile_id)
    return Response(status_code=204)
