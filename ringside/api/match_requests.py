"""Match request endpoints.

Coaches and gym owners act on behalf of an athlete profile named in the
request; the evaluator checks that the caller manages that profile before
the service checks that the profile is the right side of the request.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, authorize, get_evaluator, require_auth
from ..database import get_db
from ..permissions import Permission
from ..schemas.match_request import (
    MatchRequestAnswer,
    MatchRequestCancel,
    MatchRequestCreate,
    MatchRequestListResponse,
    MatchRequestResponse,
    MatchRequestStatsResponse,
)
from ..services.match_request_service import MatchRequestService
from ..services.permission_service import PermissionEvaluator, ResourceRef, ResourceType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/match-requests", tags=["match-requests"])


def _profile(profile_id: str) -> ResourceRef:
    return ResourceRef(ResourceType.PROFILE.value, profile_id)


@router.post("", response_model=MatchRequestResponse, status_code=201)
def create_match_request(
    body: MatchRequestCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    authorize(evaluator, auth, Permission.MATCH_CREATE_REQUEST, _profile(body.requester_profile_id))
    return MatchRequestService(db).create_request(
        body.requester_profile_id,
        body.target_profile_id,
        message=body.message,
        proposed_date=body.proposed_date,
        proposed_venue=body.proposed_venue,
    )


@router.get("", response_model=MatchRequestListResponse)
def list_match_requests(
    profile_id: str = Query(...),
    direction: str = Query("incoming", pattern="^(incoming|outgoing)$"),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    """Incoming or outgoing requests for one athlete profile, newest first."""
    authorize(evaluator, auth, Permission.MATCH_READ_OWN, _profile(profile_id))
    return MatchRequestService(db).list_requests(profile_id, direction, status, page, limit)


@router.get("/stats", response_model=MatchRequestStatsResponse)
def match_request_stats(
    profile_id: str = Query(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    authorize(evaluator, auth, Permission.MATCH_READ_OWN, _profile(profile_id))
    return MatchRequestService(db).get_request_stats(profile_id)


@router.get("/{request_id}", response_model=MatchRequestResponse)
def get_match_request(
    request_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    request = MatchRequestService(db).get_request(request_id)
    authorize(
        evaluator, auth, Permission.MATCH_READ_OWN,
        ResourceRef(ResourceType.MATCH_REQUEST.value, request_id),
    )
    return request


@router.post("/{request_id}/accept", response_model=MatchRequestResponse)
def accept_match_request(
    request_id: str,
    body: MatchRequestAnswer,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    authorize(evaluator, auth, Permission.MATCH_ACCEPT, _profile(body.profile_id))
    return MatchRequestService(db).accept_request(request_id, body.profile_id, body.response_message)


@router.post("/{request_id}/decline", response_model=MatchRequestResponse)
def decline_match_request(
    request_id: str,
    body: MatchRequestAnswer,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    authorize(evaluator, auth, Permission.MATCH_DECLINE, _profile(body.profile_id))
    return MatchRequestService(db).decline_request(request_id, body.profile_id, body.response_message)


@router.post("/{request_id}/cancel", response_model=MatchRequestResponse)
def cancel_match_request(
    request_id: str,
    body: MatchRequestCancel,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    evaluator: PermissionEvaluator = Depends(get_evaluator),
):
    authorize(evaluator, auth, Permission.MATCH_CANCEL, _profile(body.profile_id))
    return MatchRequestService(db).cancel_request(request_id, body.profile_id)
