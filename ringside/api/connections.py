"""Connection endpoints. The caller always acts as their own athlete profile."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_permission
from ..database import get_db
from ..exceptions import ForbiddenError
from ..models import AthleteProfile
from ..permissions import Permission
from ..repositories import ProfileRepository
from ..schemas.connection import (
    ConnectionListResponse,
    ConnectionRequestCreate,
    ConnectionRequestListResponse,
    ConnectionRequestResponse,
    ConnectionResponse,
    ConnectionStatusResponse,
)
from ..services.connection_service import ConnectionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["connections"])


def _my_profile(db: Session, auth: AuthContext) -> AthleteProfile:
    profile = ProfileRepository(db).get_by_owner(auth.user_id)
    if profile is None:
        raise ForbiddenError("You need an athlete profile to manage connections")
    return profile


@router.post("/requests", response_model=ConnectionRequestResponse, status_code=201)
def send_request(
    body: ConnectionRequestCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_SEND_REQUEST)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).send_request(me.id, body.target_profile_id, body.message)


@router.get("/requests", response_model=ConnectionRequestListResponse)
def list_requests(
    direction: str = Query("incoming", pattern="^(incoming|outgoing)$"),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_READ_OWN)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).list_requests(me.id, direction, status, page, limit)


@router.post("/requests/{request_id}/accept", response_model=ConnectionResponse)
def accept_request(
    request_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_ACCEPT)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).accept_request(request_id, me.id)


@router.post("/requests/{request_id}/decline", response_model=ConnectionRequestResponse)
def decline_request(
    request_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_DECLINE)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).decline_request(request_id, me.id)


@router.post("/requests/{request_id}/cancel", response_model=ConnectionRequestResponse)
def cancel_request(
    request_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_CANCEL)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).cancel_request(request_id, me.id)


@router.get("", response_model=ConnectionListResponse)
def list_connections(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_READ_OWN)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).list_connections(me.id, page, limit)


@router.get("/status/{other_profile_id}", response_model=ConnectionStatusResponse)
def connection_status(
    other_profile_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_READ_OWN)),
):
    me = _my_profile(db, auth)
    return ConnectionService(db).get_status(me.id, other_profile_id)


@router.delete("/{connection_id}", status_code=204)
def disconnect(
    connection_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_permission(Permission.CONNECTION_DELETE_OWN)),
):
    me = _my_profile(db, auth)
    ConnectionService(db).disconnect(connection_id, me.id)
    return Response(status_code=204)
