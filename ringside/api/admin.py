"""Administrative maintenance endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, get_invalidator, require_admin
from ..database import get_db
from ..schemas.match_request import ExpireResponse
from ..services.cache_invalidation import PermissionCacheInvalidator
from ..services.match_request_service import MatchRequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/match-requests/expire", response_model=ExpireResponse)
def expire_match_requests(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    """Run the expiration sweep now instead of waiting for the worker."""
    count = MatchRequestService(db).expire_overdue()
    logger.info("Manual expiration sweep", extra={"user_id": auth.user_id, "expired": count})
    return {"expired": count}


@router.post("/permission-cache/flush")
def flush_permission_cache(
    invalidator: PermissionCacheInvalidator = Depends(get_invalidator),
    auth: AuthContext = Depends(require_admin),
):
    """Drop every cached permission lookup."""
    return {"deleted": invalidator.invalidate_all()}
