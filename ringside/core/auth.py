"""Authentication and authorization dependencies for FastAPI routes.

Public interface:
    ``require_auth``       -- returns AuthContext or raises 401.
    ``get_permission_cache`` -- the cache built at startup (``app.state``).
    ``get_evaluator``      -- a PermissionEvaluator bound to the request session.
    ``get_invalidator``    -- a PermissionCacheInvalidator over the same cache.
    ``require_admin``      -- 403 unless the caller is ADMIN.
    ``require_permission`` -- dependency factory; role gate for one token.
    ``authorize``          -- role and resource gate; raises 403 with the reason.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..cache import NullPermissionCache, PermissionCache
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..permissions import Permission, Role
from ..services.cache_invalidation import PermissionCacheInvalidator
from ..services.permission_service import PermissionContext, PermissionEvaluator, ResourceRef

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller. Role comes from the user row, not the token."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def as_permission_context(self) -> PermissionContext:
        return PermissionContext(user_id=self.user_id, role=self.role)


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token for an active user."""
    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def get_permission_cache(request: Request) -> PermissionCache:
    """The cache constructed in the application lifespan."""
    cache = getattr(request.app.state, "permission_cache", None)
    if cache is None:
        logger.warning("No permission cache on app state; lookups will read the database")
        return NullPermissionCache()
    return cache


def get_evaluator(
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
) -> PermissionEvaluator:
    return PermissionEvaluator(db, cache, ttl=settings.permission_cache_ttl)


def get_invalidator(cache: PermissionCache = Depends(get_permission_cache)) -> PermissionCacheInvalidator:
    return PermissionCacheInvalidator(cache)


def require_admin(auth: AuthContext = Depends(require_auth)) -> AuthContext:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not auth.is_admin:
        raise ForbiddenError("Admin access required")
    return auth


def require_permission(permission: Permission):
    """Dependency factory: 403 unless the caller's role holds *permission*.

    Only the role gate runs here; resource checks need ids from the request
    body or path and go through ``authorize``.
    """

    def dependency(
        auth: AuthContext = Depends(require_auth),
        evaluator: PermissionEvaluator = Depends(get_evaluator),
    ) -> AuthContext:
        decision = evaluator.evaluate(auth.as_permission_context(), permission)
        if not decision:
            raise ForbiddenError(decision.reason)
        return auth

    return dependency


def authorize(
    evaluator: PermissionEvaluator,
    auth: AuthContext,
    permission: Permission,
    resource: Optional[ResourceRef] = None,
) -> None:
    """Raise ForbiddenError carrying the evaluator's reason when denied."""
    decision = evaluator.evaluate(auth.as_permission_context(), permission, resource)
    if not decision:
        logger.info(
            "Permission denied",
            extra={"user_id": auth.user_id, "permission": Permission(permission).value, "reason": decision.reason},
        )
        raise ForbiddenError(decision.reason)


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    from ..models.user import User

    user = db.query(User).filter(User.user_id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return AuthContext(user_id=user.user_id, role=Role(user.role))
