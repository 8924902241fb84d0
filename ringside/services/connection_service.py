"""Connection requests and the symmetric connections they produce.

Lifecycle of a request: PENDING -> ACCEPTED | DECLINED | CANCELLED. Only the
target may accept or decline; only the requester may cancel. Acceptance
inserts exactly one ``Connection`` for the normalized pair.

Every transition out of PENDING is a conditional update guarded by
``status = PENDING``; concurrent callers race on the row and the loser gets
a conflict naming the state it found.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import (
    AlreadyConnectedError,
    ConflictError,
    DuplicateRequestError,
    ForbiddenError,
    InvalidStateTransitionError,
    SelfRequestError,
    ValidationError,
)
from ..models import Connection, ConnectionRequest, ConnectionRequestStatus
from ..repositories import ConnectionRepository, ConnectionRequestRepository, ProfileRepository
from .pagination import DEFAULT_PAGE_SIZE, clamp_page, pagination_meta

logger = logging.getLogger(__name__)


def normalize_pair(profile_x: str, profile_y: str) -> Tuple[str, str]:
    """Order a pair so the smaller id comes first.

    ``normalize_pair(a, b) == normalize_pair(b, a)``; connections are stored
    under this key.
    """
    return (profile_x, profile_y) if profile_x < profile_y else (profile_y, profile_x)


class ConnectionStatus:
    CONNECTED = "connected"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    NONE = "none"


class ConnectionService:
    """Connection request state machine and connection bookkeeping.

    Public methods:
        send_request     -- open a PENDING request
        accept_request   -- target only; creates the Connection atomically
        decline_request  -- target only
        cancel_request   -- requester only
        get_status       -- relationship between two profiles
        disconnect       -- participant only; deletes the Connection
        list_requests    -- incoming or outgoing, paginated
        list_connections -- paginated, reporting the other participant
    """

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.requests = ConnectionRequestRepository(db)
        self.connections = ConnectionRepository(db)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def send_request(
        self,
        requester_profile_id: str,
        target_profile_id: str,
        message: Optional[str] = None,
    ) -> ConnectionRequest:
        if requester_profile_id == target_profile_id:
            raise SelfRequestError("connection", requester_profile_id)

        self.profiles.get_by_id(requester_profile_id)
        self.profiles.get_by_id(target_profile_id)

        existing = self.connections.get_by_pair(*normalize_pair(requester_profile_id, target_profile_id))
        if existing is not None:
            raise AlreadyConnectedError(existing.id)

        outgoing = self.requests.find_pending(requester_profile_id, target_profile_id)
        if outgoing is not None:
            raise DuplicateRequestError(
                "You already have a pending connection request to this athlete", outgoing.id
            )

        incoming = self.requests.find_pending(target_profile_id, requester_profile_id)
        if incoming is not None:
            raise DuplicateRequestError(
                "This athlete has already sent you a connection request", incoming.id
            )

        request = ConnectionRequest(
            id=str(uuid.uuid4()),
            requester_profile_id=requester_profile_id,
            target_profile_id=target_profile_id,
            status=ConnectionRequestStatus.PENDING.value,
            message=message,
        )
        self.requests.add(request)
        self.db.commit()
        self.db.refresh(request)

        logger.info(
            "Connection request sent",
            extra={"connection_request_id": request.id, "requester": requester_profile_id, "target": target_profile_id},
        )
        return request

    def accept_request(self, request_id: str, profile_id: str) -> Connection:
        """Accept as the target. Status change and Connection insert commit together."""
        request = self._load_for(request_id, profile_id, as_target=True, action="accept")

        profile_a, profile_b = normalize_pair(request.requester_profile_id, request.target_profile_id)
        connection = Connection(id=str(uuid.uuid4()), profile_a_id=profile_a, profile_b_id=profile_b)

        try:
            if not self.requests.transition(request_id, ConnectionRequestStatus.ACCEPTED):
                self.db.rollback()
                raise self._lost_race(request_id, "accept")
            self.connections.add(connection)
            self.db.commit()
        except IntegrityError:
            # Crossing requests accepted concurrently: the pair is already connected.
            self.db.rollback()
            logger.info("Concurrent accept lost on connection pair", extra={"connection_request_id": request_id})
            raise ConflictError(
                "You are already connected with this athlete",
                details={"request_id": request_id},
            )

        self.db.refresh(connection)
        logger.info(
            "Connection request accepted",
            extra={"connection_request_id": request_id, "connection_id": connection.id},
        )
        return connection

    def decline_request(self, request_id: str, profile_id: str) -> ConnectionRequest:
        return self._finish(request_id, profile_id, as_target=True, action="decline",
                            new_status=ConnectionRequestStatus.DECLINED)

    def cancel_request(self, request_id: str, profile_id: str) -> ConnectionRequest:
        return self._finish(request_id, profile_id, as_target=False, action="cancel",
                            new_status=ConnectionRequestStatus.CANCELLED)

    def disconnect(self, connection_id: str, profile_id: str) -> None:
        """Hard-delete a connection. Either participant may do this."""
        connection = self.connections.get_by_id(connection_id)
        if profile_id not in (connection.profile_a_id, connection.profile_b_id):
            raise ForbiddenError("You can only remove your own connections")

        self.db.delete(connection)
        self.db.commit()
        logger.info("Connection removed", extra={"connection_id": connection_id, "by": profile_id})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_status(self, my_profile_id: str, other_profile_id: str) -> Dict[str, Any]:
        connection = self.connections.get_by_pair(*normalize_pair(my_profile_id, other_profile_id))
        if connection is not None:
            return {"status": ConnectionStatus.CONNECTED, "connection_id": connection.id}

        sent = self.requests.find_pending(my_profile_id, other_profile_id)
        if sent is not None:
            return {"status": ConnectionStatus.PENDING_SENT, "request_id": sent.id}

        received = self.requests.find_pending(other_profile_id, my_profile_id)
        if received is not None:
            return {"status": ConnectionStatus.PENDING_RECEIVED, "request_id": received.id}

        return {"status": ConnectionStatus.NONE}

    def list_requests(
        self,
        profile_id: str,
        direction: str = "incoming",
        status: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        if status is not None and status not in ConnectionRequestStatus.__members__:
            raise ValidationError(f"Unknown connection request status: {status}", field="status")
        page, limit = clamp_page(page, limit)
        items, total = self.requests.list_for_profile(
            profile_id, incoming=(direction == "incoming"), status=status, page=page, limit=limit
        )
        return {"items": items, "pagination": pagination_meta(page, limit, total)}

    def list_connections(
        self,
        profile_id: str,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        page, limit = clamp_page(page, limit)
        rows, total = self.connections.list_for_profile(profile_id, page=page, limit=limit)
        items = [
            {
                "connection_id": c.id,
                "profile_id": c.profile_b_id if c.profile_a_id == profile_id else c.profile_a_id,
                "connected_at": c.created_at,
            }
            for c in rows
        ]
        return {"items": items, "pagination": pagination_meta(page, limit, total)}

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_for(self, request_id: str, profile_id: str, as_target: bool, action: str) -> ConnectionRequest:
        request = self.requests.get_by_id(request_id)

        actor = request.target_profile_id if as_target else request.requester_profile_id
        if actor != profile_id:
            who = "recipient" if as_target else "sender"
            raise ForbiddenError(f"Only the {who} can {action} this connection request")

        if request.status != ConnectionRequestStatus.PENDING.value:
            raise InvalidStateTransitionError("connection", action, request_id, request.status)
        return request

    def _finish(
        self,
        request_id: str,
        profile_id: str,
        as_target: bool,
        action: str,
        new_status: ConnectionRequestStatus,
    ) -> ConnectionRequest:
        self._load_for(request_id, profile_id, as_target=as_target, action=action)

        if not self.requests.transition(request_id, new_status):
            self.db.rollback()
            raise self._lost_race(request_id, action)
        self.db.commit()

        request = self.requests.get_by_id(request_id)
        self.db.refresh(request)
        logger.info(
            "Connection request %s", new_status.value.lower(),
            extra={"connection_request_id": request_id, "by": profile_id},
        )
        return request

    def _lost_race(self, request_id: str, action: str) -> InvalidStateTransitionError:
        self.db.expire_all()
        current = self.requests.get_by_id(request_id)
        return InvalidStateTransitionError("connection", action, request_id, current.status)
