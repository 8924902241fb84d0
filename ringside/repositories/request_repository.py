"""Repositories for connection requests, connections and match requests."""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, update

from ..exceptions import (
    ConnectionNotFoundError,
    ConnectionRequestNotFoundError,
    MatchRequestNotFoundError,
)
from ..models import (
    Connection,
    ConnectionRequest,
    ConnectionRequestStatus,
    MatchRequest,
    MatchRequestStatus,
)
from .base import BaseRepository


def _paginate(query, order_column, page: int, limit: int) -> Tuple[list, int]:
    total = query.count()
    items = (
        query.order_by(order_column.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


class ConnectionRequestRepository(BaseRepository[ConnectionRequest]):
    model_class = ConnectionRequest
    not_found_error = ConnectionRequestNotFoundError

    def find_pending(self, requester_profile_id: str, target_profile_id: str) -> Optional[ConnectionRequest]:
        """PENDING request in one direction only."""
        return (
            self.db.query(ConnectionRequest)
            .filter(
                ConnectionRequest.requester_profile_id == requester_profile_id,
                ConnectionRequest.target_profile_id == target_profile_id,
                ConnectionRequest.status == ConnectionRequestStatus.PENDING.value,
            )
            .first()
        )

    def transition(self, request_id: str, new_status: ConnectionRequestStatus) -> bool:
        """Move a PENDING request to *new_status*.

        The ``status = PENDING`` guard makes the update a compare-and-set:
        returns False when another caller already moved the row.
        """
        result = self.db.execute(
            update(ConnectionRequest)
            .where(
                ConnectionRequest.id == request_id,
                ConnectionRequest.status == ConnectionRequestStatus.PENDING.value,
            )
            .values(status=new_status.value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_for_profile(
        self,
        profile_id: str,
        incoming: bool,
        status: Optional[str],
        page: int,
        limit: int,
    ) -> Tuple[List[ConnectionRequest], int]:
        column = ConnectionRequest.target_profile_id if incoming else ConnectionRequest.requester_profile_id
        query = self.db.query(ConnectionRequest).filter(column == profile_id)
        if status:
            query = query.filter(ConnectionRequest.status == status)
        return _paginate(query, ConnectionRequest.created_at, page, limit)


class ConnectionRepository(BaseRepository[Connection]):
    model_class = Connection
    not_found_error = ConnectionNotFoundError

    def get_by_pair(self, profile_a_id: str, profile_b_id: str) -> Optional[Connection]:
        """Look up by an already-normalized pair."""
        return (
            self.db.query(Connection)
            .filter(Connection.profile_a_id == profile_a_id, Connection.profile_b_id == profile_b_id)
            .first()
        )

    def list_for_profile(self, profile_id: str, page: int, limit: int) -> Tuple[List[Connection], int]:
        query = self.db.query(Connection).filter(
            or_(Connection.profile_a_id == profile_id, Connection.profile_b_id == profile_id)
        )
        return _paginate(query, Connection.created_at, page, limit)


class MatchRequestRepository(BaseRepository[MatchRequest]):
    model_class = MatchRequest
    not_found_error = MatchRequestNotFoundError

    def find_pending(self, requester_profile_id: str, target_profile_id: str) -> Optional[MatchRequest]:
        return (
            self.db.query(MatchRequest)
            .filter(
                MatchRequest.requester_profile_id == requester_profile_id,
                MatchRequest.target_profile_id == target_profile_id,
                MatchRequest.status == MatchRequestStatus.PENDING.value,
            )
            .first()
        )

    def transition(self, request_id: str, new_status: MatchRequestStatus, **values) -> bool:
        """Compare-and-set from PENDING; see ConnectionRequestRepository.transition."""
        result = self.db.execute(
            update(MatchRequest)
            .where(
                MatchRequest.id == request_id,
                MatchRequest.status == MatchRequestStatus.PENDING.value,
            )
            .values(status=new_status.value, updated_at=func.now(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def expire_pending_before(self, cutoff: datetime) -> int:
        """Bulk PENDING -> EXPIRED for every row whose deadline is before *cutoff*."""
        result = self.db.execute(
            update(MatchRequest)
            .where(
                MatchRequest.status == MatchRequestStatus.PENDING.value,
                MatchRequest.expires_at < cutoff,
            )
            .values(status=MatchRequestStatus.EXPIRED.value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def list_for_profile(
        self,
        profile_id: str,
        incoming: bool,
        status: Optional[str],
        page: int,
        limit: int,
    ) -> Tuple[List[MatchRequest], int]:
        column = MatchRequest.target_profile_id if incoming else MatchRequest.requester_profile_id
        query = self.db.query(MatchRequest).filter(column == profile_id)
        if status:
            query = query.filter(MatchRequest.status == status)
        return _paginate(query, MatchRequest.created_at, page, limit)

    def count_by_status(self, profile_id: str, incoming: bool) -> dict[str, int]:
        """Per-status counts for one direction, in a single GROUP BY."""
        column = MatchRequest.target_profile_id if incoming else MatchRequest.requester_profile_id
        rows = (
            self.db.query(MatchRequest.status, func.count(MatchRequest.id))
            .filter(column == profile_id)
            .group_by(MatchRequest.status)
            .all()
        )
        return {status: count for status, count in rows}
