"""Match request lifecycle: create, answer, cancel and expire bout proposals.

States: PENDING -> ACCEPTED | DECLINED | CANCELLED | EXPIRED. Every
non-PENDING state is terminal. A request past its deadline is expired either
by the periodic sweep (``expire_overdue``) or lazily, when someone tries to
answer it.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import (
    DuplicateRequestError,
    ForbiddenError,
    IncompatibleMatchError,
    InvalidStateTransitionError,
    RequestExpiredError,
    SelfRequestError,
    ValidationError,
)
from ..models import AthleteProfile, MatchRequest, MatchRequestStatus
from ..repositories import MatchRequestRepository, ProfileRepository
from .pagination import DEFAULT_PAGE_SIZE, clamp_page, pagination_meta

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class MatchingRules:
    """Compatibility bounds between two athletes. Both bounds are inclusive."""

    max_weight_difference_kg: float = 5.0
    max_fights_difference: int = 3

    def __post_init__(self):
        if self.max_weight_difference_kg < 0:
            raise ValidationError("max_weight_difference_kg must not be negative", field="max_weight_difference_kg")
        if self.max_fights_difference < 0:
            raise ValidationError("max_fights_difference must not be negative", field="max_fights_difference")

    @classmethod
    def from_settings(cls) -> "MatchingRules":
        return cls(
            max_weight_difference_kg=settings.max_weight_difference_kg,
            max_fights_difference=settings.max_fights_difference,
        )

    def check(self, requester: AthleteProfile, target: AthleteProfile) -> None:
        """Raise IncompatibleMatchError when the pair falls outside the bounds.

        Weight is only compared when both athletes have one on record.
        """
        if requester.weight_kg is not None and target.weight_kg is not None:
            weight_gap = abs(requester.weight_kg - target.weight_kg)
            if weight_gap > self.max_weight_difference_kg:
                raise IncompatibleMatchError(
                    f"Weight difference ({weight_gap:.1f}kg) exceeds maximum allowed "
                    f"({self.max_weight_difference_kg:g}kg)",
                    weight_difference=round(weight_gap, 1),
                    max_weight_difference=self.max_weight_difference_kg,
                )

        fights_gap = abs(requester.total_fights - target.total_fights)
        if fights_gap > self.max_fights_difference:
            raise IncompatibleMatchError(
                f"Fight experience difference ({fights_gap} fights) exceeds maximum allowed "
                f"({self.max_fights_difference} fights)",
                fights_difference=fights_gap,
                max_fights_difference=self.max_fights_difference,
            )


class MatchRequestService:
    """Match request state machine.

    Public methods:
        create_request    -- validate compatibility, open a PENDING request
        accept_request    -- target only; lazily expires overdue requests
        decline_request   -- target only; lazily expires overdue requests
        cancel_request    -- requester only
        expire_overdue    -- bulk PENDING -> EXPIRED sweep; idempotent
        get_request
        list_requests     -- incoming or outgoing, paginated
        get_request_stats -- per-status counts in both directions
    """

    def __init__(
        self,
        db: Session,
        rules: Optional[MatchingRules] = None,
        clock: Optional[Clock] = None,
        expiry_days: Optional[int] = None,
    ):
        self.db = db
        self.rules = rules or MatchingRules.from_settings()
        self.clock = clock or utcnow
        if expiry_days is None:
            expiry_days = settings.match_request_expiry_days
        self.expiry = timedelta(days=expiry_days)
        self.profiles = ProfileRepository(db)
        self.requests = MatchRequestRepository(db)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create_request(
        self,
        requester_profile_id: str,
        target_profile_id: str,
        message: Optional[str] = None,
        proposed_date: Optional[datetime] = None,
        proposed_venue: Optional[str] = None,
    ) -> MatchRequest:
        if requester_profile_id == target_profile_id:
            raise SelfRequestError("match", requester_profile_id)

        requester = self.profiles.get_by_id(requester_profile_id)
        target = self.profiles.get_by_id(target_profile_id)

        if not target.is_searchable:
            raise ValidationError("Target athlete is not available for matching", field="target_profile_id")

        self.rules.check(requester, target)

        outgoing = self.requests.find_pending(requester_profile_id, target_profile_id)
        if outgoing is not None:
            raise DuplicateRequestError("You already have a pending match request to this athlete", outgoing.id)

        incoming = self.requests.find_pending(target_profile_id, requester_profile_id)
        if incoming is not None:
            raise DuplicateRequestError(
                "This athlete has already sent you a match request. Check your incoming requests.",
                incoming.id,
            )

        request = MatchRequest(
            id=str(uuid.uuid4()),
            requester_profile_id=requester_profile_id,
            target_profile_id=target_profile_id,
            status=MatchRequestStatus.PENDING.value,
            message=message,
            proposed_date=proposed_date,
            proposed_venue=proposed_venue,
            expires_at=self.clock() + self.expiry,
        )
        self.requests.add(request)
        self.db.commit()
        self.db.refresh(request)

        logger.info(
            "Match request created",
            extra={"match_request_id": request.id, "requester": requester_profile_id, "target": target_profile_id},
        )
        return request

    def accept_request(self, request_id: str, profile_id: str, response_message: Optional[str] = None) -> MatchRequest:
        return self._answer(request_id, profile_id, "accept", MatchRequestStatus.ACCEPTED, response_message)

    def decline_request(self, request_id: str, profile_id: str, response_message: Optional[str] = None) -> MatchRequest:
        return self._answer(request_id, profile_id, "decline", MatchRequestStatus.DECLINED, response_message)

    def cancel_request(self, request_id: str, profile_id: str) -> MatchRequest:
        request = self.requests.get_by_id(request_id)
        if request.requester_profile_id != profile_id:
            raise ForbiddenError("Only the sender can cancel this match request")
        self._require_pending(request, "cancel")
        return self._commit_transition(request_id, "cancel", MatchRequestStatus.CANCELLED)

    def expire_overdue(self, now: Optional[datetime] = None) -> int:
        """Move every overdue PENDING request to EXPIRED in one statement.

        Idempotent: a second run with the same ``now`` changes nothing.
        """
        cutoff = now or self.clock()
        count = self.requests.expire_pending_before(cutoff)
        self.db.commit()
        if count:
            logger.info("Expired overdue match requests", extra={"count": count})
        return count

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_request(self, request_id: str) -> MatchRequest:
        return self.requests.get_by_id(request_id)

    def list_requests(
        self,
        profile_id: str,
        direction: str = "incoming",
        status: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        if status is not None and status not in MatchRequestStatus.__members__:
            raise ValidationError(f"Unknown match request status: {status}", field="status")
        page, limit = clamp_page(page, limit)
        items, total = self.requests.list_for_profile(
            profile_id, incoming=(direction == "incoming"), status=status, page=page, limit=limit
        )
        return {"items": items, "pagination": pagination_meta(page, limit, total)}

    def get_request_stats(self, profile_id: str) -> Dict[str, Dict[str, int]]:
        return {
            "incoming": _stats(self.requests.count_by_status(profile_id, incoming=True)),
            "outgoing": _stats(self.requests.count_by_status(profile_id, incoming=False)),
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _answer(
        self,
        request_id: str,
        profile_id: str,
        action: str,
        new_status: MatchRequestStatus,
        response_message: Optional[str],
    ) -> MatchRequest:
        request = self.requests.get_by_id(request_id)
        if request.target_profile_id != profile_id:
            raise ForbiddenError(f"Only the recipient can {action} this match request")
        self._require_pending(request, action)

        if self.clock() > as_utc(request.expires_at):
            self._commit_transition(request_id, action, MatchRequestStatus.EXPIRED)
            logger.info("Match request expired on answer", extra={"match_request_id": request_id})
            raise RequestExpiredError(request_id)

        values = {"response_message": response_message} if response_message is not None else {}
        return self._commit_transition(request_id, action, new_status, **values)

    def _require_pending(self, request: MatchRequest, action: str) -> None:
        if request.status != MatchRequestStatus.PENDING.value:
            raise InvalidStateTransitionError("match", action, request.id, request.status)

    def _commit_transition(
        self,
        request_id: str,
        action: str,
        new_status: MatchRequestStatus,
        **values: Any,
    ) -> MatchRequest:
        moved = self.requests.transition(request_id, new_status, **values)
        if not moved:
            self.db.rollback()
            self.db.expire_all()
            current = self.requests.get_by_id(request_id)
            raise InvalidStateTransitionError("match", action, request_id, current.status)
        self.db.commit()

        request = self.requests.get_by_id(request_id)
        self.db.refresh(request)
        logger.info("Match request %s", new_status.value.lower(), extra={"match_request_id": request_id})
        return request


def _stats(counts: Dict[str, int]) -> Dict[str, int]:
    stats = {status.value.lower(): counts.get(status.value, 0) for status in MatchRequestStatus}
    stats["total"] = sum(counts.values())
    return stats
