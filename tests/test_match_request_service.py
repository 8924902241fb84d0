"""Unit tests for MatchRequestService and MatchingRules."""

from datetime import datetime, timedelta, timezone

import pytest

from ringside.exceptions import (
    DuplicateRequestError,
    ForbiddenError,
    IncompatibleMatchError,
    InvalidStateTransitionError,
    MatchRequestNotFoundError,
    RequestExpiredError,
    SelfRequestError,
    ValidationError,
)
from ringside.models import MatchRequest
from ringside.services.match_request_service import MatchingRules, MatchRequestService, as_utc
from tests.conftest import make_match_request, make_profile

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def service(db, clock):
    return MatchRequestService(db, rules=MatchingRules(), clock=clock, expiry_days=7)


@pytest.fixture()
def pair(db):
    return make_profile(db, weight_kg=70.0, wins=2), make_profile(db, weight_kg=72.0, wins=3)


def _status(db, request_id):
    db.expire_all()
    return db.get(MatchRequest, request_id).status


class TestMatchingRules:

    def test_bounds_are_inclusive(self, db):
        a = make_profile(db, weight_kg=70.0, wins=1)
        b = make_profile(db, weight_kg=75.0, wins=4)
        MatchingRules().check(a, b)

    def test_weight_gap_too_large(self, db):
        a = make_profile(db, weight_kg=70.0)
        b = make_profile(db, weight_kg=75.5)
        with pytest.raises(IncompatibleMatchError) as exc:
            MatchingRules().check(a, b)
        assert exc.value.message == "Weight difference (5.5kg) exceeds maximum allowed (5kg)"
        assert exc.value.status_code == 400

    def test_fights_gap_too_large(self, db):
        a = make_profile(db, wins=1)
        b = make_profile(db, wins=3, losses=1, draws=1)
        with pytest.raises(IncompatibleMatchError) as exc:
            MatchingRules().check(a, b)
        assert exc.value.message == "Fight experience difference (4 fights) exceeds maximum allowed (3 fights)"

    def test_unknown_weight_skips_weight_check(self, db):
        a = make_profile(db, weight_kg=None)
        b = make_profile(db, weight_kg=110.0)
        MatchingRules().check(a, b)

    def test_custom_bounds(self, db):
        a = make_profile(db, weight_kg=70.0)
        b = make_profile(db, weight_kg=72.0)
        with pytest.raises(IncompatibleMatchError):
            MatchingRules(max_weight_difference_kg=1.0).check(a, b)

    @pytest.mark.parametrize("kwargs", [
        {"max_weight_difference_kg": -1.0},
        {"max_fights_difference": -1},
    ])
    def test_negative_bounds_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            MatchingRules(**kwargs)


class TestCreate:

    def test_sets_deadline_from_clock(self, db, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id, message="Three rounds?")
        assert request.status == "PENDING"
        assert as_utc(request.expires_at) == NOW + timedelta(days=7)

    def test_zero_expiry_days_is_honoured(self, db, clock, pair):
        service = MatchRequestService(db, rules=MatchingRules(), clock=clock, expiry_days=0)
        assert service.expiry == timedelta(0)
        request = service.create_request(pair[0].id, pair[1].id)
        assert as_utc(request.expires_at) == NOW

    def test_self_request(self, service, pair):
        with pytest.raises(SelfRequestError):
            service.create_request(pair[0].id, pair[0].id)

    def test_target_not_searchable(self, db, service, pair):
        hidden = make_profile(db, weight_kg=70.0, is_searchable=False)
        with pytest.raises(ValidationError, match="not available for matching"):
            service.create_request(pair[0].id, hidden.id)

    def test_incompatible_pair_creates_nothing(self, db, service):
        light = make_profile(db, weight_kg=60.0)
        heavy = make_profile(db, weight_kg=90.0)
        with pytest.raises(IncompatibleMatchError):
            service.create_request(light.id, heavy.id)
        assert db.query(MatchRequest).count() == 0

    def test_duplicate_same_direction(self, service, pair):
        a, b = pair
        service.create_request(a.id, b.id)
        with pytest.raises(DuplicateRequestError):
            service.create_request(a.id, b.id)

    def test_duplicate_reverse_direction(self, service, pair):
        a, b = pair
        first = service.create_request(a.id, b.id)
        with pytest.raises(DuplicateRequestError) as exc:
            service.create_request(b.id, a.id)
        assert exc.value.details == {"request_id": first.id}

    def test_new_request_after_terminal(self, service, pair):
        a, b = pair
        first = service.create_request(a.id, b.id)
        service.cancel_request(first.id, a.id)
        assert service.create_request(a.id, b.id).id != first.id


class TestAnswer:

    def test_accept_with_message(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        accepted = service.accept_request(request.id, b.id, response_message="See you Saturday")
        assert accepted.status == "ACCEPTED"
        assert accepted.response_message == "See you Saturday"

    def test_decline(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        assert service.decline_request(request.id, b.id).status == "DECLINED"

    def test_requester_cannot_accept(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        with pytest.raises(ForbiddenError):
            service.accept_request(request.id, a.id)

    def test_accept_after_deadline_expires(self, db, service, clock, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        request_id = request.id
        clock.advance(days=7, seconds=1)

        with pytest.raises(RequestExpiredError):
            service.accept_request(request_id, b.id)
        assert _status(db, request_id) == "EXPIRED"

    def test_decline_after_deadline_expires(self, db, service, clock, pair):
        a, b = pair
        request_id = service.create_request(a.id, b.id).id
        clock.advance(days=8)

        with pytest.raises(RequestExpiredError):
            service.decline_request(request_id, b.id)
        assert _status(db, request_id) == "EXPIRED"

    def test_accept_exactly_at_deadline(self, service, clock, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        clock.advance(days=7)
        assert service.accept_request(request.id, b.id).status == "ACCEPTED"

    def test_terminal_state_named_in_conflict(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        service.decline_request(request.id, b.id)
        with pytest.raises(InvalidStateTransitionError) as exc:
            service.accept_request(request.id, b.id)
        assert exc.value.current_status == "DECLINED"
        assert exc.value.status_code == 409

    def test_missing_request(self, service, pair):
        with pytest.raises(MatchRequestNotFoundError):
            service.accept_request("missing", pair[0].id)


class TestCancel:

    def test_requester_cancels(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        assert service.cancel_request(request.id, a.id).status == "CANCELLED"

    def test_target_cannot_cancel(self, service, pair):
        a, b = pair
        request = service.create_request(a.id, b.id)
        with pytest.raises(ForbiddenError):
            service.cancel_request(request.id, b.id)


class TestExpireOverdue:

    def test_only_overdue_pending_rows_move(self, db, service, pair):
        a, b = pair
        c = make_profile(db)
        overdue = make_match_request(db, a, b, expires_at=NOW - timedelta(hours=1))
        fresh = make_match_request(db, c, b, expires_at=NOW + timedelta(days=1))
        answered = make_match_request(db, b, c, status="ACCEPTED", expires_at=NOW - timedelta(days=2))
        ids = overdue.id, fresh.id, answered.id

        assert service.expire_overdue() == 1
        assert [_status(db, i) for i in ids] == ["EXPIRED", "PENDING", "ACCEPTED"]

    def test_idempotent(self, db, service, pair):
        a, b = pair
        make_match_request(db, a, b, expires_at=NOW - timedelta(hours=1))
        assert service.expire_overdue() == 1
        assert service.expire_overdue() == 0

    def test_explicit_cutoff(self, db, service, pair):
        a, b = pair
        make_match_request(db, a, b, expires_at=NOW + timedelta(days=2))
        assert service.expire_overdue(now=NOW + timedelta(days=3)) == 1


class TestQueries:

    def test_list_by_direction_and_status(self, db, service, pair):
        a, b = pair
        c = make_profile(db, weight_kg=71.0)
        service.create_request(a.id, b.id)
        declined = service.create_request(c.id, b.id)
        service.decline_request(declined.id, b.id)

        assert service.list_requests(b.id, "incoming")["pagination"]["total"] == 2
        pending = service.list_requests(b.id, "incoming", status="PENDING")
        assert [r.requester_profile_id for r in pending["items"]] == [a.id]
        assert service.list_requests(a.id, "outgoing")["pagination"]["total"] == 1

    def test_list_rejects_unknown_status(self, service, pair):
        with pytest.raises(ValidationError):
            service.list_requests(pair[0].id, status="MAYBE")

    def test_stats(self, db, service, pair):
        a, b = pair
        c = make_profile(db, weight_kg=71.0)
        service.create_request(a.id, b.id)
        accepted = service.create_request(c.id, b.id)
        service.accept_request(accepted.id, b.id)

        stats = service.get_request_stats(b.id)
        assert stats["incoming"] == {
            "pending": 1, "accepted": 1, "declined": 0, "cancelled": 0, "expired": 0, "total": 2,
        }
        assert stats["outgoing"]["total"] == 0
