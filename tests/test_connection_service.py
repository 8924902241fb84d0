"""Unit tests for ConnectionService: the connection request state machine."""

import pytest
from sqlalchemy.exc import IntegrityError

from ringside.exceptions import (
    AlreadyConnectedError,
    ConflictError,
    ConnectionNotFoundError,
    ConnectionRequestNotFoundError,
    DuplicateRequestError,
    ForbiddenError,
    InvalidStateTransitionError,
    ProfileNotFoundError,
    SelfRequestError,
    ValidationError,
)
from ringside.models import Connection, ConnectionRequest
from ringside.services.connection_service import ConnectionService, normalize_pair
from tests.conftest import make_profile


@pytest.fixture()
def pair(db):
    return make_profile(db), make_profile(db)


class TestNormalizePair:

    def test_symmetric(self):
        assert normalize_pair("b", "a") == normalize_pair("a", "b") == ("a", "b")

    def test_already_ordered(self):
        assert normalize_pair("p-1", "p-2") == ("p-1", "p-2")

    def test_mixed_case_orders_by_code_point(self):
        assert normalize_pair("b-1", "B-2") == ("B-2", "b-1")
        assert normalize_pair("alpha", "Zed") == ("Zed", "alpha")


class TestSendRequest:

    def test_creates_pending(self, db, pair):
        a, b = pair
        request = ConnectionService(db).send_request(a.id, b.id, "Sparring next week?")
        assert request.status == "PENDING"
        assert request.message == "Sparring next week?"

    def test_self_request_rejected(self, db, pair):
        a, _ = pair
        with pytest.raises(SelfRequestError):
            ConnectionService(db).send_request(a.id, a.id)

    def test_missing_target(self, db, pair):
        a, _ = pair
        with pytest.raises(ProfileNotFoundError):
            ConnectionService(db).send_request(a.id, "missing")

    def test_duplicate_outgoing(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        svc.send_request(a.id, b.id)
        with pytest.raises(DuplicateRequestError, match="already have a pending connection request"):
            svc.send_request(a.id, b.id)

    def test_reverse_pending(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        svc.send_request(a.id, b.id)
        with pytest.raises(ConflictError) as exc:
            svc.send_request(b.id, a.id)
        assert exc.value.message == "This athlete has already sent you a connection request"
        assert exc.value.status_code == 409

    def test_already_connected(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        svc.accept_request(request.id, b.id)
        with pytest.raises(AlreadyConnectedError):
            svc.send_request(b.id, a.id)

    def test_new_request_allowed_after_decline(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        first = svc.send_request(a.id, b.id)
        svc.decline_request(first.id, b.id)
        second = svc.send_request(a.id, b.id)
        assert second.id != first.id


class TestAccept:

    def test_creates_normalized_connection(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(b.id, a.id)
        connection = svc.accept_request(request.id, a.id)

        lo, hi = sorted([a.id, b.id])
        assert (connection.profile_a_id, connection.profile_b_id) == (lo, hi)
        assert db.get(ConnectionRequest, request.id).status == "ACCEPTED"
        assert db.query(Connection).count() == 1

    def test_mixed_case_ids_store_code_point_order(self, db):
        upper = make_profile(db, profile_id="Zed")
        lower = make_profile(db, profile_id="alpha")
        svc = ConnectionService(db)

        connection = svc.accept_request(svc.send_request(lower.id, upper.id).id, upper.id)

        assert (connection.profile_a_id, connection.profile_b_id) == ("Zed", "alpha")
        assert svc.get_status("alpha", "Zed")["status"] == "connected"

    def test_only_target_may_accept(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        with pytest.raises(ForbiddenError):
            svc.accept_request(request.id, a.id)
        assert db.query(Connection).count() == 0

    def test_accept_twice_conflicts_naming_state(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        svc.accept_request(request.id, b.id)
        with pytest.raises(InvalidStateTransitionError) as exc:
            svc.accept_request(request.id, b.id)
        assert exc.value.message == "Cannot accept a connection request that is accepted"
        assert db.query(Connection).count() == 1

    def test_missing_request(self, db, pair):
        with pytest.raises(ConnectionRequestNotFoundError):
            ConnectionService(db).accept_request("missing", pair[0].id)

    def test_pair_already_connected_rolls_back(self, db, pair):
        """Crossing requests: the second accept hits the unique pair constraint."""
        a, b = pair
        svc = ConnectionService(db)
        first = svc.send_request(a.id, b.id)
        # Simulate the crossing request that slipped past the pending check.
        crossing = ConnectionRequest(id="crossing", requester_profile_id=b.id, target_profile_id=a.id)
        db.add(crossing)
        db.commit()

        svc.accept_request(first.id, b.id)
        with pytest.raises(ConflictError):
            svc.accept_request("crossing", a.id)

        assert db.get(ConnectionRequest, "crossing").status == "PENDING"
        assert db.query(Connection).count() == 1

    def test_unique_pair_enforced_by_schema(self, db, pair):
        lo, hi = sorted([pair[0].id, pair[1].id])
        db.add(Connection(id="c1", profile_a_id=lo, profile_b_id=hi))
        db.commit()
        db.add(Connection(id="c2", profile_a_id=lo, profile_b_id=hi))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestDeclineCancel:

    def test_decline_by_target(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        assert svc.decline_request(request.id, b.id).status == "DECLINED"

    def test_decline_by_requester_forbidden(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        with pytest.raises(ForbiddenError):
            svc.decline_request(request.id, a.id)

    def test_cancel_by_requester(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        assert svc.cancel_request(request.id, a.id).status == "CANCELLED"

    def test_cancel_by_target_forbidden(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        with pytest.raises(ForbiddenError):
            svc.cancel_request(request.id, b.id)

    def test_terminal_states_are_final(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        request = svc.send_request(a.id, b.id)
        svc.cancel_request(request.id, a.id)

        with pytest.raises(InvalidStateTransitionError, match="cancelled"):
            svc.accept_request(request.id, b.id)
        with pytest.raises(InvalidStateTransitionError):
            svc.decline_request(request.id, b.id)
        with pytest.raises(InvalidStateTransitionError):
            svc.cancel_request(request.id, a.id)


class TestStatusAndDisconnect:

    def test_status_progression(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        assert svc.get_status(a.id, b.id) == {"status": "none"}

        request = svc.send_request(a.id, b.id)
        assert svc.get_status(a.id, b.id) == {"status": "pending_sent", "request_id": request.id}
        assert svc.get_status(b.id, a.id) == {"status": "pending_received", "request_id": request.id}

        connection = svc.accept_request(request.id, b.id)
        assert svc.get_status(b.id, a.id) == {"status": "connected", "connection_id": connection.id}

    def test_either_participant_disconnects(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        connection = svc.accept_request(svc.send_request(a.id, b.id).id, b.id)

        svc.disconnect(connection.id, a.id)
        assert db.query(Connection).count() == 0
        assert svc.get_status(a.id, b.id) == {"status": "none"}

    def test_outsider_cannot_disconnect(self, db, pair):
        a, b = pair
        outsider = make_profile(db)
        svc = ConnectionService(db)
        connection = svc.accept_request(svc.send_request(a.id, b.id).id, b.id)
        with pytest.raises(ForbiddenError):
            svc.disconnect(connection.id, outsider.id)

    def test_disconnect_missing(self, db, pair):
        with pytest.raises(ConnectionNotFoundError):
            ConnectionService(db).disconnect("missing", pair[0].id)


class TestListing:

    def test_list_requests_by_direction(self, db, pair):
        a, b = pair
        c = make_profile(db)
        svc = ConnectionService(db)
        svc.send_request(a.id, b.id)
        svc.send_request(c.id, b.id)

        incoming = svc.list_requests(b.id, "incoming")
        assert incoming["pagination"]["total"] == 2
        assert svc.list_requests(b.id, "outgoing")["pagination"]["total"] == 0
        assert svc.list_requests(a.id, "outgoing")["pagination"]["total"] == 1

    def test_list_requests_paginates(self, db, pair):
        target = pair[0]
        svc = ConnectionService(db)
        for _ in range(3):
            svc.send_request(make_profile(db).id, target.id)

        page = svc.list_requests(target.id, "incoming", page=2, limit=2)
        assert len(page["items"]) == 1
        assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    def test_list_requests_rejects_unknown_status(self, db, pair):
        with pytest.raises(ValidationError, match="Unknown connection request status: OPEN"):
            ConnectionService(db).list_requests(pair[0].id, "incoming", status="OPEN")

    def test_list_requests_filters_by_status(self, db, pair):
        a, b = pair
        svc = ConnectionService(db)
        svc.decline_request(svc.send_request(a.id, b.id).id, b.id)

        assert svc.list_requests(b.id, "incoming", status="DECLINED")["pagination"]["total"] == 1
        assert svc.list_requests(b.id, "incoming", status="PENDING")["pagination"]["total"] == 0

    def test_list_connections_reports_other_side(self, db, pair):
        a, b = pair
        c = make_profile(db)
        svc = ConnectionService(db)
        svc.accept_request(svc.send_request(a.id, b.id).id, b.id)
        svc.accept_request(svc.send_request(c.id, a.id).id, a.id)

        others = {row["profile_id"] for row in svc.list_connections(a.id)["items"]}
        assert others == {b.id, c.id}
