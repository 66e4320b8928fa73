import pytest

from app.constants.transaction_status import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    TransactionStatus,
    sources_for,
)
from app.models.transaction import Transaction
from app.services.transaction_status import (
    map_direct_status,
    map_gateway_status,
    transition,
)


@pytest.mark.parametrize(
    "transaction_status, fraud_status, expected",
    [
        ("capture", "challenge", "challenge"),
        ("capture", "accept", "paid"),
        ("settlement", None, "paid"),
        ("settlement", "accept", "paid"),
        ("pending", None, "pending"),
        ("deny", None, "failed"),
        ("cancel", None, "canceled"),
        ("expire", None, "expired"),
        ("failure", None, "failed"),
    ],
)
def test_gateway_status_mapping(transaction_status, fraud_status, expected):
    assert map_gateway_status(transaction_status, fraud_status) == expected


@pytest.mark.parametrize(
    "transaction_status, fraud_status",
    [
        ("capture", None),
        ("capture", "deny"),
        ("authorize", None),
        ("refund", None),
        (None, None),
        ("", "accept"),
    ],
)
def test_unmapped_gateway_statuses(transaction_status, fraud_status):
    assert map_gateway_status(transaction_status, fraud_status) is None


def test_direct_status_mapping():
    assert map_direct_status("success") == "paid"
    assert map_direct_status("pending") is None
    assert map_direct_status(None) is None


def test_terminal_statuses_have_no_exits():
    assert TERMINAL_STATUSES == {"paid", "failed", "canceled", "expired", "fraud", "refunded"}
    for status in TERMINAL_STATUSES:
        assert ALLOWED_TRANSITIONS[status] == []


def test_sources_for_paid():
    assert set(sources_for("paid")) == {"cart", "pending", "challenge"}
    assert sources_for("cart") == []


def test_transition_pending_to_paid_stores_success_snapshot(session, t1):
    t1.gateway_pending = {"transaction_status": "pending"}
    session.add(t1)
    session.commit()

    assert transition(session, t1.id, "paid", {"transaction_status": "settlement"}) is True
    session.commit()

    reloaded = session.get(Transaction, t1.id)
    assert reloaded.status == TransactionStatus.paid.value
    assert reloaded.gateway_success == {"transaction_status": "settlement"}
    assert reloaded.gateway_pending is None
    assert reloaded.gateway_error is None


def test_paid_never_regresses(session, t1):
    transition(session, t1.id, "paid", {"transaction_status": "settlement"})
    session.commit()

    for target in ("pending", "challenge", "failed", "expired", "cart"):
        assert transition(session, t1.id, target, {"transaction_status": target}) is False

    session.commit()
    reloaded = session.get(Transaction, t1.id)
    assert reloaded.status == "paid"
    assert reloaded.gateway_error is None


def test_second_paid_transition_reports_no_change(session, t1):
    assert transition(session, t1.id, "paid") is True
    assert transition(session, t1.id, "paid") is False


def test_repeated_pending_refreshes_snapshot(session, t1):
    assert transition(session, t1.id, "pending", {"va": "1"}) is True
    assert transition(session, t1.id, "pending", {"va": "2"}) is True
    session.commit()

    reloaded = session.get(Transaction, t1.id)
    assert reloaded.status == "pending"
    assert reloaded.gateway_pending == {"va": "2"}


def test_challenge_then_paid(session, t1):
    assert transition(session, t1.id, "challenge", {"fraud_status": "challenge"}) is True
    assert t1.status == "challenge"
    assert transition(session, t1.id, "paid", {"fraud_status": "accept"}) is True
    assert t1.status == "paid"


def test_failed_is_terminal(session, t1):
    assert transition(session, t1.id, "failed", {"transaction_status": "deny"}) is True
    assert transition(session, t1.id, "paid") is False
    session.commit()
    assert session.get(Transaction, t1.id).status == "failed"


def test_unknown_target_is_rejected(session, t1):
    with pytest.raises(ValueError):
        transition(session, t1.id, "settled")


def test_timestamps_are_naive_utc(session, t1):
    reloaded = session.get(Transaction, t1.id)
    assert reloaded.created_at.tzinfo is None
    assert reloaded.updated_at.tzinfo is None

    transition(session, t1.id, "paid")
    session.commit()
    assert session.get(Transaction, t1.id).updated_at >= reloaded.created_at
