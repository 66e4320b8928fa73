from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.exceptions import PersistenceError
from app.models.entitlement import Entitlement
from app.models.reading_progress import ReadingProgress
from app.services import entitlement_service
from app.services.checkout_service import create_transaction
from app.services.entitlement_service import (
    ensure_entitlement,
    ensure_reading_progress,
    grant,
    resolve_product_ids,
)


def _entitlements(session, customer_id):
    return session.exec(
        select(Entitlement).where(Entitlement.customer_id == customer_id)
    ).all()


def _progress(session, customer_id):
    return session.exec(
        select(ReadingProgress).where(ReadingProgress.customer_id == customer_id)
    ).all()


def test_grant_expands_bundles(session, buyer, catalog, t1):
    product_ids = grant(session, buyer.id, t1.items)
    session.commit()

    expected = sorted(catalog[key].id for key in ("p1", "p2", "p3", "p4"))
    assert product_ids == expected
    assert sorted(e.product_id for e in _entitlements(session, buyer.id)) == expected
    assert sorted(p.product_id for p in _progress(session, buyer.id)) == expected


def test_grant_twice_creates_nothing_new(session, buyer, t1):
    grant(session, buyer.id, t1.items)
    session.commit()
    keys = {e.product_id: e.download_key for e in _entitlements(session, buyer.id)}

    grant(session, buyer.id, t1.items)
    session.commit()

    entitlements = _entitlements(session, buyer.id)
    assert len(entitlements) == 4
    assert {e.product_id: e.download_key for e in entitlements} == keys
    assert len(_progress(session, buyer.id)) == 4


def test_download_keys_are_opaque_and_distinct(session, buyer, t1):
    grant(session, buyer.id, t1.items)
    session.commit()

    keys = [e.download_key for e in _entitlements(session, buyer.id)]
    assert all(key.startswith("key_") for key in keys)
    assert len(set(keys)) == len(keys)


def test_existing_reading_progress_is_kept(session, buyer, catalog, t1):
    session.add(ReadingProgress(
        customer_id=buyer.id,
        product_id=catalog["p3"].id,
        last_page=42,
        percent=37.5,
    ))
    session.commit()

    grant(session, buyer.id, t1.items)
    session.commit()

    progress = {p.product_id: p for p in _progress(session, buyer.id)}
    assert progress[catalog["p3"].id].last_page == 42
    assert progress[catalog["p3"].id].percent == 37.5
    assert progress[catalog["p4"].id].last_page == 0


def test_overlapping_bundles_grant_each_product_once(
    session, buyer, catalog, make_bundle
):
    other = make_bundle(
        catalog["seller_a"],
        "Paket Lengkap",
        [catalog["p3"], catalog["p1"]],
    )
    transaction = create_transaction(
        session,
        customer_id=buyer.id,
        gateway_order_id="ORDER-OVERLAP",
        items=[
            {"bundle_id": catalog["b1"].id},
            {"bundle_id": other.id},
            {"product_id": catalog["p3"].id},
        ],
    )

    assert resolve_product_ids(session, transaction.items) == [
        catalog["p3"].id,
        catalog["p4"].id,
        catalog["p1"].id,
    ]

    grant(session, buyer.id, transaction.items)
    session.commit()
    assert len(_entitlements(session, buyer.id)) == 3


def test_line_without_reference_covers_nothing(session):
    line = SimpleNamespace(product_id=None, bundle_id=None)
    assert resolve_product_ids(session, [line]) == []


def test_insert_conflict_counts_as_already_granted(session, buyer, catalog, monkeypatch):
    product_id = catalog["p1"].id
    ensure_entitlement(session, buyer.id, product_id)
    ensure_reading_progress(session, buyer.id, product_id)
    session.commit()

    # hide the existing rows from the fast path once, as a concurrent
    # delivery would see them
    real_find = entitlement_service._find
    calls = []

    def racing_find(session, model, customer_id, product_id):
        calls.append(model)
        if calls.count(model) == 1:
            return None
        return real_find(session, model, customer_id, product_id)

    monkeypatch.setattr(entitlement_service, "_find", racing_find)

    assert ensure_entitlement(session, buyer.id, product_id) is False
    assert ensure_reading_progress(session, buyer.id, product_id) is False
    session.commit()

    assert len(_entitlements(session, buyer.id)) == 1
    assert len(_progress(session, buyer.id)) == 1


def test_database_failure_becomes_persistence_error(session, buyer, t1, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT INTO entitlement", {}, Exception("disk I/O error"))

    monkeypatch.setattr(entitlement_service, "ensure_entitlement", broken)

    with pytest.raises(PersistenceError):
        grant(session, buyer.id, t1.items)


def test_bundle_grants_only_its_members(session, buyer, catalog):
    transaction = create_transaction(
        session,
        customer_id=buyer.id,
        gateway_order_id="ORDER-BUNDLE",
        items=[{"bundle_id": catalog["b1"].id}],
    )

    assert grant(session, buyer.id, transaction.items) == sorted(
        [catalog["p3"].id, catalog["p4"].id]
    )
    session.commit()
    assert len(_entitlements(session, buyer.id)) == 2
