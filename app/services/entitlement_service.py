"""
Entitlement granting for paid transactions.

Every grant is additive and idempotent. The existence check before each insert
is only a fast path; the ``(customer_id, product_id)`` unique constraints on
``entitlement`` and ``readingprogress`` are what make duplicate deliveries safe,
so an insert conflict is read back and reported as "already granted".
"""

import logging
from typing import Iterable, List
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.exceptions import PersistenceError
from app.models.bundle import BundleProduct
from app.models.entitlement import Entitlement
from app.models.reading_progress import ReadingProgress

logger = logging.getLogger(__name__)


def new_download_key() -> str:
    return f"key_{uuid4().hex}"


def _find(session: Session, model, customer_id: int, product_id: int):
    return session.exec(
        select(model)
        .where(model.customer_id == customer_id)
        .where(model.product_id == product_id)
    ).first()


def _insert_once(session: Session, model, customer_id: int, product_id: int, **values) -> bool:
    if _find(session, model, customer_id, product_id) is not None:
        return False

    try:
        with session.begin_nested():
            session.add(model(customer_id=customer_id, product_id=product_id, **values))
    except IntegrityError:
        # a concurrent delivery won the race; confirm it was the unique pair
        if _find(session, model, customer_id, product_id) is None:
            raise
        logger.info(
            f"{model.__name__} for customer {customer_id} / product {product_id} "
            f"already exists (insert conflict)"
        )
        return False
    return True


def ensure_entitlement(session: Session, customer_id: int, product_id: int) -> bool:
    """Create the entitlement if absent. Returns True when this call created it."""
    created = _insert_once(
        session,
        Entitlement,
        customer_id,
        product_id,
        download_key=new_download_key(),
    )
    if created:
        logger.info(f"Granted product {product_id} to customer {customer_id}")
    return created


def ensure_reading_progress(session: Session, customer_id: int, product_id: int) -> bool:
    """Create zeroed reading progress if absent; existing progress is never touched."""
    return _insert_once(
        session,
        ReadingProgress,
        customer_id,
        product_id,
        last_page=0,
        percent=0.0,
    )


def bundle_product_ids(session: Session, bundle_id: int) -> List[int]:
    return list(session.exec(
        select(BundleProduct.product_id)
        .where(BundleProduct.bundle_id == bundle_id)
        .order_by(BundleProduct.id)
    ).all())


def resolve_product_ids(session: Session, line_items: Iterable) -> List[int]:
    """Product ids covered by the line items, bundles expanded, first-seen order."""
    product_ids = []
    for item in line_items:
        if item.product_id is not None:
            candidates = [item.product_id]
        elif item.bundle_id is not None:
            candidates = bundle_product_ids(session, item.bundle_id)
        else:
            candidates = []

        for product_id in candidates:
            if product_id not in product_ids:
                product_ids.append(product_id)
    return product_ids


def grant(session: Session, customer_id: int, line_items: Iterable) -> List[int]:
    """
    Ensure an entitlement and reading progress exist for every product the
    line items cover. Does not commit; the caller owns the transaction.

    Raises PersistenceError on any database failure other than a duplicate grant.
    """
    try:
        product_ids = resolve_product_ids(session, line_items)
        for product_id in product_ids:
            ensure_entitlement(session, customer_id, product_id)
            ensure_reading_progress(session, customer_id, product_id)
    except SQLAlchemyError as e:
        logger.exception(f"Granting entitlements for customer {customer_id} failed")
        raise PersistenceError(f"Could not grant entitlements: {e}") from e

    return sorted(product_ids)
