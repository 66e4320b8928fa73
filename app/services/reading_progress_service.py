import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.exceptions import NotFound, PersistenceError
from app.models.product import Product
from app.models.reading_progress import ReadingProgress

logger = logging.getLogger(__name__)


def reading_status(percent: float) -> str:
    if percent <= 0:
        return "not_started"
    if percent >= 100:
        return "completed"
    return "reading"


def update_reading_progress(
    session: Session,
    customer_id: int,
    product_id: int,
    last_page: int,
    percent: float,
) -> dict:
    """
    Record where the customer is in an ebook they own.

    Percent is clamped to 0..100 and the page to 0 or more. Only progress rows
    created by a grant can be updated; anything else is NotFound.
    """
    percent = max(0.0, min(100.0, float(percent or 0)))
    last_page = max(0, int(last_page or 0))

    row = session.exec(
        select(ReadingProgress, Product)
        .join(Product, Product.id == ReadingProgress.product_id)
        .where(ReadingProgress.customer_id == customer_id)
        .where(ReadingProgress.product_id == product_id)
    ).first()
    if row is None:
        raise NotFound("ReadingProgress", f"{customer_id}/{product_id}")
    progress, product = row

    previous = progress.percent
    progress.last_page = last_page
    progress.percent = percent
    progress.updated_at = datetime.utcnow()

    try:
        session.add(progress)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Updating reading progress of product {product_id} for customer {customer_id} failed")
        raise PersistenceError(f"Could not update reading progress: {e}") from e

    logger.info(
        f"Reading progress of customer {customer_id} on product {product_id}: "
        f"{previous}% -> {percent}% (page {last_page})"
    )
    return {
        "reading_progress": {
            "last_page": last_page,
            "percent": percent,
            "status": reading_status(percent),
        },
        "ebook": {
            "id": product.id,
            "name": product.name,
        },
    }
