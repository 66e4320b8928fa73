from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.exceptions import NotFound, PersistenceError
from app.models.entitlement import Entitlement
from app.models.product import Product
from app.models.reading_progress import ReadingProgress
from app.models.user import User
from app.schemas.library_schemas import ReadingProgressUpdate
from app.services.reading_progress_service import update_reading_progress
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def my_library(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(Entitlement, Product, ReadingProgress)
        .join(Product, Product.id == Entitlement.product_id)
        .join(
            ReadingProgress,
            (ReadingProgress.customer_id == Entitlement.customer_id)
            & (ReadingProgress.product_id == Entitlement.product_id),
            isouter=True,
        )
        .where(Entitlement.customer_id == current_user.id)
        .order_by(Entitlement.created_at.desc(), Entitlement.id.desc())
    ).all()

    return [
        {
            "product_id": product.id,
            "name": product.name,
            "slug": product.slug,
            "cover": product.cover,
            "download_key": entitlement.download_key,
            "granted_at": entitlement.created_at,
            "progress": {
                "last_page": progress.last_page if progress else 0,
                "percent": progress.percent if progress else 0.0,
            },
        }
        for entitlement, product, progress in rows
    ]


@router.put("/{product_id}/progress")
def update_progress(
    product_id: int,
    payload: ReadingProgressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        data = update_reading_progress(
            session,
            current_user.id,
            product_id,
            payload.last_page,
            payload.percent,
        )
    except NotFound:
        raise HTTPException(404, "Ebook tidak ditemukan di perpustakaan pengguna")
    except PersistenceError:
        raise HTTPException(500, "Gagal memperbarui progres membaca")

    return {
        "success": True,
        "message": "Progres membaca berhasil diperbarui",
        "data": data,
    }
