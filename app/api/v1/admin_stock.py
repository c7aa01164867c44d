"""
Stock central (admin): réapprovisionnement et consultation des lots.
"""

from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import require_admin
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.medicine import Medicine
from app.models.stock import AdminStockBalance, AdminStockBatchBalance
from app.models.user import User
from app.schemas.stock import (
    AdminStockBalance as AdminStockBalanceSchema,
    AdminStockBatch,
    RefillRequest,
)
from app.services.stock import adjust_admin_stock, saleable_expiry_cutoff

router = APIRouter()
logger = get_logger(__name__)


@router.post("/refill", response_model=List[AdminStockBalanceSchema], status_code=status.HTTP_201_CREATED)
def refill_admin_stock(
    *,
    db: Session = Depends(get_db),
    refill_in: RefillRequest,
    current_user: User = Depends(require_admin),
) -> Any:
    """
    Entrée de lots dans le stock central. Chaque lot doit expirer au-delà
    de la fenêtre de vente; la requête est refusée en bloc sinon.
    """
    cutoff = saleable_expiry_cutoff()
    balances = {}

    for item in refill_in.items:
        if item.expiry_date <= cutoff:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"This batch expiry should be above {settings.MIN_SALEABLE_EXPIRY_DAYS} days"
            )
        if not db.query(Medicine.id).filter(Medicine.id == item.medicine_id).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")

        balance = adjust_admin_stock(
            db,
            medicine_id=item.medicine_id,
            delta=item.quantity,
            batch_number=item.batch_number,
            expiry_date=item.expiry_date,
        )
        balances[item.medicine_id] = balance

    db.commit()
    for balance in balances.values():
        db.refresh(balance)

    logger.info(
        "Stock central réapprovisionné",
        extra={"extra_data": {
            "items": len(refill_in.items),
            "quantity": sum(item.quantity for item in refill_in.items),
            "user_id": current_user.id,
        }},
    )
    return list(balances.values())


@router.get("/batches", response_model=List[AdminStockBatch])
def read_admin_batches(
    medicine_id: int = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    """Lots vendables d'un médicament, premier périmé d'abord."""
    return (
        db.query(AdminStockBatchBalance)
        .filter(
            AdminStockBatchBalance.medicine_id == medicine_id,
            AdminStockBatchBalance.quantity > 0,
            AdminStockBatchBalance.expiry_date > saleable_expiry_cutoff(),
        )
        .order_by(AdminStockBatchBalance.expiry_date.asc(), AdminStockBatchBalance.id.asc())
        .all()
    )


@router.get("/rows", response_model=Page[AdminStockBalanceSchema])
def read_admin_stock_rows(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    query = db.query(AdminStockBalance).join(Medicine, AdminStockBalance.medicine_id == Medicine.id)
    query = apply_search(query, params.search, [Medicine.name])
    query = apply_sort(
        query,
        params,
        {
            "medicine_name": Medicine.name,
            "quantity": AdminStockBalance.quantity,
            "updated_at": AdminStockBalance.updated_at,
        },
        default_sort="medicine_name",
        default_order="asc",
    )
    return paginate(query, params)
