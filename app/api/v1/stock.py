from typing import Any, List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_active_user, require_admin_or_franchise, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.franchise import Franchise
from app.models.medicine import Medicine
from app.models.stock import (
    StockBalance,
    StockBatchBalance,
    StockRecall,
    StockTransactionType,
)
from app.models.user import User
from app.schemas.stock import (
    FranchiseStock,
    RecallCreate,
    RecallResult,
    StockBatchRow,
    StockRecall as StockRecallSchema,
)
from app.services.exports import XLSX_MEDIA_TYPE, stock_excel
from app.services.stock import (
    add_ledger_line,
    adjust_franchise_stock,
    create_stock_transaction,
    recall_expiry_limit,
)

logger = get_logger(__name__)

router = APIRouter()
recalls_router = APIRouter()


def _required_franchise(db: Session, current_user: User, franchise_id: Optional[int]) -> Franchise:
    """Franchise ciblée: obligatoire pour l'admin, imposée pour les autres rôles."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    if scope is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="franchise_id is required"
        )
    franchise = db.query(Franchise).filter(Franchise.id == scope).first()
    if not franchise:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Franchise not found")
    return franchise


def franchise_stock_items(db: Session, franchise_id: int) -> List[dict]:
    rows = (
        db.query(StockBalance, Medicine)
        .join(Medicine, StockBalance.medicine_id == Medicine.id)
        .filter(StockBalance.franchise_id == franchise_id, StockBalance.quantity != 0)
        .order_by(Medicine.name.asc())
        .all()
    )
    return [
        {
            "medicine_id": medicine.id,
            "medicine_name": medicine.name,
            "brand_name": medicine.brand_name,
            "rate": medicine.rate,
            "mrp": medicine.mrp,
            "quantity": balance.quantity,
        }
        for balance, medicine in rows
    ]


# ============ STOCK FRANCHISE ============

@router.get("/", response_model=FranchiseStock)
def read_franchise_stock(
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Any:
    """Soldes non nuls par médicament, triés par nom."""
    franchise = _required_franchise(db, current_user, franchise_id)
    return {
        "franchise_id": franchise.id,
        "franchise_name": franchise.name,
        "items": franchise_stock_items(db, franchise.id),
    }


@router.get("/export")
def export_franchise_stock(
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Response:
    """Export Excel du stock d'une franchise."""
    franchise = _required_franchise(db, current_user, franchise_id)
    content = stock_excel(franchise.name, franchise_stock_items(db, franchise.id))
    filename = f"stock_{franchise.id}_{datetime.utcnow().strftime('%Y%m%d')}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/rows", response_model=Page[StockBatchRow])
def read_stock_rows(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    medicine_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Any:
    """Soldes par lot, paginés."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = db.query(StockBatchBalance).join(Medicine, StockBatchBalance.medicine_id == Medicine.id)
    if scope is not None:
        query = query.filter(StockBatchBalance.franchise_id == scope)
    if medicine_id is not None:
        query = query.filter(StockBatchBalance.medicine_id == medicine_id)

    query = apply_search(query, params.search, [Medicine.name, StockBatchBalance.batch_number])
    query = apply_sort(
        query,
        params,
        {
            "expiry_date": StockBatchBalance.expiry_date,
            "quantity": StockBatchBalance.quantity,
            "medicine_name": Medicine.name,
            "updated_at": StockBatchBalance.updated_at,
        },
        default_sort="expiry_date",
        default_order="asc",
    )
    return paginate(query, params)


@router.post("/recall", response_model=RecallResult)
def recall_stock(
    *,
    db: Session = Depends(get_db),
    recall_in: RecallCreate,
    current_user: User = Depends(require_admin_or_franchise)
) -> Any:
    """
    Rappelle tout ou partie d'un lot proche de sa péremption.

    Le lot doit expirer dans la fenêtre de rappel et contenir au moins la
    quantité demandée.
    """
    franchise = _required_franchise(db, current_user, recall_in.franchise_id)

    if recall_in.expiry_date > recall_expiry_limit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only batches expiring within {settings.RECALL_WINDOW_DAYS} days can be recalled"
        )

    medicine = db.query(Medicine).filter(Medicine.id == recall_in.medicine_id).first()
    if not medicine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")

    batch = db.query(StockBatchBalance).filter(
        StockBatchBalance.franchise_id == franchise.id,
        StockBatchBalance.medicine_id == medicine.id,
        StockBatchBalance.batch_number == recall_in.batch_number,
        StockBatchBalance.expiry_date == recall_in.expiry_date,
    ).first()
    if not batch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    if recall_in.quantity > batch.quantity:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Recall quantity exceeds batch quantity ({batch.quantity})"
        )

    txn = create_stock_transaction(
        db,
        StockTransactionType.RECALL_FROM_FRANCHISE,
        franchise_id=franchise.id,
        user_id=current_user.id,
        notes=recall_in.notes,
    )
    add_ledger_line(
        db,
        txn,
        medicine_id=medicine.id,
        qty_change=-recall_in.quantity,
        rate=medicine.rate,
        batch_number=batch.batch_number,
        expiry_date=batch.expiry_date,
    )
    adjust_franchise_stock(
        db,
        franchise_id=franchise.id,
        medicine_id=medicine.id,
        delta=-recall_in.quantity,
        batch_number=batch.batch_number,
        expiry_date=batch.expiry_date,
    )
    db.add(StockRecall(
        stock_transaction_id=txn.id,
        franchise_id=franchise.id,
        medicine_id=medicine.id,
        batch_number=batch.batch_number,
        expiry_date=batch.expiry_date,
        quantity=recall_in.quantity,
        created_by_user_id=current_user.id,
    ))
    db.commit()
    db.refresh(batch)

    logger.info(
        "Lot rappelé",
        extra={"extra_data": {
            "franchise_id": franchise.id,
            "medicine_id": medicine.id,
            "batch_number": batch.batch_number,
            "quantity": recall_in.quantity,
            "txn_no": txn.txn_no,
        }},
    )
    return {"ok": True, "remaining_batch_qty": batch.quantity}


# ============ RAPPELS ============

@recalls_router.get("/", response_model=Page[StockRecallSchema])
def read_recalls(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin_or_franchise)
) -> Any:
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = db.query(StockRecall).join(Medicine, StockRecall.medicine_id == Medicine.id)
    if scope is not None:
        query = query.filter(StockRecall.franchise_id == scope)

    query = apply_search(query, params.search, [Medicine.name, StockRecall.batch_number])
    query = apply_sort(
        query,
        params,
        {
            "recalled_at": StockRecall.recalled_at,
            "expiry_date": StockRecall.expiry_date,
            "quantity": StockRecall.quantity,
        },
        default_sort="recalled_at",
    )
    return paginate(query, params)
