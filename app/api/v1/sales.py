"""
Ventes du stock central vers les franchises.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session, selectinload

from app.core.deps import get_current_active_user, require_admin, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.franchise import Franchise
from app.models.medicine import Medicine
from app.models.sale import Sale, SaleDetail
from app.models.stock import StockTransaction
from app.models.transport import Transport, TransportStatus
from app.models.user import User
from app.schemas.sale import Sale as SaleSchema, SaleCreate, SaleDetailCreate, SaleUpdate
from app.services.numbering import SALE_PREFIX, next_document_number
from app.services.stock import adjust_admin_stock, reverse_transaction

logger = get_logger(__name__)

router = APIRouter()


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return sale


def _get_franchise(db: Session, franchise_id: int) -> Franchise:
    franchise = db.query(Franchise).filter(Franchise.id == franchise_id).first()
    if not franchise:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Franchise not found")
    return franchise


def _build_details(db: Session, lines: List[SaleDetailCreate]) -> List[SaleDetail]:
    details = []
    for line in lines:
        if not db.query(Medicine.id).filter(Medicine.id == line.medicine_id).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")
        details.append(SaleDetail(
            medicine_id=line.medicine_id,
            batch_number=line.batch_number,
            expiry_date=line.expiry_date,
            quantity=line.quantity,
            rate=line.rate,
            amount=round(line.quantity * line.rate, 2),
        ))
    return details


def compute_total(details: List[SaleDetail], discount_percent: float) -> float:
    """Sous-total remisé, jamais négatif."""
    subtotal = sum(detail.amount for detail in details)
    return max(0.0, round(subtotal * (1 - discount_percent / 100), 2))


@router.get("/", response_model=Page[SaleSchema])
def read_sales(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Liste des ventes; une franchise ne voit que les siennes."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = (
        db.query(Sale)
        .join(Franchise, Sale.franchise_id == Franchise.id)
        .options(selectinload(Sale.details), selectinload(Sale.transports))
    )
    if scope is not None:
        query = query.filter(Sale.franchise_id == scope)

    query = apply_search(query, params.search, [Sale.invoice_no, Franchise.name])
    query = apply_sort(
        query,
        params,
        {
            "invoice_date": Sale.invoice_date,
            "invoice_no": Sale.invoice_no,
            "total_amount": Sale.total_amount,
            "created_at": Sale.created_at,
        },
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=SaleSchema, status_code=status.HTTP_201_CREATED)
def create_sale(
    *,
    db: Session = Depends(get_db),
    sale_in: SaleCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    """
    Crée une vente et son transport PENDING.

    Le stock n'est mouvementé qu'à la livraison du transport.
    """
    franchise = _get_franchise(db, sale_in.franchise_id)
    details = _build_details(db, sale_in.details)

    sale = Sale(
        invoice_no=next_document_number(db, Sale.invoice_no, SALE_PREFIX),
        invoice_date=sale_in.invoice_date,
        franchise_id=franchise.id,
        discount_percent=sale_in.discount_percent,
        total_amount=compute_total(details, sale_in.discount_percent),
        details=details,
    )
    db.add(sale)
    db.flush()

    db.add(Transport(sale_id=sale.id, franchise_id=franchise.id, status=TransportStatus.PENDING))
    db.commit()
    db.refresh(sale)

    logger.info(
        "Vente créée",
        extra={"extra_data": {
            "sale_id": sale.id,
            "invoice_no": sale.invoice_no,
            "franchise_id": franchise.id,
            "total_amount": sale.total_amount,
            "user_id": current_user.id,
        }},
    )
    return sale


@router.get("/{sale_id}", response_model=SaleSchema)
def read_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    sale = get_sale(db, sale_id)
    scope = resolve_franchise_scope(current_user)
    if scope is not None and sale.franchise_id != scope:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return sale


@router.put("/{sale_id}", response_model=SaleSchema)
def update_sale(
    *,
    db: Session = Depends(get_db),
    sale_id: int,
    sale_in: SaleUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    """
    Met à jour une vente non livrée. Les lignes fournies remplacent les
    existantes et vident les détails du transport en attente; elles sont
    refusées tant qu'un transport est en route.
    """
    sale = get_sale(db, sale_id)
    if any(t.status == TransportStatus.DELIVERED for t in sale.transports):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sale cannot be updated after it is delivered"
        )
    if sale_in.details is not None and any(t.status == TransportStatus.DISPATCHED for t in sale.transports):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sale details cannot be replaced while a transport is dispatched"
        )

    update_data = sale_in.model_dump(exclude_unset=True, exclude={"details"})
    if update_data.get("franchise_id") is not None:
        sale.franchise_id = _get_franchise(db, update_data["franchise_id"]).id
    if update_data.get("invoice_date") is not None:
        sale.invoice_date = update_data["invoice_date"]
    if update_data.get("discount_percent") is not None:
        sale.discount_percent = min(100.0, max(0.0, update_data["discount_percent"]))

    pending = [t for t in sale.transports if t.status == TransportStatus.PENDING]
    if sale_in.details is not None:
        if not sale_in.details:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="At least one sale detail is required"
            )
        for transport in pending:
            transport.details.clear()
        db.flush()
        sale.details.clear()
        db.flush()
        sale.details.extend(_build_details(db, sale_in.details))

    sale.total_amount = compute_total(sale.details, sale.discount_percent)

    if not sale.transports:
        db.add(Transport(sale_id=sale.id, franchise_id=sale.franchise_id, status=TransportStatus.PENDING))
    else:
        for transport in sale.transports:
            transport.franchise_id = sale.franchise_id

    db.commit()
    db.refresh(sale)
    logger.info("Vente mise à jour", extra={"extra_data": {"sale_id": sale.id}})
    return sale


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(
    *,
    db: Session = Depends(get_db),
    sale_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    """
    Supprime la vente. Le stock déjà livré est retiré de la franchise et
    rendu au stock central.
    """
    sale = get_sale(db, sale_id)

    txn = db.query(StockTransaction).filter(StockTransaction.sale_id == sale.id).first()
    if txn is not None:
        reverse_transaction(db, txn)
        for line in txn.lines:
            adjust_admin_stock(
                db,
                medicine_id=line.medicine_id,
                delta=line.qty_change,
                batch_number=line.batch_number,
                expiry_date=line.expiry_date,
            )
        db.delete(txn)

    db.delete(sale)
    db.commit()

    logger.info(
        "Vente supprimée",
        extra={"extra_data": {"sale_id": sale_id, "stock_reversed": txn is not None}},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
