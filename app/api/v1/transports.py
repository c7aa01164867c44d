"""
Transports: expédition des ventes et livraison en franchise.

L'admin expédie (DISPATCHED), la franchise réceptionne (DELIVERED). Le
stock passe du central à la franchise à la réception, une seule fois.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.deps import (
    get_current_franchise_id,
    require_admin,
    require_admin_or_franchise,
    resolve_franchise_scope,
)
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.franchise import Franchise
from app.models.sale import Sale
from app.models.stock import StockTransaction, StockTransactionType
from app.models.transport import Transport, TransportDetail, TransportStatus
from app.models.user import User, UserRole
from app.schemas.transport import Transport as TransportSchema, TransportCreate, TransportUpdate
from app.api.v1.sales import get_sale
from app.services.dispatch import (
    EXCEEDS_REMAINING,
    EXCEEDS_SALE,
    EXCEEDS_SALE_DETAIL,
    delivery_lines,
    ensure_not_empty,
    plan_from_details,
    plan_from_total,
    quantity_by_medicine,
    remaining_quantities,
)
from app.services.stock import (
    add_ledger_line,
    adjust_admin_stock,
    adjust_franchise_stock,
    admin_batch_quantity,
    admin_quantity,
    create_stock_transaction,
)

logger = get_logger(__name__)

router = APIRouter()

TRANSPORT_FIELDS = {
    "company_name",
    "transport_fee",
    "transporter_name",
    "receipt_number",
    "vehicle_number",
    "tracking_number",
    "notes",
}


def _get_transport(db: Session, transport_id: int) -> Transport:
    transport = db.query(Transport).filter(Transport.id == transport_id).first()
    if not transport:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transport not found")
    return transport


def _ensure_owner(transport: Transport, current_user: User) -> None:
    if current_user.role == UserRole.ADMIN:
        return
    if transport.franchise_id != get_current_franchise_id(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Transport does not belong to your franchise"
        )


def _replace_details(db: Session, transport: Transport, plan: Dict[int, int]) -> None:
    transport.details.clear()
    db.flush()
    for sale_detail_id, qty in plan.items():
        if qty > 0:
            transport.details.append(TransportDetail(sale_detail_id=sale_detail_id, quantity=qty))


def _sync_remainder(db: Session, sale: Sale, dispatched: Transport) -> None:
    """
    Après une expédition, le reste de la vente tient dans un seul transport
    PENDING; s'il ne reste rien, les transports PENDING sont supprimés.
    """
    db.flush()
    remaining = remaining_quantities(sale)
    others = [
        t for t in sale.transports
        if t.id != dispatched.id and t.status == TransportStatus.PENDING
    ]

    if sum(remaining.values()) <= 0:
        for transport in others:
            db.delete(transport)
        return

    if others:
        remainder, extra = others[0], others[1:]
        for transport in extra:
            db.delete(transport)
    else:
        remainder = Transport(sale=sale, franchise_id=sale.franchise_id, status=TransportStatus.PENDING)
        db.add(remainder)
        db.flush()

    _replace_details(db, remainder, remaining)
    remainder.dispatched_quantity = sum(remaining.values())


def post_delivery_stock(db: Session, transport: Transport, user: User) -> StockTransaction:
    """
    Crédite la franchise des quantités livrées et débite le stock central.

    Protégé par `stock_posted_at`: un transport n'est posté qu'une fois.
    """
    sale = transport.sale
    lines = delivery_lines(transport, sale)

    by_batch: Dict[tuple, int] = defaultdict(int)
    for line in lines:
        by_batch[(line.medicine_id, line.batch_number, line.expiry_date)] += line.quantity
    short_medicine = any(
        admin_quantity(db, medicine_id) < qty for medicine_id, qty in quantity_by_medicine(lines).items()
    )
    short_batch = any(
        admin_batch_quantity(db, medicine_id, batch_number, expiry_date) < qty
        for (medicine_id, batch_number, expiry_date), qty in by_batch.items()
    )
    if short_medicine or short_batch:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Insufficient admin stock to post delivery"
        )

    txn = db.query(StockTransaction).filter(
        StockTransaction.sale_id == sale.id,
        StockTransaction.txn_type == StockTransactionType.SALE_TO_FRANCHISE,
    ).first()
    if txn is None:
        txn = create_stock_transaction(
            db,
            StockTransactionType.SALE_TO_FRANCHISE,
            franchise_id=transport.franchise_id,
            user_id=user.id,
            txn_date=sale.invoice_date,
            sale_id=sale.id,
        )

    for line in lines:
        adjust_admin_stock(
            db,
            medicine_id=line.medicine_id,
            delta=-line.quantity,
            batch_number=line.batch_number,
            expiry_date=line.expiry_date,
        )
        add_ledger_line(
            db,
            txn,
            medicine_id=line.medicine_id,
            qty_change=line.quantity,
            rate=line.rate,
            batch_number=line.batch_number,
            expiry_date=line.expiry_date,
        )
        adjust_franchise_stock(
            db,
            franchise_id=transport.franchise_id,
            medicine_id=line.medicine_id,
            delta=line.quantity,
            batch_number=line.batch_number,
            expiry_date=line.expiry_date,
        )

    transport.stock_posted_at = datetime.utcnow()
    db.flush()

    logger.info(
        "Stock livré posté",
        extra={"extra_data": {
            "transport_id": transport.id,
            "sale_id": sale.id,
            "txn_no": txn.txn_no,
            "quantity": sum(line.quantity for line in lines),
        }},
    )
    return txn


@router.get("/", response_model=Page[TransportSchema])
def read_transports(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    status_filter: Optional[TransportStatus] = Query(None, alias="status"),
    sale_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin_or_franchise),
) -> Any:
    """Liste des transports, les plus récents d'abord."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = (
        db.query(Transport)
        .join(Sale, Transport.sale_id == Sale.id)
        .join(Franchise, Transport.franchise_id == Franchise.id)
    )
    if scope is not None:
        query = query.filter(Transport.franchise_id == scope)
    if status_filter is not None:
        query = query.filter(Transport.status == status_filter)
    if sale_id is not None:
        query = query.filter(Transport.sale_id == sale_id)

    query = apply_search(
        query,
        params.search,
        [
            Transport.receipt_number,
            Transport.tracking_number,
            Transport.transporter_name,
            Transport.company_name,
            Sale.invoice_no,
            Franchise.name,
        ],
    )
    query = apply_sort(
        query,
        params,
        {
            "created_at": Transport.created_at,
            "dispatched_at": Transport.dispatched_at,
            "delivered_at": Transport.delivered_at,
            "status": Transport.status,
        },
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=TransportSchema, status_code=status.HTTP_201_CREATED)
def create_transport(
    *,
    db: Session = Depends(get_db),
    transport_in: TransportCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    """
    Expédie une vente, par lignes (`dispatched_details`) ou par quantité
    totale (`dispatched_quantity`, répartie dans l'ordre des lignes).
    """
    sale = get_sale(db, transport_in.sale_id)

    open_transports = [t for t in sale.transports if t.status != TransportStatus.DELIVERED]
    open_transports.sort(key=lambda t: t.status != TransportStatus.PENDING)
    transport = open_transports[0] if open_transports else None
    if transport is None and sale.transports:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transport already delivered")

    available = remaining_quantities(sale, exclude_transport_id=transport.id if transport else None)
    if transport_in.dispatched_details:
        plan = plan_from_details(available, transport_in.dispatched_details, EXCEEDS_SALE_DETAIL)
    else:
        plan = plan_from_total(available, transport_in.dispatched_quantity, EXCEEDS_SALE)
    total = ensure_not_empty(plan)

    if transport is None:
        transport = Transport(sale=sale, franchise_id=sale.franchise_id)
        db.add(transport)
        db.flush()

    for field, value in transport_in.model_dump(include=TRANSPORT_FIELDS).items():
        setattr(transport, field, value)
    transport.status = TransportStatus.DISPATCHED
    transport.dispatched_at = datetime.utcnow()
    transport.dispatched_quantity = total
    _replace_details(db, transport, plan)
    _sync_remainder(db, sale, transport)

    db.commit()
    db.refresh(transport)

    logger.info(
        "Transport expédié",
        extra={"extra_data": {
            "transport_id": transport.id,
            "sale_id": sale.id,
            "dispatched_quantity": total,
        }},
    )
    return transport


@router.get("/{transport_id}", response_model=TransportSchema)
def read_transport(
    transport_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin_or_franchise),
) -> Any:
    transport = _get_transport(db, transport_id)
    _ensure_owner(transport, current_user)
    return transport


def _deliver(db: Session, transport: Transport, transport_in: TransportUpdate, current_user: User) -> Transport:
    update_data = transport_in.model_dump(exclude_unset=True)
    if update_data != {"status": TransportStatus.DELIVERED}:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Franchise can only mark transport as DELIVERED"
        )

    _ensure_owner(transport, current_user)
    if transport.status == TransportStatus.DELIVERED:
        return transport
    if transport.status != TransportStatus.DISPATCHED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transport is not dispatched")

    transport.status = TransportStatus.DELIVERED
    transport.delivered_at = datetime.utcnow()
    if transport.stock_posted_at is None:
        post_delivery_stock(db, transport, current_user)

    db.commit()
    db.refresh(transport)
    logger.info("Transport livré", extra={"extra_data": {"transport_id": transport.id}})
    return transport


def _admin_update(db: Session, transport: Transport, transport_in: TransportUpdate) -> Transport:
    if transport.status == TransportStatus.DELIVERED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Transport already delivered")
    if transport.status != TransportStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only PENDING transports can be updated"
        )

    sale = transport.sale
    available = remaining_quantities(sale, exclude_transport_id=transport.id)
    if transport_in.dispatched_details is not None:
        _replace_details(
            db, transport, plan_from_details(available, transport_in.dispatched_details, EXCEEDS_REMAINING)
        )
    elif transport_in.dispatched_quantity is not None:
        _replace_details(
            db, transport, plan_from_total(available, transport_in.dispatched_quantity, EXCEEDS_REMAINING)
        )

    for field, value in transport_in.model_dump(exclude_unset=True, include=TRANSPORT_FIELDS).items():
        setattr(transport, field, value)

    if transport_in.status == TransportStatus.DISPATCHED:
        total = ensure_not_empty({d.sale_detail_id: d.quantity for d in transport.details})
        transport.status = TransportStatus.DISPATCHED
        transport.dispatched_at = datetime.utcnow()
        transport.dispatched_quantity = total
        _sync_remainder(db, sale, transport)
        logger.info(
            "Transport expédié",
            extra={"extra_data": {"transport_id": transport.id, "dispatched_quantity": total}},
        )
    elif transport.details:
        transport.dispatched_quantity = sum(d.quantity for d in transport.details)

    db.commit()
    db.refresh(transport)
    return transport


@router.put("/{transport_id}", response_model=TransportSchema)
def update_transport(
    *,
    db: Session = Depends(get_db),
    transport_id: int,
    transport_in: TransportUpdate,
    current_user: User = Depends(require_admin_or_franchise),
) -> Any:
    """
    Franchise: réception (`status = DELIVERED` uniquement).
    Admin: modification d'un transport PENDING, éventuellement expédié.
    """
    if current_user.role == UserRole.ADMIN:
        if transport_in.status == TransportStatus.DELIVERED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="DELIVERED must be set by franchise"
            )
        return _admin_update(db, _get_transport(db, transport_id), transport_in)

    return _deliver(db, _get_transport(db, transport_id), transport_in, current_user)


@router.delete("/{transport_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transport(
    *,
    db: Session = Depends(get_db),
    transport_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    transport = _get_transport(db, transport_id)
    if transport.status == TransportStatus.DELIVERED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Delivered transport cannot be deleted"
        )

    db.delete(transport)
    db.commit()
    logger.info("Transport supprimé", extra={"extra_data": {"transport_id": transport_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
