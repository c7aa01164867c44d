"""
Rapprochement des expéditions d'une vente.

Une vente peut partir en plusieurs transports. Les quantités se calculent
par ligne de vente (sale_detail_id -> quantité) : ce qui est demandé ne doit
jamais dépasser ce qui reste à expédier.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from fastapi import HTTPException, status

from app.models.sale import Sale
from app.models.transport import Transport, TransportStatus

SHIPPED_STATUSES = (TransportStatus.DISPATCHED, TransportStatus.DELIVERED)

EXCEEDS_SALE_DETAIL = "Dispatched quantity exceeds sale detail quantity"
EXCEEDS_SALE = "Dispatched quantity exceeds sale quantity"
EXCEEDS_REMAINING = "Dispatched quantity exceeds remaining quantity"


@dataclass
class DeliveryLine:
    medicine_id: int
    batch_number: Optional[str]
    expiry_date: Optional[date]
    quantity: int
    rate: float


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def greedy_fill(available: Mapping[int, int], total: int) -> Dict[int, int]:
    """Remplit les lignes dans l'ordre jusqu'à épuisement de `total`."""
    plan = {}
    remaining = total
    for sale_detail_id, limit in available.items():
        take = min(remaining, limit) if remaining > 0 else 0
        plan[sale_detail_id] = take
        remaining -= take
    return plan


def plan_from_details(
    available: Mapping[int, int],
    requested: Iterable,
    exceed_message: str = EXCEEDS_SALE_DETAIL,
) -> Dict[int, int]:
    """
    Plan d'expédition à partir de lignes explicites ({sale_detail_id, quantity}).
    Les lignes de vente absentes de la demande valent 0.
    """
    wanted: Dict[int, int] = {}
    for item in requested:
        if item.sale_detail_id in wanted:
            raise _bad_request("Duplicate sale detail provided")
        wanted[item.sale_detail_id] = item.quantity or 0

    for sale_detail_id in wanted:
        if sale_detail_id not in available:
            raise _bad_request("Invalid sale detail for dispatch")

    plan = {}
    for sale_detail_id, limit in available.items():
        qty = wanted.get(sale_detail_id, 0)
        if qty > limit:
            raise _bad_request(exceed_message)
        plan[sale_detail_id] = qty
    return plan


def plan_from_total(
    available: Mapping[int, int],
    total: int,
    exceed_message: str = EXCEEDS_SALE,
) -> Dict[int, int]:
    if total > sum(available.values()):
        raise _bad_request(exceed_message)
    return greedy_fill(available, total)


def ensure_not_empty(plan: Mapping[int, int]) -> int:
    total = sum(plan.values())
    if total <= 0:
        raise _bad_request("Dispatched details are required")
    return total


def sale_quantities(sale: Sale) -> Dict[int, int]:
    return {detail.id: detail.quantity for detail in sale.details}


def remaining_quantities(sale: Sale, exclude_transport_id: Optional[int] = None) -> Dict[int, int]:
    """Quantité de vente moins ce qui est déjà expédié ou livré, par ligne."""
    shipped: Dict[int, int] = defaultdict(int)
    for transport in sale.transports:
        if transport.id == exclude_transport_id or transport.status not in SHIPPED_STATUSES:
            continue
        for detail in transport.details:
            shipped[detail.sale_detail_id] += detail.quantity
    return {
        detail.id: max(0, detail.quantity - shipped[detail.id])
        for detail in sale.details
    }


def delivery_lines(transport: Transport, sale: Sale) -> List[DeliveryLine]:
    """
    Lignes à créditer à la livraison: détails du transport, sinon remplissage
    glouton de dispatched_quantity (toute la vente si 0).
    """
    by_id = {detail.id: detail for detail in sale.details}

    if transport.details:
        quantities = {}
        for detail in transport.details:
            sale_detail = by_id.get(detail.sale_detail_id)
            if sale_detail is None:
                raise _bad_request("Invalid sale detail for dispatch")
            if detail.quantity > sale_detail.quantity:
                raise _bad_request(EXCEEDS_SALE_DETAIL)
            quantities[detail.sale_detail_id] = detail.quantity
    else:
        available = sale_quantities(sale)
        requested = transport.dispatched_quantity or sum(available.values())
        quantities = plan_from_total(available, requested)

    lines = [
        DeliveryLine(
            medicine_id=by_id[sale_detail_id].medicine_id,
            batch_number=by_id[sale_detail_id].batch_number,
            expiry_date=by_id[sale_detail_id].expiry_date,
            quantity=qty,
            rate=by_id[sale_detail_id].rate,
        )
        for sale_detail_id, qty in quantities.items()
        if qty > 0
    ]
    if not lines:
        raise _bad_request("Dispatched details are required")
    return lines


def quantity_by_medicine(lines: Iterable[DeliveryLine]) -> Dict[int, int]:
    totals: Dict[int, int] = defaultdict(int)
    for line in lines:
        totals[line.medicine_id] += line.quantity
    return dict(totals)
