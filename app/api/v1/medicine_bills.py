"""
Factures médicaments: vente du stock franchise à un patient.
"""

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, get_current_franchise_id, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.medicine import Medicine
from app.models.medicine_bill import MedicineBill, MedicineBillDetail
from app.models.patient import Patient
from app.models.stock import StockTransactionType
from app.models.user import User, UserRole
from app.schemas.medicine_bill import MedicineBill as MedicineBillSchema, MedicineBillCreate
from app.services.numbering import MEDICINE_BILL_PREFIX, next_document_number
from app.services.receipts import add_medicine_bill_receipt
from app.services.stock import (
    BatchAllocation,
    add_ledger_line,
    adjust_franchise_stock,
    allocate_fefo,
    create_stock_transaction,
    saleable_batches,
)

router = APIRouter()
logger = get_logger(__name__)


def get_scoped_medicine_bill(db: Session, bill_id: int, current_user: User) -> MedicineBill:
    query = db.query(MedicineBill).filter(MedicineBill.id == bill_id)
    if current_user.role != UserRole.ADMIN:
        query = query.filter(MedicineBill.franchise_id == get_current_franchise_id(current_user))
    bill = query.first()
    if not bill:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine bill not found")
    return bill


def _allocate_line(db: Session, franchise_id: int, medicine: Medicine, qty: int) -> List[BatchAllocation]:
    batches = saleable_batches(db, franchise_id, medicine.id)
    available = sum(batch.quantity for batch in batches)
    if available < qty:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Insufficient stock for {medicine.name} - {medicine.brand_name or 'Unknown Brand'}. "
                f"Available: {available}, Requested: {qty}"
            )
        )
    return allocate_fefo(batches, qty)


@router.get("/", response_model=Page[MedicineBillSchema])
def read_medicine_bills(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    patient_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = db.query(MedicineBill).join(Patient, MedicineBill.patient_id == Patient.id)
    if scope is not None:
        query = query.filter(MedicineBill.franchise_id == scope)
    if patient_id is not None:
        query = query.filter(MedicineBill.patient_id == patient_id)

    query = apply_search(
        query,
        params.search,
        [MedicineBill.bill_number, Patient.first_name, Patient.last_name, Patient.patient_no],
    )
    query = apply_sort(
        query,
        params,
        {
            "bill_date": MedicineBill.bill_date,
            "total_amount": MedicineBill.total_amount,
            "bill_number": MedicineBill.bill_number,
        },
        default_sort="bill_date",
    )
    return paginate(query, params)


@router.post("/", response_model=MedicineBillSchema, status_code=status.HTTP_201_CREATED)
def create_medicine_bill(
    *,
    db: Session = Depends(get_db),
    bill_in: MedicineBillCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Crée une facture et sort le stock par lots, premier périmé premier sorti.

    Seuls les lots dont l'expiration dépasse la fenêtre de vente sont
    consommés; un manque sur une ligne annule toute la facture.
    """
    franchise_id = get_current_franchise_id(current_user)

    patient = db.query(Patient).filter(
        Patient.id == bill_in.patient_id,
        Patient.franchise_id == franchise_id,
    ).first()
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    bill_date = bill_in.bill_date or datetime.utcnow()
    bill = MedicineBill(
        bill_number=next_document_number(db, MedicineBill.bill_number, MEDICINE_BILL_PREFIX),
        bill_date=bill_date,
        franchise_id=franchise_id,
        patient_id=patient.id,
        discount_percent=bill_in.discount_percent,
        total_amount=bill_in.total_amount,
        total_received_amount=0.0,
    )
    db.add(bill)
    db.flush()

    txn = create_stock_transaction(
        db,
        StockTransactionType.FRANCHISE_TO_PATIENT_SALE,
        franchise_id=franchise_id,
        user_id=current_user.id,
        txn_date=bill_date,
        medicine_bill_id=bill.id,
    )

    for line in bill_in.details:
        medicine = db.query(Medicine).filter(Medicine.id == line.medicine_id).first()
        if not medicine:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")

        for allocation in _allocate_line(db, franchise_id, medicine, line.qty):
            batch = allocation.batch
            add_ledger_line(
                db,
                txn,
                medicine_id=medicine.id,
                qty_change=-allocation.quantity,
                rate=medicine.rate,
                batch_number=batch.batch_number,
                expiry_date=batch.expiry_date,
            )
            adjust_franchise_stock(
                db,
                franchise_id=franchise_id,
                medicine_id=medicine.id,
                delta=-allocation.quantity,
                batch_number=batch.batch_number,
                expiry_date=batch.expiry_date,
            )

        bill.details.append(MedicineBillDetail(
            medicine_id=medicine.id,
            qty=line.qty,
            mrp=line.mrp,
            amount=line.amount,
        ))

    db.flush()

    receipt_in = bill_in.receipt
    if receipt_in is not None and receipt_in.amount > 0:
        add_medicine_bill_receipt(db, bill, receipt_in, current_user)

    db.commit()
    db.refresh(bill)

    logger.info(
        "Facture médicaments créée",
        extra={"extra_data": {
            "medicine_bill_id": bill.id,
            "bill_number": bill.bill_number,
            "franchise_id": franchise_id,
            "stock_transaction": txn.txn_no,
        }},
    )
    return bill


@router.get("/{bill_id}", response_model=MedicineBillSchema)
def read_medicine_bill(
    bill_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_scoped_medicine_bill(db, bill_id, current_user)
