"""
Reçus de consultation et de facture médicaments.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.v1.consultations import get_scoped_consultation
from app.api.v1.medicine_bills import get_scoped_medicine_bill
from app.core.deps import doctor_team_id, get_current_active_user, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.appointment import Appointment
from app.models.consultation import Consultation, ConsultationReceipt
from app.models.medicine_bill import MedicineBill, MedicineBillReceipt
from app.models.patient import Patient
from app.models.user import User
from app.schemas.receipt import (
    ConsultationReceipt as ConsultationReceiptSchema,
    ConsultationReceiptCreate,
    MedicineBillReceipt as MedicineBillReceiptSchema,
    MedicineBillReceiptCreate,
)
from app.services.receipts import add_consultation_receipt, add_medicine_bill_receipt

consultation_receipts_router = APIRouter()
medicine_bill_receipts_router = APIRouter()
logger = get_logger(__name__)

RECEIPT_SORTS = ("receipt_number", "date", "amount", "created_at")


# ============================================================
# Reçus de consultation
# ============================================================

def _consultation_receipts_query(db: Session, current_user: User, franchise_id: Optional[int] = None):
    query = (
        db.query(ConsultationReceipt)
        .join(Consultation, ConsultationReceipt.consultation_id == Consultation.id)
        .join(Appointment, Consultation.appointment_id == Appointment.id)
        .join(Patient, Appointment.patient_id == Patient.id)
    )
    scope = resolve_franchise_scope(current_user, franchise_id)
    if scope is not None:
        query = query.filter(Patient.franchise_id == scope)
    team_id = doctor_team_id(current_user)
    if team_id is not None:
        query = query.filter(Appointment.team_id == team_id)
    return query


def _get_consultation_receipt(db: Session, receipt_id: int, current_user: User) -> ConsultationReceipt:
    receipt = (
        _consultation_receipts_query(db, current_user)
        .filter(ConsultationReceipt.id == receipt_id)
        .first()
    )
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    return receipt


@consultation_receipts_router.get("/", response_model=Page[ConsultationReceiptSchema])
def read_consultation_receipts(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    consultation_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = _consultation_receipts_query(db, current_user, franchise_id)
    if consultation_id is not None:
        query = query.filter(ConsultationReceipt.consultation_id == consultation_id)

    query = apply_search(
        query,
        params.search,
        [
            ConsultationReceipt.receipt_number,
            ConsultationReceipt.payer_name,
            Patient.first_name,
            Patient.last_name,
        ],
    )
    query = apply_sort(
        query,
        params,
        {key: getattr(ConsultationReceipt, key) for key in RECEIPT_SORTS},
        default_sort="created_at",
    )
    return paginate(query, params)


@consultation_receipts_router.post(
    "/", response_model=ConsultationReceiptSchema, status_code=status.HTTP_201_CREATED
)
def create_consultation_receipt(
    *,
    db: Session = Depends(get_db),
    receipt_in: ConsultationReceiptCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    consultation = get_scoped_consultation(db, receipt_in.consultation_id, current_user)
    receipt = add_consultation_receipt(db, consultation, receipt_in, current_user)
    db.commit()
    db.refresh(receipt)

    logger.info(
        "Reçu de consultation créé",
        extra={"extra_data": {"receipt_number": receipt.receipt_number, "consultation_id": consultation.id}},
    )
    return receipt


@consultation_receipts_router.get("/{receipt_id}", response_model=ConsultationReceiptSchema)
def read_consultation_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_consultation_receipt(db, receipt_id, current_user)


@consultation_receipts_router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_consultation_receipt(
    *,
    db: Session = Depends(get_db),
    receipt_id: int,
    current_user: User = Depends(get_current_active_user),
) -> Response:
    """Supprime le reçu et retire son montant de l'encaissé de la consultation."""
    receipt = _get_consultation_receipt(db, receipt_id, current_user)
    consultation = receipt.consultation
    consultation.total_received_amount = max(
        0.0, round((consultation.total_received_amount or 0.0) - receipt.amount, 2)
    )
    db.delete(receipt)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Reçus de facture médicaments
# ============================================================

def _medicine_bill_receipts_query(db: Session, current_user: User, franchise_id: Optional[int] = None):
    query = (
        db.query(MedicineBillReceipt)
        .join(MedicineBill, MedicineBillReceipt.medicine_bill_id == MedicineBill.id)
        .join(Patient, MedicineBill.patient_id == Patient.id)
    )
    scope = resolve_franchise_scope(current_user, franchise_id)
    if scope is not None:
        query = query.filter(MedicineBill.franchise_id == scope)
    return query


def _get_medicine_bill_receipt(db: Session, receipt_id: int, current_user: User) -> MedicineBillReceipt:
    receipt = (
        _medicine_bill_receipts_query(db, current_user)
        .filter(MedicineBillReceipt.id == receipt_id)
        .first()
    )
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    return receipt


@medicine_bill_receipts_router.get("/", response_model=Page[MedicineBillReceiptSchema])
def read_medicine_bill_receipts(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    medicine_bill_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = _medicine_bill_receipts_query(db, current_user, franchise_id)
    if medicine_bill_id is not None:
        query = query.filter(MedicineBillReceipt.medicine_bill_id == medicine_bill_id)

    query = apply_search(
        query,
        params.search,
        [
            MedicineBillReceipt.receipt_number,
            MedicineBillReceipt.payer_name,
            Patient.first_name,
            Patient.last_name,
        ],
    )
    query = apply_sort(
        query,
        params,
        {key: getattr(MedicineBillReceipt, key) for key in RECEIPT_SORTS},
        default_sort="created_at",
    )
    return paginate(query, params)


@medicine_bill_receipts_router.post(
    "/", response_model=MedicineBillReceiptSchema, status_code=status.HTTP_201_CREATED
)
def create_medicine_bill_receipt(
    *,
    db: Session = Depends(get_db),
    receipt_in: MedicineBillReceiptCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    bill = get_scoped_medicine_bill(db, receipt_in.medicine_bill_id, current_user)
    receipt = add_medicine_bill_receipt(db, bill, receipt_in, current_user)
    db.commit()
    db.refresh(receipt)

    logger.info(
        "Reçu de facture créé",
        extra={"extra_data": {"receipt_number": receipt.receipt_number, "medicine_bill_id": bill.id}},
    )
    return receipt


@medicine_bill_receipts_router.get("/{receipt_id}", response_model=MedicineBillReceiptSchema)
def read_medicine_bill_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_medicine_bill_receipt(db, receipt_id, current_user)


@medicine_bill_receipts_router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medicine_bill_receipt(
    *,
    db: Session = Depends(get_db),
    receipt_id: int,
    current_user: User = Depends(get_current_active_user),
) -> Response:
    receipt = _get_medicine_bill_receipt(db, receipt_id, current_user)
    bill = receipt.medicine_bill
    bill.total_received_amount = max(0.0, round((bill.total_received_amount or 0.0) - receipt.amount, 2))
    db.delete(receipt)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
