"""
Encaissements des consultations et des factures médicaments.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.consultation import Consultation, ConsultationReceipt
from app.models.medicine_bill import MedicineBill, MedicineBillReceipt
from app.models.user import User
from app.schemas.receipt import ReceiptIn
from app.services.numbering import (
    CONSULTATION_RECEIPT_PREFIX,
    MEDICINE_BILL_RECEIPT_PREFIX,
    next_document_number,
)

# Tolérance d'arrondi sur les montants
AMOUNT_EPSILON = 0.005

RECEIPT_FIELDS = {
    "date",
    "payment_mode",
    "payer_name",
    "contact_number",
    "utr_number",
    "cheque_date",
    "cheque_number",
    "notes",
    "amount",
}


def ensure_within_balance(amount: float, balance: float) -> None:
    if amount > balance + AMOUNT_EPSILON:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Receipt amount exceeds balance amount"
        )


def add_consultation_receipt(
    db: Session, consultation: Consultation, receipt_in: ReceiptIn, user: User
) -> ConsultationReceipt:
    ensure_within_balance(receipt_in.amount, consultation.balance_amount)

    receipt = ConsultationReceipt(
        receipt_number=next_document_number(
            db, ConsultationReceipt.receipt_number, CONSULTATION_RECEIPT_PREFIX
        ),
        consultation_id=consultation.id,
        created_by_user_id=user.id,
        **receipt_in.model_dump(include=RECEIPT_FIELDS),
    )
    db.add(receipt)
    consultation.total_received_amount = round(
        (consultation.total_received_amount or 0.0) + receipt_in.amount, 2
    )
    db.flush()
    return receipt


def add_medicine_bill_receipt(
    db: Session, bill: MedicineBill, receipt_in: ReceiptIn, user: User
) -> MedicineBillReceipt:
    ensure_within_balance(receipt_in.amount, bill.balance_amount)

    receipt = MedicineBillReceipt(
        receipt_number=next_document_number(
            db, MedicineBillReceipt.receipt_number, MEDICINE_BILL_RECEIPT_PREFIX
        ),
        medicine_bill_id=bill.id,
        created_by_user_id=user.id,
        **receipt_in.model_dump(include=RECEIPT_FIELDS),
    )
    db.add(receipt)
    bill.total_received_amount = round((bill.total_received_amount or 0.0) + receipt_in.amount, 2)
    db.flush()
    return receipt
