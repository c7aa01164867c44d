from typing import Optional
import datetime as dt

from app.schemas.common import PaymentBase, PaymentOut


class ReceiptIn(PaymentBase):
    """Encaissement saisi avec une consultation ou une facture."""
    date: dt.date


class ConsultationReceiptCreate(ReceiptIn):
    consultation_id: int


class MedicineBillReceiptCreate(ReceiptIn):
    medicine_bill_id: int


class ConsultationReceipt(PaymentOut):
    receipt_number: str
    consultation_id: int
    date: dt.date
    patient_name: Optional[str] = None
    created_at: dt.datetime


class MedicineBillReceipt(PaymentOut):
    receipt_number: str
    medicine_bill_id: int
    date: dt.date
    patient_name: Optional[str] = None
    created_at: dt.datetime
