"""
Numérotation des documents.

Ventes, transactions de stock, factures et reçus: PREFIXE-DDMMYYYY-NNNN,
séquence remise à 1 chaque jour. Patients: P-YYYYMMDD-NNNN via la table
patient_sequences.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.patient import PatientSequence

SALE_PREFIX = "S"
STOCK_TRANSACTION_PREFIX = "ST"
MEDICINE_BILL_PREFIX = "M"
CONSULTATION_RECEIPT_PREFIX = "R"
MEDICINE_BILL_RECEIPT_PREFIX = "RM"


def format_document_number(prefix: str, day: date, sequence: int) -> str:
    return f"{prefix}-{day.strftime('%d%m%Y')}-{sequence:04d}"


def parse_sequence(number: str) -> int:
    """Dernier segment numérique d'un numéro de document, 0 si illisible."""
    tail = number.rsplit("-", 1)[-1]
    return int(tail) if tail.isdigit() else 0


def next_document_number(
    db: Session,
    column,
    prefix: str,
    on: Optional[datetime] = None,
) -> str:
    """
    Numéro suivant pour `column` (ex: Sale.invoice_no) à la date `on`.

    Les documents créés dans la même transaction doivent avoir été flushés.
    Tri par longueur puis valeur: la séquence peut dépasser quatre chiffres.
    """
    day = (on or datetime.utcnow()).date()
    stem = format_document_number(prefix, day, 0)[:-4]
    latest = (
        db.query(column)
        .filter(column.like(f"{stem}%"))
        .order_by(func.length(column).desc(), column.desc())
        .first()
    )
    sequence = parse_sequence(latest[0]) + 1 if latest else 1
    return format_document_number(prefix, day, sequence)


def next_patient_number(db: Session, on: Optional[datetime] = None) -> str:
    date_key = (on or datetime.utcnow()).strftime("%Y%m%d")
    sequence = (
        db.query(PatientSequence)
        .filter(PatientSequence.date_key == date_key)
        .with_for_update()
        .first()
    )
    if sequence is None:
        sequence = PatientSequence(date_key=date_key, last_number=0)
        db.add(sequence)

    sequence.last_number += 1
    db.flush()
    return f"P-{date_key}-{sequence.last_number:04d}"
