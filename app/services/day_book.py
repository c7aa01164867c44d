"""
Livre journal: consultations et factures médicaments sur une période.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.appointment import Appointment
from app.models.consultation import Consultation
from app.models.medicine_bill import MedicineBill
from app.models.patient import Patient

CONSULTATION = "CONSULTATION"
MEDICINE_BILL = "MEDICINE_BILL"
TRANSACTION_TYPES = (CONSULTATION, MEDICINE_BILL)

SORT_KEYS = (
    "date",
    "patient_name",
    "reference_number",
    "total_amount",
    "balance_amount",
    "transaction_type",
)


@dataclass
class DayBookFilters:
    franchise_id: Optional[int] = None
    team_id: Optional[int] = None
    include_bills: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    transaction_type: Optional[str] = None
    search: str = ""
    sort: Optional[str] = None
    order: Optional[str] = None


def _period(column, start: Optional[date], end: Optional[date]) -> List[Any]:
    """Bornes jours entiers, fin incluse."""
    conditions = []
    if start is not None:
        conditions.append(column >= datetime.combine(start, time.min))
    if end is not None:
        conditions.append(column < datetime.combine(end + timedelta(days=1), time.min))
    return conditions


def _gender(patient: Patient) -> Optional[str]:
    return patient.gender.value if patient.gender is not None else None


def _consultation_rows(db: Session, filters: DayBookFilters) -> List[Dict[str, Any]]:
    query = (
        db.query(Consultation, Appointment, Patient)
        .join(Appointment, Consultation.appointment_id == Appointment.id)
        .join(Patient, Appointment.patient_id == Patient.id)
    )
    if filters.franchise_id is not None:
        query = query.filter(Appointment.franchise_id == filters.franchise_id)
    if filters.team_id is not None:
        query = query.filter(Appointment.team_id == filters.team_id)
    query = query.filter(*_period(Appointment.appointment_date_time, filters.start_date, filters.end_date))

    return [
        {
            "id": f"consultation_{consultation.id}",
            "original_id": consultation.id,
            "transaction_type": CONSULTATION,
            "date": appointment.appointment_date_time,
            "patient_no": patient.patient_no,
            "patient_name": patient.full_name,
            "mobile": patient.mobile,
            "gender": _gender(patient),
            "team_name": appointment.team_name,
            "reference_number": f"APT-{appointment.id}",
            "total_amount": consultation.total_amount or 0.0,
            "received_amount": consultation.total_received_amount or 0.0,
            "balance_amount": consultation.balance_amount,
            "remarks": consultation.remarks,
        }
        for consultation, appointment, patient in query.all()
    ]


def _medicine_bill_rows(db: Session, filters: DayBookFilters) -> List[Dict[str, Any]]:
    query = db.query(MedicineBill, Patient).join(Patient, MedicineBill.patient_id == Patient.id)
    if filters.franchise_id is not None:
        query = query.filter(MedicineBill.franchise_id == filters.franchise_id)
    query = query.filter(*_period(MedicineBill.bill_date, filters.start_date, filters.end_date))

    return [
        {
            "id": f"medicine_bill_{bill.id}",
            "original_id": bill.id,
            "transaction_type": MEDICINE_BILL,
            "date": bill.bill_date,
            "patient_no": patient.patient_no,
            "patient_name": patient.full_name,
            "mobile": patient.mobile,
            "gender": _gender(patient),
            "team_name": patient.team.name if patient.team else None,
            "reference_number": bill.bill_number,
            "total_amount": bill.total_amount or 0.0,
            "received_amount": bill.total_received_amount or 0.0,
            "balance_amount": bill.balance_amount,
            "remarks": None,
        }
        for bill, patient in query.all()
    ]


def _matches(row: Dict[str, Any], search: str) -> bool:
    needle = search.lower()
    return any(
        needle in (row[key] or "").lower()
        for key in ("patient_name", "patient_no", "mobile", "reference_number")
    )


def _sort_key(sort: str):
    def key(row: Dict[str, Any]):
        value = row[sort]
        if isinstance(value, str):
            value = value.lower()
        return (value is None, value if value is not None else 0)
    return key


def compute_totals(rows: List[Dict[str, Any]]) -> Dict[str, float]:
    return {
        "total_amount": round(sum(row["total_amount"] for row in rows), 2),
        "received_amount": round(sum(row["received_amount"] for row in rows), 2),
        "balance_amount": round(sum(row["balance_amount"] for row in rows), 2),
    }


def build_day_book(db: Session, filters: DayBookFilters) -> List[Dict[str, Any]]:
    """
    Lignes filtrées et triées (date croissante par défaut), avant pagination.
    """
    rows: List[Dict[str, Any]] = []
    if filters.transaction_type in (None, CONSULTATION):
        rows.extend(_consultation_rows(db, filters))
    if filters.include_bills and filters.transaction_type in (None, MEDICINE_BILL):
        rows.extend(_medicine_bill_rows(db, filters))

    if filters.search:
        rows = [row for row in rows if _matches(row, filters.search)]

    sort = filters.sort if filters.sort in SORT_KEYS else "date"
    rows.sort(key=_sort_key(sort), reverse=filters.order == "desc")
    return rows
