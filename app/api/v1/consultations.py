"""
Consultations: une par rendez-vous, avec services, prescriptions et
encaissements.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.deps import (
    doctor_team_id,
    get_current_active_user,
    get_current_franchise_id,
    resolve_franchise_scope,
)
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.appointment import Appointment
from app.models.consultation import Consultation, ConsultationDetail, ConsultationMedicine
from app.models.patient import Patient
from app.models.user import User, UserRole
from app.schemas.consultation import (
    Consultation as ConsultationSchema,
    ConsultationCreate,
    ConsultationDetailCreate,
    ConsultationMedicineCreate,
    ConsultationUpdate,
)
from app.api.v1.appointments import get_scoped_appointment
from app.services.receipts import AMOUNT_EPSILON, add_consultation_receipt

router = APIRouter()
logger = get_logger(__name__)


def _scoped_query(db: Session, current_user: User, franchise_id: Optional[int] = None):
    query = (
        db.query(Consultation)
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


def get_scoped_consultation(db: Session, consultation_id: int, current_user: User) -> Consultation:
    consultation = _scoped_query(db, current_user).filter(Consultation.id == consultation_id).first()
    if not consultation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")
    return consultation


def _replace_lines(
    consultation: Consultation,
    details: Optional[List[ConsultationDetailCreate]],
    medicines: Optional[List[ConsultationMedicineCreate]],
) -> None:
    if details is not None:
        consultation.details.clear()
        for line in details:
            consultation.details.append(ConsultationDetail(
                service_id=line.service_id,
                description=line.description,
                qty=line.qty,
                rate=line.rate,
                amount=line.amount if line.amount is not None else round(line.qty * line.rate, 2),
            ))

    if medicines is not None:
        consultation.medicines.clear()
        for line in medicines:
            consultation.medicines.append(ConsultationMedicine(
                medicine_id=line.medicine_id,
                qty=line.qty,
                mrp=line.mrp,
                amount=line.amount if line.amount is not None else round(line.qty * line.mrp, 2),
                doses=line.doses,
            ))


@router.get("/", response_model=Page[ConsultationSchema])
def read_consultations(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    appointment_id: Optional[int] = Query(None),
    patient_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = _scoped_query(db, current_user, franchise_id)
    if appointment_id is not None:
        query = query.filter(Consultation.appointment_id == appointment_id)
    if patient_id is not None:
        query = query.filter(Appointment.patient_id == patient_id)

    query = apply_search(
        query,
        params.search,
        [Patient.first_name, Patient.last_name, Patient.patient_no, Consultation.diagnosis, Consultation.complaint],
    )
    query = apply_sort(
        query,
        params,
        {
            "created_at": Consultation.created_at,
            "updated_at": Consultation.updated_at,
            "total_amount": Consultation.total_amount,
            "next_follow_up_date": Consultation.next_follow_up_date,
        },
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=ConsultationSchema, status_code=status.HTTP_201_CREATED)
def create_consultation(
    *,
    db: Session = Depends(get_db),
    consultation_in: ConsultationCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Enregistre la consultation d'un rendez-vous. Un encaissement initial
    (montant > 0) crée un reçu.
    """
    get_current_franchise_id(current_user)
    appointment = get_scoped_appointment(db, consultation_in.appointment_id, current_user)

    if appointment.consultation is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Consultation already exists for this appointment"
        )

    consultation = Consultation(
        appointment_id=appointment.id,
        **consultation_in.model_dump(exclude={"appointment_id", "details", "medicines", "receipt"}),
    )
    db.add(consultation)
    _replace_lines(consultation, consultation_in.details, consultation_in.medicines)
    db.flush()

    receipt_in = consultation_in.receipt
    if receipt_in is not None and receipt_in.amount > 0:
        add_consultation_receipt(db, consultation, receipt_in, current_user)

    db.commit()
    db.refresh(consultation)

    logger.info(
        "Consultation créée",
        extra={"extra_data": {"consultation_id": consultation.id, "appointment_id": appointment.id}},
    )
    return consultation


@router.get("/{consultation_id}", response_model=ConsultationSchema)
def read_consultation(
    consultation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_scoped_consultation(db, consultation_id, current_user)


@router.put("/{consultation_id}", response_model=ConsultationSchema)
def update_consultation(
    *,
    db: Session = Depends(get_db),
    consultation_id: int,
    consultation_in: ConsultationUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Met à jour la consultation; les lignes fournies remplacent les existantes."""
    if current_user.role == UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized role")
    consultation = get_scoped_consultation(db, consultation_id, current_user)
    update_data = consultation_in.model_dump(exclude_unset=True, exclude={"details", "medicines"})

    new_total = update_data.get("total_amount")
    if new_total is not None and new_total + AMOUNT_EPSILON < (consultation.total_received_amount or 0.0):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Total amount cannot be less than the received amount"
        )

    for field, value in update_data.items():
        setattr(consultation, field, value)
    _replace_lines(consultation, consultation_in.details, consultation_in.medicines)

    db.commit()
    db.refresh(consultation)
    return consultation
