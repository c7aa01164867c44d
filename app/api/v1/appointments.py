"""
Rendez-vous d'une franchise.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
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
from app.models.patient import Patient
from app.models.team import Team
from app.models.user import User, UserRole
from app.schemas.appointment import (
    Appointment as AppointmentSchema,
    AppointmentCreate,
    AppointmentUpdate,
)
from app.services.patients import create_patient, get_franchise_team

router = APIRouter()
logger = get_logger(__name__)


def get_scoped_appointment(db: Session, appointment_id: int, current_user: User) -> Appointment:
    query = db.query(Appointment).filter(Appointment.id == appointment_id)
    if current_user.role != UserRole.ADMIN:
        query = query.filter(Appointment.franchise_id == get_current_franchise_id(current_user))
    team_id = doctor_team_id(current_user)
    if team_id is not None:
        query = query.filter(Appointment.team_id == team_id)

    appointment = query.first()
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.get("/", response_model=Page[AppointmentSchema])
def read_appointments(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None),
    patient_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Liste des rendez-vous. Recherche sur le patient (noms, mobile, numéro)
    et le motif; filtres équipe, patient et période (jours entiers).
    """
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = db.query(Appointment).join(Patient, Appointment.patient_id == Patient.id)
    if scope is not None:
        query = query.filter(Appointment.franchise_id == scope)

    own_team = doctor_team_id(current_user)
    if own_team is not None:
        query = query.filter(Appointment.team_id == own_team)
    elif team_id is not None:
        query = query.filter(Appointment.team_id == team_id)

    if patient_id is not None:
        query = query.filter(Appointment.patient_id == patient_id)
    if date_from is not None:
        query = query.filter(Appointment.appointment_date_time >= datetime.combine(date_from, time.min))
    if date_to is not None:
        query = query.filter(
            Appointment.appointment_date_time < datetime.combine(date_to + timedelta(days=1), time.min)
        )

    query = apply_search(
        query,
        params.search,
        [
            Patient.first_name,
            Patient.middle_name,
            Patient.last_name,
            Patient.mobile,
            Patient.patient_no,
            Appointment.visit_purpose,
        ],
    )
    query = apply_sort(
        query,
        params,
        {
            "appointment_date_time": Appointment.appointment_date_time,
            "created_at": Appointment.created_at,
            "visit_purpose": Appointment.visit_purpose,
        },
        default_sort="appointment_date_time",
    )
    return paginate(query, params)


@router.post("/", response_model=AppointmentSchema, status_code=status.HTTP_201_CREATED)
def create_appointment(
    *,
    db: Session = Depends(get_db),
    appointment_in: AppointmentCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Crée un rendez-vous pour un patient existant (`patient_id`) ou pour
    un nouveau patient (`patient`). Un patient de la franchise ayant le
    même mobile est réutilisé.
    """
    franchise_id = get_current_franchise_id(current_user)

    if (appointment_in.patient_id is None) == (appointment_in.patient is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide either patient_id or patient details"
        )

    team = get_franchise_team(db, appointment_in.team_id, franchise_id)

    if appointment_in.patient_id is not None:
        patient = db.query(Patient).filter(
            Patient.id == appointment_in.patient_id,
            Patient.franchise_id == franchise_id,
        ).first()
        if not patient:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    else:
        patient_data = appointment_in.patient.model_dump()
        patient = db.query(Patient).filter(
            Patient.franchise_id == franchise_id,
            Patient.mobile == patient_data["mobile"],
        ).first()
        if patient is None:
            patient = create_patient(db, franchise_id, {**patient_data, "team_id": team.id})
            logger.info(
                "Patient créé depuis un rendez-vous",
                extra={"extra_data": {"patient_id": patient.id, "patient_no": patient.patient_no}},
            )

    appointment = Appointment(
        franchise_id=franchise_id,
        patient_id=patient.id,
        team_id=team.id,
        appointment_date_time=appointment_in.appointment_date_time,
        visit_purpose=appointment_in.visit_purpose,
        type=appointment_in.type,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    logger.info(
        "Rendez-vous créé",
        extra={"extra_data": {"appointment_id": appointment.id, "franchise_id": franchise_id}},
    )
    return appointment


@router.get("/{appointment_id}", response_model=AppointmentSchema)
def read_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_scoped_appointment(db, appointment_id, current_user)


@router.put("/{appointment_id}", response_model=AppointmentSchema)
def update_appointment(
    *,
    db: Session = Depends(get_db),
    appointment_id: int,
    appointment_in: AppointmentUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    franchise_id = get_current_franchise_id(current_user)
    appointment = get_scoped_appointment(db, appointment_id, current_user)

    update_data = appointment_in.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update"
        )

    if update_data.get("team_id") is not None:
        team = db.query(Team).filter(Team.id == update_data["team_id"]).first()
        if not team:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
        if team.franchise_id != franchise_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Team does not belong to your franchise"
            )

    for field, value in update_data.items():
        if value is not None:
            setattr(appointment, field, value)

    db.commit()
    db.refresh(appointment)
    return appointment


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    *,
    db: Session = Depends(get_db),
    appointment_id: int,
    current_user: User = Depends(get_current_active_user),
) -> Response:
    appointment = get_scoped_appointment(db, appointment_id, current_user)
    if appointment.consultation is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Appointment has a consultation and cannot be deleted"
        )

    db.delete(appointment)
    db.commit()
    logger.info("Rendez-vous supprimé", extra={"extra_data": {"appointment_id": appointment_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
