"""
Patients d'une franchise: fiche, antécédents médicaux et comptes rendus.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, get_current_franchise_id, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.patient import Patient, PatientMedicalHistory, PatientReport
from app.models.user import User
from app.schemas.patient import (
    MedicalHistory as MedicalHistorySchema,
    MedicalHistoryUpdate,
    Patient as PatientSchema,
    PatientCreate,
    PatientReport as PatientReportSchema,
    PatientReportCreate,
    PatientUpdate,
)
from app.services.patients import compute_bmi, create_patient, get_scoped_patient, validate_references

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_model=Page[PatientSchema])
def read_patients(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Liste des patients (recherche numéro, noms, mobile)."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    query = db.query(Patient)
    if scope is not None:
        query = query.filter(Patient.franchise_id == scope)
    if team_id is not None:
        query = query.filter(Patient.team_id == team_id)

    query = apply_search(
        query,
        params.search,
        [Patient.patient_no, Patient.first_name, Patient.middle_name, Patient.last_name, Patient.mobile],
    )
    query = apply_sort(
        query,
        params,
        {
            "name": Patient.first_name,
            "first_name": Patient.first_name,
            "patient_no": Patient.patient_no,
            "created_at": Patient.created_at,
        },
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=PatientSchema, status_code=status.HTTP_201_CREATED)
def create_patient_route(
    *,
    db: Session = Depends(get_db),
    patient_in: PatientCreate,
    franchise_id: int = Depends(get_current_franchise_id),
) -> Any:
    patient = create_patient(db, franchise_id, patient_in.model_dump())
    db.commit()
    db.refresh(patient)

    logger.info(
        "Patient créé",
        extra={"extra_data": {"patient_id": patient.id, "patient_no": patient.patient_no}},
    )
    return patient


@router.get("/{patient_id}", response_model=PatientSchema)
def read_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_scoped_patient(db, patient_id, current_user)


@router.put("/{patient_id}", response_model=PatientSchema)
def update_patient(
    *,
    db: Session = Depends(get_db),
    patient_id: int,
    patient_in: PatientUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    patient = get_scoped_patient(db, patient_id, current_user)
    update_data = patient_in.model_dump(exclude_unset=True)

    references = {
        "state_id": update_data.get("state_id", patient.state_id),
        "city_id": update_data.get("city_id", patient.city_id),
        "team_id": update_data.get("team_id"),
        "lab_id": update_data.get("lab_id"),
    }
    validate_references(db, patient.franchise_id, references)

    for field, value in update_data.items():
        setattr(patient, field, value)
    patient.bmi = compute_bmi(patient.height, patient.weight)

    db.commit()
    db.refresh(patient)
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(
    *,
    db: Session = Depends(get_db),
    patient_id: int,
    current_user: User = Depends(get_current_active_user),
) -> Response:
    patient = get_scoped_patient(db, patient_id, current_user)
    db.delete(patient)
    db.commit()
    logger.info("Patient supprimé", extra={"extra_data": {"patient_id": patient_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Antécédents médicaux
# ============================================================

@router.get("/{patient_id}/medical-history", response_model=Optional[MedicalHistorySchema])
def read_medical_history(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Antécédents du patient, null s'ils n'ont jamais été saisis."""
    return get_scoped_patient(db, patient_id, current_user).medical_history


@router.put("/{patient_id}/medical-history", response_model=MedicalHistorySchema)
def upsert_medical_history(
    *,
    db: Session = Depends(get_db),
    patient_id: int,
    history_in: MedicalHistoryUpdate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    patient = get_scoped_patient(db, patient_id, current_user)
    history = patient.medical_history
    if history is None:
        history = PatientMedicalHistory(patient_id=patient.id)
        db.add(history)

    for field, value in history_in.model_dump(exclude_unset=True).items():
        setattr(history, field, value)

    db.commit()
    db.refresh(history)
    return history


# ============================================================
# Comptes rendus
# ============================================================

@router.get("/{patient_id}/reports", response_model=List[PatientReportSchema])
def read_patient_reports(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return get_scoped_patient(db, patient_id, current_user).reports


@router.post(
    "/{patient_id}/reports",
    response_model=PatientReportSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_patient_report(
    *,
    db: Session = Depends(get_db),
    patient_id: int,
    report_in: PatientReportCreate,
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """Rattache un fichier déjà téléversé (voir /uploads) au patient."""
    patient = get_scoped_patient(db, patient_id, current_user)
    report = PatientReport(patient_id=patient.id, name=report_in.name, url=report_in.url)
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


@router.delete("/{patient_id}/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient_report(
    *,
    db: Session = Depends(get_db),
    patient_id: int,
    report_id: int,
    current_user: User = Depends(get_current_active_user),
) -> Response:
    patient = get_scoped_patient(db, patient_id, current_user)
    report = db.query(PatientReport).filter(
        PatientReport.id == report_id,
        PatientReport.patient_id == patient.id,
    ).first()
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")

    db.delete(report)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
