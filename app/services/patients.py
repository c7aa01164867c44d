"""
Création et contrôles des fiches patients, partagés par les routes
patients et rendez-vous.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.location import City, State
from app.models.medicine import Lab
from app.models.patient import Patient
from app.models.team import Team
from app.models.user import User, UserRole
from app.services.numbering import next_patient_number


def compute_bmi(height: Optional[float], weight: Optional[float]) -> Optional[float]:
    """IMC à partir de la taille (cm) et du poids (kg)."""
    if not height or not weight:
        return None
    meters = height / 100
    return round(weight / (meters * meters), 2)


def get_franchise_team(db: Session, team_id: int, franchise_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id, Team.franchise_id == franchise_id).first()
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return team


def get_scoped_patient(db: Session, patient_id: int, current_user: User) -> Patient:
    """Patient visible par l'utilisateur (toute franchise pour l'admin), sinon 404."""
    query = db.query(Patient).filter(Patient.id == patient_id)
    if current_user.role != UserRole.ADMIN:
        query = query.filter(Patient.franchise_id == current_user.resolved_franchise_id)
    patient = query.first()
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


def validate_references(db: Session, franchise_id: int, data: Dict[str, Any]) -> None:
    """Vérifie état/ville, équipe et laboratoire référencés par une fiche."""
    state_id = data.get("state_id")
    city_id = data.get("city_id")

    if state_id is not None and not db.query(State).filter(State.id == state_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="State not found")
    if city_id is not None:
        city = db.query(City).filter(City.id == city_id).first()
        if not city:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
        if state_id is not None and city.state_id != state_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="City does not belong to the selected state"
            )

    if data.get("team_id") is not None:
        get_franchise_team(db, data["team_id"], franchise_id)
    if data.get("lab_id") is not None and not db.query(Lab).filter(Lab.id == data["lab_id"]).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lab not found")


def create_patient(db: Session, franchise_id: int, data: Dict[str, Any]) -> Patient:
    """Crée la fiche avec un numéro P-YYYYMMDD-NNNN; l'appelant valide la transaction."""
    validate_references(db, franchise_id, data)

    patient = Patient(
        patient_no=next_patient_number(db),
        franchise_id=franchise_id,
        bmi=compute_bmi(data.get("height"), data.get("weight")),
        **data,
    )
    db.add(patient)
    db.flush()
    return patient
