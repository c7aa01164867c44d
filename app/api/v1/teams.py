"""
Équipes (médecins et gestionnaires) et salles d'une franchise.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, get_current_franchise_id, require_franchise
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.core.security import get_password_hash
from app.db.base import get_db
from app.models.appointment import Appointment
from app.models.team import Room, Team
from app.models.user import User, UserRole
from app.schemas.team import (
    Room as RoomSchema,
    RoomCreate,
    RoomUpdate,
    Team as TeamSchema,
    TeamCreate,
    TeamUpdate,
)

router = APIRouter()
rooms_router = APIRouter()
logger = get_logger(__name__)


def _get_team(db: Session, team_id: int, franchise_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id, Team.franchise_id == franchise_id).first()
    if not team:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Team not found"
        )
    return team


def _ensure_unique_email(db: Session, email: str, exclude_user_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists"
        )


@router.get("/", response_model=Page[TeamSchema])
def read_teams(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Liste des équipes. L'admin voit tout ou filtre par franchise,
    les autres rôles ne voient que leur franchise.
    """
    query = db.query(Team).join(User, Team.user_id == User.id)
    if current_user.role == UserRole.ADMIN:
        if franchise_id is not None:
            query = query.filter(Team.franchise_id == franchise_id)
    else:
        query = query.filter(Team.franchise_id == get_current_franchise_id(current_user))

    query = apply_search(query, params.search, [Team.name, User.email, Team.user_mobile])
    query = apply_sort(
        query,
        params,
        {"name": Team.name, "created_at": Team.created_at, "joining_date": Team.joining_date},
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=TeamSchema, status_code=status.HTTP_201_CREATED)
def create_team(
    *,
    db: Session = Depends(get_db),
    team_in: TeamCreate,
    current_user: User = Depends(require_franchise),
) -> Any:
    """Crée un membre d'équipe avec son compte de connexion."""
    franchise_id = get_current_franchise_id(current_user)
    _ensure_unique_email(db, team_in.email)

    user = User(
        name=team_in.name,
        email=team_in.email,
        hashed_password=get_password_hash(team_in.password),
        role=team_in.role,
        is_active=True,
    )
    db.add(user)
    db.flush()

    team = Team(
        franchise_id=franchise_id,
        user_id=user.id,
        **team_in.model_dump(exclude={"email", "password", "role"}),
    )
    db.add(team)
    db.commit()
    db.refresh(team)

    logger.info(
        "Membre d'équipe créé",
        extra={"extra_data": {"team_id": team.id, "franchise_id": franchise_id, "role": user.role.value}},
    )
    return team


@router.get("/{team_id}", response_model=TeamSchema)
def read_team(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    if current_user.role == UserRole.ADMIN:
        team = db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
        return team
    return _get_team(db, team_id, get_current_franchise_id(current_user))


@router.put("/{team_id}", response_model=TeamSchema)
def update_team(
    *,
    db: Session = Depends(get_db),
    team_id: int,
    team_in: TeamUpdate,
    current_user: User = Depends(require_franchise),
) -> Any:
    team = _get_team(db, team_id, get_current_franchise_id(current_user))
    update_data = team_in.model_dump(exclude_unset=True)
    user = team.user

    email = update_data.pop("email", None)
    if email and email != user.email:
        _ensure_unique_email(db, email, exclude_user_id=user.id)
        user.email = email

    password = update_data.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)

    role = update_data.pop("role", None)
    if role is not None:
        user.role = role

    is_active = update_data.pop("is_active", None)
    if is_active is not None:
        user.is_active = is_active

    if update_data.get("name"):
        user.name = update_data["name"]

    for field, value in update_data.items():
        setattr(team, field, value)

    db.commit()
    db.refresh(team)
    return team


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    *,
    db: Session = Depends(get_db),
    team_id: int,
    current_user: User = Depends(require_franchise),
) -> Response:
    """Supprime le membre d'équipe et son compte de connexion."""
    team = _get_team(db, team_id, get_current_franchise_id(current_user))

    if db.query(Appointment.id).filter(Appointment.team_id == team.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Team member has appointments and cannot be deleted"
        )

    user = team.user
    db.delete(team)
    db.delete(user)
    db.commit()

    logger.info("Membre d'équipe supprimé", extra={"extra_data": {"team_id": team_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Salles
# ============================================================

def _get_room(db: Session, room_id: int, franchise_id: int) -> Room:
    room = db.query(Room).filter(Room.id == room_id, Room.franchise_id == franchise_id).first()
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


def _ensure_unique_room(db: Session, franchise_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Room).filter(
        Room.franchise_id == franchise_id,
        func.lower(Room.name) == name.strip().lower(),
    )
    if exclude_id is not None:
        query = query.filter(Room.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room already exists")


@rooms_router.get("/", response_model=Page[RoomSchema])
def read_rooms(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    franchise_id: int = Depends(get_current_franchise_id),
) -> Any:
    query = apply_search(db.query(Room).filter(Room.franchise_id == franchise_id), params.search, [Room.name])
    query = apply_sort(
        query, params, {"name": Room.name, "created_at": Room.created_at},
        default_sort="name", default_order="asc",
    )
    return paginate(query, params)


@rooms_router.post("/", response_model=RoomSchema, status_code=status.HTTP_201_CREATED)
def create_room(
    *,
    db: Session = Depends(get_db),
    room_in: RoomCreate,
    current_user: User = Depends(require_franchise),
) -> Any:
    franchise_id = get_current_franchise_id(current_user)
    _ensure_unique_room(db, franchise_id, room_in.name)
    room = Room(franchise_id=franchise_id, name=room_in.name.strip(), description=room_in.description)
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@rooms_router.get("/{room_id}", response_model=RoomSchema)
def read_room(
    room_id: int,
    db: Session = Depends(get_db),
    franchise_id: int = Depends(get_current_franchise_id),
) -> Any:
    return _get_room(db, room_id, franchise_id)


@rooms_router.put("/{room_id}", response_model=RoomSchema)
def update_room(
    *,
    db: Session = Depends(get_db),
    room_id: int,
    room_in: RoomUpdate,
    current_user: User = Depends(require_franchise),
) -> Any:
    franchise_id = get_current_franchise_id(current_user)
    room = _get_room(db, room_id, franchise_id)
    if room_in.name:
        _ensure_unique_room(db, franchise_id, room_in.name, exclude_id=room.id)
        room.name = room_in.name.strip()
    if room_in.description is not None:
        room.description = room_in.description
    db.commit()
    db.refresh(room)
    return room


@rooms_router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(
    *,
    db: Session = Depends(get_db),
    room_id: int,
    current_user: User = Depends(require_franchise),
) -> Response:
    room = _get_room(db, room_id, get_current_franchise_id(current_user))
    db.delete(room)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
