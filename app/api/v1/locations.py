"""
Référentiel géographique: états et villes.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, require_admin
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.location import City, State
from app.models.user import User
from app.schemas.location import (
    City as CitySchema,
    CityCreate,
    CityUpdate,
    State as StateSchema,
    StateCreate,
    StateUpdate,
)

states_router = APIRouter()
cities_router = APIRouter()


def _get_state(db: Session, state_id: int) -> State:
    state = db.query(State).filter(State.id == state_id).first()
    if not state:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="State not found")
    return state


def _get_city(db: Session, city_id: int) -> City:
    city = db.query(City).filter(City.id == city_id).first()
    if not city:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
    return city


def _ensure_unique_state(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(State).filter(func.lower(State.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(State.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="State already exists")


def _ensure_unique_city(db: Session, name: str, state_id: int, exclude_id: Optional[int] = None) -> None:
    query = db.query(City).filter(City.state_id == state_id, func.lower(City.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(City.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="City already exists in this state")


# ============================================================
# États
# ============================================================

@states_router.get("/", response_model=Page[StateSchema])
def read_states(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = apply_search(db.query(State), params.search, [State.name])
    query = apply_sort(
        query, params, {"name": State.name, "created_at": State.created_at},
        default_sort="name", default_order="asc",
    )
    return paginate(query, params)


@states_router.post("/", response_model=StateSchema, status_code=status.HTTP_201_CREATED)
def create_state(
    *,
    db: Session = Depends(get_db),
    state_in: StateCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _ensure_unique_state(db, state_in.name)
    state = State(name=state_in.name)
    db.add(state)
    db.commit()
    db.refresh(state)
    return state


@states_router.get("/{state_id}", response_model=StateSchema)
def read_state(
    state_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_state(db, state_id)


@states_router.put("/{state_id}", response_model=StateSchema)
def update_state(
    *,
    db: Session = Depends(get_db),
    state_id: int,
    state_in: StateUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    state = _get_state(db, state_id)
    _ensure_unique_state(db, state_in.name, exclude_id=state.id)
    state.name = state_in.name
    db.commit()
    db.refresh(state)
    return state


@states_router.delete("/{state_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_state(
    *,
    db: Session = Depends(get_db),
    state_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    state = _get_state(db, state_id)
    if state.cities:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="State has cities and cannot be deleted"
        )
    db.delete(state)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Villes
# ============================================================

@cities_router.get("/", response_model=Page[CitySchema])
def read_cities(
    params: ListParams = Depends(),
    state_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = db.query(City)
    if state_id is not None:
        query = query.filter(City.state_id == state_id)
    query = apply_search(query, params.search, [City.name])
    query = apply_sort(
        query, params, {"name": City.name, "created_at": City.created_at},
        default_sort="name", default_order="asc",
    )
    return paginate(query, params)


@cities_router.post("/", response_model=CitySchema, status_code=status.HTTP_201_CREATED)
def create_city(
    *,
    db: Session = Depends(get_db),
    city_in: CityCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _get_state(db, city_in.state_id)
    _ensure_unique_city(db, city_in.name, city_in.state_id)
    city = City(name=city_in.name, state_id=city_in.state_id)
    db.add(city)
    db.commit()
    db.refresh(city)
    return city


@cities_router.get("/{city_id}", response_model=CitySchema)
def read_city(
    city_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_city(db, city_id)


@cities_router.put("/{city_id}", response_model=CitySchema)
def update_city(
    *,
    db: Session = Depends(get_db),
    city_id: int,
    city_in: CityUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    city = _get_city(db, city_id)
    state_id = city_in.state_id or city.state_id
    name = (city_in.name or city.name).strip()
    if city_in.state_id is not None:
        _get_state(db, city_in.state_id)
    _ensure_unique_city(db, name, state_id, exclude_id=city.id)

    city.name = name
    city.state_id = state_id
    db.commit()
    db.refresh(city)
    return city


@cities_router.delete("/{city_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_city(
    *,
    db: Session = Depends(get_db),
    city_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    city = _get_city(db, city_id)
    db.delete(city)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
