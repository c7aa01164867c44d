"""
Gestion des utilisateurs (admin).
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.v1.auth import find_user_by_email
from app.core.deps import require_admin
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.core.security import get_password_hash
from app.db.base import get_db
from app.models.user import User, UserRole
from app.schemas.user import User as UserSchema, UserCreate, UserUpdate

router = APIRouter()
logger = get_logger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/", response_model=Page[UserSchema])
def read_users(
    params: ListParams = Depends(),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    """Liste des utilisateurs (recherche nom/email, filtres rôle et statut)."""
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)

    query = apply_search(query, params.search, [User.name, User.email])
    query = apply_sort(
        query,
        params,
        {"name": User.name, "email": User.email, "created_at": User.created_at},
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def create_user(
    *,
    db: Session = Depends(get_db),
    user_in: UserCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    if find_user_by_email(db, user_in.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists"
        )

    user = User(
        name=user_in.name,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        role=user_in.role,
        is_active=user_in.is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Utilisateur créé", extra={"extra_data": {"user_id": user.id, "role": user.role.value}})
    return user


@router.get("/{user_id}", response_model=UserSchema)
def read_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    return _get_user(db, user_id)


@router.put("/{user_id}", response_model=UserSchema)
def update_user(
    *,
    db: Session = Depends(get_db),
    user_id: int,
    user_in: UserUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    """Modifie un utilisateur, y compris réinitialisation du mot de passe et activation."""
    user = _get_user(db, user_id)
    update_data = user_in.model_dump(exclude_unset=True)

    new_email = update_data.get("email")
    if new_email and new_email.lower() != user.email.lower():
        if find_user_by_email(db, new_email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already exists"
            )

    password = update_data.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)

    for field, value in update_data.items():
        if value is not None:
            setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    *,
    db: Session = Depends(get_db),
    user_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    user = _get_user(db, user_id)

    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    # Les comptes franchise et équipe se suppriment avec leur fiche
    if user.franchise is not None or user.team is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is linked to a franchise or team"
        )

    db.delete(user)
    db.commit()
    logger.info("Utilisateur supprimé", extra={"extra_data": {"user_id": user_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
