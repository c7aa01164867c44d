"""
Connexion des administrateurs, franchises et médecins.

Le jeton d'accès porte le rôle et la franchise résolue de l'utilisateur;
les dépendances de app.core.deps relisent malgré tout l'utilisateur en
base à chaque requête, un compte désactivé perd donc l'accès aussitôt.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_active_user
from app.core.logging import get_logger
from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from app.db.base import get_db
from app.models.user import User
from app.schemas.token import RefreshTokenRequest, Token
from app.schemas.user import PasswordChange, ProfileUpdate, User as UserSchema, UserLogin

router = APIRouter()
logger = get_logger(__name__)


def find_user_by_email(db: Session, email: str) -> User:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def token_pair(user: User) -> Token:
    return Token(
        access_token=create_access_token(
            subject=user.id,
            role=user.role.value,
            franchise_id=user.resolved_franchise_id,
        ),
        refresh_token=create_refresh_token(subject=user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSchema.model_validate(user),
    )


def sign_in(db: Session, email: str, password: str) -> Token:
    user = find_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Échec de connexion", extra={"extra_data": {"email": email}})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    if not user.is_active:
        logger.warning("Connexion d'un compte désactivé", extra={"extra_data": {"user_id": user.id}})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    logger.info(
        "Connexion réussie",
        extra={"extra_data": {
            "user_id": user.id,
            "role": user.role.value,
            "franchise_id": user.resolved_franchise_id,
        }},
    )
    return token_pair(user)


@router.post("/login", response_model=Token, summary="Connexion par email")
def login(credentials: UserLogin, db: Session = Depends(get_db)) -> Any:
    return sign_in(db, credentials.email, credentials.password)


@router.post("/login/form", response_model=Token, include_in_schema=False)
def login_form(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> Any:
    """Bouton Authorize de Swagger UI; le champ username reçoit l'email."""
    return sign_in(db, form_data.username, form_data.password)


@router.post("/refresh", response_model=Token, summary="Renouveler les jetons")
def refresh(token_request: RefreshTokenRequest, db: Session = Depends(get_db)) -> Any:
    payload = verify_token(token_request.refresh_token, token_type="refresh")
    subject = payload.get("sub") if payload else None
    user = db.get(User, int(subject)) if subject else None

    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired refresh token")
    return token_pair(user)


@router.get("/me", response_model=UserSchema, summary="Profil connecté")
def read_me(current_user: User = Depends(get_current_active_user)) -> Any:
    return current_user


@router.patch("/me", response_model=UserSchema, summary="Modifier son profil")
def update_me(
    profile_in: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> Any:
    if profile_in.email and profile_in.email.lower() != current_user.email.lower():
        if find_user_by_email(db, profile_in.email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
        current_user.email = profile_in.email
    if profile_in.name:
        current_user.name = profile_in.name.strip()

    db.commit()
    db.refresh(current_user)
    return current_user


@router.post("/change-password", summary="Changer son mot de passe")
def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> Any:
    if not verify_password(password_data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    if password_data.new_password == password_data.current_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must differ from the current one",
        )

    current_user.hashed_password = get_password_hash(password_data.new_password)
    db.commit()
    logger.info("Mot de passe modifié", extra={"extra_data": {"user_id": current_user.id}})
    return {"message": "Password updated successfully"}
