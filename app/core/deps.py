"""
Dépendances FastAPI: authentification, rôles et périmètre franchise.

Trois rôles: l'admin voit toutes les franchises, un compte franchise ne
voit que la sienne, un médecin (membre d'équipe) ne voit que la franchise
de son équipe et, pour les rendez-vous et consultations, que son équipe.
"""

from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import ACCESS, verify_token
from app.db.base import get_db
from app.models.user import User, UserRole

security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Utilisateur du jeton d'accès Bearer.

    Raises:
        HTTPException 401: jeton absent, invalide, expiré ou utilisateur inconnu
    """
    payload = verify_token(credentials.credentials, token_type=ACCESS) if credentials else None
    user = db.get(User, int(payload["sub"])) if payload and payload.get("sub") else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Repris par HTTPLoggingMiddleware
    request.state.user_id = user.id
    request.state.role = user.role.value
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """Dépendance n'acceptant que les rôles donnés (403 sinon)."""

    def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized role")
        return current_user

    return checker


require_admin = require_roles(UserRole.ADMIN)
require_franchise = require_roles(UserRole.FRANCHISE)
require_admin_or_franchise = require_roles(UserRole.ADMIN, UserRole.FRANCHISE)


def _franchise_of(current_user: User) -> int:
    franchise_id = current_user.resolved_franchise_id
    if franchise_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current user is not associated with any franchise"
        )
    return franchise_id


def get_current_franchise_id(current_user: User = Depends(get_current_active_user)) -> int:
    """Franchise possédée par l'utilisateur, sinon celle de son équipe."""
    return _franchise_of(current_user)


def resolve_franchise_scope(current_user: User, requested: Optional[int] = None) -> Optional[int]:
    """
    Périmètre d'une lecture: l'admin voit tout ou filtre sur `requested`,
    les autres rôles restent sur leur franchise quel que soit `requested`.
    """
    if current_user.role == UserRole.ADMIN:
        return requested
    return _franchise_of(current_user)


def doctor_team_id(current_user: User) -> Optional[int]:
    """Équipe d'un médecin; None pour les autres rôles."""
    if current_user.role != UserRole.DOCTOR:
        return None
    if current_user.team is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current user is not associated with any team"
        )
    return current_user.team.id
