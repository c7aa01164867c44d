"""
Mots de passe (bcrypt) et jetons JWT.

Deux types de jetons: "access" pour les appels API, avec rôle et franchise
résolue en claims, et "refresh" pour renouveler la paire sans mot de passe.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings

ACCESS = "access"
REFRESH = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Hash illisible en base
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _sign(token_type: str, subject: Union[str, int], lifetime: timedelta, **claims: Any) -> str:
    issued_at = datetime.utcnow()
    payload = {
        "sub": str(subject),
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(
    subject: Union[str, int],
    role: str,
    franchise_id: Optional[int] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Jeton d'accès d'un utilisateur.

    Le claim franchise_id est informatif pour le client: les contrôles
    d'accès relisent la franchise depuis la base.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _sign(ACCESS, subject, lifetime, role=role, franchise_id=franchise_id)


def create_refresh_token(subject: Union[str, int], expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _sign(REFRESH, subject, lifetime)


def verify_token(token: str, token_type: str = ACCESS) -> Optional[Dict[str, Any]]:
    """Payload décodé, ou None si la signature, l'expiration ou le type ne conviennent pas."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return payload if payload.get("type") == token_type else None
