from typing import Optional
from pydantic import BaseModel

from app.schemas.user import User


class Token(BaseModel):
    """Paire de jetons renvoyée à la connexion et au rafraîchissement."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    # Durée de vie du jeton d'accès, en secondes
    expires_in: int
    # Profil avec rôle et franchise, pour le routage côté client
    user: Optional[User] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str
