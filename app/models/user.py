from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    FRANCHISE = "franchise"
    DOCTOR = "doctor"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.FRANCHISE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Un utilisateur franchise possède une franchise, un membre d'équipe a une fiche team
    franchise = relationship("Franchise", back_populates="user", uselist=False)
    team = relationship("Team", back_populates="user", uselist=False)

    @property
    def team_id(self):
        return self.team.id if self.team is not None else None

    @property
    def franchise_name(self):
        if self.franchise is not None:
            return self.franchise.name
        if self.team is not None and self.team.franchise is not None:
            return self.team.franchise.name
        return None

    @property
    def resolved_franchise_id(self):
        """Franchise possédée par l'utilisateur, sinon celle de son équipe."""
        if self.franchise is not None:
            return self.franchise.id
        if self.team is not None:
            return self.team.franchise_id
        return None
