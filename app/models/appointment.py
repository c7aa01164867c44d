from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class AppointmentType(str, enum.Enum):
    CONSULTATION = "CONSULTATION"
    PROCEDURE = "PROCEDURE"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    appointment_date_time = Column(DateTime, nullable=False, index=True)
    visit_purpose = Column(String, nullable=True)
    type = Column(Enum(AppointmentType), default=AppointmentType.CONSULTATION, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    patient = relationship("Patient", back_populates="appointments")
    team = relationship("Team")
    consultation = relationship(
        "Consultation", back_populates="appointment", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def team_name(self):
        return self.team.name if self.team else None

    @property
    def consultation_id(self):
        return self.consultation.id if self.consultation else None
