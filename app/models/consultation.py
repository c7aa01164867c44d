from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base
from app.models.franchise import PaymentMode


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    complaint = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    case_paper_url = Column(String, nullable=True)
    next_follow_up_date = Column(Date, nullable=True)
    total_amount = Column(Float, default=0.0, nullable=False)
    total_received_amount = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    appointment = relationship("Appointment", back_populates="consultation")
    details = relationship("ConsultationDetail", back_populates="consultation", cascade="all, delete-orphan")
    medicines = relationship("ConsultationMedicine", back_populates="consultation", cascade="all, delete-orphan")
    receipts = relationship(
        "ConsultationReceipt",
        back_populates="consultation",
        cascade="all, delete-orphan",
        order_by="ConsultationReceipt.date",
    )

    @property
    def balance_amount(self) -> float:
        return round((self.total_amount or 0.0) - (self.total_received_amount or 0.0), 2)

    @property
    def patient_id(self):
        return self.appointment.patient_id if self.appointment else None

    @property
    def patient_name(self):
        if self.appointment and self.appointment.patient:
            return self.appointment.patient.full_name
        return None


class ConsultationDetail(Base):
    __tablename__ = "consultation_details"

    id = Column(Integer, primary_key=True, index=True)
    consultation_id = Column(Integer, ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    description = Column(Text, nullable=True)
    qty = Column(Integer, nullable=False)
    rate = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)

    consultation = relationship("Consultation", back_populates="details")
    service = relationship("Service")


class ConsultationMedicine(Base):
    __tablename__ = "consultation_medicines"

    id = Column(Integer, primary_key=True, index=True)
    consultation_id = Column(Integer, ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=True)
    qty = Column(Integer, nullable=False)
    mrp = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)
    doses = Column(String, nullable=True)

    consultation = relationship("Consultation", back_populates="medicines")
    medicine = relationship("Medicine")


class ConsultationReceipt(Base):
    __tablename__ = "consultation_receipts"

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String, unique=True, nullable=False, index=True)
    consultation_id = Column(Integer, ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    payment_mode = Column(Enum(PaymentMode), nullable=False)
    payer_name = Column(String, nullable=True)
    contact_number = Column(String, nullable=True)
    utr_number = Column(String, nullable=True)
    cheque_date = Column(Date, nullable=True)
    cheque_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    consultation = relationship("Consultation", back_populates="receipts")

    @property
    def patient_name(self):
        return self.consultation.patient_name if self.consultation else None
