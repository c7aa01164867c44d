from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base
from app.models.franchise import PaymentMode


class MedicineBill(Base):
    __tablename__ = "medicine_bills"

    id = Column(Integer, primary_key=True, index=True)
    bill_number = Column(String, unique=True, nullable=False, index=True)
    bill_date = Column(DateTime, nullable=False, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    discount_percent = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, nullable=False)
    total_received_amount = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    patient = relationship("Patient")
    franchise = relationship("Franchise")
    details = relationship("MedicineBillDetail", back_populates="medicine_bill", cascade="all, delete-orphan")
    receipts = relationship(
        "MedicineBillReceipt",
        back_populates="medicine_bill",
        cascade="all, delete-orphan",
        order_by="MedicineBillReceipt.date",
    )

    @property
    def balance_amount(self) -> float:
        return round((self.total_amount or 0.0) - (self.total_received_amount or 0.0), 2)

    @property
    def patient_no(self):
        return self.patient.patient_no if self.patient else None

    @property
    def patient_name(self):
        return self.patient.full_name if self.patient else None


class MedicineBillDetail(Base):
    __tablename__ = "medicine_bill_details"

    id = Column(Integer, primary_key=True, index=True)
    medicine_bill_id = Column(Integer, ForeignKey("medicine_bills.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False)
    qty = Column(Integer, nullable=False)
    mrp = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)

    medicine_bill = relationship("MedicineBill", back_populates="details")
    medicine = relationship("Medicine")

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None

    @property
    def brand_name(self):
        return self.medicine.brand_name if self.medicine else None


class MedicineBillReceipt(Base):
    __tablename__ = "medicine_bill_receipts"

    id = Column(Integer, primary_key=True, index=True)
    receipt_number = Column(String, unique=True, nullable=False, index=True)
    medicine_bill_id = Column(Integer, ForeignKey("medicine_bills.id", ondelete="CASCADE"), nullable=False, index=True)
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

    medicine_bill = relationship("MedicineBill", back_populates="receipts")

    @property
    def patient_name(self):
        return self.medicine_bill.patient_name if self.medicine_bill else None
