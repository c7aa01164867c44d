from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class PaymentMode(str, enum.Enum):
    CASH = "CASH"
    UPI = "UPI"
    CHEQUE = "CHEQUE"


class Franchise(Base):
    __tablename__ = "franchises"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    address_line1 = Column(String, nullable=True)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    pincode = Column(String, nullable=False)
    contact_no = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    user_mobile = Column(String, nullable=False)
    franchise_fee_amount = Column(Float, nullable=True)

    # Compte de connexion de la franchise
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    user = relationship("User", back_populates="franchise")
    teams = relationship("Team", back_populates="franchise", cascade="all, delete-orphan", passive_deletes=True)
    rooms = relationship("Room", back_populates="franchise", cascade="all, delete-orphan", passive_deletes=True)
    fee_payments = relationship(
        "FranchiseFeePayment",
        back_populates="franchise",
        cascade="all, delete-orphan",
        order_by="FranchiseFeePayment.payment_date.desc()",
        passive_deletes=True,
    )


class FranchiseFeePayment(Base):
    __tablename__ = "franchise_fee_payments"

    id = Column(Integer, primary_key=True, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)
    payment_mode = Column(Enum(PaymentMode), nullable=False)
    payer_name = Column(String, nullable=True)
    contact_number = Column(String, nullable=True)
    utr_number = Column(String, nullable=True)
    cheque_date = Column(Date, nullable=True)
    cheque_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    franchise = relationship("Franchise", back_populates="fee_payments")
