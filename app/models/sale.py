from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Sale(Base):
    """Vente du stock central (admin) vers une franchise."""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    invoice_no = Column(String, unique=True, nullable=False, index=True)
    invoice_date = Column(DateTime, nullable=False)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    discount_percent = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    franchise = relationship("Franchise")
    details = relationship(
        "SaleDetail", back_populates="sale", cascade="all, delete-orphan", order_by="SaleDetail.id"
    )
    transports = relationship(
        "Transport", back_populates="sale", cascade="all, delete-orphan", order_by="Transport.id"
    )

    @property
    def total_quantity(self) -> int:
        return sum(detail.quantity for detail in self.details)

    @property
    def franchise_name(self):
        return self.franchise.name if self.franchise else None


class SaleDetail(Base):
    __tablename__ = "sale_details"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False)
    batch_number = Column(String, nullable=False)
    expiry_date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False)
    rate = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)

    # Relations
    sale = relationship("Sale", back_populates="details")
    medicine = relationship("Medicine")

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None

    @property
    def brand_name(self):
        return self.medicine.brand_name if self.medicine else None
