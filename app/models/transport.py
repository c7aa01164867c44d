from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class TransportStatus(str, enum.Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"


class Transport(Base):
    """Expédition (totale ou partielle) d'une vente vers la franchise."""
    __tablename__ = "transports"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(TransportStatus), default=TransportStatus.PENDING, nullable=False, index=True)
    dispatched_quantity = Column(Integer, nullable=True)

    # Transporteur
    transporter_name = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    transport_fee = Column(Float, nullable=True)
    receipt_number = Column(String, nullable=True)
    vehicle_number = Column(String, nullable=True)
    tracking_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    dispatched_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    stock_posted_at = Column(DateTime, nullable=True)  # Stock franchise crédité une seule fois

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    sale = relationship("Sale", back_populates="transports")
    franchise = relationship("Franchise")
    details = relationship(
        "TransportDetail", back_populates="transport", cascade="all, delete-orphan", order_by="TransportDetail.id"
    )

    @property
    def invoice_no(self):
        return self.sale.invoice_no if self.sale else None

    @property
    def franchise_name(self):
        return self.franchise.name if self.franchise else None


class TransportDetail(Base):
    __tablename__ = "transport_details"
    __table_args__ = (
        UniqueConstraint("transport_id", "sale_detail_id", name="uq_transport_sale_detail"),
    )

    id = Column(Integer, primary_key=True, index=True)
    transport_id = Column(Integer, ForeignKey("transports.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_detail_id = Column(Integer, ForeignKey("sale_details.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    transport = relationship("Transport", back_populates="details")
    sale_detail = relationship("SaleDetail")

    @property
    def medicine_name(self):
        return self.sale_detail.medicine_name if self.sale_detail else None

    @property
    def batch_number(self):
        return self.sale_detail.batch_number if self.sale_detail else None
