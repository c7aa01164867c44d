from sqlalchemy import Column, Integer, String, Float, DateTime, Date, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class StockTransactionType(str, enum.Enum):
    """Types de transactions de stock franchise."""
    SALE_TO_FRANCHISE = "SALE_TO_FRANCHISE"  # Livraison d'une vente admin
    RECALL_FROM_FRANCHISE = "RECALL_FROM_FRANCHISE"  # Rappel de lot proche péremption
    FRANCHISE_TO_PATIENT_SALE = "FRANCHISE_TO_PATIENT_SALE"  # Facture médicaments patient


class StockTransaction(Base):
    """En-tête d'un mouvement de stock franchise, détaillé par le ledger."""
    __tablename__ = "stock_transactions"

    id = Column(Integer, primary_key=True, index=True)
    txn_type = Column(Enum(StockTransactionType), nullable=False)
    txn_no = Column(String, unique=True, nullable=False, index=True)
    txn_date = Column(DateTime, nullable=False)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Document source (au plus un)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="SET NULL"), unique=True, nullable=True)
    medicine_bill_id = Column(Integer, ForeignKey("medicine_bills.id", ondelete="SET NULL"), unique=True, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    franchise = relationship("Franchise")
    lines = relationship("StockLedger", back_populates="transaction", cascade="all, delete-orphan")


class StockLedger(Base):
    """Ligne de mouvement: quantité signée (+ entrée, - sortie) par lot."""
    __tablename__ = "stock_ledger"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("stock_transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    batch_number = Column(String, nullable=True)
    expiry_date = Column(Date, nullable=True)
    qty_change = Column(Integer, nullable=False)
    rate = Column(Float, nullable=False)
    amount = Column(Float, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    transaction = relationship("StockTransaction", back_populates="lines")
    medicine = relationship("Medicine")


class StockBalance(Base):
    """Solde par franchise et médicament."""
    __tablename__ = "stock_balances"
    __table_args__ = (
        UniqueConstraint("franchise_id", "medicine_id", name="uq_stock_balance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    quantity = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    franchise = relationship("Franchise")
    medicine = relationship("Medicine")


class StockBatchBalance(Base):
    """Solde par franchise, médicament et lot."""
    __tablename__ = "stock_batch_balances"
    __table_args__ = (
        UniqueConstraint("franchise_id", "medicine_id", "batch_number", "expiry_date", name="uq_stock_batch_balance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    batch_number = Column(String, nullable=False)
    expiry_date = Column(Date, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    franchise = relationship("Franchise")
    medicine = relationship("Medicine")

    @property
    def franchise_name(self):
        return self.franchise.name if self.franchise else None

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None

    @property
    def brand_name(self):
        return self.medicine.brand_name if self.medicine else None


class AdminStockBalance(Base):
    """Stock central par médicament."""
    __tablename__ = "admin_stock_balances"

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), unique=True, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    medicine = relationship("Medicine")

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None

    @property
    def brand_name(self):
        return self.medicine.brand_name if self.medicine else None


class AdminStockBatchBalance(Base):
    """Stock central par médicament et lot."""
    __tablename__ = "admin_stock_batch_balances"
    __table_args__ = (
        UniqueConstraint("medicine_id", "batch_number", "expiry_date", name="uq_admin_stock_batch_balance"),
    )

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    batch_number = Column(String, nullable=False)
    expiry_date = Column(Date, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    medicine = relationship("Medicine")


class StockRecall(Base):
    """Rappel d'un lot d'une franchise."""
    __tablename__ = "stock_recalls"

    id = Column(Integer, primary_key=True, index=True)
    stock_transaction_id = Column(
        Integer, ForeignKey("stock_transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False)
    batch_number = Column(String, nullable=False)
    expiry_date = Column(Date, nullable=False)
    quantity = Column(Integer, nullable=False)
    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    recalled_at = Column(DateTime, server_default=func.now(), nullable=False)

    franchise = relationship("Franchise")
    medicine = relationship("Medicine")
    transaction = relationship("StockTransaction")

    @property
    def franchise_name(self):
        return self.franchise.name if self.franchise else None

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None
