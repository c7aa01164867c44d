"""
Écritures de stock: soldes franchise et admin, transactions et ledger,
allocation FEFO (premier périmé, premier sorti).
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.stock import (
    AdminStockBalance,
    AdminStockBatchBalance,
    StockBalance,
    StockBatchBalance,
    StockLedger,
    StockTransaction,
    StockTransactionType,
)
from app.services.numbering import STOCK_TRANSACTION_PREFIX, next_document_number


@dataclass
class BatchAllocation:
    batch: StockBatchBalance
    quantity: int


def saleable_expiry_cutoff(today: Optional[date] = None) -> date:
    """Les lots doivent expirer après cette date pour être vendus ou réapprovisionnés."""
    return (today or date.today()) + timedelta(days=settings.MIN_SALEABLE_EXPIRY_DAYS)


def recall_expiry_limit(today: Optional[date] = None) -> date:
    """Dernière date d'expiration rappelable."""
    return (today or date.today()) + timedelta(days=settings.RECALL_WINDOW_DAYS)


def allocate_fefo(batches: Sequence[StockBatchBalance], quantity: int) -> List[BatchAllocation]:
    """
    Répartit `quantity` sur les lots, déjà triés par date d'expiration.

    La liste retournée peut couvrir moins que `quantity` si le stock manque;
    l'appelant compare avec le disponible avant d'allouer.
    """
    allocations = []
    remaining = quantity
    for batch in batches:
        if remaining <= 0:
            break
        take = min(remaining, batch.quantity)
        if take <= 0:
            continue
        allocations.append(BatchAllocation(batch=batch, quantity=take))
        remaining -= take
    return allocations


def saleable_batches(db: Session, franchise_id: int, medicine_id: int) -> List[StockBatchBalance]:
    return (
        db.query(StockBatchBalance)
        .filter(
            StockBatchBalance.franchise_id == franchise_id,
            StockBatchBalance.medicine_id == medicine_id,
            StockBatchBalance.quantity > 0,
            StockBatchBalance.expiry_date > saleable_expiry_cutoff(),
        )
        .order_by(StockBatchBalance.expiry_date.asc(), StockBatchBalance.id.asc())
        .all()
    )


def create_stock_transaction(
    db: Session,
    txn_type: StockTransactionType,
    franchise_id: int,
    user_id: Optional[int],
    txn_date: Optional[datetime] = None,
    sale_id: Optional[int] = None,
    medicine_bill_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> StockTransaction:
    """Crée l'en-tête numéroté (ST-DDMMYYYY-NNNN) et le flush."""
    txn = StockTransaction(
        txn_type=txn_type,
        txn_no=next_document_number(db, StockTransaction.txn_no, STOCK_TRANSACTION_PREFIX),
        txn_date=txn_date or datetime.utcnow(),
        franchise_id=franchise_id,
        created_by_user_id=user_id,
        sale_id=sale_id,
        medicine_bill_id=medicine_bill_id,
        notes=notes,
    )
    db.add(txn)
    db.flush()
    return txn


def add_ledger_line(
    db: Session,
    txn: StockTransaction,
    medicine_id: int,
    qty_change: int,
    rate: float,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
) -> StockLedger:
    line = StockLedger(
        transaction_id=txn.id,
        franchise_id=txn.franchise_id,
        medicine_id=medicine_id,
        batch_number=batch_number,
        expiry_date=expiry_date,
        qty_change=qty_change,
        rate=rate,
        amount=round(rate * abs(qty_change), 2),
    )
    db.add(line)
    return line


def adjust_franchise_stock(
    db: Session,
    franchise_id: int,
    medicine_id: int,
    delta: int,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
) -> StockBalance:
    """Ajoute `delta` (signé) au solde médicament et, si le lot est connu, au solde lot."""
    balance = (
        db.query(StockBalance)
        .filter(StockBalance.franchise_id == franchise_id, StockBalance.medicine_id == medicine_id)
        .first()
    )
    if balance is None:
        balance = StockBalance(franchise_id=franchise_id, medicine_id=medicine_id, quantity=0)
        db.add(balance)
    balance.quantity += delta

    if batch_number and expiry_date:
        batch = (
            db.query(StockBatchBalance)
            .filter(
                StockBatchBalance.franchise_id == franchise_id,
                StockBatchBalance.medicine_id == medicine_id,
                StockBatchBalance.batch_number == batch_number,
                StockBatchBalance.expiry_date == expiry_date,
            )
            .first()
        )
        if batch is None:
            batch = StockBatchBalance(
                franchise_id=franchise_id,
                medicine_id=medicine_id,
                batch_number=batch_number,
                expiry_date=expiry_date,
                quantity=0,
            )
            db.add(batch)
        batch.quantity += delta

    db.flush()
    return balance


def _admin_batch(
    db: Session, medicine_id: int, batch_number: str, expiry_date: date
) -> Optional[AdminStockBatchBalance]:
    return (
        db.query(AdminStockBatchBalance)
        .filter(
            AdminStockBatchBalance.medicine_id == medicine_id,
            AdminStockBatchBalance.batch_number == batch_number,
            AdminStockBatchBalance.expiry_date == expiry_date,
        )
        .first()
    )


def adjust_admin_stock(
    db: Session,
    medicine_id: int,
    delta: int,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
) -> AdminStockBalance:
    """
    Ajoute `delta` au stock central et, si le lot est donné, au solde du lot.
    Les sorties sont vérifiées en amont par `admin_batch_quantity`.
    """
    balance = db.query(AdminStockBalance).filter(AdminStockBalance.medicine_id == medicine_id).first()
    if balance is None:
        balance = AdminStockBalance(medicine_id=medicine_id, quantity=0)
        db.add(balance)
    balance.quantity += delta

    if batch_number and expiry_date:
        batch = _admin_batch(db, medicine_id, batch_number, expiry_date)
        if batch is None:
            batch = AdminStockBatchBalance(
                medicine_id=medicine_id,
                batch_number=batch_number,
                expiry_date=expiry_date,
                quantity=0,
            )
            db.add(batch)
        batch.quantity += delta

    db.flush()
    return balance


def admin_quantity(db: Session, medicine_id: int) -> int:
    balance = db.query(AdminStockBalance).filter(AdminStockBalance.medicine_id == medicine_id).first()
    return balance.quantity if balance else 0


def admin_batch_quantity(db: Session, medicine_id: int, batch_number: str, expiry_date: date) -> int:
    batch = _admin_batch(db, medicine_id, batch_number, expiry_date)
    return batch.quantity if batch else 0


def reverse_transaction(db: Session, txn: StockTransaction) -> None:
    """Annule l'effet des lignes du ledger sur les soldes franchise."""
    for line in txn.lines:
        adjust_franchise_stock(
            db,
            franchise_id=line.franchise_id,
            medicine_id=line.medicine_id,
            delta=-line.qty_change,
            batch_number=line.batch_number,
            expiry_date=line.expiry_date,
        )
