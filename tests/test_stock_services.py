"""
Stock and numbering services.

Tests cover:
- FEFO allocation across batches
- Saleable batches exclude short-dated and empty batches
- Franchise and admin balance adjustments
- Document and patient numbering
"""
from datetime import date, datetime
from types import SimpleNamespace

from app.models.sale import Sale
from app.models.stock import AdminStockBatchBalance, StockBatchBalance, StockTransactionType
from app.services.numbering import (
    format_document_number,
    next_document_number,
    next_patient_number,
    parse_sequence,
)
from app.services.stock import (
    add_ledger_line,
    adjust_admin_stock,
    admin_batch_quantity,
    admin_quantity,
    allocate_fefo,
    create_stock_transaction,
    recall_expiry_limit,
    reverse_transaction,
    saleable_batches,
    saleable_expiry_cutoff,
)
from tests.conftest import future, seed_franchise_batch


# ============================================================================
# FEFO
# ============================================================================

def test_allocate_fefo_takes_earliest_batches_first():
    batches = [
        SimpleNamespace(batch_number="A", quantity=3),
        SimpleNamespace(batch_number="B", quantity=5),
        SimpleNamespace(batch_number="C", quantity=5),
    ]
    allocations = allocate_fefo(batches, 6)

    assert [(a.batch.batch_number, a.quantity) for a in allocations] == [("A", 3), ("B", 3)]


def test_allocate_fefo_skips_empty_batches():
    batches = [SimpleNamespace(batch_number="A", quantity=0), SimpleNamespace(batch_number="B", quantity=2)]
    allocations = allocate_fefo(batches, 2)

    assert [(a.batch.batch_number, a.quantity) for a in allocations] == [("B", 2)]


def test_cutoffs_follow_settings():
    today = date(2026, 1, 1)
    assert saleable_expiry_cutoff(today) == date(2026, 4, 1)
    assert recall_expiry_limit(today) == date(2026, 2, 15)


def test_saleable_batches_order_and_filters(db, franchise, medicine):
    seed_franchise_batch(db, franchise, medicine, "LATE", future(400), 5)
    seed_franchise_batch(db, franchise, medicine, "EARLY", future(200), 5)
    seed_franchise_batch(db, franchise, medicine, "SHORT", future(30), 5)
    seed_franchise_batch(db, franchise, medicine, "EMPTY", future(300), 0)

    batches = saleable_batches(db, franchise.id, medicine.id)

    assert [b.batch_number for b in batches] == ["EARLY", "LATE"]


# ============================================================================
# Balances
# ============================================================================

def test_franchise_adjustment_updates_medicine_and_batch(db, franchise, medicine):
    seed_franchise_batch(db, franchise, medicine, "B1", future(200), 10)
    seed_franchise_batch(db, franchise, medicine, "B1", future(200), -4)

    batch = db.query(StockBatchBalance).filter(StockBatchBalance.batch_number == "B1").one()
    assert batch.quantity == 6
    assert batch.medicine_id == medicine.id


def test_admin_batch_moves_match_medicine_total(db, medicine):
    expiry = future(200)
    adjust_admin_stock(db, medicine.id, 10, "IN", expiry)
    adjust_admin_stock(db, medicine.id, -10, "IN", expiry)
    adjust_admin_stock(db, medicine.id, 4, "IN", expiry)
    db.commit()

    assert admin_quantity(db, medicine.id) == 4
    assert admin_batch_quantity(db, medicine.id, "IN", expiry) == 4
    assert admin_batch_quantity(db, medicine.id, "GHOST", expiry) == 0


def test_reverse_transaction_restores_franchise_stock(db, admin, franchise, medicine):
    expiry = future(200)
    txn = create_stock_transaction(
        db, StockTransactionType.SALE_TO_FRANCHISE, franchise_id=franchise.id, user_id=admin.id
    )
    add_ledger_line(db, txn, medicine.id, 8, medicine.rate, "B1", expiry)
    seed_franchise_batch(db, franchise, medicine, "B1", expiry, 8)
    db.refresh(txn)

    reverse_transaction(db, txn)
    db.commit()

    batch = db.query(StockBatchBalance).filter(StockBatchBalance.batch_number == "B1").one()
    assert batch.quantity == 0
    assert txn.txn_no.startswith("ST-")


# ============================================================================
# Numbering
# ============================================================================

def test_format_and_parse_document_number():
    number = format_document_number("S", date(2026, 3, 7), 12)

    assert number == "S-07032026-0012"
    assert parse_sequence(number) == 12
    assert parse_sequence("garbage") == 0


def test_next_document_number_increments_per_day(db, franchise):
    on = datetime(2026, 3, 7, 10, 0)
    first = next_document_number(db, Sale.invoice_no, "S", on=on)
    db.add(Sale(invoice_no=first, invoice_date=on, franchise_id=franchise.id, total_amount=0.0))
    db.flush()

    assert first == "S-07032026-0001"
    assert next_document_number(db, Sale.invoice_no, "S", on=on) == "S-07032026-0002"
    assert next_document_number(db, Sale.invoice_no, "S", on=datetime(2026, 3, 8)) == "S-08032026-0001"


def test_next_patient_number_uses_daily_sequence(db):
    on = datetime(2026, 5, 1)

    assert next_patient_number(db, on=on) == "P-20260501-0001"
    assert next_patient_number(db, on=on) == "P-20260501-0002"
    assert next_patient_number(db, on=datetime(2026, 5, 2)) == "P-20260502-0001"


def test_next_document_number_past_four_digits(db, franchise):
    on = datetime(2026, 3, 7, 10, 0)
    for sequence in (9999, 10000):
        db.add(Sale(
            invoice_no=format_document_number("S", on.date(), sequence),
            invoice_date=on,
            franchise_id=franchise.id,
            total_amount=0.0,
        ))
    db.flush()

    assert next_document_number(db, Sale.invoice_no, "S", on=on) == "S-07032026-10001"
