"""
Sales to franchises and their transports.

Tests cover:
- Admin refill, then sale creation with its PENDING transport
- Partial dispatch leaving a PENDING remainder
- Delivery by the franchise posting stock exactly once
- Role and ownership guards on transports
- Admin edits of PENDING transports and the remainder they leave
- Sale update and delete rules around delivery, batch balances included
"""
from datetime import datetime

import pytest

from app.models.stock import (
    AdminStockBalance,
    AdminStockBatchBalance,
    StockBalance,
    StockBatchBalance,
    StockLedger,
    StockTransaction,
    StockTransactionType,
)
from app.models.transport import Transport, TransportStatus
from tests.conftest import API, future


EXPIRY = future(365)


def refill(client, headers, medicine, quantity=100, batch="B1", expiry=EXPIRY):
    return client.post(
        f"{API}/admin-stocks/refill",
        json={"items": [{
            "medicine_id": medicine.id,
            "quantity": quantity,
            "batch_number": batch,
            "expiry_date": expiry.isoformat(),
        }]},
        headers=headers,
    )


def create_sale(client, headers, franchise, medicine, quantity=10, rate=5.0, discount=10.0):
    response = client.post(
        f"{API}/sales/",
        json={
            "invoice_date": datetime(2026, 6, 1, 10, 0).isoformat(),
            "franchise_id": franchise.id,
            "discount_percent": discount,
            "details": [{
                "medicine_id": medicine.id,
                "batch_number": "B1",
                "expiry_date": EXPIRY.isoformat(),
                "quantity": quantity,
                "rate": rate,
            }],
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def dispatch(client, headers, sale_id, quantity):
    return client.post(
        f"{API}/transports/",
        json={"sale_id": sale_id, "company_name": "Blue Dart", "dispatched_quantity": quantity},
        headers=headers,
    )


def deliver(client, headers, transport_id):
    return client.put(f"{API}/transports/{transport_id}", json={"status": "DELIVERED"}, headers=headers)


def franchise_quantity(db, franchise, medicine):
    db.expire_all()
    balance = db.query(StockBalance).filter(
        StockBalance.franchise_id == franchise.id,
        StockBalance.medicine_id == medicine.id,
    ).first()
    return balance.quantity if balance else 0


def admin_stock(db, medicine):
    db.expire_all()
    balance = db.query(AdminStockBalance).filter(AdminStockBalance.medicine_id == medicine.id).first()
    return balance.quantity if balance else 0


def admin_batches(db, medicine):
    db.expire_all()
    rows = db.query(AdminStockBatchBalance).filter(AdminStockBatchBalance.medicine_id == medicine.id).all()
    return {row.batch_number: row.quantity for row in rows}


def pending_transport(client, headers, sale_id):
    listing = client.get(f"{API}/transports/", params={"sale_id": sale_id}, headers=headers).json()
    return next(t for t in listing["data"] if t["status"] == "PENDING")


@pytest.fixture
def stocked(client, admin_headers, medicine):
    response = refill(client, admin_headers, medicine)
    assert response.status_code == 201
    return medicine


# ============================================================================
# Sales
# ============================================================================

class TestSales:
    def test_create_sale_numbers_and_totals(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        assert sale["invoice_no"].startswith("S-")
        assert sale["total_amount"] == 45.0
        assert sale["total_quantity"] == 10
        assert [t["status"] for t in sale["transports"]] == ["PENDING"]

    def test_sale_does_not_move_stock(self, client, db, admin_headers, franchise, stocked):
        create_sale(client, admin_headers, franchise, stocked)

        assert admin_stock(db, stocked) == 100
        assert franchise_quantity(db, franchise, stocked) == 0

    def test_franchise_cannot_create_sale(self, client, franchise_headers, franchise, medicine):
        response = client.post(
            f"{API}/sales/",
            json={
                "invoice_date": datetime(2026, 6, 1).isoformat(),
                "franchise_id": franchise.id,
                "details": [{
                    "medicine_id": medicine.id,
                    "batch_number": "B1",
                    "expiry_date": EXPIRY.isoformat(),
                    "quantity": 1,
                    "rate": 5.0,
                }],
            },
            headers=franchise_headers,
        )

        assert response.status_code == 403

    def test_franchise_sees_only_its_sales(
        self, client, admin_headers, franchise, other_franchise, other_franchise_headers, stocked
    ):
        sale = create_sale(client, admin_headers, franchise, stocked)

        listing = client.get(f"{API}/sales/", headers=other_franchise_headers).json()
        assert listing["total"] == 0
        assert client.get(f"{API}/sales/{sale['id']}", headers=other_franchise_headers).status_code == 404

    def test_update_clamps_discount_and_recomputes(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        response = client.put(
            f"{API}/sales/{sale['id']}",
            json={"discount_percent": 0},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["total_amount"] == 50.0

    def test_update_with_empty_details(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        response = client.put(f"{API}/sales/{sale['id']}", json={"details": []}, headers=admin_headers)

        assert response.status_code == 400


# ============================================================================
# Dispatch
# ============================================================================

class TestDispatch:
    def test_partial_dispatch_leaves_pending_remainder(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        response = dispatch(client, admin_headers, sale["id"], 4)

        assert response.status_code == 201, response.text
        transport = response.json()
        assert transport["status"] == "DISPATCHED"
        assert transport["dispatched_quantity"] == 4
        assert transport["company_name"] == "Blue Dart"

        listing = client.get(f"{API}/transports/", params={"sale_id": sale["id"]}, headers=admin_headers).json()
        by_status = {t["status"]: t for t in listing["data"]}
        assert listing["total"] == 2
        assert by_status["PENDING"]["dispatched_quantity"] == 6

    def test_full_dispatch_leaves_no_pending(self, client, db, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        dispatch(client, admin_headers, sale["id"], 10)

        db.expire_all()
        statuses = [t.status for t in db.query(Transport).filter(Transport.sale_id == sale["id"]).all()]
        assert statuses == [TransportStatus.DISPATCHED]

    def test_dispatch_above_sale(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)

        response = dispatch(client, admin_headers, sale["id"], 11)

        assert response.status_code == 400
        assert response.json()["detail"] == "Dispatched quantity exceeds sale quantity"

    def test_dispatch_by_detail(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        detail_id = sale["details"][0]["id"]

        response = client.post(
            f"{API}/transports/",
            json={
                "sale_id": sale["id"],
                "company_name": "Blue Dart",
                "dispatched_details": [{"sale_detail_id": detail_id, "quantity": 3}],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["details"][0]["quantity"] == 3

    def test_doctor_cannot_list_transports(self, client, doctor_headers):
        assert client.get(f"{API}/transports/", headers=doctor_headers).status_code == 403

    def test_admin_edit_above_remaining(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        dispatch(client, admin_headers, sale["id"], 4)
        pending = pending_transport(client, admin_headers, sale["id"])

        response = client.put(
            f"{API}/transports/{pending['id']}",
            json={"dispatched_quantity": 7},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Dispatched quantity exceeds remaining quantity"

    def test_admin_cannot_edit_dispatched_transport(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = client.put(
            f"{API}/transports/{transport['id']}",
            json={"notes": "late"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Only PENDING transports can be updated"

    def test_dispatching_pending_transport_resyncs_remainder(self, client, db, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        dispatch(client, admin_headers, sale["id"], 4)
        pending = pending_transport(client, admin_headers, sale["id"])

        response = client.put(
            f"{API}/transports/{pending['id']}",
            json={"status": "DISPATCHED", "dispatched_quantity": 3, "vehicle_number": "MH12AB1234"},
            headers=admin_headers,
        )

        assert response.status_code == 200, response.text
        assert response.json()["status"] == "DISPATCHED"
        assert response.json()["vehicle_number"] == "MH12AB1234"
        db.expire_all()
        rows = [
            (t.status, t.dispatched_quantity, [d.quantity for d in t.details])
            for t in db.query(Transport).filter(Transport.sale_id == sale["id"]).order_by(Transport.id)
        ]
        assert rows == [
            (TransportStatus.DISPATCHED, 4, [4]),
            (TransportStatus.DISPATCHED, 3, [3]),
            (TransportStatus.PENDING, 3, [3]),
        ]


# ============================================================================
# Delivery
# ============================================================================

class TestDelivery:
    def test_delivery_moves_stock_once(self, client, db, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = deliver(client, franchise_headers, transport["id"])

        assert response.status_code == 200, response.text
        assert response.json()["status"] == "DELIVERED"
        assert response.json()["stock_posted_at"] is not None
        assert franchise_quantity(db, franchise, stocked) == 4
        assert admin_stock(db, stocked) == 96

        again = deliver(client, franchise_headers, transport["id"])
        assert again.status_code == 200
        assert franchise_quantity(db, franchise, stocked) == 4
        assert admin_stock(db, stocked) == 96

    def test_delivery_writes_ledger_and_batch(self, client, db, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 10).json()
        deliver(client, franchise_headers, transport["id"])

        db.expire_all()
        txn = db.query(StockTransaction).filter(StockTransaction.sale_id == sale["id"]).one()
        assert txn.txn_type == StockTransactionType.SALE_TO_FRANCHISE
        assert txn.txn_no.startswith("ST-")
        line = db.query(StockLedger).filter(StockLedger.transaction_id == txn.id).one()
        assert line.qty_change == 10
        assert line.rate == 5.0
        batch = db.query(StockBatchBalance).filter(StockBatchBalance.franchise_id == franchise.id).one()
        assert batch.batch_number == "B1"
        assert batch.quantity == 10

    def test_second_delivery_reuses_sale_transaction(
        self, client, db, admin_headers, franchise, franchise_headers, stocked
    ):
        sale = create_sale(client, admin_headers, franchise, stocked)
        first = dispatch(client, admin_headers, sale["id"], 4).json()
        deliver(client, franchise_headers, first["id"])
        second = dispatch(client, admin_headers, sale["id"], 6).json()
        deliver(client, franchise_headers, second["id"])

        db.expire_all()
        assert db.query(StockTransaction).filter(StockTransaction.sale_id == sale["id"]).count() == 1
        assert franchise_quantity(db, franchise, stocked) == 10

    def test_admin_cannot_mark_delivered(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = deliver(client, admin_headers, transport["id"])

        assert response.status_code == 400
        assert response.json()["detail"] == "DELIVERED must be set by franchise"

    def test_other_franchise_cannot_deliver(
        self, client, admin_headers, franchise, other_franchise, other_franchise_headers, stocked
    ):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = deliver(client, other_franchise_headers, transport["id"])

        assert response.status_code == 403

    def test_franchise_can_only_send_status(self, client, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = client.put(
            f"{API}/transports/{transport['id']}",
            json={"status": "DELIVERED", "notes": "received"},
            headers=franchise_headers,
        )

        assert response.status_code == 400

    def test_pending_transport_cannot_be_delivered(self, client, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        pending_id = sale["transports"][0]["id"]

        response = deliver(client, franchise_headers, pending_id)

        assert response.status_code == 409
        assert response.json()["detail"] == "Transport is not dispatched"

    def test_insufficient_admin_stock(self, client, admin_headers, franchise, franchise_headers, medicine):
        refill(client, admin_headers, medicine, quantity=2)
        sale = create_sale(client, admin_headers, franchise, medicine, quantity=5)
        transport = dispatch(client, admin_headers, sale["id"], 5).json()

        response = deliver(client, franchise_headers, transport["id"])

        assert response.status_code == 409
        assert response.json()["detail"] == "Insufficient admin stock to post delivery"

    def test_delivery_needs_stock_in_the_sold_batch(
        self, client, db, admin_headers, franchise, franchise_headers, medicine
    ):
        refill(client, admin_headers, medicine, quantity=5, batch="B1")
        refill(client, admin_headers, medicine, quantity=10, batch="B2")
        sale = create_sale(client, admin_headers, franchise, medicine, quantity=8)
        transport = dispatch(client, admin_headers, sale["id"], 8).json()

        response = deliver(client, franchise_headers, transport["id"])

        assert response.status_code == 409
        assert response.json()["detail"] == "Insufficient admin stock to post delivery"
        assert admin_batches(db, medicine) == {"B1": 5, "B2": 10}
        assert franchise_quantity(db, franchise, medicine) == 0

    def test_delivered_transport_cannot_be_deleted(
        self, client, admin_headers, franchise, franchise_headers, stocked
    ):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 10).json()
        deliver(client, franchise_headers, transport["id"])

        response = client.delete(f"{API}/transports/{transport['id']}", headers=admin_headers)

        assert response.status_code == 409


# ============================================================================
# Sale changes after delivery
# ============================================================================

class TestSaleAfterDelivery:
    def test_update_after_delivery_is_refused(self, client, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 10).json()
        deliver(client, franchise_headers, transport["id"])

        response = client.put(f"{API}/sales/{sale['id']}", json={"discount_percent": 5}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Sale cannot be updated after it is delivered"

    def test_delete_reverses_delivered_stock(self, client, db, admin_headers, franchise, franchise_headers, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 10).json()
        deliver(client, franchise_headers, transport["id"])

        response = client.delete(f"{API}/sales/{sale['id']}", headers=admin_headers)

        assert response.status_code == 204
        assert franchise_quantity(db, franchise, stocked) == 0
        assert admin_stock(db, stocked) == 100
        assert db.query(StockTransaction).count() == 0

    def test_batches_follow_total_through_delivery_and_delete(
        self, client, db, admin_headers, franchise, franchise_headers, stocked
    ):
        refill(client, admin_headers, stocked, quantity=10, batch="B2")
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 10).json()
        deliver(client, franchise_headers, transport["id"])

        assert admin_batches(db, stocked) == {"B1": 90, "B2": 10}
        assert sum(admin_batches(db, stocked).values()) == admin_stock(db, stocked)

        client.delete(f"{API}/sales/{sale['id']}", headers=admin_headers)

        assert admin_batches(db, stocked) == {"B1": 100, "B2": 10}
        assert sum(admin_batches(db, stocked).values()) == admin_stock(db, stocked)

    def test_lines_locked_while_transport_dispatched(
        self, client, db, admin_headers, franchise, franchise_headers, stocked
    ):
        sale = create_sale(client, admin_headers, franchise, stocked)
        transport = dispatch(client, admin_headers, sale["id"], 4).json()

        response = client.put(
            f"{API}/sales/{sale['id']}",
            json={"details": [{
                "medicine_id": stocked.id,
                "batch_number": "B1",
                "expiry_date": EXPIRY.isoformat(),
                "quantity": 3,
                "rate": 5.0,
            }]},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Sale details cannot be replaced while a transport is dispatched"
        assert deliver(client, franchise_headers, transport["id"]).status_code == 200
        assert franchise_quantity(db, franchise, stocked) == 4

    def test_discount_change_allowed_while_dispatched(self, client, admin_headers, franchise, stocked):
        sale = create_sale(client, admin_headers, franchise, stocked)
        dispatch(client, admin_headers, sale["id"], 4)

        response = client.put(f"{API}/sales/{sale['id']}", json={"discount_percent": 0}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total_amount"] == 50.0
