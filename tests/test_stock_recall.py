"""
Franchise stock views, recalls and central stock refill.

Tests cover:
- Recall window, unknown batch, quantity above batch
- Successful recall: ledger, balances and recall history
- Refill expiry rule and saleable admin batches
- Stock views and Excel export
"""
import pytest

from app.models.stock import StockLedger, StockRecall, StockTransaction, StockTransactionType
from tests.conftest import API, future, seed_admin_batch, seed_franchise_batch


def recall(client, headers, medicine, batch_number, expiry, quantity, franchise_id=None):
    payload = {
        "medicine_id": medicine.id,
        "batch_number": batch_number,
        "expiry_date": expiry.isoformat(),
        "quantity": quantity,
    }
    if franchise_id is not None:
        payload["franchise_id"] = franchise_id
    return client.post(f"{API}/stocks/recall", json=payload, headers=headers)


@pytest.fixture
def expiring(db, franchise, medicine):
    expiry = future(20)
    seed_franchise_batch(db, franchise, medicine, "OLD", expiry, 8)
    return expiry


# ============================================================================
# Recalls
# ============================================================================

class TestRecall:
    def test_recall_outside_window(self, client, db, franchise, franchise_headers, medicine):
        expiry = future(200)
        seed_franchise_batch(db, franchise, medicine, "FRESH", expiry, 8)

        response = recall(client, franchise_headers, medicine, "FRESH", expiry, 1)

        assert response.status_code == 400
        assert response.json()["detail"] == "Only batches expiring within 45 days can be recalled"

    def test_unknown_batch(self, client, franchise_headers, medicine, expiring):
        response = recall(client, franchise_headers, medicine, "NOPE", expiring, 1)

        assert response.status_code == 404
        assert response.json()["detail"] == "Batch not found"

    def test_quantity_above_batch(self, client, franchise_headers, medicine, expiring):
        response = recall(client, franchise_headers, medicine, "OLD", expiring, 9)

        assert response.status_code == 409
        assert response.json()["detail"] == "Recall quantity exceeds batch quantity (8)"

    def test_recall_success(self, client, db, franchise, franchise_headers, medicine, expiring):
        response = recall(client, franchise_headers, medicine, "OLD", expiring, 5)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "remaining_batch_qty": 3}

        db.expire_all()
        txn = db.query(StockTransaction).one()
        assert txn.txn_type == StockTransactionType.RECALL_FROM_FRANCHISE
        line = db.query(StockLedger).one()
        assert line.qty_change == -5
        assert line.amount == 250.0
        assert db.query(StockRecall).one().quantity == 5

        history = client.get(f"{API}/recalls/", headers=franchise_headers).json()
        assert history["total"] == 1
        assert history["data"][0]["batch_number"] == "OLD"

    def test_admin_must_name_franchise(self, client, admin_headers, franchise, medicine, expiring):
        missing = recall(client, admin_headers, medicine, "OLD", expiring, 1)
        named = recall(client, admin_headers, medicine, "OLD", expiring, 1, franchise_id=franchise.id)

        assert missing.status_code == 400
        assert missing.json()["detail"] == "franchise_id is required"
        assert named.status_code == 200

    def test_doctor_cannot_recall(self, client, doctor_headers, medicine, expiring):
        assert recall(client, doctor_headers, medicine, "OLD", expiring, 1).status_code == 403

    def test_other_franchise_recalls_nothing(self, client, other_franchise_headers, medicine, expiring):
        response = recall(client, other_franchise_headers, medicine, "OLD", expiring, 1)

        assert response.status_code == 404


# ============================================================================
# Central stock
# ============================================================================

class TestAdminStock:
    def test_refill_expiry_must_clear_sale_window(self, client, admin_headers, medicine):
        response = client.post(
            f"{API}/admin-stocks/refill",
            json={"items": [{
                "medicine_id": medicine.id,
                "quantity": 10,
                "batch_number": "SHORT",
                "expiry_date": future(90).isoformat(),
            }]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "This batch expiry should be above 90 days"

    def test_refill_accumulates(self, client, admin_headers, medicine):
        item = {"medicine_id": medicine.id, "quantity": 10, "batch_number": "B1", "expiry_date": future(200).isoformat()}
        client.post(f"{API}/admin-stocks/refill", json={"items": [item]}, headers=admin_headers)

        response = client.post(f"{API}/admin-stocks/refill", json={"items": [item]}, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()[0]["quantity"] == 20

    def test_batches_exclude_short_dated_and_empty(self, client, db, admin_headers, medicine):
        seed_admin_batch(db, medicine, "LATE", future(300), 5)
        seed_admin_batch(db, medicine, "EARLY", future(150), 5)
        seed_admin_batch(db, medicine, "SHORT", future(30), 5)

        response = client.get(f"{API}/admin-stocks/batches", params={"medicine_id": medicine.id}, headers=admin_headers)

        assert response.status_code == 200
        assert [b["batch_number"] for b in response.json()] == ["EARLY", "LATE"]

    def test_franchise_cannot_refill(self, client, franchise_headers, medicine):
        response = client.post(
            f"{API}/admin-stocks/refill",
            json={"items": [{
                "medicine_id": medicine.id,
                "quantity": 1,
                "batch_number": "B1",
                "expiry_date": future(200).isoformat(),
            }]},
            headers=franchise_headers,
        )

        assert response.status_code == 403


# ============================================================================
# Stock views
# ============================================================================

class TestStockViews:
    def test_franchise_stock_summary(self, client, db, franchise, franchise_headers, medicine):
        seed_franchise_batch(db, franchise, medicine, "B1", future(200), 7)

        response = client.get(f"{API}/stocks/", headers=franchise_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["franchise_id"] == franchise.id
        assert body["items"][0]["quantity"] == 7
        assert body["items"][0]["brand_name"] == "Healwell"

    def test_batch_rows(self, client, db, franchise, franchise_headers, medicine):
        seed_franchise_batch(db, franchise, medicine, "B2", future(300), 2)
        seed_franchise_batch(db, franchise, medicine, "B1", future(200), 7)

        rows = client.get(f"{API}/stocks/rows", headers=franchise_headers).json()

        assert [row["batch_number"] for row in rows["data"]] == ["B1", "B2"]

    def test_export_is_xlsx(self, client, db, franchise, franchise_headers, medicine):
        seed_franchise_batch(db, franchise, medicine, "B1", future(200), 7)

        response = client.get(f"{API}/stocks/export", headers=franchise_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "attachment" in response.headers["content-disposition"]
        assert response.content[:2] == b"PK"
