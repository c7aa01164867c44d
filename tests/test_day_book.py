"""
Day book and closing stock reports.

Tests cover:
- Consultation and medicine bill rows, period filter, totals
- Doctors see only their team's consultations and no bills
- Pagination, search, sort and exports
- Closing stock per franchise and medicine
"""
from datetime import datetime

import pytest

from app.models.appointment import Appointment
from app.models.consultation import Consultation
from app.models.medicine_bill import MedicineBill
from tests.conftest import API, future, make_team, seed_franchise_batch


def add_consultation(db, franchise, patient, team, when, total, received=0.0, remarks=None):
    appointment = Appointment(
        franchise_id=franchise.id,
        patient_id=patient.id,
        team_id=team.id,
        appointment_date_time=when,
    )
    db.add(appointment)
    db.flush()
    consultation = Consultation(
        appointment_id=appointment.id,
        total_amount=total,
        total_received_amount=received,
        remarks=remarks,
    )
    db.add(consultation)
    db.commit()
    return appointment


def add_bill(db, franchise, patient, when, total, received=0.0, number="M-01062026-0001"):
    bill = MedicineBill(
        bill_number=number,
        bill_date=when,
        franchise_id=franchise.id,
        patient_id=patient.id,
        total_amount=total,
        total_received_amount=received,
    )
    db.add(bill)
    db.commit()
    return bill


@pytest.fixture
def ledger(db, franchise, patient, team):
    """Two consultations and a bill on 1 June, one consultation on 3 June."""
    first = add_consultation(db, franchise, patient, team, datetime(2026, 6, 1, 9, 0), 500.0, 200.0, "First visit")
    add_consultation(db, franchise, patient, team, datetime(2026, 6, 1, 17, 0), 300.0, 300.0)
    add_bill(db, franchise, patient, datetime(2026, 6, 1, 12, 0), 240.0, 40.0)
    add_consultation(db, franchise, patient, team, datetime(2026, 6, 3, 11, 0), 100.0)
    return first


def day_book(client, headers, **params):
    return client.get(f"{API}/reports/day-book", params=params, headers=headers)


# ============================================================================
# Day book
# ============================================================================

class TestDayBook:
    def test_rows_and_totals_for_a_day(self, client, franchise_headers, ledger):
        response = day_book(client, franchise_headers, start_date="2026-06-01", end_date="2026-06-01")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert [row["transaction_type"] for row in body["data"]] == [
            "CONSULTATION", "MEDICINE_BILL", "CONSULTATION",
        ]
        assert body["data"][0]["reference_number"] == f"APT-{ledger.id}"
        assert body["data"][0]["remarks"] == "First visit"
        assert body["data"][1]["reference_number"] == "M-01062026-0001"
        assert body["totals"] == {"total_amount": 1040.0, "received_amount": 540.0, "balance_amount": 500.0}

    def test_totals_cover_all_pages(self, client, franchise_headers, ledger):
        body = day_book(client, franchise_headers, perPage=1, page=2).json()

        assert len(body["data"]) == 1
        assert body["totalPages"] == 4
        assert body["totals"]["total_amount"] == 1140.0

    def test_transaction_type_filter(self, client, franchise_headers, ledger):
        body = day_book(client, franchise_headers, transaction_type="MEDICINE_BILL").json()

        assert body["total"] == 1
        assert body["data"][0]["id"].startswith("medicine_bill_")

    def test_sort_by_amount_desc(self, client, franchise_headers, ledger):
        body = day_book(client, franchise_headers, sort="total_amount", order="desc").json()

        assert [row["total_amount"] for row in body["data"]] == [500.0, 300.0, 240.0, 100.0]

    def test_search_on_reference(self, client, franchise_headers, ledger):
        body = day_book(client, franchise_headers, search="M-0106").json()

        assert body["total"] == 1

    def test_reversed_period(self, client, franchise_headers, ledger):
        response = day_book(client, franchise_headers, start_date="2026-06-05", end_date="2026-06-01")

        assert response.status_code == 400

    def test_doctor_sees_own_consultations_without_bills(
        self, client, db, franchise, patient, doctor_headers, ledger
    ):
        colleague = make_team(db, franchise, "colleague@test.com", name="Dr. Colleague")
        add_consultation(db, franchise, patient, colleague, datetime(2026, 6, 1, 10, 0), 900.0)

        body = day_book(client, doctor_headers).json()

        assert body["total"] == 3
        assert {row["transaction_type"] for row in body["data"]} == {"CONSULTATION"}

    def test_other_franchise_sees_nothing(self, client, other_franchise_headers, ledger):
        assert day_book(client, other_franchise_headers).json()["total"] == 0

    def test_admin_filters_by_franchise(self, client, admin_headers, franchise, other_franchise, ledger):
        assert day_book(client, admin_headers).json()["total"] == 4
        assert day_book(client, admin_headers, franchise_id=other_franchise.id).json()["total"] == 0

    def test_excel_export(self, client, franchise_headers, ledger):
        response = client.get(f"{API}/reports/day-book/export", headers=franchise_headers)

        assert response.status_code == 200
        assert response.content[:2] == b"PK"
        assert response.headers["content-disposition"].endswith('.xlsx"')

    def test_pdf_export(self, client, franchise_headers, ledger):
        response = client.get(
            f"{API}/reports/day-book/export", params={"format": "pdf"}, headers=franchise_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content[:4] == b"%PDF"


# ============================================================================
# Closing stock
# ============================================================================

class TestClosingStock:
    def test_closing_stock(self, client, db, franchise, franchise_headers, medicine):
        seed_franchise_batch(db, franchise, medicine, "B1", future(200), 12)

        response = client.get(
            f"{API}/reports/closing-stock",
            params={"franchise_id": franchise.id, "medicine_id": medicine.id},
            headers=franchise_headers,
        )

        assert response.status_code == 200
        assert response.json()["quantity"] == 12
        assert response.json()["message"] is None

    def test_no_stock_message(self, client, franchise, admin_headers, medicine):
        response = client.get(
            f"{API}/reports/closing-stock",
            params={"franchise_id": franchise.id, "medicine_id": medicine.id},
            headers=admin_headers,
        )

        assert response.json()["quantity"] == 0
        assert response.json()["message"] == "No stock found for this medicine"

    def test_other_franchise_is_forbidden(self, client, other_franchise, franchise_headers, medicine):
        response = client.get(
            f"{API}/reports/closing-stock",
            params={"franchise_id": other_franchise.id, "medicine_id": medicine.id},
            headers=franchise_headers,
        )

        assert response.status_code == 403

