"""
Franchises, their fees and their teams.

Tests cover:
- Franchise creation with its login account, unique name
- Fee payments: payment mode rules, remaining balance, fully paid
- Team members created by the franchise, deletion rules
"""
from datetime import date

import pytest

from app.models.user import User, UserRole
from tests.conftest import API, PASSWORD


def franchise_payload(**overrides):
    payload = {
        "name": "Nashik Road",
        "city": "Nashik",
        "state": "Maharashtra",
        "pincode": "422101",
        "contact_no": "9000000003",
        "contact_email": "nashik@test.com",
        "franchise_fee_amount": 1000.0,
        "user_name": "Nashik Owner",
        "user_email": "nashik-owner@test.com",
        "user_mobile": "9000000004",
        "password": "secret12",
    }
    payload.update(overrides)
    return payload


def payment(amount, mode="CASH", **extra):
    payload = {
        "payment_date": date(2026, 6, 1).isoformat(),
        "amount": amount,
        "payment_mode": mode,
        "payer_name": "Nashik Owner",
    }
    if mode == "CASH":
        payload["contact_number"] = "9000000004"
    payload.update(extra)
    return payload


# ============================================================================
# Franchises
# ============================================================================

class TestFranchises:
    def test_create_franchise_with_account(self, client, db, admin_headers):
        response = client.post(f"{API}/franchises/", json=franchise_payload(), headers=admin_headers)

        assert response.status_code == 201, response.text
        user = db.query(User).filter(User.email == "nashik-owner@test.com").one()
        assert user.role == UserRole.FRANCHISE

        login = client.post(f"{API}/auth/login", json={"email": "nashik-owner@test.com", "password": "secret12"})
        assert login.status_code == 200
        assert login.json()["user"]["franchise_id"] == response.json()["id"]

    def test_name_is_unique_ignoring_case(self, client, admin_headers, franchise):
        response = client.post(
            f"{API}/franchises/", json=franchise_payload(name="pune central"), headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Franchise name already exists"

    def test_invalid_pincode(self, client, admin_headers):
        response = client.post(f"{API}/franchises/", json=franchise_payload(pincode="42"), headers=admin_headers)

        assert response.status_code == 422

    def test_franchise_cannot_manage_franchises(self, client, franchise_headers):
        assert client.get(f"{API}/franchises/", headers=franchise_headers).status_code == 403

    def test_delete_removes_accounts(self, client, db, admin_headers, franchise, team):
        user_ids = [franchise.user_id, team.user_id]

        response = client.delete(f"{API}/franchises/{franchise.id}", headers=admin_headers)

        assert response.status_code == 204
        db.expire_all()
        assert db.query(User).filter(User.id.in_(user_ids)).count() == 0


# ============================================================================
# Fees
# ============================================================================

class TestFranchiseFees:
    @pytest.fixture
    def franchise_id(self, client, admin_headers):
        return client.post(f"{API}/franchises/", json=franchise_payload(), headers=admin_headers).json()["id"]

    def pay(self, client, headers, franchise_id, body):
        return client.post(f"{API}/franchises/{franchise_id}/fees", json=body, headers=headers)

    def test_payment_reduces_balance(self, client, admin_headers, franchise_id):
        response = self.pay(client, admin_headers, franchise_id, payment(400.0))

        assert response.status_code == 201
        summary = client.get(f"{API}/franchises/{franchise_id}/fees", headers=admin_headers).json()
        assert summary["total_received"] == 400.0
        assert summary["balance"] == 600.0
        assert len(summary["payments"]) == 1

    def test_payment_above_balance(self, client, admin_headers, franchise_id):
        self.pay(client, admin_headers, franchise_id, payment(400.0))

        response = self.pay(client, admin_headers, franchise_id, payment(700.0))

        assert response.status_code == 409
        assert response.json()["detail"] == "Payment exceeds remaining balance (600.00)"

    def test_fully_paid(self, client, admin_headers, franchise_id):
        self.pay(client, admin_headers, franchise_id, payment(1000.0))

        response = self.pay(client, admin_headers, franchise_id, payment(1.0))

        assert response.status_code == 409
        assert response.json()["detail"] == "Franchise fee already fully paid"

    @pytest.mark.parametrize(
        "body",
        [
            payment(0.0),
            payment(100.0, mode="UPI"),
            payment(100.0, mode="CHEQUE", cheque_number="000123"),
            payment(100.0, payer_name="  "),
            {**payment(100.0), "contact_number": None},
        ],
        ids=["zero-amount", "upi-without-utr", "cheque-without-date", "blank-payer", "cash-without-contact"],
    )
    def test_invalid_payment_payloads(self, client, admin_headers, franchise_id, body):
        assert self.pay(client, admin_headers, franchise_id, body).status_code == 422

    def test_upi_with_utr(self, client, admin_headers, franchise_id):
        response = self.pay(client, admin_headers, franchise_id, payment(100.0, mode="UPI", utr_number="UTR123"))

        assert response.status_code == 201
        assert response.json()["payment_mode"] == "UPI"


# ============================================================================
# Teams
# ============================================================================

class TestTeams:
    def team_payload(self, **overrides):
        payload = {"name": "Dr. Kale", "email": "kale@test.com", "password": "secret123", "pincode": "411002"}
        payload.update(overrides)
        return payload

    def test_franchise_creates_doctor(self, client, franchise, franchise_headers):
        response = client.post(f"{API}/teams/", json=self.team_payload(), headers=franchise_headers)

        assert response.status_code == 201, response.text
        assert response.json()["franchise_id"] == franchise.id

        login = client.post(f"{API}/auth/login", json={"email": "kale@test.com", "password": "secret123"})
        assert login.json()["user"]["role"] == "doctor"
        assert login.json()["user"]["franchise_id"] == franchise.id

    def test_admin_cannot_create_team(self, client, admin_headers):
        response = client.post(f"{API}/teams/", json=self.team_payload(), headers=admin_headers)

        assert response.status_code == 403

    def test_email_taken(self, client, franchise_headers, franchise_user):
        response = client.post(
            f"{API}/teams/", json=self.team_payload(email=franchise_user.email), headers=franchise_headers
        )

        assert response.status_code == 409

    def test_other_franchise_cannot_edit_team(self, client, team, other_franchise_headers):
        response = client.put(f"{API}/teams/{team.id}", json={"name": "Renamed"}, headers=other_franchise_headers)

        assert response.status_code == 404

    def test_team_with_appointments_is_kept(self, client, franchise_headers, team, patient):
        client.post(
            f"{API}/appointments/",
            json={"patient_id": patient.id, "team_id": team.id, "appointment_date_time": "2026-06-01T10:00:00"},
            headers=franchise_headers,
        )

        response = client.delete(f"{API}/teams/{team.id}", headers=franchise_headers)

        assert response.status_code == 409

    def test_delete_team_removes_login(self, client, db, franchise_headers, team):
        user_id = team.user_id

        response = client.delete(f"{API}/teams/{team.id}", headers=franchise_headers)

        assert response.status_code == 204
        db.expire_all()
        assert db.query(User).filter(User.id == user_id).first() is None
        assert client.post(f"{API}/auth/login", json={"email": "doctor@test.com", "password": PASSWORD}).status_code == 401
