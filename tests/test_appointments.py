"""
Appointments and their consultations.

Tests cover:
- Booking for an existing patient or a new one, reuse by mobile
- Franchise and team boundaries on booking and updates
- Doctors limited to their own team's appointments
- One consultation per appointment, receipts and totals
"""
from datetime import datetime

import pytest

from app.models.patient import Patient
from tests.conftest import API, auth_headers, cash_receipt, make_team


WHEN = datetime(2026, 6, 15, 10, 30).isoformat()


def new_patient(mobile="9123456780"):
    return {
        "first_name": "Meera",
        "last_name": "Joshi",
        "age": 29,
        "gender": "FEMALE",
        "mobile": mobile,
    }


def book(client, headers, team, patient_id=None, patient=None):
    payload = {"appointment_date_time": WHEN, "team_id": team.id, "visit_purpose": "Follow-up"}
    if patient_id is not None:
        payload["patient_id"] = patient_id
    if patient is not None:
        payload["patient"] = patient
    return client.post(f"{API}/appointments/", json=payload, headers=headers)


@pytest.fixture
def appointment(client, franchise_headers, team, patient):
    response = book(client, franchise_headers, team, patient_id=patient.id)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# Booking
# ============================================================================

class TestBooking:
    def test_book_existing_patient(self, appointment, patient, team):
        assert appointment["patient_id"] == patient.id
        assert appointment["team_id"] == team.id
        assert appointment["type"] == "CONSULTATION"
        assert appointment["consultation_id"] is None

    def test_book_new_patient_creates_file(self, client, db, franchise_headers, team):
        response = book(client, franchise_headers, team, patient=new_patient())

        assert response.status_code == 201
        db.expire_all()
        created = db.query(Patient).filter(Patient.mobile == "9123456780").one()
        assert created.patient_no.startswith("P-")
        assert created.team_id == team.id

    def test_same_mobile_reuses_patient(self, client, db, franchise_headers, team):
        first = book(client, franchise_headers, team, patient=new_patient()).json()
        second = book(client, franchise_headers, team, patient=new_patient()).json()

        assert first["patient_id"] == second["patient_id"]
        assert db.query(Patient).count() == 1

    def test_patient_id_and_details_are_exclusive(self, client, franchise_headers, team, patient):
        both = book(client, franchise_headers, team, patient_id=patient.id, patient=new_patient())
        neither = book(client, franchise_headers, team)

        assert both.status_code == 400
        assert neither.status_code == 400
        assert both.json()["detail"] == "Provide either patient_id or patient details"

    def test_invalid_mobile(self, client, franchise_headers, team):
        response = book(client, franchise_headers, team, patient=new_patient(mobile="12345"))

        assert response.status_code == 422

    def test_patient_of_other_franchise(self, client, franchise_headers, team, other_patient):
        response = book(client, franchise_headers, team, patient_id=other_patient.id)

        assert response.status_code == 404
        assert response.json()["detail"] == "Patient not found"

    def test_team_of_other_franchise(self, client, db, franchise_headers, other_franchise, patient):
        foreign_team = make_team(db, other_franchise, "foreign-doc@test.com")

        response = book(client, franchise_headers, foreign_team, patient_id=patient.id)

        assert response.status_code == 404
        assert response.json()["detail"] == "Team not found"

    def test_move_to_team_of_other_franchise(self, client, db, franchise_headers, other_franchise, appointment):
        foreign_team = make_team(db, other_franchise, "foreign-doc@test.com")

        response = client.put(
            f"{API}/appointments/{appointment['id']}",
            json={"team_id": foreign_team.id},
            headers=franchise_headers,
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Team does not belong to your franchise"

    def test_empty_update(self, client, franchise_headers, appointment):
        response = client.put(f"{API}/appointments/{appointment['id']}", json={}, headers=franchise_headers)

        assert response.status_code == 400


# ============================================================================
# Doctor visibility
# ============================================================================

class TestDoctorScope:
    def test_doctor_sees_own_appointments(self, client, doctor_headers, appointment):
        listing = client.get(f"{API}/appointments/", headers=doctor_headers).json()

        assert listing["total"] == 1
        assert listing["data"][0]["id"] == appointment["id"]

    def test_doctor_cannot_open_colleague_appointment(
        self, client, db, franchise, franchise_headers, patient, doctor_headers
    ):
        colleague = make_team(db, franchise, "colleague@test.com", name="Dr. Colleague")
        other = book(client, franchise_headers, colleague, patient_id=patient.id).json()

        response = client.get(f"{API}/appointments/{other['id']}", headers=doctor_headers)

        assert response.status_code == 404

    def test_other_franchise_cannot_open_appointment(self, client, other_franchise_headers, appointment):
        response = client.get(f"{API}/appointments/{appointment['id']}", headers=other_franchise_headers)

        assert response.status_code == 404


# ============================================================================
# Consultations
# ============================================================================

class TestConsultations:
    def payload(self, appointment, **extra):
        return {
            "appointment_id": appointment["id"],
            "complaint": "Headache",
            "diagnosis": "Migraine",
            "total_amount": 500.0,
            "details": [{"description": "Consultation fee", "qty": 1, "rate": 500.0}],
            **extra,
        }

    def test_create_consultation_with_receipt(self, client, doctor_headers, appointment):
        response = client.post(
            f"{API}/consultations/",
            json=self.payload(appointment, receipt=cash_receipt(200.0)),
            headers=doctor_headers,
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["details"][0]["amount"] == 500.0
        assert body["total_received_amount"] == 200.0
        assert body["balance_amount"] == 300.0
        assert body["receipts"][0]["receipt_number"].startswith("R-")

    def test_one_consultation_per_appointment(self, client, franchise_headers, appointment):
        client.post(f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers)

        response = client.post(f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Consultation already exists for this appointment"

    def test_total_cannot_drop_below_received(self, client, franchise_headers, appointment):
        consultation = client.post(
            f"{API}/consultations/",
            json=self.payload(appointment, receipt=cash_receipt(200.0)),
            headers=franchise_headers,
        ).json()

        response = client.put(
            f"{API}/consultations/{consultation['id']}",
            json={"total_amount": 150.0},
            headers=franchise_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Total amount cannot be less than the received amount"

    def test_admin_cannot_edit_consultation(self, client, franchise_headers, admin_headers, appointment):
        consultation = client.post(
            f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers
        ).json()

        response = client.put(
            f"{API}/consultations/{consultation['id']}",
            json={"remarks": "Reviewed"},
            headers=admin_headers,
        )

        assert response.status_code == 403

    def test_receipt_after_consultation(self, client, franchise_headers, appointment):
        consultation = client.post(
            f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers
        ).json()

        over = client.post(
            f"{API}/consultation-receipts/",
            json={**cash_receipt(600.0), "consultation_id": consultation["id"]},
            headers=franchise_headers,
        )
        paid = client.post(
            f"{API}/consultation-receipts/",
            json={**cash_receipt(500.0), "consultation_id": consultation["id"]},
            headers=franchise_headers,
        )

        assert over.status_code == 400
        assert paid.status_code == 201
        refreshed = client.get(f"{API}/consultations/{consultation['id']}", headers=franchise_headers).json()
        assert refreshed["balance_amount"] == 0.0

    def test_appointment_with_consultation_cannot_be_deleted(self, client, franchise_headers, appointment):
        client.post(f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers)

        response = client.delete(f"{API}/appointments/{appointment['id']}", headers=franchise_headers)

        assert response.status_code == 409

    def test_appointment_without_consultation_is_deleted(self, client, franchise_headers, appointment):
        response = client.delete(f"{API}/appointments/{appointment['id']}", headers=franchise_headers)

        assert response.status_code == 204

    def test_colleague_doctor_cannot_see_consultation(self, client, db, franchise, franchise_headers, appointment):
        consultation = client.post(
            f"{API}/consultations/", json=self.payload(appointment), headers=franchise_headers
        ).json()
        colleague = make_team(db, franchise, "colleague@test.com", name="Dr. Colleague")

        response = client.get(f"{API}/consultations/{consultation['id']}", headers=auth_headers(colleague.user))

        assert response.status_code == 404
