"""
Master data: catalog, locations, packages and patient files.

Tests cover:
- Admin-only catalog maintenance, unique names, delete guards
- Package totals from service and medicine lines
- Patient numbering, BMI, medical history and reports
"""
from tests.conftest import API


# ============================================================================
# Catalog
# ============================================================================

class TestCatalog:
    def test_medicine_base_rate_defaults_from_gst(self, client, admin_headers, brand):
        response = client.post(
            f"{API}/medicines/",
            json={"name": "Belladonna 200", "brand_id": brand.id, "rate": 112.0, "mrp": 150.0, "gst_percent": 12.0},
            headers=admin_headers,
        )

        assert response.status_code == 201, response.text
        assert response.json()["base_rate"] == 100.0
        assert response.json()["brand_name"] == "Healwell"

    def test_duplicate_medicine_name(self, client, admin_headers, medicine):
        response = client.post(
            f"{API}/medicines/",
            json={"name": "Arnica 30", "rate": 10.0, "mrp": 12.0},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Medicine already exists"

    def test_unknown_brand(self, client, admin_headers):
        response = client.post(
            f"{API}/medicines/",
            json={"name": "Nux Vomica", "brand_id": 999, "rate": 10.0, "mrp": 12.0},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Brand not found"

    def test_brand_in_use_is_kept(self, client, admin_headers, brand, medicine):
        response = client.delete(f"{API}/brands/{brand.id}", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Brand is used by medicines and cannot be deleted"

    def test_franchise_reads_but_cannot_write(self, client, franchise_headers, medicine):
        listing = client.get(f"{API}/medicines/", headers=franchise_headers)
        created = client.post(
            f"{API}/services/", json={"name": "Dressing", "rate": 100.0}, headers=franchise_headers
        )

        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert created.status_code == 403

    def test_negative_price(self, client, admin_headers):
        response = client.post(
            f"{API}/medicines/", json={"name": "Nux Vomica", "rate": -1.0, "mrp": 12.0}, headers=admin_headers
        )

        assert response.status_code == 422


# ============================================================================
# Locations
# ============================================================================

class TestLocations:
    def test_state_with_cities_is_kept(self, client, admin_headers):
        state = client.post(f"{API}/states/", json={"name": "Maharashtra"}, headers=admin_headers).json()
        city = client.post(
            f"{API}/cities/", json={"name": "Pune", "state_id": state["id"]}, headers=admin_headers
        )

        response = client.delete(f"{API}/states/{state['id']}", headers=admin_headers)

        assert city.status_code == 201
        assert city.json()["state_name"] == "Maharashtra"
        assert response.status_code == 409
        assert response.json()["detail"] == "State has cities and cannot be deleted"

    def test_duplicate_city_in_state(self, client, admin_headers):
        state = client.post(f"{API}/states/", json={"name": "Goa"}, headers=admin_headers).json()
        client.post(f"{API}/cities/", json={"name": "Panaji", "state_id": state["id"]}, headers=admin_headers)

        response = client.post(
            f"{API}/cities/", json={"name": "Panaji", "state_id": state["id"]}, headers=admin_headers
        )

        assert response.status_code == 409


# ============================================================================
# Packages
# ============================================================================

class TestPackages:
    def test_total_applies_discount(self, client, admin_headers, medicine):
        service = client.post(
            f"{API}/services/", json={"name": "Consultation", "rate": 300.0}, headers=admin_headers
        ).json()

        response = client.post(
            f"{API}/packages/",
            json={
                "name": "Skin care 3 months",
                "discount_percent": 10.0,
                "duration": 90,
                "details": [{"service_id": service["id"], "qty": 2, "rate": 300.0}],
                "medicines": [{"medicine_id": medicine.id, "qty": 4, "rate": 50.0}],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201, response.text
        assert response.json()["total_amount"] == 720.0

    def test_unknown_medicine_line(self, client, admin_headers):
        response = client.post(
            f"{API}/packages/",
            json={"name": "Broken", "medicines": [{"medicine_id": 999, "qty": 1, "rate": 10.0}]},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Medicine not found"

    def test_replacing_lines_recomputes_total(self, client, admin_headers, medicine):
        package = client.post(
            f"{API}/packages/",
            json={"name": "Joint care", "medicines": [{"medicine_id": medicine.id, "qty": 2, "rate": 50.0}]},
            headers=admin_headers,
        ).json()

        response = client.put(
            f"{API}/packages/{package['id']}",
            json={"medicines": [{"medicine_id": medicine.id, "qty": 1, "rate": 50.0}]},
            headers=admin_headers,
        )

        assert response.json()["total_amount"] == 50.0
        assert len(response.json()["medicines"]) == 1


# ============================================================================
# Patients
# ============================================================================

class TestPatients:
    def patient_payload(self, **overrides):
        payload = {
            "first_name": "Ravi",
            "last_name": "Deshmukh",
            "gender": "MALE",
            "mobile": "9988776655",
            "height": 180.0,
            "weight": 81.0,
        }
        payload.update(overrides)
        return payload

    def test_create_numbers_patient_and_computes_bmi(self, client, franchise, franchise_headers):
        response = client.post(f"{API}/patients/", json=self.patient_payload(), headers=franchise_headers)

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["patient_no"].startswith("P-")
        assert body["franchise_id"] == franchise.id
        assert body["full_name"] == "Ravi Deshmukh"
        assert body["bmi"] == 25.0

    def test_admin_cannot_create_patient(self, client, admin_headers):
        response = client.post(f"{API}/patients/", json=self.patient_payload(), headers=admin_headers)

        assert response.status_code == 400

    def test_invalid_aadhaar(self, client, franchise_headers):
        response = client.post(
            f"{API}/patients/", json=self.patient_payload(aadhar_no="1234"), headers=franchise_headers
        )

        assert response.status_code == 422

    def test_listing_is_scoped(self, client, franchise_headers, patient, other_patient):
        listing = client.get(f"{API}/patients/", headers=franchise_headers).json()

        assert listing["total"] == 1
        assert listing["data"][0]["id"] == patient.id

    def test_other_franchise_patient_is_hidden(self, client, franchise_headers, other_patient):
        response = client.get(f"{API}/patients/{other_patient.id}", headers=franchise_headers)

        assert response.status_code == 404

    def test_medical_history_upsert(self, client, franchise_headers, patient):
        url = f"{API}/patients/{patient.id}/medical-history"
        assert client.get(url, headers=franchise_headers).json() is None

        client.put(url, json={"allergies": ["Penicillin"]}, headers=franchise_headers)
        response = client.put(url, json={"notes": "Seasonal asthma"}, headers=franchise_headers)

        assert response.status_code == 200
        assert response.json()["allergies"] == ["Penicillin"]
        assert response.json()["notes"] == "Seasonal asthma"

    def test_reports(self, client, db, franchise_headers, patient):
        url = f"{API}/patients/{patient.id}/reports"
        created = client.post(
            url, json={"name": "CBC", "url": f"{API}/uploads/documents/cbc.pdf"}, headers=franchise_headers
        ).json()

        assert [r["name"] for r in client.get(url, headers=franchise_headers).json()] == ["CBC"]

        response = client.delete(f"{url}/{created['id']}", headers=franchise_headers)
        assert response.status_code == 204
        assert client.get(url, headers=franchise_headers).json() == []

    def test_update_rejects_unknown_team(self, client, franchise_headers, patient):
        response = client.put(
            f"{API}/patients/{patient.id}", json={"team_id": 999}, headers=franchise_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Team not found"
