import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from hms.core.config import settings
from hms.core.security import UserRole
from hms.create_user import create_user
from hms.models.appointment import Appointment
from tests.conftest import auth_headers, make_doctor, make_patient


def schedule(client, doctor, patient_id, time="10:00", day="2024-05-15", reason="Checkup"):
    return client.post(
        "/api/v1/doctor/schedule-appointment",
        json={"patient_id": patient_id, "date": day, "time": time, "reason": reason},
        headers=auth_headers(doctor)
    )


class TestScheduleAppointment:

    def test_schedule_success(self, client, doctor, patient):
        response = schedule(client, doctor, patient.id)
        assert response.status_code == 201
        
        data = response.json()
        assert data["message"] == "Appointment scheduled successfully"
        assert data["appointment"]["doctor_id"] == doctor.id
        assert data["appointment"]["patient_id"] == patient.id
        assert data["appointment"]["date"] == "2024-05-15"
        assert data["appointment"]["time"] == "10:00"
        assert data["appointment"]["reason"] == "Checkup"
        assert "id" in data["appointment"]

    def test_booked_slot_disappears_from_availability(self, client, doctor, patient):
        schedule(client, doctor, patient.id, time="14:00")
        
        response = client.get(
            "/api/v1/doctor/available-slots",
            params={"date": "2024-05-15"},
            headers=auth_headers(doctor)
        )
        assert "14:00" not in response.json()
        assert len(response.json()) == 5

    def test_slot_already_booked(self, client, db, doctor, patient):
        assert schedule(client, doctor, patient.id).status_code == 201
        
        response = schedule(client, doctor, patient.id)
        assert response.status_code == 409
        assert response.json()["error"] == "SlotAlreadyBooked"
        assert db.query(Appointment).count() == 1

    def test_invalid_slot(self, client, db, doctor, patient):
        response = schedule(client, doctor, patient.id, time="13:00")
        assert response.status_code == 400
        
        body = response.json()
        assert body["error"] == "InvalidSlot"
        assert "13:00" in body["message"]
        assert db.query(Appointment).count() == 0

    def test_missing_required_field(self, client, doctor, patient):
        response = client.post(
            "/api/v1/doctor/schedule-appointment",
            json={"patient_id": patient.id, "date": "2024-05-15"},
            headers=auth_headers(doctor)
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "ValidationError"
        assert "time" in body["message"]

    def test_client_cannot_choose_doctor(self, client, db, doctor, patient):
        other = make_doctor(db, email="cuddy@hospital.org", first_name="Lisa", last_name="Cuddy")
        response = client.post(
            "/api/v1/doctor/schedule-appointment",
            json={
                "patient_id": patient.id, "date": "2024-05-15",
                "time": "10:00", "doctor_id": other.id
            },
            headers=auth_headers(doctor)
        )
        assert response.status_code == 422
        assert db.query(Appointment).count() == 0

    def test_unknown_patient(self, client, doctor):
        response = schedule(client, doctor, 9999)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_unauthenticated(self, client, patient):
        response = client.post(
            "/api/v1/doctor/schedule-appointment",
            json={"patient_id": patient.id, "date": "2024-05-15", "time": "10:00"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthenticated"

    def test_persistence_failure_is_generic_server_error(self, client, db, doctor, patient, monkeypatch):
        headers = auth_headers(doctor)
        patient_id = patient.id

        def failing_commit(session):
            raise OperationalError("INSERT INTO appointments", {}, Exception("connection lost"))

        monkeypatch.setattr(Session, "commit", failing_commit)
        response = client.post(
            "/api/v1/doctor/schedule-appointment",
            json={"patient_id": patient_id, "date": "2024-05-15", "time": "10:00"},
            headers=headers
        )
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
        assert db.query(Appointment).count() == 0

    def test_rate_limited(self, client, doctor, patient, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_REQUESTS", 2)
        
        assert schedule(client, doctor, patient.id, time="09:00").status_code == 201
        assert schedule(client, doctor, patient.id, time="10:00").status_code == 201
        
        response = schedule(client, doctor, patient.id, time="11:00")
        assert response.status_code == 429
        assert response.json()["error"] == "RateLimited"


class TestAppointmentsAndPatients:

    def test_list_appointments(self, client, doctor, patient):
        schedule(client, doctor, patient.id, time="15:00", day="2024-05-16")
        schedule(client, doctor, patient.id, time="11:00", day="2024-05-15")
        schedule(client, doctor, patient.id, time="09:00", day="2024-05-15")
        
        response = client.get("/api/v1/doctor/appointments", headers=auth_headers(doctor))
        assert response.status_code == 200
        assert [(a["date"], a["time"]) for a in response.json()] == [
            ("2024-05-15", "09:00"),
            ("2024-05-15", "11:00"),
            ("2024-05-16", "15:00"),
        ]
        
        response = client.get(
            "/api/v1/doctor/appointments",
            params={"date": "2024-05-16"},
            headers=auth_headers(doctor)
        )
        assert len(response.json()) == 1

    def test_patients_with_appointments(self, client, db, doctor, patient):
        other_patient = make_patient(db, email="alice@hospital.org", first_name="Alice", last_name="Johnson")
        make_patient(db, email="bob@hospital.org", first_name="Bob", last_name="Williams")
        other_doctor = make_doctor(db, email="cuddy@hospital.org", first_name="Lisa", last_name="Cuddy")
        
        schedule(client, doctor, patient.id, time="09:00")
        schedule(client, doctor, patient.id, time="10:00")
        schedule(client, other_doctor, other_patient.id, time="09:00")
        
        response = client.get(
            "/api/v1/doctor/patients-with-appointments",
            headers=auth_headers(doctor)
        )
        assert response.status_code == 200
        
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == patient.id
        assert data[0]["first_name"] == "John"
        assert "password_hash" not in data[0]

    def test_patient_with_reserved_domain_email(self, client, db, doctor):
        walk_in = create_user(
            db, email="walkin@clinic.local", password="Password123",
            role=UserRole.PATIENT, first_name="Walk", last_name="In"
        )
        schedule(client, doctor, walk_in.id, time="09:00")

        response = client.get(
            "/api/v1/doctor/patients-with-appointments",
            headers=auth_headers(doctor)
        )
        assert response.status_code == 200
        assert response.json()[0]["email"] == "walkin@clinic.local"

    def test_no_patients(self, client, doctor):
        response = client.get(
            "/api/v1/doctor/patients-with-appointments",
            headers=auth_headers(doctor)
        )
        assert response.json() == []


class TestProfile:

    def test_get_profile(self, client, doctor):
        response = client.get("/api/v1/doctor/profile", headers=auth_headers(doctor))
        assert response.status_code == 200
        
        data = response.json()
        assert data["email"] == "house@hospital.org"
        assert data["first_name"] == "Gregory"
        assert data["specialty"] == "Diagnostics"
        assert "password" not in data
        assert "password_hash" not in data

    def test_profile_of_seeded_doctor_with_reserved_domain(self, client, db):
        seeded = create_user(
            db, email="admin@hospital.local", password="Secret123",
            role=UserRole.DOCTOR, first_name="Meet", last_name="Patel"
        )

        response = client.get("/api/v1/doctor/profile", headers=auth_headers(seeded))
        assert response.status_code == 200
        assert response.json()["email"] == "admin@hospital.local"

    def test_profile_of_missing_doctor(self, client):
        response = client.get("/api/v1/doctor/profile", headers=auth_headers(4242))
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_update_profile(self, client, doctor):
        update = {
            "first_name": "Greg",
            "last_name": "House",
            "email": "g.house@hospital.org",
            "specialty": "Nephrology",
            "license_number": "PPTH-001",
            "phone_number": "555-0100"
        }
        response = client.put("/api/v1/doctor/profile", json=update, headers=auth_headers(doctor))
        assert response.status_code == 200
        
        data = response.json()
        assert data["first_name"] == "Greg"
        assert data["email"] == "g.house@hospital.org"
        assert data["license_number"] == "PPTH-001"
        assert "password_hash" not in data
        
        response = client.get("/api/v1/doctor/profile", headers=auth_headers(doctor))
        assert response.json()["specialty"] == "Nephrology"

    def test_update_profile_email_taken(self, client, db, doctor):
        make_doctor(db, email="cuddy@hospital.org", first_name="Lisa", last_name="Cuddy")
        update = {"first_name": "Gregory", "last_name": "House", "email": "cuddy@hospital.org"}
        
        response = client.put("/api/v1/doctor/profile", json=update, headers=auth_headers(doctor))
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_update_profile_invalid_email(self, client, doctor):
        update = {"first_name": "Gregory", "last_name": "House", "email": "not-an-email"}
        response = client.put("/api/v1/doctor/profile", json=update, headers=auth_headers(doctor))
        assert response.status_code == 422

    def test_list_doctors_is_public(self, client, db, doctor):
        make_doctor(db, email="cuddy@hospital.org", first_name="Lisa", last_name="Cuddy", specialty="Endocrinology")
        
        response = client.get("/api/v1/doctor/all")
        assert response.status_code == 200
        assert [d["last_name"] for d in response.json()] == ["Cuddy", "House"]
        assert set(response.json()[0]) == {"id", "first_name", "last_name", "specialty"}


class TestPrescriptions:

    prescription = {"medication": "Vicodin", "dosage": "5mg", "frequency": "Twice daily"}

    def create(self, client, doctor, patient_id):
        return client.post(
            "/api/v1/doctor/prescriptions",
            json={"patient_id": patient_id, **self.prescription},
            headers=auth_headers(doctor)
        )

    def test_create_and_list(self, client, doctor, patient):
        response = self.create(client, doctor, patient.id)
        assert response.status_code == 201
        assert response.json()["message"] == "Medication prescribed successfully"
        assert response.json()["prescription"]["medication"] == "Vicodin"
        
        response = client.get("/api/v1/doctor/prescriptions", headers=auth_headers(doctor))
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_get_update_delete(self, client, doctor, patient):
        prescription_id = self.create(client, doctor, patient.id).json()["prescription"]["id"]
        url = f"/api/v1/doctor/prescriptions/{prescription_id}"
        
        response = client.get(url, headers=auth_headers(doctor))
        assert response.status_code == 200
        assert response.json()["dosage"] == "5mg"
        
        response = client.put(
            url,
            json={"medication": "Ibuprofen", "dosage": "400mg", "frequency": "As needed"},
            headers=auth_headers(doctor)
        )
        assert response.status_code == 200
        assert response.json()["medication"] == "Ibuprofen"
        
        response = client.delete(url, headers=auth_headers(doctor))
        assert response.status_code == 200
        assert response.json()["message"] == "Prescription deleted successfully"
        
        assert client.get(url, headers=auth_headers(doctor)).status_code == 404

    def test_scoped_to_author(self, client, db, doctor, patient):
        other = make_doctor(db, email="cuddy@hospital.org", first_name="Lisa", last_name="Cuddy")
        prescription_id = self.create(client, doctor, patient.id).json()["prescription"]["id"]
        url = f"/api/v1/doctor/prescriptions/{prescription_id}"
        
        assert client.get("/api/v1/doctor/prescriptions", headers=auth_headers(other)).json() == []
        assert client.get(url, headers=auth_headers(other)).status_code == 404
        assert client.put(
            url, json=self.prescription, headers=auth_headers(other)
        ).status_code == 404
        assert client.delete(url, headers=auth_headers(other)).status_code == 404
        
        # Still intact for the author
        assert client.get(url, headers=auth_headers(doctor)).status_code == 200

    def test_unknown_patient(self, client, doctor):
        response = self.create(client, doctor, 9999)
        assert response.status_code == 404


class TestApplication:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["slots"] == ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"]
        assert "X-Process-Time" in response.headers

    def test_request_log_uses_lazy_arguments(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="hms.main"):
            client.get("/health")

        records = [r for r in caplog.records if r.name == "hms.main" and r.args]
        assert records
        assert records[-1].msg == "%s %s - Status: %s - Time: %.4fs"
        assert records[-1].args[:3] == ("GET", "/health", 200)

    def test_informational_routes_removed(self, client):
        assert client.get("/").status_code == 404
        assert client.get("/api/v1/info").status_code == 404

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"
        assert response.json()["path"] == "/api/v1/nowhere"
