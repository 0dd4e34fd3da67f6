import pytest
from fastapi.testclient import TestClient

from slot_booking.app import create_app
from slot_booking.config import Settings
from slot_booking.sample_data import build_sample_document
from slot_booking.storage import MemoryStore, StorageError


def _booking(**overrides):
    body = {
        "name": "Ana",
        "email": "ana@example.com",
        "mobile": "5550100",
        "treatment": "Checkup",
        "message": "First visit",
        "doctorName": "Dr. Garcia",
        "date": "2024-05-01",
        "selectedSlot": "10:00",
    }
    body.update(overrides)
    return body


class FailingSaveStore(MemoryStore):
    def save(self, document):
        raise StorageError("disk full")


@pytest.fixture
def store():
    return MemoryStore(build_sample_document())


@pytest.fixture
def client(store):
    """Create a FastAPI TestClient over an in-memory document."""
    return TestClient(create_app(Settings(), storage=store))


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to hsapi"}


def test_get_data_returns_whole_document(client):
    response = client.get("/get-data")
    assert response.status_code == 200
    assert response.json() == build_sample_document()


def test_book_appointment_contract(client):
    response = client.post("/book-appointment", json=_booking())
    assert response.status_code == 200
    assert response.json() == {"message": "Appointment booked with Dr. Garcia on 2024-05-01 at 10:00"}

    again = client.post("/book-appointment", json=_booking(name="Bob", email="bob@example.com"))
    assert again.status_code == 400
    assert again.json() == {"message": "Slot is already booked"}


@pytest.mark.parametrize("field", ["name", "email", "mobile", "treatment", "message", "doctorName", "date", "selectedSlot"])
def test_book_appointment_missing_field(client, store, field):
    body = _booking()
    del body[field]

    response = client.post("/book-appointment", json=body)

    assert response.status_code == 400
    assert response.json() == {"message": "All fields are required"}
    assert store.saves == 0


def test_book_appointment_unknown_doctor(client):
    response = client.post("/book-appointment", json=_booking(doctorName="Dr. Nobody"))
    assert response.status_code == 400
    assert response.json() == {"message": "Doctor or date not found"}


def test_join_waiting_list(client):
    body = _booking()
    del body["selectedSlot"]

    response = client.post("/join-waiting-list", json=body)
    assert response.status_code == 200
    assert response.json() == {"message": "Added to waiting list for Dr. Garcia on 2024-05-01"}

    others = client.get("/get-other-appointments").json()["otherAppointments"]
    assert others == [
        {
            "departmentName": "Cardiology",
            "doctorName": "Dr. Garcia",
            "date": "2024-05-01",
            "patientInfo": {
                "name": "Ana",
                "email": "ana@example.com",
                "mobile": "5550100",
                "treatment": "Checkup",
                "message": "First visit",
            },
        }
    ]


def test_join_waiting_list_errors(client):
    assert client.post("/join-waiting-list", json={"doctorName": "Dr. Garcia"}).status_code == 400
    response = client.post("/join-waiting-list", json=_booking(date="2031-01-01"))
    assert response.status_code == 400


def test_check_slot(client):
    query = {"doctorName": "Dr. Garcia", "date": "2024-05-01", "selectedSlot": "10:00"}

    assert client.post("/check-slot", json=query).json() == {"available": True, "message": "Slot is available"}

    client.post("/book-appointment", json=_booking())
    assert client.post("/check-slot", json=query).json() == {"available": False, "message": "Slot is already booked"}


def test_check_slot_not_found_and_missing_fields(client):
    missing = client.post("/check-slot", json={"doctorName": "Dr. X", "date": "2024-05-01", "selectedSlot": "10:00"})
    assert missing.status_code == 404
    assert missing.json() == {"message": "Doctor or date not found"}

    incomplete = client.post("/check-slot", json={"doctorName": "Dr. Garcia"})
    assert incomplete.status_code == 400
    assert incomplete.json() == {"message": "Doctor name, date, and slot are required"}


def test_available_slots_and_bookings(client):
    client.post("/book-appointment", json=_booking())

    available = client.get("/available-slots", params={"date": "2024-05-01"}).json()["availableSlots"]
    assert available == [
        {"departmentName": "Cardiology", "doctor": "Dr. Garcia", "date": "2024-05-01", "availableTimes": ["12:00"]}
    ]
    assert len(client.get("/available-slots").json()["availableSlots"]) == 5

    booked = client.get("/get-booked-appointments").json()["bookedAppointments"]
    assert [(b["doctorName"], b["timeSlot"]) for b in booked] == [("Dr. Garcia", "10:00")]


def test_doctors_views(client):
    client.post("/book-appointment", json=_booking())

    doctors = client.get("/get-doctors-list").json()
    assert [d["name"] for d in doctors] == ["Dr. Garcia", "Dr. Perez", "Dr. Ruiz"]
    assert set(doctors[0]) == {"name", "designation", "image", "availableSlots"}

    report = client.get("/doctors-slot").json()
    assert report[0]["slot"]["10:00"]["status"] == "booked"
    assert report[0]["slot"]["12:00"] == {"status": "available", "patientInfo": {}}


def test_check_user(client):
    assert client.post("/check-user", json={"email": "ana@example.com"}).json() == {"exists": False}
    client.post("/book-appointment", json=_booking())
    assert client.post("/check-user", json={"email": "ana@example.com"}).json() == {"exists": True}


def test_redacted_views(store):
    client = TestClient(create_app(Settings(redact_patient_info=True), storage=store))
    client.post("/book-appointment", json=_booking())

    booked = client.get("/get-booked-appointments").json()["bookedAppointments"]
    assert booked[0]["patientInfo"]["email"] == "***"
    # lookups still see the real address
    assert client.post("/check-user", json={"email": "ana@example.com"}).json() == {"exists": True}


def test_ambiguous_doctor_name_is_a_conflict():
    raw = build_sample_document()
    raw[1]["doctors"].append(dict(raw[0]["doctors"][0]))
    client = TestClient(create_app(Settings(), storage=MemoryStore(raw)))

    response = client.post("/book-appointment", json=_booking())

    assert response.status_code == 409


def test_storage_failure_is_reported(store):
    client = TestClient(create_app(Settings(), storage=FailingSaveStore(build_sample_document())))

    response = client.post("/book-appointment", json=_booking())

    assert response.status_code == 500
    assert "message" in response.json()


def test_numeric_fields_are_accepted_as_text(client, store):
    response = client.post("/book-appointment", json=_booking(mobile=5550100))

    assert response.status_code == 200
    assert store.raw[0]["doctors"][0]["slots"][0]["slot"]["10:00"]["patientInfo"]["mobile"] == "5550100"


def test_non_scalar_fields_get_the_required_fields_message(client, store):
    booking = client.post("/book-appointment", json=_booking(mobile=["5550100"]))
    assert booking.status_code == 400
    assert booking.json() == {"message": "All fields are required"}

    check = client.post("/check-slot", json={"doctorName": {"x": 1}, "date": "2024-05-01", "selectedSlot": "10:00"})
    assert check.status_code == 400
    assert check.json() == {"message": "Doctor name, date, and slot are required"}

    assert store.saves == 0
