"""FastAPI server for doctor slot booking and waiting lists."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from slot_booking import projections
from slot_booking.availability import AvailabilityStore, Outcome, TransitionState
from slot_booking.config import Settings, load_settings
from slot_booking.models import PATIENT_FIELDS
from slot_booking.storage import DocumentStore, JsonFileStore, StorageError

logger = logging.getLogger(__name__)


class PatientRequest(BaseModel):
    # Fields stay optional so that a missing one is reported as
    # "All fields are required" instead of a schema error.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str | None = None
    email: str | None = None
    mobile: str | None = None
    treatment: str | None = None
    message: str | None = None
    doctorName: str | None = None
    date: str | None = None

    def patient_info(self) -> dict[str, str | None]:
        return {field: getattr(self, field) for field in PATIENT_FIELDS}


class BookingRequest(PatientRequest):
    selectedSlot: str | None = None


class SlotQuery(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    doctorName: str | None = None
    date: str | None = None
    selectedSlot: str | None = None


class UserQuery(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: str | None = None


# Bodies that still fail schema validation (lists, objects, malformed JSON).
_INVALID_BODY_MESSAGES = {
    "/check-slot": "Doctor name, date, and slot are required",
}

_FAILURE_STATUS = {
    Outcome.INVALID: 400,
    Outcome.NOT_FOUND: 400,
    Outcome.SLOT_MISSING: 400,
    Outcome.ALREADY_BOOKED: 400,
    Outcome.AMBIGUOUS: 409,
}


def _transition_response(result: TransitionState) -> JSONResponse:
    status_code = 200 if result.ok else _FAILURE_STATUS[result.outcome]
    return JSONResponse(status_code=status_code, content={"message": result.message})


def create_app(settings: Settings | None = None, storage: DocumentStore | None = None) -> FastAPI:
    """Build the API around one :class:`AvailabilityStore`."""
    settings = settings or load_settings()
    availability = AvailabilityStore(
        storage or JsonFileStore(settings.data_file),
        strict_lookup=settings.strict_lookup,
    )
    redact = settings.redact_patient_info

    app = FastAPI(title="Doctor Slot Booking")
    app.state.availability = availability
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s (%s)", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"message": "Storage failure, request was not completed"})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _INVALID_BODY_MESSAGES.get(request.url.path, "All fields are required")
        return JSONResponse(status_code=400, content={"message": message})

    @app.get("/")
    async def root():
        """Root endpoint providing basic API information."""
        return {"message": "Welcome to hsapi"}

    @app.get("/get-data")
    async def get_data():
        """Return the whole stored document."""
        return projections.raw_document(await availability.snapshot(), redact=redact)

    @app.post("/book-appointment")
    async def book_appointment(body: BookingRequest):
        """Book a vacant time slot for a patient."""
        result = await availability.book(body.doctorName, body.date, body.selectedSlot, body.patient_info())
        return _transition_response(result)

    @app.post("/join-waiting-list")
    async def join_waiting_list(body: PatientRequest):
        """Add a patient to a doctor's waiting list for a date."""
        result = await availability.join_waitlist(body.doctorName, body.date, body.patient_info())
        return _transition_response(result)

    @app.post("/check-slot")
    async def check_slot(body: SlotQuery):
        """Report whether a time slot is still vacant."""
        result = await availability.check_slot(body.doctorName, body.date, body.selectedSlot)
        if result.outcome is Outcome.INVALID:
            return JSONResponse(status_code=400, content={"message": result.message})
        if result.outcome is Outcome.NOT_FOUND:
            return JSONResponse(status_code=404, content={"message": result.message})
        if result.outcome is Outcome.AMBIGUOUS:
            return JSONResponse(status_code=409, content={"message": result.message})
        return {"available": result.available, "message": result.message}

    @app.get("/available-slots")
    async def available_slots(date: str | None = None):
        """List vacant times per doctor and date, optionally for one date."""
        return {"availableSlots": projections.available_slots(await availability.snapshot(), date)}

    @app.get("/get-booked-appointments")
    async def get_booked_appointments():
        """List every booked time slot with its patient."""
        document = await availability.snapshot()
        return {"bookedAppointments": projections.booked_appointments(document, redact=redact)}

    @app.get("/get-other-appointments")
    async def get_other_appointments():
        """List every waiting-list entry."""
        document = await availability.snapshot()
        return {"otherAppointments": projections.other_appointments(document, redact=redact)}

    @app.get("/get-doctors-list")
    async def get_doctors_list():
        """List doctors with their full slot tree."""
        return projections.doctors_list(await availability.snapshot(), redact=redact)

    @app.get("/doctors-slot")
    async def doctors_slot():
        """Report the status of every time slot per doctor and date."""
        return projections.doctors_slot_report(await availability.snapshot(), redact=redact)

    @app.post("/check-user")
    async def check_user(body: UserQuery):
        """Tell whether an email has a booking or a waiting-list entry."""
        return {"exists": projections.user_exists(await availability.snapshot(), body.email)}

    return app


app = create_app()
