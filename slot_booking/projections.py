"""Read-only views over an availability document.

All functions are pure: they take a loaded :class:`Document` and build plain
JSON-ready structures. Traversal follows document order (department, doctor,
date), and time labels keep their stored key order.

Views that carry patient details accept ``redact``; when set, contact fields
are masked before they leave the process.
"""

from __future__ import annotations

from typing import Any

from slot_booking.models import Document
from slot_booking.slots import iter_days, iter_doctors, status_of

REDACTED_FIELDS = frozenset({"email", "mobile"})
REDACTED_VALUE = "***"


def redact_patient(info: dict[str, Any] | None) -> dict[str, Any]:
    return {k: (REDACTED_VALUE if k in REDACTED_FIELDS else v) for k, v in (info or {}).items()}


def _patient_view(info: dict[str, Any] | None, redact: bool) -> dict[str, Any]:
    return redact_patient(info) if redact else dict(info or {})


def _redact_days(days: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for day in days:
        for time_slot in (day.get("slot") or {}).values():
            time_slot["patientInfo"] = redact_patient(time_slot.get("patientInfo"))
        for entry in (day.get("others") or {}).get("other-patients") or []:
            entry["patientInfo"] = redact_patient(entry.get("patientInfo"))
    return days


def raw_document(document: Document, *, redact: bool = False) -> list[dict[str, Any]]:
    """The whole document in its storage form."""
    raw = document.dump()
    if redact:
        for department in raw:
            for doctor in department.get("doctors", []):
                _redact_days(doctor.get("slots", []))
    return raw


def available_slots(document: Document, date: str | None = None) -> list[dict[str, Any]]:
    """Vacant time labels per (department, doctor, date), skipping full days."""
    result = []
    for department, doctor, day in iter_days(document):
        if date and day.date != date:
            continue
        vacant = day.vacant_labels()
        if vacant:
            result.append(
                {
                    "departmentName": department.department_name,
                    "doctor": doctor.name,
                    "date": day.date,
                    "availableTimes": vacant,
                }
            )
    return result


def booked_appointments(document: Document, *, redact: bool = False) -> list[dict[str, Any]]:
    result = []
    for department, doctor, day in iter_days(document):
        for label in day.booked_labels():
            result.append(
                {
                    "departmentName": department.department_name,
                    "doctorName": doctor.name,
                    "date": day.date,
                    "timeSlot": label,
                    "patientInfo": _patient_view(day.slot[label].patient, redact),
                }
            )
    return result


def other_appointments(document: Document, *, redact: bool = False) -> list[dict[str, Any]]:
    """Waiting-list entries flattened across every doctor's day."""
    result = []
    for department, doctor, day in iter_days(document):
        for entry in day.waiting_entries():
            if not entry.patient:
                continue
            result.append(
                {
                    "departmentName": department.department_name,
                    "doctorName": doctor.name,
                    "date": day.date,
                    "patientInfo": _patient_view(entry.patient, redact),
                }
            )
    return result


def doctors_list(document: Document, *, redact: bool = False) -> list[dict[str, Any]]:
    """Directory of doctors with their full, unfiltered slot tree."""
    result = []
    for _, doctor in iter_doctors(document):
        days = [day.model_dump(by_alias=True, mode="json", exclude_unset=True) for day in doctor.slots]
        result.append(
            {
                "name": doctor.name,
                "designation": doctor.designation,
                "image": doctor.image,
                "availableSlots": _redact_days(days) if redact else days,
            }
        )
    return result


def doctors_slot_report(document: Document, *, redact: bool = False) -> list[dict[str, Any]]:
    """Per doctor and date: the status of every time label plus the waiting list."""
    result = []
    for _, doctor, day in iter_days(document):
        slot_details = {
            label: {
                "status": status_of(time_slot).value,
                "patientInfo": _patient_view(time_slot.patient, redact),
            }
            for label, time_slot in day.slot.items()
        }
        result.append(
            {
                "doctorName": doctor.name,
                "date": day.date,
                "slot": slot_details,
                "otherPatients": [_patient_view(entry.patient, redact) for entry in day.waiting_entries()],
            }
        )
    return result


def user_exists(document: Document, email: str | None) -> bool:
    """True when ``email`` is on a booked slot or a waiting-list entry."""
    if not email:
        return False
    for _, _, day in iter_days(document):
        for time_slot in day.slot.values():
            if time_slot.is_booked and time_slot.patient.get("email") == email:
                return True
        for entry in day.waiting_entries():
            if entry.patient.get("email") == email:
                return True
    return False
