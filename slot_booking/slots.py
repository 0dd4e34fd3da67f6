"""Addressing slots inside the availability document.

Every mutation and the slot check go through :func:`resolve`, which walks
department → doctor → date and hands back live references into the document
so the caller can change it in place.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from slot_booking.models import DateSlot, Department, Doctor, Document, TimeSlot


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"


class SlotLookupError(LookupError):
    """Base class for addressing failures."""


class NotFound(SlotLookupError):
    """No doctor with that name, or the doctor has no entry for that date."""


class AmbiguousLookup(SlotLookupError):
    """The doctor name matches more than one doctor in the document."""


@dataclass(frozen=True, slots=True, eq=False)
class SlotRef:
    department: Department
    doctor: Doctor
    day: DateSlot

    def time_slot(self, label: str) -> TimeSlot | None:
        return self.day.slot.get(label)


def status_of(time_slot: TimeSlot) -> SlotStatus:
    return SlotStatus.BOOKED if time_slot.is_booked else SlotStatus.AVAILABLE


def iter_doctors(document: Document) -> Iterator[tuple[Department, Doctor]]:
    """Yield every (department, doctor) pair in document order."""
    for department in document:
        for doctor in department.doctors:
            yield department, doctor


def iter_days(document: Document) -> Iterator[tuple[Department, Doctor, DateSlot]]:
    """Yield every (department, doctor, date slot) triple in document order."""
    for department, doctor in iter_doctors(document):
        for day in doctor.slots:
            yield department, doctor, day


def find_doctors(document: Document, doctor_name: str, *, strict: bool = True) -> list[tuple[Department, Doctor]]:
    """Return the doctors named exactly ``doctor_name``, in document order.

    With ``strict`` a name shared by several doctors raises
    :class:`AmbiguousLookup` instead of returning more than one candidate.
    """
    matches = [pair for pair in iter_doctors(document) if pair[1].name == doctor_name]
    if not matches:
        raise NotFound(f"Doctor {doctor_name!r} not found")
    if strict and len(matches) > 1:
        raise AmbiguousLookup(f"Doctor name {doctor_name!r} is not unique")
    return matches


def resolve(document: Document, doctor_name: str, date: str, *, strict: bool = True) -> SlotRef:
    """Locate the date slot of ``doctor_name`` on ``date`` (exact matches).

    When lookups are not strict the first same-named doctor that has ``date``
    wins.
    """
    for department, doctor in find_doctors(document, doctor_name, strict=strict):
        day = next((d for d in doctor.slots if d.date == date), None)
        if day is not None:
            return SlotRef(department=department, doctor=doctor, day=day)
    raise NotFound(f"Doctor {doctor_name!r} has no slots on {date!r}")
