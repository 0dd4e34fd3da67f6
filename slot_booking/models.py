"""Availability document model.

The stored document is a list of departments, each holding doctors, each
holding per-date slot containers:

    department → doctor → date → time label

On disk a vacant time slot carries an empty ``patientInfo`` mapping. In memory
that sentinel is decoded into ``TimeSlot.patient is None`` so the rest of the
package works with an explicit Vacant / Booked value, and it is encoded back to
``{}`` only when the document is dumped.
"""

from __future__ import annotations

from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_serializer, field_validator

PATIENT_FIELDS: tuple[str, ...] = ("name", "email", "mobile", "treatment", "message")


class _StoredModel(BaseModel):
    # Unknown keys written by the data loader must survive a load/save cycle.
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TimeSlot(_StoredModel):
    patient: dict[str, Any] | None = Field(default=None, alias="patientInfo")

    @field_validator("patient", mode="before")
    @classmethod
    def _decode_vacant(cls, value: Any) -> Any:
        return value or None

    @field_serializer("patient")
    def _encode_vacant(self, value: dict[str, Any] | None) -> dict[str, Any]:
        return dict(value) if value else {}

    @property
    def is_booked(self) -> bool:
        return self.patient is not None


class WaitingEntry(_StoredModel):
    patient: dict[str, Any] = Field(default_factory=dict, alias="patientInfo")


class WaitingList(_StoredModel):
    # None when the document carries no "other-patients" list for the day.
    patients: list[WaitingEntry] | None = Field(default=None, alias="other-patients")


class DateSlot(_StoredModel):
    date: str
    slot: dict[str, TimeSlot] = Field(default_factory=dict)
    others: WaitingList | None = None

    @property
    def waiting_list(self) -> list[WaitingEntry] | None:
        """The stored waiting list, or None when the day has none to append to."""
        if self.others is None:
            return None
        return self.others.patients

    def waiting_entries(self) -> list[WaitingEntry]:
        return self.waiting_list or []

    def vacant_labels(self) -> list[str]:
        return [label for label, time_slot in self.slot.items() if not time_slot.is_booked]

    def booked_labels(self) -> list[str]:
        return [label for label, time_slot in self.slot.items() if time_slot.is_booked]


class Doctor(_StoredModel):
    name: str
    designation: str = ""
    image: str = ""
    slots: list[DateSlot] = Field(default_factory=list)


class Department(_StoredModel):
    department_name: str = Field(alias="departmentName")
    doctors: list[Doctor] = Field(default_factory=list)


class Document(RootModel[list[Department]]):
    """The whole availability tree, persisted and replaced as one unit."""

    root: list[Department] = Field(default_factory=list)

    def __iter__(self) -> Iterator[Department]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def dump(self) -> list[dict[str, Any]]:
        """Return the storage form (camelCase keys, ``{}`` for vacant slots).

        Only keys that were loaded or assigned are written, so a load/save
        cycle never adds defaults the stored document did not have.
        """
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


class PatientInfo(BaseModel):
    """Patient details submitted with a booking or a waiting-list request.

    All five fields are required and none may be blank.
    """

    name: str
    email: str
    mobile: str
    treatment: str
    message: str

    @field_validator(*PATIENT_FIELDS)
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value
