"""Starter availability document used for seeding a data file and in tests."""

from __future__ import annotations

import copy
from typing import Any


def _day(date: str, *times: str) -> dict[str, Any]:
    return {
        "date": date,
        "slot": {t: {"patientInfo": {}} for t in times},
        "others": {"other-patients": []},
    }


_SAMPLE: list[dict[str, Any]] = [
    {
        "departmentName": "Cardiology",
        "doctors": [
            {
                "name": "Dr. Garcia",
                "designation": "Senior Cardiologist",
                "image": "/images/garcia.png",
                "slots": [
                    _day("2024-05-01", "10:00", "12:00"),
                    _day("2024-05-02", "09:30"),
                ],
            },
            {
                "name": "Dr. Perez",
                "designation": "Cardiologist",
                "image": "/images/perez.png",
                "slots": [_day("2024-05-02", "09:30", "11:00")],
            },
        ],
    },
    {
        "departmentName": "Pediatrics",
        "doctors": [
            {
                "name": "Dr. Ruiz",
                "designation": "Pediatrician",
                "image": "/images/ruiz.png",
                "slots": [
                    _day("2024-05-03", "15:00"),
                    _day("2024-05-04", "11:00", "12:00"),
                ],
            },
        ],
    },
]


def build_sample_document() -> list[dict[str, Any]]:
    """Return a fresh copy of the sample document in storage form."""
    return copy.deepcopy(_SAMPLE)
