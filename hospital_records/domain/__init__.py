"""Domain layer for Hospital-Records.

This module contains the record models, the storage port and the business
services. All domain models are pure Python with no external dependencies
beyond Pydantic.
"""

from .records import (
    Appointment,
    Doctor,
    LabReport,
    Patient,
    Staff,
    User,
)

__all__ = [
    "Appointment",
    "Doctor",
    "LabReport",
    "Patient",
    "Staff",
    "User",
]
