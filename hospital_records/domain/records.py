"""Hospital Record Schema Definitions.

This module defines the canonical data models for every entity the hospital
keeps on file: patients, doctors, staff, user accounts, appointments and lab
reports.

Validation Rules:
    - Identity fields (id, name, contact, username) are required and trimmed
    - Optional text fields are trimmed and stored as "" when missing
    - Patient age must fall within [0, 150]
    - Validation runs at construction and on every attribute assignment

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Patients, doctors and staff share one person field set and are told apart
      by a ``kind`` tag stored with each record; each offers ``describe()``
    - Models are mutable; status changes on patients go through admit()/discharge()
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hospital_records.domain.credentials import hash_password, verify_password
from hospital_records.domain.enums import PatientStatus, UserRole

DATE_FORMAT = "%d-%m-%Y"
DATETIME_FORMAT = "%d-%m-%Y %H:%M"

DEFAULT_APPOINTMENT_STATUS = "SCHEDULED"
UNASSIGNED_DOCTOR = "N/A"

# LabReport has a field called ``date``; annotate it through an alias.
Day = date


def _required_text(value, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{label} required")
    return str(value).strip()


def _optional_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_day(value):
    """Accept dd-mm-yyyy strings; anything else is left for Pydantic."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.strptime(text, DATE_FORMAT).date()
        except ValueError:
            return text
    if isinstance(value, datetime):
        return value.date()
    return value


class PersonFields(BaseModel):
    """Field set shared by every person kept on file.

    Parameters:
        id: Record identifier (e.g. "P001", "D3f2a1")
        name: Full name
        date_of_birth: Optional date of birth
        contact: Phone number or other contact detail
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Record identifier")
    name: str = Field(..., description="Full name")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    contact: str = Field(..., description="Contact detail")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v) -> str:
        return _required_text(v, "ID")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v) -> str:
        return _required_text(v, "Name")

    @field_validator("contact", mode="before")
    @classmethod
    def validate_contact(cls, v) -> str:
        return _required_text(v, "Contact")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v):
        return _parse_day(v)

    def matches_id(self, record_id: Optional[str]) -> bool:
        """Case-insensitive identifier comparison."""
        if record_id is None:
            return False
        return self.id.lower() == record_id.strip().lower()

    def matches_name(self, name: str, exact: bool = False) -> bool:
        """Match on name, either exactly or as a substring (both case-insensitive)."""
        needle = name.strip().lower()
        if exact:
            return self.name.lower() == needle
        return needle in self.name.lower()


class Patient(PersonFields):
    """A registered patient.

    A patient starts out REGISTERED. ``admit()`` moves them to ADMITTED and
    stamps the admission date; ``discharge()`` moves them to DISCHARGED and
    keeps the admission date as it was.

    Parameters:
        age: Age in years, 0 to 150 inclusive
        gender: Free-text gender
        address: Postal address
        medical_history: Free-text history notes
        status: Lifecycle status
        admit_date: Date of the last admission, if any
    """

    kind: Literal["patient"] = "patient"
    age: int = Field(..., description="Age in years")
    gender: str = Field("", description="Gender")
    address: str = Field("", description="Postal address")
    medical_history: str = Field("", description="Medical history notes")
    status: PatientStatus = Field(PatientStatus.REGISTERED, description="Lifecycle status")
    admit_date: Optional[date] = Field(None, description="Date of admission")

    @field_validator("age")
    @classmethod
    def validate_age(cls, v: int) -> int:
        if v < 0 or v > 150:
            raise ValueError(f"Invalid age: {v}")
        return v

    @field_validator("gender", "address", "medical_history", mode="before")
    @classmethod
    def normalize_text(cls, v) -> str:
        return _optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v) -> PatientStatus:
        if v is None:
            return PatientStatus.REGISTERED
        if isinstance(v, PatientStatus):
            return v
        return PatientStatus(str(v).strip().upper())

    @field_validator("admit_date", mode="before")
    @classmethod
    def parse_admit_date(cls, v):
        return _parse_day(v)

    def admit(self, on: Optional[date] = None) -> None:
        """Mark the patient as admitted, stamping the admission date (today by default)."""
        self.status = PatientStatus.ADMITTED
        self.admit_date = on or date.today()

    def discharge(self) -> None:
        """Mark the patient as discharged. The admission date is kept."""
        self.status = PatientStatus.DISCHARGED

    def describe(self) -> str:
        return f"Patient[id={self.id},name={self.name},age={self.age},status={self.status.value}]"


class Doctor(PersonFields):
    """A doctor on the roster."""

    kind: Literal["doctor"] = "doctor"
    specialization: str = Field("", description="Medical specialization")
    duty_timings: str = Field("", description="Duty timings, e.g. 'Mon-Fri 09:00-15:00'")

    @field_validator("specialization", "duty_timings", mode="before")
    @classmethod
    def normalize_text(cls, v) -> str:
        return _optional_text(v)

    def describe(self) -> str:
        return f"Dr. {self.name} ({self.specialization})"


class Staff(PersonFields):
    """A non-doctor staff member (nurse, ward boy, ...)."""

    kind: Literal["staff"] = "staff"
    role: str = Field("", description="Job role")
    shift_schedule: str = Field("", description="Shift schedule, e.g. 'Morning: 7-3'")

    @field_validator("role", "shift_schedule", mode="before")
    @classmethod
    def normalize_text(cls, v) -> str:
        return _optional_text(v)

    def describe(self) -> str:
        return f"{self.name} - {self.role}"


class User(BaseModel):
    """A login account.

    Usernames are compared case-insensitively but uniqueness is not enforced.
    The password is kept only as an unsalted SHA-256 hex digest.
    """

    model_config = ConfigDict(validate_assignment=True)

    username: str = Field(..., description="Login name")
    password_hash: str = Field(..., description="SHA-256 hex digest of the password")
    role: UserRole = Field(..., description="Account role")

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v) -> str:
        return _required_text(v, "Username")

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v) -> UserRole:
        """Accept role names in any letter case."""
        if isinstance(v, UserRole):
            return v
        v_str = _required_text(v, "Role").lower()
        for role in UserRole:
            if role.value.lower() == v_str:
                return role
        raise ValueError(f"Invalid role: {v}. Expected one of {[r.value for r in UserRole]}")

    @classmethod
    def create(cls, username: str, password: str, role) -> "User":
        """Build a user from a plaintext password."""
        return cls(username=username, password_hash=hash_password(password), role=role)

    @property
    def id(self) -> str:
        return self.username

    def set_password(self, password: str) -> None:
        self.password_hash = hash_password(password)

    def verify_password(self, password: str) -> bool:
        return verify_password(self.password_hash, password)

    def matches_id(self, username: Optional[str]) -> bool:
        if username is None:
            return False
        return self.username.lower() == username.strip().lower()


class Appointment(BaseModel):
    """A booked appointment between a patient and a doctor.

    Patient and doctor ids are plain strings; they are not checked against the
    patient or doctor rosters.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Appointment identifier")
    patient_id: str = Field("", description="Patient identifier")
    doctor_id: str = Field("", description="Doctor identifier")
    date_time: datetime = Field(..., description="Scheduled date and time")
    reason: str = Field("", description="Reason for the visit")
    status: str = Field(DEFAULT_APPOINTMENT_STATUS, description="Appointment status")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v) -> str:
        return _required_text(v, "ID")

    @field_validator("patient_id", "doctor_id", "reason", mode="before")
    @classmethod
    def normalize_text(cls, v) -> str:
        return _optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v) -> str:
        text = _optional_text(v)
        return text or DEFAULT_APPOINTMENT_STATUS

    @field_validator("date_time", mode="before")
    @classmethod
    def parse_date_time(cls, v):
        """Accept dd-mm-yyyy HH:MM strings; other formats are left for Pydantic."""
        if isinstance(v, str):
            try:
                return datetime.strptime(v.strip(), DATETIME_FORMAT)
            except ValueError:
                return v.strip()
        return v

    def matches_id(self, record_id: Optional[str]) -> bool:
        if record_id is None:
            return False
        return self.id.lower() == record_id.strip().lower()


class LabReport(BaseModel):
    """Result of a lab test ordered for a patient."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Report identifier")
    patient_id: str = Field("", description="Patient identifier")
    doctor_id: str = Field(UNASSIGNED_DOCTOR, description="Ordering doctor identifier")
    date: Day = Field(default_factory=date.today, description="Report date")
    test_name: str = Field("", description="Name of the test")
    result: str = Field("", description="Test result")
    notes: str = Field("", description="Free-text notes")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v) -> str:
        return _required_text(v, "ID")

    @field_validator("patient_id", "test_name", "result", "notes", mode="before")
    @classmethod
    def normalize_text(cls, v) -> str:
        return _optional_text(v)

    @field_validator("doctor_id", mode="before")
    @classmethod
    def normalize_doctor(cls, v) -> str:
        return _optional_text(v) or UNASSIGNED_DOCTOR

    @field_validator("date", mode="before")
    @classmethod
    def parse_report_date(cls, v):
        parsed = _parse_day(v)
        return date.today() if parsed is None else parsed

    def matches_id(self, record_id: Optional[str]) -> bool:
        if record_id is None:
            return False
        return self.id.lower() == record_id.strip().lower()
