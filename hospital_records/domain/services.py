"""Hospital Record Services.

This module holds the business operations the shell calls: registering,
admitting and discharging patients, rostering doctors and staff, booking
appointments, filing lab reports and managing user accounts. It also owns the
role access policy and contact masking used when records are displayed.

Architecture:
    - Pure domain service; talks to storage only through RecordStorePort
    - Entity validation failures surface as domain ValidationError naming the field
    - Persistence failures come back inside the Result returned by the store
"""

import logging
import uuid
from datetime import date, datetime
from typing import Dict, FrozenSet, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from hospital_records.domain.enums import Action, UserRole
from hospital_records.domain.ports import (
    AuthenticationError,
    PermissionDeniedError,
    RecordNotFoundError,
    RecordStorePort,
    Result,
    ValidationError,
)
from hospital_records.domain.records import (
    Appointment,
    Doctor,
    LabReport,
    Patient,
    Staff,
    User,
)

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)

DEFAULT_USERS = (
    ("admin", "admin123", UserRole.ADMIN),
    ("doc", "doc123", UserRole.DOCTOR),
    ("nurse", "nurse123", UserRole.NURSE),
    ("recep", "recep123", UserRole.RECEPTIONIST),
)

SAMPLE_PATIENTS = (
    dict(id="P001", name="Ali Khan", date_of_birth="12-05-1995", contact="03001234567",
         age=30, gender="Male", address="Karachi", medical_history="Cough"),
    dict(id="P002", name="Sara Ali", date_of_birth="02-03-1990", contact="03007654321",
         age=35, gender="Female", address="Lahore", medical_history="None"),
)


# ============================================================================
# Access policy
# ============================================================================

class AccessPolicy:
    """Which roles may perform which actions.

    Receptionists register patients and book appointments but do not admit,
    discharge or file lab reports. Doctors do not book appointments. Only
    admins delete patients or manage doctors, staff and accounts.
    """

    RULES: Dict[Action, FrozenSet[UserRole]] = {
        Action.VIEW_RECORDS: ALL_ROLES,
        Action.REGISTER_PATIENT: ALL_ROLES,
        Action.EDIT_PATIENT: ALL_ROLES,
        Action.ADMIT_PATIENT: ALL_ROLES - {UserRole.RECEPTIONIST},
        Action.DISCHARGE_PATIENT: ALL_ROLES - {UserRole.RECEPTIONIST},
        Action.DELETE_PATIENT: frozenset({UserRole.ADMIN}),
        Action.ADD_LAB_REPORT: frozenset({UserRole.ADMIN, UserRole.DOCTOR}),
        Action.MANAGE_DOCTORS: frozenset({UserRole.ADMIN}),
        Action.MANAGE_STAFF: frozenset({UserRole.ADMIN}),
        Action.MANAGE_USERS: frozenset({UserRole.ADMIN}),
        Action.BOOK_APPOINTMENT: ALL_ROLES - {UserRole.DOCTOR},
    }

    @classmethod
    def is_allowed(cls, role: UserRole, action: Action) -> bool:
        return role in cls.RULES.get(action, frozenset())

    @classmethod
    def require(cls, user: User, action: Action) -> None:
        """Raise PermissionDeniedError unless ``user`` may perform ``action``."""
        if not cls.is_allowed(user.role, action):
            logger.info(f"Denied {action.value} for role {user.role.value}")
            raise PermissionDeniedError(
                f"{user.role.value} users may not {action.value.replace('_', ' ')}",
                role=user.role.value,
                action=action.value,
            )


class ContactRedactor:
    """Masks patient contact details for roles that do not need them.

    Admins and receptionists see the full contact. Everyone else sees the
    first two and last two characters around a fixed mask; contacts shorter
    than six characters are masked completely.
    """

    CONTACT_MASK = "*****"
    FULL_VIEW_ROLES: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.RECEPTIONIST})

    @classmethod
    def redact_for_role(cls, contact: Optional[str], role: UserRole) -> str:
        if role in cls.FULL_VIEW_ROLES:
            return contact or ""
        if contact is None or len(contact) < 6:
            return cls.CONTACT_MASK
        return contact[:2] + cls.CONTACT_MASK + contact[-2:]


# ============================================================================
# Helpers
# ============================================================================

def generate_id(prefix: str, length: int) -> str:
    """Short random identifier, e.g. ``generate_id("P", 5) -> "P3fa9c"``."""
    return f"{prefix}{uuid.uuid4().hex[:length]}"


def build_record(model: Type[M], **fields) -> M:
    """Construct ``model``, turning Pydantic errors into a domain ValidationError."""
    try:
        return model(**fields)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def seed_default_users(users: RecordStorePort[User]) -> int:
    """Create the four default accounts if ``users`` is empty.

    Called once by the entry point at start-up.

    Returns:
        Number of accounts created (0 when any account already exists)
    """
    if users.all():
        return 0
    for username, password, role in DEFAULT_USERS:
        result = users.add(User.create(username, password, role))
        if result.is_failure():
            logger.error(f"Default account {username} kept in memory only: {result.error}")
    logger.info(f"Seeded {len(DEFAULT_USERS)} default user accounts")
    return len(DEFAULT_USERS)


# ============================================================================
# Hospital service
# ============================================================================

class HospitalService:
    """Business operations over the six record stores.

    Every mutating call takes the acting user, checks the access policy, and
    returns the store's Result so the caller can report a failed write.

    Parameters:
        patients, doctors, staff, users, appointments, lab_reports:
            One RecordStorePort per entity type
    """

    def __init__(
        self,
        patients: RecordStorePort[Patient],
        doctors: RecordStorePort[Doctor],
        staff: RecordStorePort[Staff],
        users: RecordStorePort[User],
        appointments: RecordStorePort[Appointment],
        lab_reports: RecordStorePort[LabReport],
    ):
        self.patients = patients
        self.doctors = doctors
        self.staff = staff
        self.users = users
        self.appointments = appointments
        self.lab_reports = lab_reports

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the matching user, or None if the username or password is wrong."""
        user = self.users.find_by_id((username or "").strip())
        if user is not None and user.verify_password(password):
            return user
        return None

    def login(self, username: str, password: str) -> User:
        user = self.authenticate(username, password)
        if user is None:
            raise AuthenticationError("Invalid credentials")
        logger.info(f"User {user.username} logged in as {user.role.value}")
        return user

    def add_user(self, actor: User, username: str, password: str, role: Union[str, UserRole]) -> Result[User]:
        """Create an account. Usernames are not checked for uniqueness."""
        AccessPolicy.require(actor, Action.MANAGE_USERS)
        if not password:
            raise ValidationError("Password required", field="password")
        user = build_record(User, username=username, password_hash="pending", role=role)
        user.set_password(password)
        return self.users.add(user)

    def list_users(self, actor: User) -> List[User]:
        AccessPolicy.require(actor, Action.MANAGE_USERS)
        return self.users.all()

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    def register_patient(self, actor: User, **fields) -> Result[Patient]:
        """Register a new patient (status REGISTERED). A missing id is generated."""
        AccessPolicy.require(actor, Action.REGISTER_PATIENT)
        if not fields.get("id"):
            fields["id"] = generate_id("P", 5)
        patient = build_record(Patient, **fields)
        result = self.patients.add(patient)
        logger.info(f"Registered patient {patient.id}")
        return result

    def get_patient(self, patient_id: str) -> Patient:
        patient = self.patients.find_by_id(patient_id)
        if patient is None:
            raise RecordNotFoundError(f"Patient {patient_id} not found", record_id=patient_id)
        return patient

    def edit_patient(self, actor: User, patient_id: str, **changes) -> Result[bool]:
        """Change demographic fields of an existing patient.

        The id, status and admission date cannot be changed here; status only
        moves through admit_patient and discharge_patient.
        """
        AccessPolicy.require(actor, Action.EDIT_PATIENT)
        existing = self.get_patient(patient_id)
        for locked in ("id", "kind", "status", "admit_date"):
            changes.pop(locked, None)
        updated = build_record(Patient, **{**existing.model_dump(), **changes})
        return self.patients.update(updated)

    def admit_patient(self, actor: User, patient_id: str, on: Optional[date] = None) -> Result[bool]:
        AccessPolicy.require(actor, Action.ADMIT_PATIENT)
        patient = self.get_patient(patient_id)
        patient.admit(on)
        logger.info(f"Admitted patient {patient.id}")
        return self.patients.update(patient)

    def discharge_patient(self, actor: User, patient_id: str) -> Result[bool]:
        AccessPolicy.require(actor, Action.DISCHARGE_PATIENT)
        patient = self.get_patient(patient_id)
        patient.discharge()
        logger.info(f"Discharged patient {patient.id}")
        return self.patients.update(patient)

    def delete_patient(self, actor: User, patient_id: str) -> Result[int]:
        AccessPolicy.require(actor, Action.DELETE_PATIENT)
        result = self.patients.delete(patient_id)
        logger.info(f"Deleted {result.value} patient record(s) with id {patient_id}")
        return result

    def list_patients(self, actor: User) -> List[Patient]:
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        return self.patients.all()

    def search_patients(self, actor: User, name: str, exact: bool = False) -> List[Patient]:
        """Patients whose name contains ``name`` (or equals it when ``exact``), ignoring case."""
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        return [p for p in self.patients.all() if p.matches_name(name, exact)]

    def load_sample_patients(self, actor: User) -> List[Result[Patient]]:
        """Register the two fixed sample patients."""
        return [self.register_patient(actor, **dict(sample)) for sample in SAMPLE_PATIENTS]

    # ------------------------------------------------------------------
    # Doctors and staff
    # ------------------------------------------------------------------

    def add_doctor(self, actor: User, **fields) -> Result[Doctor]:
        AccessPolicy.require(actor, Action.MANAGE_DOCTORS)
        if not fields.get("id"):
            fields["id"] = generate_id("D", 5)
        return self.doctors.add(build_record(Doctor, **fields))

    def add_staff(self, actor: User, **fields) -> Result[Staff]:
        AccessPolicy.require(actor, Action.MANAGE_STAFF)
        if not fields.get("id"):
            fields["id"] = generate_id("S", 5)
        return self.staff.add(build_record(Staff, **fields))

    def list_doctors(self, actor: User) -> List[Doctor]:
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        return self.doctors.all()

    def list_staff(self, actor: User) -> List[Staff]:
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        return self.staff.all()

    # ------------------------------------------------------------------
    # Appointments and lab reports
    # ------------------------------------------------------------------

    def book_appointment(
        self,
        actor: User,
        patient_id: str,
        doctor_id: str,
        date_time: Union[str, datetime],
        reason: str = "",
    ) -> Result[Appointment]:
        """Book an appointment. Patient and doctor ids are taken as given."""
        AccessPolicy.require(actor, Action.BOOK_APPOINTMENT)
        appointment = build_record(
            Appointment,
            id=generate_id("A", 6),
            patient_id=patient_id,
            doctor_id=doctor_id,
            date_time=date_time,
            reason=reason,
        )
        return self.appointments.add(appointment)

    def add_lab_report(
        self,
        actor: User,
        patient_id: str,
        test_name: str,
        result: str,
        notes: str = "",
        doctor_id: Optional[str] = None,
    ) -> Result[LabReport]:
        """File a lab report, dated today, for a patient who is on file."""
        AccessPolicy.require(actor, Action.ADD_LAB_REPORT)
        patient = self.get_patient(patient_id)
        report = build_record(
            LabReport,
            id=generate_id("LR", 8),
            patient_id=patient.id,
            doctor_id=doctor_id,
            test_name=test_name,
            result=result,
            notes=notes,
        )
        return self.lab_reports.add(report)

    def list_appointments(self, actor: User) -> List[Appointment]:
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        return self.appointments.all()

    def list_lab_reports(self, actor: User, patient_id: Optional[str] = None) -> List[LabReport]:
        AccessPolicy.require(actor, Action.VIEW_RECORDS)
        reports = self.lab_reports.all()
        if patient_id:
            reports = [r for r in reports if r.patient_id.lower() == patient_id.strip().lower()]
        return reports

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    @staticmethod
    def display_contact(actor: User, patient: Patient) -> str:
        return ContactRedactor.redact_for_role(patient.contact, actor.role)
