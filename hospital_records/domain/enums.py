"""Enumerations shared by the hospital record models."""

from enum import Enum


class PatientStatus(str, Enum):
    """Where a patient is in the registration / admission lifecycle."""
    REGISTERED = "REGISTERED"
    ADMITTED = "ADMITTED"
    DISCHARGED = "DISCHARGED"


class UserRole(str, Enum):
    """Roles a user account can hold."""
    ADMIN = "Admin"
    DOCTOR = "Doctor"
    NURSE = "Nurse"
    RECEPTIONIST = "Receptionist"


class Action(str, Enum):
    """Things a logged-in user may try to do; gated by role."""
    VIEW_RECORDS = "view_records"
    REGISTER_PATIENT = "register_patient"
    EDIT_PATIENT = "edit_patient"
    ADMIT_PATIENT = "admit_patient"
    DISCHARGE_PATIENT = "discharge_patient"
    DELETE_PATIENT = "delete_patient"
    ADD_LAB_REPORT = "add_lab_report"
    MANAGE_DOCTORS = "manage_doctors"
    MANAGE_STAFF = "manage_staff"
    MANAGE_USERS = "manage_users"
    BOOK_APPOINTMENT = "book_appointment"
