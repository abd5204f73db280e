"""Shared fixtures: every test gets its own data directory under tmp_path."""

import pytest

from hospital_records.adapters.storage import (
    AppointmentStore,
    DoctorStore,
    LabReportStore,
    PatientStore,
    StaffStore,
    UserStore,
)
from hospital_records.domain.records import Patient
from hospital_records.domain.services import HospitalService, seed_default_users
from hospital_records.infrastructure.config_manager import StorageConfig


@pytest.fixture
def storage_config(tmp_path):
    """Storage rooted in a fresh, not yet created, data directory."""
    return StorageConfig(data_dir=tmp_path / "data")


@pytest.fixture
def service(storage_config):
    """Hospital service over empty stores, with the default accounts seeded."""
    users = UserStore(storage_config)
    seed_default_users(users)
    return HospitalService(
        patients=PatientStore(storage_config),
        doctors=DoctorStore(storage_config),
        staff=StaffStore(storage_config),
        users=users,
        appointments=AppointmentStore(storage_config),
        lab_reports=LabReportStore(storage_config),
    )


@pytest.fixture
def admin(service):
    return service.login("admin", "admin123")


@pytest.fixture
def doctor(service):
    return service.login("doc", "doc123")


@pytest.fixture
def nurse(service):
    return service.login("nurse", "nurse123")


@pytest.fixture
def receptionist(service):
    return service.login("recep", "recep123")


@pytest.fixture
def patient():
    return Patient(
        id="P001",
        name="Ali Khan",
        date_of_birth="12-05-1995",
        contact="03001234567",
        age=30,
        gender="Male",
        address="Karachi",
        medical_history="Cough",
    )
