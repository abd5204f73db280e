"""Application bootstrap for Hospital-Records.

Wires the flat-file record stores to the hospital service and seeds the
default accounts on first run.

Architecture:
    - Follows Hexagonal Architecture principles
    - Stores are built from the storage configuration held by Settings
    - The CLI (and any other shell) only talks to HospitalService
"""

import logging
from dataclasses import dataclass
from typing import Optional

from hospital_records.adapters.storage import (
    AppointmentStore,
    DoctorStore,
    LabReportStore,
    PatientStore,
    StaffStore,
    UserStore,
)
from hospital_records.domain.services import HospitalService, seed_default_users
from hospital_records.infrastructure.config_manager import StorageConfig
from hospital_records.infrastructure.logging_config import setup_logging
from hospital_records.infrastructure.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class RecordStores:
    """The six stores, one per entity type."""

    patients: PatientStore
    doctors: DoctorStore
    staff: StaffStore
    users: UserStore
    appointments: AppointmentStore
    lab_reports: LabReportStore

    @classmethod
    def open(cls, config: StorageConfig) -> 'RecordStores':
        """Open every store in ``config.data_dir``, loading existing blobs.

        Raises:
            PersistenceError: If the data directory cannot be created
        """
        return cls(
            patients=PatientStore(config),
            doctors=DoctorStore(config),
            staff=StaffStore(config),
            users=UserStore(config),
            appointments=AppointmentStore(config),
            lab_reports=LabReportStore(config),
        )


def create_service(app_settings: Optional[Settings] = None) -> HospitalService:
    """Open the stores and build the hospital service.

    Default accounts are created when the user store is empty, unless
    seeding is switched off with HMS_SEED_DEFAULT_USERS=false.

    Parameters:
        app_settings: Settings to use (the module-level settings by default)

    Returns:
        HospitalService bound to the configured data directory

    Raises:
        PersistenceError: If the data directory cannot be created
    """
    app_settings = app_settings or default_settings
    config = app_settings.storage_config
    logger.info(f"Opening record stores in {config.data_dir}")

    stores = RecordStores.open(config)
    if app_settings.seed_default_users:
        seed_default_users(stores.users)

    return HospitalService(
        patients=stores.patients,
        doctors=stores.doctors,
        staff=stores.staff,
        users=stores.users,
        appointments=stores.appointments,
        lab_reports=stores.lab_reports,
    )


def configure_logging(app_settings: Optional[Settings] = None) -> None:
    app_settings = app_settings or default_settings
    setup_logging(use_json=app_settings.log_json, log_level=app_settings.log_level)
