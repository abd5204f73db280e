"""Storage adapters for Hospital Records.

This module contains storage adapters that implement the RecordStorePort
interface for persisting validated records to flat files.
"""

from hospital_records.adapters.storage.file_store import (
    AppointmentStore,
    DoctorStore,
    FileRecordStore,
    LabReportStore,
    PatientStore,
    StaffStore,
    UserStore,
)

__all__ = [
    "AppointmentStore",
    "DoctorStore",
    "FileRecordStore",
    "LabReportStore",
    "PatientStore",
    "StaffStore",
    "UserStore",
]
