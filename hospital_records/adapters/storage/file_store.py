"""Flat-file Storage Adapter.

This adapter implements the RecordStorePort contract on top of three kinds of
file kept in one data directory:

    - Blob: authoritative snapshot of the whole collection, read once at start-up
    - Mirror: CSV rendering of the same collection, regenerated on every change
    - Log: optional append-only CSV that grows by one line per added record

Every mutation rewrites the entire blob and mirror. That is O(n) per change
and only acceptable because collections stay small (a hospital roster, not
a warehouse). There is no coordination between blob and mirror: if the
process dies between the two writes they disagree and the blob wins.

Architecture:
    - Implements RecordStorePort (Hexagonal Architecture)
    - One store instance per entity type, each guarded by its own lock
    - Blob encoding is JSON produced by a Pydantic TypeAdapter over the list type
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from hospital_records.adapters.csv_mirror import (
    APPOINTMENT_LAYOUT,
    DOCTOR_LAYOUT,
    LAB_REPORT_LAYOUT,
    PATIENT_LAYOUT,
    STAFF_LAYOUT,
    USER_LAYOUT,
    MirrorLayout,
    append_log_row,
    write_mirror,
)
from hospital_records.adapters.files import ensure_directory, write_atomically
from hospital_records.domain.ports import PersistenceError, RecordStorePort, Result
from hospital_records.domain.records import Appointment, Doctor, LabReport, Patient, Staff, User
from hospital_records.infrastructure.config_manager import StorageConfig

logger = logging.getLogger(__name__)

R = TypeVar('R')


class FileRecordStore(RecordStorePort[R]):
    """Flat-file implementation of RecordStorePort for one entity type.

    Subclasses pick the record type, the collection name used to derive file
    names, the mirror layout, and whether additions are also appended to a log.

    Parameters:
        config: Storage configuration (data directory and file suffixes)

    Example Usage:
        ```python
        store = PatientStore(StorageConfig(data_dir="data"))
        result = store.add(patient)
        if result.is_failure():
            print(result.error)  # still in memory, not on disk
        ```
    """

    record_type: Type[R]
    collection: str
    layout: MirrorLayout
    append_log: bool = False

    def __init__(self, config: StorageConfig):
        self.config = config
        ensure_directory(config.data_dir)
        self.blob_path: Path = config.blob_path(self.collection)
        self.mirror_path: Path = config.mirror_path(self.collection)
        self.log_path: Optional[Path] = config.log_path(self.collection) if self.append_log else None

        self._adapter = TypeAdapter(List[self.record_type])
        self._lock = threading.Lock()
        self.load_result: Result[int] = Result.success_result(0)
        self._records: List[R] = self._load()

    # ------------------------------------------------------------------
    # Loading and writing
    # ------------------------------------------------------------------

    def _load(self) -> List[R]:
        """Read the blob; a missing blob means an empty collection."""
        if not self.blob_path.exists():
            logger.info(f"No {self.blob_path.name} found, starting with an empty {self.collection} list")
            return []

        try:
            records = self._adapter.validate_json(self.blob_path.read_bytes())
        except (OSError, PydanticValidationError) as e:
            error = PersistenceError(
                f"Error while loading {self.blob_path.name}: {e}",
                path=str(self.blob_path),
                operation="load",
            )
            logger.error(str(error))
            self.load_result = Result.failure_result(
                error, error_details={"path": error.path, "operation": error.operation}, value=0
            )
            return []

        logger.info(f"Loaded {len(records)} {self.collection} from {self.blob_path.name}")
        self.load_result = Result.success_result(len(records))
        return records

    def _write_locked(self) -> List[PersistenceError]:
        """Rewrite blob and mirror. The caller must hold the lock.

        The two writes are independent: a failed blob write does not stop
        the mirror from being regenerated.
        """
        errors: List[PersistenceError] = []
        try:
            write_atomically(self.blob_path, self._adapter.dump_json(self._records), operation="save_blob")
        except PersistenceError as e:
            errors.append(e)
        try:
            write_mirror(self.mirror_path, self.layout, self._records)
        except PersistenceError as e:
            errors.append(e)

        for error in errors:
            logger.error(str(error))
        if not errors:
            logger.debug(f"Persisted {len(self._records)} {self.collection}")
        return errors

    @staticmethod
    def _outcome(value, errors: List[PersistenceError]) -> Result:
        if not errors:
            return Result.success_result(value)
        first = errors[0]
        return Result.failure_result(
            first,
            error_details={
                "path": first.path,
                "operation": first.operation,
                "failures": [str(e) for e in errors],
            },
            value=value,
        )

    # ------------------------------------------------------------------
    # RecordStorePort
    # ------------------------------------------------------------------

    def add(self, record: R) -> Result[R]:
        """Append ``record`` and persist. Duplicate keys are accepted."""
        with self._lock:
            self._records.append(record)
            errors = self._write_locked()
            if self.log_path is not None:
                try:
                    append_log_row(self.log_path, self.layout, record)
                except PersistenceError as e:
                    logger.error(str(e))
                    errors.append(e)
            return self._outcome(record, errors)

    def update(self, record: R) -> Result[bool]:
        """Replace the first record whose key matches; silently does nothing otherwise."""
        with self._lock:
            for index, existing in enumerate(self._records):
                if existing.matches_id(record.id):
                    self._records[index] = record
                    return self._outcome(True, self._write_locked())
            logger.debug(f"update: no {self.collection} record with id {record.id}")
            return Result.success_result(False)

    def delete(self, key: str) -> Result[int]:
        """Remove every record whose key matches, then persist."""
        with self._lock:
            before = len(self._records)
            self._records = [r for r in self._records if not r.matches_id(key)]
            removed = before - len(self._records)
            return self._outcome(removed, self._write_locked())

    def all(self) -> List[R]:
        with self._lock:
            return list(self._records)

    def find_by_id(self, key: str) -> Optional[R]:
        with self._lock:
            return next((r for r in self._records if r.matches_id(key)), None)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def persist(self) -> Result[int]:
        """Rewrite blob and mirror from the current list."""
        with self._lock:
            return self._outcome(len(self._records), self._write_locked())

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.count()


class PatientStore(FileRecordStore[Patient]):
    record_type = Patient
    collection = "patients"
    layout = PATIENT_LAYOUT


class DoctorStore(FileRecordStore[Doctor]):
    record_type = Doctor
    collection = "doctors"
    layout = DOCTOR_LAYOUT


class StaffStore(FileRecordStore[Staff]):
    record_type = Staff
    collection = "staff"
    layout = STAFF_LAYOUT


class UserStore(FileRecordStore[User]):
    """User accounts, keyed by username. Uniqueness is not enforced."""

    record_type = User
    collection = "users"
    layout = USER_LAYOUT

    def find_by_username(self, username: str) -> Optional[User]:
        return self.find_by_id(username)


class AppointmentStore(FileRecordStore[Appointment]):
    """Appointments; each new one is also appended to appointments.csv."""

    record_type = Appointment
    collection = "appointments"
    layout = APPOINTMENT_LAYOUT
    append_log = True


class LabReportStore(FileRecordStore[LabReport]):
    """Lab reports; each new one is also appended to lab_reports.csv."""

    record_type = LabReport
    collection = "lab_reports"
    layout = LAB_REPORT_LAYOUT
    append_log = True
