"""Patient Reports.

Exports the patient roster as CSV files for spreadsheet use and summarises
it by status. Exports use the same columns and formatting as the patients
mirror, so an export and a freshly regenerated mirror are byte-identical.
"""

import logging
import time
from pathlib import Path
from typing import Dict, Iterable, Union

import pandas as pd

from hospital_records.adapters.csv_mirror import LINE_TERMINATOR, PATIENT_LAYOUT
from hospital_records.adapters.files import ensure_directory
from hospital_records.domain.enums import PatientStatus
from hospital_records.domain.ports import PersistenceError
from hospital_records.domain.records import Patient

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "patients_export.csv"
REPORT_FILE_PREFIX = "patient_report_"


def patients_frame(patients: Iterable[Patient]) -> pd.DataFrame:
    """One row per patient, columns as in the patients mirror, every cell rendered as text."""
    rows = [PATIENT_LAYOUT.row_for(p) for p in patients]
    return pd.DataFrame(rows, columns=list(PATIENT_LAYOUT.header), dtype=str)


def _write_frame(df: pd.DataFrame, path: Path, operation: str) -> Path:
    try:
        df.to_csv(path, index=False, lineterminator=LINE_TERMINATOR, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(
            f"Error while writing {path.name}: {e}",
            path=str(path),
            operation=operation,
        ) from e
    logger.info(f"Wrote {len(df)} patients to {path}")
    return path


def export_patients(patients: Iterable[Patient], path: Union[str, Path]) -> Path:
    """Write every patient to ``path`` (overwritten if present).

    Raises:
        PersistenceError: If the file cannot be written
    """
    target = Path(path)
    ensure_directory(target.parent)
    return _write_frame(patients_frame(patients), target, operation="export")


def write_patient_report(patients: Iterable[Patient], directory: Union[str, Path]) -> Path:
    """Write a timestamped ``patient_report_<epoch-ms>.csv`` into ``directory``.

    Returns:
        Path of the report that was written
    """
    target_dir = ensure_directory(directory)
    target = target_dir / f"{REPORT_FILE_PREFIX}{int(time.time() * 1000)}.csv"
    return _write_frame(patients_frame(patients), target, operation="report")


def status_summary(patients: Iterable[Patient]) -> Dict[str, int]:
    """Count patients per status; every status is present, zero when unused."""
    df = patients_frame(patients)
    statuses = [s.value for s in PatientStatus]
    counts = df["status"].value_counts().reindex(statuses, fill_value=0)
    return {status: int(counts[status]) for status in statuses}
