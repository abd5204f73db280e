"""CSV Mirror Writer.

Renders record collections as comma-separated text for spreadsheet use.
Mirrors are regenerated from scratch after every change to a collection;
append logs grow by one line per new record. Neither is ever read back.

Quoting:
    A field is wrapped in double quotes, with inner quotes doubled, only when
    it contains a comma, a double quote or a line break. ``None`` renders as
    an empty field, dates as dd-mm-yyyy, date-times as dd-mm-yyyy HH:MM and
    enums by their value.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Sequence, Tuple, Union

from hospital_records.adapters.files import write_atomically
from hospital_records.domain.ports import PersistenceError
from hospital_records.domain.records import DATE_FORMAT, DATETIME_FORMAT

logger = logging.getLogger(__name__)

LINE_TERMINATOR = "\n"


@dataclass(frozen=True)
class MirrorLayout:
    """Header and column extraction for one entity type."""

    header: Tuple[str, ...]
    extract: Callable[[Any], Sequence[Any]]

    def row_for(self, record: Any) -> List[str]:
        return [render_value(v) for v in self.extract(record)]


def render_value(value: Any) -> str:
    """Turn a field value into its unquoted text form."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def escape_csv(value: Any) -> str:
    """Render a single field with CSV quoting applied.

    A field holding a comma, a double quote or a line break is wrapped in
    double quotes and its inner quotes are doubled. Anything else, such as
    ``plain``, is returned unchanged.
    """
    text = render_value(value)
    if not text:
        return ""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator=LINE_TERMINATOR).writerow([text])
    return buffer.getvalue()[:-len(LINE_TERMINATOR)]


def render_rows(layout: MirrorLayout, records: Iterable[Any]) -> str:
    """Render header plus one line per record."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator=LINE_TERMINATOR)
    writer.writerow(layout.header)
    for record in records:
        writer.writerow(layout.row_for(record))
    return buffer.getvalue()


def write_mirror(path: Union[str, Path], layout: MirrorLayout, records: Iterable[Any]) -> None:
    """Regenerate the mirror file at ``path`` from ``records``.

    Raises:
        PersistenceError: If the file cannot be written
    """
    text = render_rows(layout, records)
    write_atomically(path, text.encode("utf-8"), operation="write_mirror")


def append_log_row(path: Union[str, Path], layout: MirrorLayout, record: Any) -> None:
    """Append one record to a log file, writing the header first if the file is new.

    Raises:
        PersistenceError: If the file cannot be opened or written
    """
    target = Path(path)
    write_header = not target.exists()
    try:
        with open(target, "a", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle, lineterminator=LINE_TERMINATOR)
            if write_header:
                writer.writerow(layout.header)
            writer.writerow(layout.row_for(record))
    except OSError as e:
        raise PersistenceError(
            f"Error while writing {target.name}: {e}",
            path=str(target),
            operation="append_log",
        ) from e
    logger.debug(f"Appended {layout.header[0]}={layout.extract(record)[0]} to {target.name}")


# ============================================================================
# Layouts
# ============================================================================

PATIENT_LAYOUT = MirrorLayout(
    header=("id", "name", "dob", "age", "status", "gender", "contact", "address", "medicalHistory", "admitDate"),
    extract=lambda p: (
        p.id, p.name, p.date_of_birth, p.age, p.status, p.gender,
        p.contact, p.address, p.medical_history, p.admit_date,
    ),
)

USER_LAYOUT = MirrorLayout(
    header=("username", "role", "passwordHash"),
    extract=lambda u: (u.username, u.role, u.password_hash),
)

DOCTOR_LAYOUT = MirrorLayout(
    header=("id", "name", "specialization", "dutyTimings", "contact"),
    extract=lambda d: (d.id, d.name, d.specialization, d.duty_timings, d.contact),
)

STAFF_LAYOUT = MirrorLayout(
    header=("id", "name", "role", "shiftSchedule", "contact"),
    extract=lambda s: (s.id, s.name, s.role, s.shift_schedule, s.contact),
)

APPOINTMENT_LAYOUT = MirrorLayout(
    header=("appointmentId", "patientId", "doctorId", "datetime", "reason", "status"),
    extract=lambda a: (a.id, a.patient_id, a.doctor_id, a.date_time, a.reason, a.status),
)

LAB_REPORT_LAYOUT = MirrorLayout(
    header=("reportId", "patientId", "doctorId", "date", "testName", "result", "notes"),
    extract=lambda r: (r.id, r.patient_id, r.doctor_id, r.date, r.test_name, r.result, r.notes),
)
