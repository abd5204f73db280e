"""Tests for patient exports and reports."""

from unittest.mock import patch

import pandas as pd
import pytest

from hospital_records.adapters.reporting import (
    export_patients,
    patients_frame,
    status_summary,
    write_patient_report,
)
from hospital_records.adapters.storage import PatientStore
from hospital_records.domain.ports import PersistenceError
from hospital_records.domain.records import Patient


@pytest.fixture
def roster():
    admitted = Patient(id="P002", name="Sara Ali", contact="03007654321", age=35, address="Lahore, PK")
    admitted.admit()
    return [
        Patient(id="P001", name="Ali Khan", contact="03001234567", age=30, date_of_birth="12-05-1995"),
        admitted,
    ]


class TestPatientsFrame:

    def test_columns_match_mirror(self, roster):
        df = patients_frame(roster)
        assert list(df.columns) == [
            "id", "name", "dob", "age", "status", "gender", "contact", "address", "medicalHistory", "admitDate",
        ]
        assert df["dob"].tolist() == ["12-05-1995", ""]
        assert df["status"].tolist() == ["REGISTERED", "ADMITTED"]

    def test_empty_roster(self):
        df = patients_frame([])
        assert df.empty
        assert "status" in df.columns


class TestExportPatients:
    """Test suite for the CSV export."""

    def test_export_matches_mirror(self, storage_config, roster):
        """Test that an export is identical to the regenerated patients mirror."""
        store = PatientStore(storage_config)
        for patient in roster:
            store.add(patient)
        target = export_patients(store.all(), storage_config.data_dir / "patients_export.csv")
        assert target.read_text(encoding="utf-8") == store.mirror_path.read_text(encoding="utf-8")

    def test_export_can_be_read_back(self, tmp_path, roster):
        target = export_patients(roster, tmp_path / "out" / "patients_export.csv")
        df = pd.read_csv(target, dtype=str, keep_default_na=False)
        assert df["address"].tolist() == ["", "Lahore, PK"]

    def test_write_failure(self, tmp_path, roster):
        with patch.object(pd.DataFrame, "to_csv", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError) as exc_info:
                export_patients(roster, tmp_path / "patients_export.csv")
        assert exc_info.value.operation == "export"


class TestPatientReport:

    def test_timestamped_file_name(self, tmp_path, roster):
        target = write_patient_report(roster, tmp_path)
        assert target.parent == tmp_path
        assert target.name.startswith("patient_report_")
        assert target.suffix == ".csv"
        assert target.name[len("patient_report_"):-len(".csv")].isdigit()
        assert len(target.read_text(encoding="utf-8").splitlines()) == 3


class TestStatusSummary:

    def test_counts_every_status(self, roster):
        assert status_summary(roster) == {"REGISTERED": 1, "ADMITTED": 1, "DISCHARGED": 0}

    def test_empty(self):
        assert status_summary([]) == {"REGISTERED": 0, "ADMITTED": 0, "DISCHARGED": 0}
