"""End-to-end tests for the hospital-records CLI."""

import logging
import os
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from hospital_records.cli import app

runner = CliRunner()

ADMIN = ["--user", "admin", "--password", "admin123"]
DOCTOR = ["--user", "doc", "--password", "doc123"]
NURSE = ["--user", "nurse", "--password", "nurse123"]
RECEPTIONIST = ["--user", "recep", "--password", "recep123"]


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def invoke(data_dir):
    env = {"HMS_DATA_DIR": str(data_dir), "HMS_LOG_LEVEL": "WARNING", "HMS_SEED_DEFAULT_USERS": "true"}

    def _invoke(*args):
        return runner.invoke(app, list(args), env=env)
    return _invoke


class TestSetup:
    """Test suite for init, login and version."""

    def test_version(self, invoke):
        result = invoke("--version")
        assert result.exit_code == 0
        assert "Hospital-Records v1.0.0" in result.output

    def test_init_creates_files(self, invoke, data_dir):
        result = invoke("init")
        assert result.exit_code == 0
        assert "Data directory ready" in result.output
        assert (data_dir / "users.ser").exists()
        assert (data_dir / "users.txt").read_text(encoding="utf-8").startswith("username,role,passwordHash\n")

    def test_init_reads_dotenv(self, tmp_path, monkeypatch):
        """Test that a .env in the working directory drives storage and seeding."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text(
            "HMS_DATA_DIR=store\nHMS_SEED_DEFAULT_USERS=false\nHMS_LOG_LEVEL=WARNING\n", encoding="utf-8"
        )
        with patch.dict(os.environ, {}, clear=False):
            for key in ("HMS_DATA_DIR", "HMS_SEED_DEFAULT_USERS", "HMS_LOG_LEVEL", "HMS_LOG_JSON"):
                os.environ.pop(key, None)
            result = runner.invoke(app, ["init"])
            login = runner.invoke(app, ["login", *ADMIN])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "store").is_dir()
        assert not (tmp_path / "store" / "users.ser").exists()
        assert login.exit_code == 1
        assert "Invalid credentials" in login.output

    def test_init_reports_unreadable_blob(self, invoke, data_dir):
        """Test that a corrupt blob is reported while init still succeeds."""
        data_dir.mkdir()
        (data_dir / "patients.ser").write_bytes(b"\x00not json")
        result = invoke("init")
        assert result.exit_code == 0, result.output
        assert "patients.ser could not be read" in result.output
        assert "Data directory ready" in result.output

    def test_logging_survives_repeated_invocations(self, invoke):
        """Test that the log handler does not keep a stream closed by an earlier run."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            assert invoke("init").exit_code == 0
            assert invoke("login", *ADMIN).exit_code == 0
            assert not root.handlers[0].stream.closed
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_login(self, invoke):
        result = invoke("login", *ADMIN)
        assert result.exit_code == 0
        assert "Welcome, admin (Admin)" in result.output

    def test_login_bad_password(self, invoke):
        result = invoke("login", "--user", "admin", "--password", "nope")
        assert result.exit_code == 1
        assert "Invalid credentials" in result.output


class TestPatientCommands:
    """Test suite for the patients command group."""

    def test_add_and_list(self, invoke):
        result = invoke(
            "patients", "add", "--id", "P100", "--name", "Bilal", "--contact", "03111111111",
            "--age", "40", *RECEPTIONIST,
        )
        assert result.exit_code == 0, result.output
        assert "Registered" in result.output

        listed = invoke("patients", "list", *RECEPTIONIST)
        assert "P100" in listed.output
        assert "03111111111" in listed.output

    def test_nurse_sees_masked_contact(self, invoke):
        invoke("patients", "sample", *ADMIN)
        result = invoke("patients", "list", *NURSE)
        assert result.exit_code == 0
        assert "P001" in result.output
        assert "03*****67" in result.output
        assert "03001234567" not in result.output

    def test_invalid_age(self, invoke):
        result = invoke(
            "patients", "add", "--name", "Old", "--contact", "0300", "--age", "151", *ADMIN,
        )
        assert result.exit_code == 1
        assert "Invalid age: 151" in result.output

    def test_admit_and_discharge(self, invoke, data_dir):
        invoke("patients", "sample", *ADMIN)

        denied = invoke("patients", "admit", "P001", *RECEPTIONIST)
        assert denied.exit_code == 1
        assert "may not admit patient" in denied.output

        admitted = invoke("patients", "admit", "p001", "--date", "10-01-2025", *NURSE)
        assert admitted.exit_code == 0, admitted.output
        mirror = (data_dir / "patients.txt").read_text(encoding="utf-8")
        assert "P001,Ali Khan,12-05-1995,30,ADMITTED" in mirror
        assert mirror.splitlines()[1].endswith(",10-01-2025")

        discharged = invoke("patients", "discharge", "P001", *DOCTOR)
        assert discharged.exit_code == 0
        assert "DISCHARGED" in (data_dir / "patients.txt").read_text(encoding="utf-8")

    def test_admit_unknown_patient(self, invoke):
        result = invoke("patients", "admit", "P404", *NURSE)
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_edit(self, invoke, data_dir):
        invoke("patients", "sample", *ADMIN)
        result = invoke("patients", "edit", "P002", "--address", "Islamabad", *RECEPTIONIST)
        assert result.exit_code == 0, result.output
        assert "Islamabad" in (data_dir / "patients.txt").read_text(encoding="utf-8")

    def test_delete_admin_only(self, invoke):
        invoke("patients", "sample", *ADMIN)
        assert invoke("patients", "delete", "P001", *NURSE).exit_code == 1

        result = invoke("patients", "delete", "P001", *ADMIN)
        assert result.exit_code == 0
        assert "Deleted 1" in result.output

        missing = invoke("patients", "delete", "P001", *ADMIN)
        assert missing.exit_code == 1

    def test_search(self, invoke):
        invoke("patients", "sample", *ADMIN)
        result = invoke("patients", "search", "sara", *ADMIN)
        assert "P002" in result.output
        assert "P001" not in result.output

    def test_export_and_report(self, invoke, data_dir):
        invoke("patients", "sample", *ADMIN)
        exported = invoke("patients", "export", *ADMIN)
        assert exported.exit_code == 0
        assert (data_dir / "patients_export.csv").exists()

        report = invoke("patients", "report", *ADMIN)
        assert report.exit_code == 0
        assert "REGISTERED" in report.output
        assert len(list(data_dir.glob("patient_report_*.csv"))) == 1


class TestOtherCommands:
    """Test suite for doctors, staff, appointments, labs and users."""

    def test_doctors(self, invoke):
        result = invoke("doctors", "add", "--id", "D001", "--name", "Ahmed", "--contact", "0311",
                        "--specialization", "ENT", *ADMIN)
        assert result.exit_code == 0, result.output
        assert "Dr. Ahmed (ENT)" in result.output
        assert "D001" in invoke("doctors", "list", *NURSE).output

    def test_only_admin_adds_staff(self, invoke):
        denied = invoke("staff", "add", "--name", "Ayesha", "--contact", "0322", *DOCTOR)
        assert denied.exit_code == 1
        allowed = invoke("staff", "add", "--id", "S001", "--name", "Ayesha", "--contact", "0322",
                         "--role", "Nurse", *ADMIN)
        assert allowed.exit_code == 0
        assert "S001" in invoke("staff", "list", *ADMIN).output

    def test_book_appointment(self, invoke, data_dir):
        result = invoke("appointments", "book", "--patient", "P001", "--doctor", "D001",
                        "--when", "05-06-2025 10:30", "--reason", "Fever", *RECEPTIONIST)
        assert result.exit_code == 0, result.output
        log = (data_dir / "appointments.csv").read_text(encoding="utf-8").splitlines()
        assert log[0] == "appointmentId,patientId,doctorId,datetime,reason,status"
        assert log[1].endswith(",P001,D001,05-06-2025 10:30,Fever,SCHEDULED")

    def test_doctor_cannot_book(self, invoke):
        result = invoke("appointments", "book", "--patient", "P001", "--doctor", "D001",
                        "--when", "05-06-2025 10:30", *DOCTOR)
        assert result.exit_code == 1

    def test_lab_report(self, invoke, data_dir):
        invoke("patients", "sample", *ADMIN)
        result = invoke("labs", "add", "--patient", "P001", "--test", "CBC", "--result", "Normal", *DOCTOR)
        assert result.exit_code == 0, result.output
        assert "LR" in invoke("labs", "list", "--patient", "P001", *NURSE).output
        assert (data_dir / "lab_reports.csv").exists()

    def test_lab_report_unknown_patient(self, invoke):
        result = invoke("labs", "add", "--patient", "P404", "--test", "CBC", "--result", "Normal", *ADMIN)
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_users(self, invoke):
        result = invoke("users", "add", "frontdesk", "--role", "receptionist", "--new-password", "desk123", *ADMIN)
        assert result.exit_code == 0, result.output
        assert "frontdesk" in invoke("users", "list", *ADMIN).output
        login = invoke("login", "--user", "frontdesk", "--password", "desk123")
        assert "Receptionist" in login.output

    def test_nurse_cannot_list_users(self, invoke):
        assert invoke("users", "list", *NURSE).exit_code == 1
