"""Command Line Interface for Hospital-Records.

This module provides a Typer CLI over the hospital service: patient
registration and admission, doctor and staff rosters, appointments, lab
reports and user accounts.

Every command except ``init`` authenticates with ``--user/--password`` (or
HMS_USER / HMS_PASSWORD) and is subject to the role access policy. Errors are
printed in red and the command exits with code 1.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hospital_records.adapters.reporting import (
    EXPORT_FILE_NAME,
    export_patients,
    status_summary,
    write_patient_report,
)
from hospital_records.domain.ports import RecordError, Result, ValidationError
from hospital_records.domain.records import DATE_FORMAT, DATETIME_FORMAT, Patient, User
from hospital_records.domain.services import HospitalService
from hospital_records.infrastructure.settings import APP_NAME, APP_VERSION, Settings
from hospital_records.main import configure_logging, create_service

# Initialize Typer apps and Rich console
app = typer.Typer(
    name="hospital-records",
    help="Hospital-Records: patients, staff, appointments and lab reports",
    add_completion=False
)
patients_app = typer.Typer(help="Register, admit, discharge and report on patients")
doctors_app = typer.Typer(help="Doctor roster")
staff_app = typer.Typer(help="Staff roster")
appointments_app = typer.Typer(help="Appointments")
labs_app = typer.Typer(help="Lab reports")
users_app = typer.Typer(help="User accounts")

app.add_typer(patients_app, name="patients")
app.add_typer(doctors_app, name="doctors")
app.add_typer(staff_app, name="staff")
app.add_typer(appointments_app, name="appointments")
app.add_typer(labs_app, name="labs")
app.add_typer(users_app, name="users")

console = Console()

UserOption = typer.Option(..., "--user", "-u", envvar="HMS_USER", help="Username")
PasswordOption = typer.Option(..., "--password", "-p", envvar="HMS_PASSWORD", help="Password")


@dataclass
class Session:
    settings: Settings
    service: HospitalService
    user: User

    @property
    def data_dir(self) -> Path:
        return self.settings.storage_config.data_dir


@contextmanager
def command_errors() -> Iterator[None]:
    """Turn record errors into a red message and exit code 1."""
    try:
        yield
    except RecordError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


def open_session(username: str, password: str) -> Session:
    app_settings = Settings()
    service = create_service(app_settings)
    user = service.login(username, password)
    return Session(settings=app_settings, service=service, user=user)


def check_saved(result: Result, message: str) -> None:
    """Print ``message`` on success; report the write failure and exit otherwise."""
    if result.is_failure():
        console.print(f"[red]✗[/red] Could not save: {escape(result.error or '')}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {escape(message)}")


def parse_day(text: Optional[str], field: str) -> Optional[date]:
    if not text:
        return None
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {field}: {text} (expected dd-mm-yyyy)", field=field)


def format_day(value: Optional[date]) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


def print_patients(session: Session, patients: List[Patient], title: str = "Patients") -> None:
    if not patients:
        console.print("[dim]No patients found[/dim]")
        return
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Age", justify="right")
    table.add_column("Status")
    table.add_column("Contact", no_wrap=True)
    table.add_column("Admitted", no_wrap=True)
    for p in patients:
        table.add_row(
            p.id,
            p.name,
            str(p.age),
            p.status.value,
            session.service.display_contact(session.user, p),
            format_day(p.admit_date),
        )
    console.print(table)


# ============================================================================
# Top-level commands
# ============================================================================

@app.command()
def init() -> None:
    """Create the data directory and seed the default accounts if none exist."""
    with command_errors():
        app_settings = Settings()
        service = create_service(app_settings)

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Data directory:", str(app_settings.storage_config.data_dir))
    info_table.add_row("Patients:", str(len(service.patients.all())))
    info_table.add_row("Doctors:", str(len(service.doctors.all())))
    info_table.add_row("Staff:", str(len(service.staff.all())))
    info_table.add_row("Users:", str(len(service.users.all())))
    info_table.add_row("Appointments:", str(len(service.appointments.all())))
    info_table.add_row("Lab reports:", str(len(service.lab_reports.all())))
    console.print(info_table)
    for store in (service.patients, service.doctors, service.staff, service.users,
                  service.appointments, service.lab_reports):
        if store.load_result.is_failure():
            console.print(
                f"[yellow]⚠[/yellow] {escape(store.blob_path.name)} could not be read, "
                f"starting empty: {escape(store.load_result.error)}"
            )
    console.print("[green]✓[/green] Data directory ready")


@app.command()
def login(user: str = UserOption, password: str = PasswordOption) -> None:
    """Check a username and password."""
    with command_errors():
        session = open_session(user, password)
    console.print(f"[green]✓[/green] Welcome, {escape(session.user.username)} ({session.user.role.value})")


# ============================================================================
# Patients
# ============================================================================

@patients_app.command("list")
def patients_list(user: str = UserOption, password: str = PasswordOption) -> None:
    """List every patient. Contacts are masked for doctors and nurses."""
    with command_errors():
        session = open_session(user, password)
        print_patients(session, session.service.list_patients(session.user))


@patients_app.command("add")
def patients_add(
    name: str = typer.Option(..., "--name", help="Full name"),
    contact: str = typer.Option(..., "--contact", help="Phone number"),
    age: int = typer.Option(..., "--age", help="Age in years (0-150)"),
    patient_id: Optional[str] = typer.Option(None, "--id", help="Patient id (generated when omitted)"),
    dob: Optional[str] = typer.Option(None, "--dob", help="Date of birth, dd-mm-yyyy"),
    gender: str = typer.Option("", "--gender"),
    address: str = typer.Option("", "--address"),
    history: str = typer.Option("", "--history", help="Medical history"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Register a new patient."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.register_patient(
            session.user,
            id=patient_id,
            name=name,
            date_of_birth=parse_day(dob, "date_of_birth"),
            contact=contact,
            age=age,
            gender=gender,
            address=address,
            medical_history=history,
        )
        check_saved(result, f"Registered {result.value.describe()}")


@patients_app.command("edit")
def patients_edit(
    patient_id: str = typer.Argument(..., help="Patient id"),
    name: Optional[str] = typer.Option(None, "--name"),
    contact: Optional[str] = typer.Option(None, "--contact"),
    age: Optional[int] = typer.Option(None, "--age"),
    dob: Optional[str] = typer.Option(None, "--dob", help="Date of birth, dd-mm-yyyy"),
    gender: Optional[str] = typer.Option(None, "--gender"),
    address: Optional[str] = typer.Option(None, "--address"),
    history: Optional[str] = typer.Option(None, "--history"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Change a patient's details. Only the options given are changed."""
    with command_errors():
        session = open_session(user, password)
        changes = {
            "name": name,
            "contact": contact,
            "age": age,
            "date_of_birth": parse_day(dob, "date_of_birth"),
            "gender": gender,
            "address": address,
            "medical_history": history,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        result = session.service.edit_patient(session.user, patient_id, **changes)
        check_saved(result, f"Updated patient {patient_id}")


@patients_app.command("admit")
def patients_admit(
    patient_id: str = typer.Argument(..., help="Patient id"),
    on: Optional[str] = typer.Option(None, "--date", help="Admission date, dd-mm-yyyy (today by default)"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Admit a patient."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.admit_patient(session.user, patient_id, parse_day(on, "admit_date"))
        check_saved(result, f"Admitted patient {patient_id}")


@patients_app.command("discharge")
def patients_discharge(
    patient_id: str = typer.Argument(..., help="Patient id"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Discharge a patient."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.discharge_patient(session.user, patient_id)
        check_saved(result, f"Discharged patient {patient_id}")


@patients_app.command("delete")
def patients_delete(
    patient_id: str = typer.Argument(..., help="Patient id"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Delete every patient record with the given id (admins only)."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.delete_patient(session.user, patient_id)
    if result.is_success() and result.value == 0:
        console.print(f"[red]✗[/red] Patient {patient_id} not found")
        raise typer.Exit(code=1)
    check_saved(result, f"Deleted {result.value} patient record(s)")


@patients_app.command("search")
def patients_search(
    name: str = typer.Argument(..., help="Name or part of a name"),
    exact: bool = typer.Option(False, "--exact", help="Match the whole name"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Find patients by name, ignoring case."""
    with command_errors():
        session = open_session(user, password)
        matches = session.service.search_patients(session.user, name, exact=exact)
        print_patients(session, matches, title=f"Patients matching '{name}'")


@patients_app.command("sample")
def patients_sample(user: str = UserOption, password: str = PasswordOption) -> None:
    """Register the two sample patients."""
    with command_errors():
        session = open_session(user, password)
        for result in session.service.load_sample_patients(session.user):
            check_saved(result, f"Registered {result.value.describe()}")


@patients_app.command("export")
def patients_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help=f"Output file (default <data dir>/{EXPORT_FILE_NAME})"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Export every patient to CSV."""
    with command_errors():
        session = open_session(user, password)
        target = export_patients(
            session.service.list_patients(session.user),
            output or session.data_dir / EXPORT_FILE_NAME,
        )
    console.print(f"[green]✓[/green] Exported patients to {target}")


@patients_app.command("report")
def patients_report(user: str = UserOption, password: str = PasswordOption) -> None:
    """Write a timestamped patient report and print counts per status."""
    with command_errors():
        session = open_session(user, password)
        patients = session.service.list_patients(session.user)
        target = write_patient_report(patients, session.data_dir)

    summary_table = Table(title="Patients by status", show_header=True, header_style="bold")
    summary_table.add_column("Status")
    summary_table.add_column("Count", justify="right")
    for status, count in status_summary(patients).items():
        summary_table.add_row(status, str(count))
    console.print(summary_table)
    console.print(f"[green]✓[/green] Report saved: {target}")


# ============================================================================
# Doctors and staff
# ============================================================================

@doctors_app.command("list")
def doctors_list(user: str = UserOption, password: str = PasswordOption) -> None:
    """List the doctor roster."""
    with command_errors():
        session = open_session(user, password)
        doctors = session.service.list_doctors(session.user)

    table = Table(title="Doctors", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Specialization")
    table.add_column("Timings")
    table.add_column("Contact", no_wrap=True)
    for d in doctors:
        table.add_row(d.id, d.name, d.specialization, d.duty_timings, d.contact)
    console.print(table)


@doctors_app.command("add")
def doctors_add(
    name: str = typer.Option(..., "--name"),
    contact: str = typer.Option(..., "--contact"),
    specialization: str = typer.Option("", "--specialization"),
    timings: str = typer.Option("", "--timings", help="Duty timings"),
    doctor_id: Optional[str] = typer.Option(None, "--id", help="Doctor id (generated when omitted)"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Add a doctor (admins only)."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.add_doctor(
            session.user,
            id=doctor_id,
            name=name,
            contact=contact,
            specialization=specialization,
            duty_timings=timings,
        )
        check_saved(result, f"Added {result.value.describe()} as {result.value.id}")


@staff_app.command("list")
def staff_list(user: str = UserOption, password: str = PasswordOption) -> None:
    """List the staff roster."""
    with command_errors():
        session = open_session(user, password)
        members = session.service.list_staff(session.user)

    table = Table(title="Staff", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Shift")
    table.add_column("Contact", no_wrap=True)
    for s in members:
        table.add_row(s.id, s.name, s.role, s.shift_schedule, s.contact)
    console.print(table)


@staff_app.command("add")
def staff_add(
    name: str = typer.Option(..., "--name"),
    contact: str = typer.Option(..., "--contact"),
    role: str = typer.Option("", "--role", help="Job role, e.g. Nurse"),
    shift: str = typer.Option("", "--shift", help="Shift schedule"),
    staff_id: Optional[str] = typer.Option(None, "--id", help="Staff id (generated when omitted)"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Add a staff member (admins only)."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.add_staff(
            session.user,
            id=staff_id,
            name=name,
            contact=contact,
            role=role,
            shift_schedule=shift,
        )
        check_saved(result, f"Added {result.value.describe()} as {result.value.id}")


# ============================================================================
# Appointments and lab reports
# ============================================================================

@appointments_app.command("list")
def appointments_list(user: str = UserOption, password: str = PasswordOption) -> None:
    """List booked appointments."""
    with command_errors():
        session = open_session(user, password)
        appointments = session.service.list_appointments(session.user)

    table = Table(title="Appointments", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Patient", no_wrap=True)
    table.add_column("Doctor", no_wrap=True)
    table.add_column("When", no_wrap=True)
    table.add_column("Reason")
    table.add_column("Status")
    for a in appointments:
        table.add_row(a.id, a.patient_id, a.doctor_id, a.date_time.strftime(DATETIME_FORMAT), a.reason, a.status)
    console.print(table)


@appointments_app.command("book")
def appointments_book(
    patient_id: str = typer.Option(..., "--patient", help="Patient id"),
    doctor_id: str = typer.Option(..., "--doctor", help="Doctor id"),
    when: str = typer.Option(..., "--when", help="Date and time, 'dd-mm-yyyy HH:MM'"),
    reason: str = typer.Option("", "--reason"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Book an appointment."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.book_appointment(session.user, patient_id, doctor_id, when, reason)
        check_saved(result, f"Booked appointment {result.value.id}")


@labs_app.command("list")
def labs_list(
    patient_id: Optional[str] = typer.Option(None, "--patient", help="Only this patient's reports"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """List lab reports."""
    with command_errors():
        session = open_session(user, password)
        reports = session.service.list_lab_reports(session.user, patient_id)

    table = Table(title="Lab reports", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Patient", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Test")
    table.add_column("Result")
    for r in reports:
        table.add_row(r.id, r.patient_id, format_day(r.date), r.test_name, r.result)
    console.print(table)


@labs_app.command("add")
def labs_add(
    patient_id: str = typer.Option(..., "--patient", help="Patient id"),
    test_name: str = typer.Option(..., "--test", help="Test name"),
    result_text: str = typer.Option(..., "--result", help="Test result"),
    notes: str = typer.Option("", "--notes"),
    doctor_id: Optional[str] = typer.Option(None, "--doctor", help="Ordering doctor id"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """File a lab report for a registered patient (doctors and admins)."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.add_lab_report(
            session.user, patient_id, test_name, result_text, notes=notes, doctor_id=doctor_id
        )
        check_saved(result, f"Filed lab report {result.value.id}")


# ============================================================================
# Users
# ============================================================================

@users_app.command("list")
def users_list(user: str = UserOption, password: str = PasswordOption) -> None:
    """List user accounts (admins only)."""
    with command_errors():
        session = open_session(user, password)
        accounts = session.service.list_users(session.user)

    table = Table(title="Users", show_header=True, header_style="bold")
    table.add_column("Username", style="cyan")
    table.add_column("Role")
    for account in accounts:
        table.add_row(account.username, account.role.value)
    console.print(table)


@users_app.command("add")
def users_add(
    username: str = typer.Argument(..., help="New username"),
    role: str = typer.Option(..., "--role", help="Admin, Doctor, Nurse or Receptionist"),
    new_password: str = typer.Option(..., "--new-password", help="Password for the new account"),
    user: str = UserOption,
    password: str = PasswordOption,
) -> None:
    """Create a user account (admins only)."""
    with command_errors():
        session = open_session(user, password)
        result = session.service.add_user(session.user, username, new_password, role)
        check_saved(result, f"Created {result.value.role.value} account {result.value.username}")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version information")
) -> None:
    """Hospital-Records: patients, staff, appointments and lab reports."""
    if version:
        console.print(f"{APP_NAME} v{APP_VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()
    configure_logging(Settings())


if __name__ == "__main__":
    app()
