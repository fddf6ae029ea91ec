"""Appointments and the patients they belong to."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date

from cureconnect.data import MAX_ROW_ID, Database
from cureconnect.errors import DataError
from cureconnect.security import clean_input
from cureconnect.validation import (
    ValidationResult,
    date_format,
    email,
    matches,
    max_length,
    not_past,
    one_of,
    optional,
    required,
    time_format,
    validate,
)

logger = logging.getLogger("cureconnect.data")

SERVICE_TYPES = ("consultation", "surgery", "treatment", "diagnostic", "follow-up")
STATUSES = ("pending", "confirmed", "completed", "cancelled")
PHONE_PATTERN = r"^[\+]?[0-9\s\-\(\)]+$"

FIELDS = (
    "patient_name",
    "patient_email",
    "patient_phone",
    "appointment_date",
    "appointment_time",
    "doctor_id",
    "service_type",
    "notes",
    "status",
)

_SELECT = """
    SELECT
        a.*,
        p.first_name AS patient_first_name,
        p.last_name AS patient_last_name,
        p.email AS patient_email,
        p.phone AS patient_phone,
        d.name AS doctor_name,
        s.name AS service_name
    FROM appointments a
    LEFT JOIN patients p ON a.patient_id = p.id
    LEFT JOIN doctors d ON a.doctor_id = d.id
    LEFT JOIN services s ON a.service_id = s.id
"""


@dataclass(frozen=True, slots=True)
class Appointment:
    id: int
    patient_id: int
    appointment_date: str
    appointment_time: str
    status: str = "pending"
    notes: str = ""
    doctor_id: int | None = None
    service_id: int | None = None
    service_type: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    patient_first_name: str | None = None
    patient_last_name: str | None = None
    patient_email: str | None = None
    patient_phone: str | None = None
    doctor_name: str | None = None
    service_name: str | None = None

    @property
    def patient_name(self) -> str:
        return f"{self.patient_first_name or ''} {self.patient_last_name or ''}".strip()


@dataclass(frozen=True, slots=True)
class _PatientId:
    id: int


def clean_appointment_data(form: Mapping[str, str]) -> dict[str, str]:
    """Pick the appointment fields out of a submitted form and tidy them up."""
    data = {name: clean_input(form.get(name, "")) for name in FIELDS}
    data["status"] = data["status"] or "pending"
    return data


def split_name(full_name: str) -> tuple[str, str]:
    """``"Asha Rani Das"`` → ``("Asha", "Rani Das")``."""
    first, _, last = full_name.strip().partition(" ")
    return first, last.strip()


class AppointmentModel:
    """Appointment CRUD against the storage handle."""

    __slots__ = ("db",)

    def __init__(self, db: Database) -> None:
        self.db = db

    def all(self) -> list[Appointment]:
        """Every appointment, newest date and time first."""
        return self.db.fetch(
            Appointment,
            _SELECT + " ORDER BY a.appointment_date DESC, a.appointment_time DESC",
        )

    def find(self, appointment_id: int) -> Appointment | None:
        if not 0 < appointment_id <= MAX_ROW_ID:
            return None
        return self.db.fetch_one(Appointment, _SELECT + " WHERE a.id = ?", appointment_id)

    @staticmethod
    def validate(data: Mapping[str, str], today: Callable[[], date] = date.today) -> ValidationResult:
        """Check a cleaned form (see ``clean_appointment_data``)."""
        return validate(data, {
            "patient_name": [required, max_length(200)],
            "patient_email": [required, email],
            "patient_phone": [required, matches(PHONE_PATTERN, "Please enter a valid phone number")],
            "appointment_date": [
                required,
                date_format("%Y-%m-%d", "Please enter a valid date"),
                not_past(today, message="Appointment date cannot be in the past"),
            ],
            "appointment_time": [required, time_format("%H:%M", "Please enter a valid time")],
            "service_type": [optional(one_of(*SERVICE_TYPES))],
            "status": [optional(one_of(*STATUSES))],
        })

    def create(self, data: Mapping[str, str]) -> int:
        """Insert an appointment (and its patient, if new). Returns the new id."""
        try:
            with self.db.transaction():
                patient_id = self._get_or_create_patient(data)
                return self.db.insert(
                    "INSERT INTO appointments ("
                    " patient_id, doctor_id, service_type, appointment_date,"
                    " appointment_time, status, notes, created_at"
                    ") VALUES (?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)",
                    patient_id,
                    self._doctor_id(data.get("doctor_id")),
                    data.get("service_type") or None,
                    data["appointment_date"],
                    data["appointment_time"],
                    data.get("status") or "pending",
                    data.get("notes", ""),
                )
        except DataError:
            logger.exception("Error creating appointment")
            raise

    def update(self, appointment_id: int, data: Mapping[str, str]) -> bool:
        """Update an appointment. Returns False if it does not exist."""
        try:
            with self.db.transaction():
                if self.find(appointment_id) is None:
                    return False
                patient_id = self._get_or_create_patient(data)
                self.db.execute(
                    "UPDATE appointments SET"
                    " patient_id = ?, doctor_id = ?, service_type = ?, appointment_date = ?,"
                    " appointment_time = ?, status = ?, notes = ?, updated_at = CURRENT_TIMESTAMP"
                    " WHERE id = ?",
                    patient_id,
                    self._doctor_id(data.get("doctor_id")),
                    data.get("service_type") or None,
                    data["appointment_date"],
                    data["appointment_time"],
                    data.get("status") or "pending",
                    data.get("notes", ""),
                    appointment_id,
                )
                return True
        except DataError:
            logger.exception("Error updating appointment %s", appointment_id)
            raise

    def delete(self, appointment_id: int) -> bool:
        """Delete an appointment. Returns False if it did not exist."""
        if not 0 < appointment_id <= MAX_ROW_ID:
            return False
        try:
            return self.db.execute("DELETE FROM appointments WHERE id = ?", appointment_id) > 0
        except DataError:
            logger.exception("Error deleting appointment %s", appointment_id)
            raise

    def _doctor_id(self, value: str | None) -> int | None:
        """The submitted doctor id when it names an existing doctor, else None."""
        doctor_id = _optional_int(value)
        if doctor_id is None:
            return None
        if self.db.fetch_val("SELECT COUNT(*) FROM doctors WHERE id = ?", doctor_id):
            return doctor_id
        return None

    def _get_or_create_patient(self, data: Mapping[str, str]) -> int:
        """Find the patient by email (refreshing name and phone) or insert one."""
        first_name, last_name = split_name(data["patient_name"])
        existing = self.db.fetch_one(
            _PatientId, "SELECT id FROM patients WHERE email = ?", data["patient_email"]
        )
        if existing is not None:
            self.db.execute(
                "UPDATE patients SET first_name = ?, last_name = ?, phone = ?,"
                " updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                first_name,
                last_name,
                data["patient_phone"],
                existing.id,
            )
            return existing.id
        return self.db.insert(
            "INSERT INTO patients (first_name, last_name, email, phone, created_at)"
            " VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)",
            first_name,
            last_name,
            data["patient_email"],
            data["patient_phone"],
        )


def _optional_int(value: str | None) -> int | None:
    if value is None or not str(value).strip():
        return None
    try:
        number = int(value)
    except ValueError:
        return None
    return number if 0 < number <= MAX_ROW_ID else None
