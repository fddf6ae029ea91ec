"""Appointment management.

Paths are literal; the appointment id travels as ``?id=``::

    /appointments                 list
    /appointments/show?id=3       detail
    /appointments/create          form (GET) / store (POST)
    /appointments/update?id=3     form (GET) / store (POST)
    /appointments/delete?id=3     delete (POST)
"""

import logging

from cureconnect.controllers.base import BaseController
from cureconnect.errors import BadRequest, Forbidden, NotFound
from cureconnect.http.response import Response
from cureconnect.models.appointment import (
    FIELDS,
    SERVICE_TYPES,
    STATUSES,
    Appointment,
    AppointmentModel,
    clean_appointment_data,
)
from cureconnect.security import verify_csrf_token

logger = logging.getLogger("cureconnect.server")

INDEX_PATH = "/appointments"


def appointment_form_data(appointment: Appointment) -> dict[str, str]:
    """Form field values for editing an existing appointment."""
    return {
        "patient_name": appointment.patient_name,
        "patient_email": appointment.patient_email or "",
        "patient_phone": appointment.patient_phone or "",
        "appointment_date": appointment.appointment_date,
        "appointment_time": appointment.appointment_time,
        "doctor_id": str(appointment.doctor_id) if appointment.doctor_id is not None else "",
        "service_type": appointment.service_type or "",
        "notes": appointment.notes or "",
        "status": appointment.status,
    }


class AppointmentController(BaseController):
    __slots__ = ()

    @property
    def model(self) -> AppointmentModel:
        return AppointmentModel(self.app.db)

    def index(self) -> Response:
        return self.render(
            "appointments/index.html",
            {
                "meta": self.meta_tags(self.trans("Appointments")),
                "title": self.trans("Appointments"),
                "appointments": self.model.all(),
            },
        )

    def show(self) -> Response:
        appointment = self._load()
        return self.render(
            "appointments/show.html",
            {
                "meta": self.meta_tags(self.trans("Appointment Details")),
                "title": self.trans("Appointment Details"),
                "appointment": appointment,
            },
        )

    def create(self) -> Response:
        if not self.request.is_method("POST"):
            return self._form("appointments/create.html", dict.fromkeys(FIELDS, "") | {"status": "pending"})

        self._check_csrf()
        data = clean_appointment_data(self.request.form)
        result = self.model.validate(data)
        if not result:
            return self._form("appointments/create.html", data, result.first_errors())

        appointment_id = self.model.create(data)
        logger.info("Created appointment %s", appointment_id)
        self.flash("Appointment created successfully")
        return self.redirect(INDEX_PATH)

    def update(self) -> Response:
        appointment = self._load()
        if not self.request.is_method("POST"):
            return self._form("appointments/update.html", appointment_form_data(appointment), appointment=appointment)

        self._check_csrf()
        data = clean_appointment_data(self.request.form)
        result = self.model.validate(data)
        if not result:
            return self._form("appointments/update.html", data, result.first_errors(), appointment=appointment)

        if not self.model.update(appointment.id, data):
            raise NotFound("Appointment not found")
        self.flash("Appointment updated successfully")
        return self.redirect(INDEX_PATH)

    def delete(self) -> Response:
        """POST deletes; any other method just goes back to the list."""
        if self.request.is_method("POST"):
            self._check_csrf()
            appointment_id = self._appointment_id()
            if self.model.delete(appointment_id):
                self.flash("Appointment deleted successfully")
            else:
                self.flash("Unable to delete appointment", "error")
        return self.redirect(INDEX_PATH)

    # -- Helpers --

    def _appointment_id(self) -> int:
        appointment_id = self.request.query.get_int("id")
        if appointment_id is None:
            appointment_id = self.request.form.get_int("id")
        if appointment_id is None or appointment_id <= 0:
            raise BadRequest("Invalid appointment ID")
        return appointment_id

    def _load(self) -> Appointment:
        appointment = self.model.find(self._appointment_id())
        if appointment is None:
            raise NotFound("Appointment not found")
        return appointment

    def _check_csrf(self) -> None:
        if not verify_csrf_token(self.request.session, self.request.form.get("csrf_token")):
            raise Forbidden("Invalid CSRF token")

    def _form(
        self,
        template: str,
        data: dict[str, str],
        errors: dict[str, str] | None = None,
        *,
        appointment: Appointment | None = None,
    ) -> Response:
        title = "Edit Appointment" if appointment is not None else "New Appointment"
        return self.render(
            template,
            {
                "meta": self.meta_tags(self.trans(title)),
                "title": self.trans(title),
                "data": data,
                "errors": dict.fromkeys(FIELDS, "") | (errors or {}),
                "has_errors": bool(errors),
                "appointment": appointment,
                "service_types": SERVICE_TYPES,
                "statuses": STATUSES,
            },
        )
