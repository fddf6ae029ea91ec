"""Informational pages and the contact form."""

import logging

from cureconnect.controllers.base import BaseController
from cureconnect.http.response import Response
from cureconnect.models.inquiry import InquiryModel
from cureconnect.security import (
    check_rate_limit,
    clean_input,
    client_ip,
    validate_email,
    verify_csrf_token,
)

logger = logging.getLogger("cureconnect.server")

CONTACT_RATE_LIMIT = 5
CONTACT_RATE_WINDOW = 300

CONTACT_FIELDS = ("name", "email", "phone", "message")


class PageController(BaseController):
    __slots__ = ()

    def about(self) -> Response:
        return self.render(
            "pages/about.html",
            {
                "meta": self.meta_tags(
                    self.trans("About CureConnect - Leading Medical Tourism Platform in India"),
                    self.trans(
                        "Learn about CureConnect's mission to connect international patients"
                        " with India's world-class healthcare providers."
                    ),
                    "medical tourism india, about cureconnect, healthcare india, medical visa",
                ),
                "body_class": "about-page",
            },
        )

    def contact(self) -> Response:
        """Show the contact form; on POST, validate and store the inquiry."""
        message = None
        message_type = None
        status = 200
        form = dict.fromkeys(CONTACT_FIELDS, "")

        if self.request.is_method("POST"):
            form = {name: clean_input(self.request.form.get(name, "")) for name in CONTACT_FIELDS}
            message, message_type, status = self._handle_contact_form(form)
            if message_type == "success":
                form = dict.fromkeys(CONTACT_FIELDS, "")

        return self.render(
            "pages/contact.html",
            {
                "meta": self.meta_tags(
                    self.trans("Contact CureConnect - Get Free Medical Tourism Consultation"),
                    self.trans(
                        "Contact CureConnect for personalized medical tourism assistance."
                        " Get free consultation, treatment cost estimates, and visa guidance."
                    ),
                    "contact medical tourism, free consultation india, medical visa help",
                ),
                "body_class": "contact-page",
                "message": message,
                "message_type": message_type,
                "form": form,
            },
            status=status,
        )

    def _handle_contact_form(self, form: dict[str, str]) -> tuple[str, str, int]:
        """Returns ``(message, message_type, status)``."""
        session = self.request.session
        if not check_rate_limit(session, "contact", CONTACT_RATE_LIMIT, CONTACT_RATE_WINDOW):
            return self.trans("Too many submissions. Please try again later."), "error", 429

        if not verify_csrf_token(session, self.request.form.get("csrf_token", "")):
            return self.trans("Security token mismatch. Please try again."), "error", 403

        if not form["name"] or not form["email"] or not form["message"]:
            return self.trans("Please fill in all required fields."), "error", 200

        if not validate_email(form["email"]):
            return self.trans("Please provide a valid email address."), "error", 200

        InquiryModel(self.app.db).create(
            form["name"],
            form["email"],
            form["message"],
            self.language(),
            client_ip(self.request),
        )
        logger.info("New contact inquiry from %s", form["email"])
        return self.trans("Thank you for your inquiry. We will contact you soon!"), "success", 200

    def gallery(self) -> Response:
        assets_url = self.app.config.app.assets_url
        categories = [
            {"key": key, "label": self.trans(label)}
            for key, label in (
                ("all", "All Images"),
                ("hospitals", "Hospitals"),
                ("treatments", "Treatments"),
                ("facilities", "Facilities"),
                ("patient-rooms", "Patient Rooms"),
                ("equipment", "Medical Equipment"),
                ("doctors", "Doctors & Staff"),
            )
        ]
        gallery_items = [
            {
                "id": 1,
                "title": self.trans("Apollo Hospital Chennai - Main Building"),
                "category": "hospitals",
                "image": f"{assets_url}/images/hospital-main-building.png",
                "thumbnail": f"{assets_url}/images/logo_250x150.svg",
                "description": self.trans("State-of-the-art medical facility with 500+ beds"),
                "hospital": "Apollo Hospital Chennai",
            },
            {
                "id": 2,
                "title": self.trans("Cardiac Surgery Suite"),
                "category": "treatments",
                "image": f"{assets_url}/images/cardiac-surgery-suite.png",
                "thumbnail": f"{assets_url}/images/logo_100x100.svg",
                "description": self.trans("Advanced cardiac surgery operating theater"),
                "hospital": "Fortis Hospital Delhi",
            },
        ]
        return self.render(
            "pages/gallery.html",
            {
                "meta": self.meta_tags(
                    self.trans("Medical Tourism Gallery - Hospitals & Treatment Facilities in India"),
                    self.trans("Explore world-class medical facilities, hospitals, and treatment centers in India."),
                    "medical tourism gallery, hospitals india, medical facilities",
                ),
                "body_class": "gallery-page",
                "categories": categories,
                "gallery_items": gallery_items,
            },
        )

    def government_schemes(self) -> Response:
        schemes = [
            {
                "title": self.trans("Heal in India"),
                "description": self.trans(
                    "National initiative to position India as a global healthcare destination"
                ),
                "icon": "fas fa-heart",
                "benefits": [
                    self.trans("Streamlined medical visa process"),
                    self.trans("Quality assurance through accredited hospitals"),
                    self.trans("24/7 helpline support for international patients"),
                    self.trans("Promotional activities in target countries"),
                ],
            },
            {
                "title": self.trans("e-Medical Visa"),
                "description": self.trans("Online medical visa facility for 156+ countries"),
                "icon": "fas fa-passport",
                "benefits": [
                    self.trans("Online application process"),
                    self.trans("Quick processing (72 hours)"),
                    self.trans("Available for 156+ countries"),
                    self.trans("Medical attendant visa facility"),
                ],
            },
        ]
        visa_steps = [
            {
                "step": 1,
                "title": self.trans("Check Eligibility"),
                "description": self.trans("Verify if your country is eligible for e-Medical visa"),
            },
            {
                "step": 2,
                "title": self.trans("Prepare Documents"),
                "description": self.trans("Gather required documents for visa application"),
            },
            {
                "step": 3,
                "title": self.trans("Apply Online"),
                "description": self.trans("Complete the online visa application form"),
            },
        ]
        return self.render(
            "pages/government-schemes.html",
            {
                "meta": self.meta_tags(
                    self.trans("Government Schemes & e-Medical Visa for Medical Tourism in India"),
                    self.trans(
                        "Learn about Indian government initiatives supporting medical tourism"
                        " including e-Medical visa process."
                    ),
                    "government schemes medical tourism, e-medical visa india, heal in india",
                ),
                "body_class": "government-schemes-page",
                "schemes": schemes,
                "visa_steps": visa_steps,
            },
        )
