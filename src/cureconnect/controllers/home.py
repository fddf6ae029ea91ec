"""Landing page."""

from dataclasses import dataclass

from cureconnect.controllers.base import BaseController
from cureconnect.http.response import Response


@dataclass(frozen=True, slots=True)
class Treatment:
    title: str
    description: str
    icon: str
    cost_india: int
    cost_usa: int
    savings: int


STATISTICS = {
    "medical_tourists": 7_300_000,
    "cost_savings": 70,
    "hospitals": 500,
    "countries": 156,
}

FEATURED_TREATMENTS = (
    Treatment(
        title="Cardiology",
        description="Advanced cardiac care with world-class cardiologists",
        icon="fas fa-heartbeat",
        cost_india=300_000,
        cost_usa=2_500_000,
        savings=88,
    ),
    Treatment(
        title="Orthopedics",
        description="Joint replacement and spine surgery excellence",
        icon="fas fa-bone",
        cost_india=200_000,
        cost_usa=1_800_000,
        savings=89,
    ),
    Treatment(
        title="Oncology",
        description="Comprehensive cancer treatment with latest technology",
        icon="fas fa-user-md",
        cost_india=500_000,
        cost_usa=3_500_000,
        savings=86,
    ),
)


class HomeController(BaseController):
    __slots__ = ()

    def index(self) -> Response:
        translator = self.app.translator
        language = self.language()
        stats = {
            "medical_tourists": translator.format_number(STATISTICS["medical_tourists"], language=language),
            "cost_savings": f"{STATISTICS['cost_savings']}%",
            "hospitals": f"{STATISTICS['hospitals']}+",
            "countries": f"{STATISTICS['countries']}+",
        }
        treatments = [
            {
                "title": treatment.title,
                "description": treatment.description,
                "icon": treatment.icon,
                "cost_india": translator.format_currency(treatment.cost_india, "INR", language),
                "cost_usa": translator.format_currency(treatment.cost_usa, "INR", language),
                "savings": f"{treatment.savings}%",
            }
            for treatment in FEATURED_TREATMENTS
        ]
        return self.render(
            "pages/home.html",
            {
                "meta": self.meta_tags(
                    "World-Class Healthcare in India",
                    "Affordable, accredited medical treatment in India for international patients.",
                    "medical tourism, India, healthcare, surgery",
                    f"{self.app.config.app.assets_url}/images/hero-medical-tourism.jpg",
                ),
                "body_class": "home-page",
                "statistics": STATISTICS,
                "stats": stats,
                "featured_treatments": treatments,
            },
        )
