"""The site's route table."""

from cureconnect.controllers import (
    AppointmentController,
    ArticleController,
    HomeController,
    PageController,
)
from cureconnect.routing import RouteTable

ROUTES: tuple[tuple[str, type, str], ...] = (
    ("/", HomeController, "index"),
    ("/about", PageController, "about"),
    ("/contact", PageController, "contact"),
    ("/gallery", PageController, "gallery"),
    ("/government-schemes", PageController, "government_schemes"),
    ("/articles", ArticleController, "index"),
    ("/article", ArticleController, "show"),
    ("/appointments", AppointmentController, "index"),
    ("/appointments/show", AppointmentController, "show"),
    ("/appointments/create", AppointmentController, "create"),
    ("/appointments/update", AppointmentController, "update"),
    ("/appointments/delete", AppointmentController, "delete"),
)


def build_routes() -> RouteTable:
    table = RouteTable()
    for path, controller, action in ROUTES:
        table.add(path, controller, action)
    return table
