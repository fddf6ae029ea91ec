"""Request handlers, one class per page group."""

from cureconnect.controllers.appointment import AppointmentController
from cureconnect.controllers.article import ArticleController
from cureconnect.controllers.base import BaseController
from cureconnect.controllers.home import HomeController
from cureconnect.controllers.page import PageController

__all__ = [
    "AppointmentController",
    "ArticleController",
    "BaseController",
    "HomeController",
    "PageController",
]
