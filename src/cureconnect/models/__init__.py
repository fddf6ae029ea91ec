"""Data-access models: parameterized SQL in, frozen dataclasses out."""

from cureconnect.models.appointment import Appointment, AppointmentModel
from cureconnect.models.article import Article, ArticleModel, ArticlePage, CategoryCount, Pagination
from cureconnect.models.inquiry import Inquiry, InquiryModel

__all__ = [
    "Appointment",
    "AppointmentModel",
    "Article",
    "ArticleModel",
    "ArticlePage",
    "CategoryCount",
    "Inquiry",
    "InquiryModel",
    "Pagination",
]
