"""Contact-form inquiries."""

import logging
from dataclasses import dataclass

from cureconnect.data import Database
from cureconnect.errors import DataError

logger = logging.getLogger("cureconnect.data")


@dataclass(frozen=True, slots=True)
class Inquiry:
    id: int
    name: str
    email: str
    message: str
    language: str = "en"
    ip_address: str = ""
    status: str = "new"
    created_at: str | None = None


class InquiryModel:
    __slots__ = ("db",)

    def __init__(self, db: Database) -> None:
        self.db = db

    def create(self, name: str, email: str, message: str, language: str = "en", ip_address: str = "") -> int:
        try:
            return self.db.insert(
                "INSERT INTO inquiries (name, email, message, language, ip_address, created_at)"
                " VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)",
                name,
                email,
                message,
                language,
                ip_address,
            )
        except DataError:
            logger.exception("Could not store inquiry from %s", email)
            raise

    def recent(self, limit: int = 20) -> list[Inquiry]:
        return self.db.fetch(Inquiry, "SELECT * FROM inquiries ORDER BY id DESC LIMIT ?", limit)
