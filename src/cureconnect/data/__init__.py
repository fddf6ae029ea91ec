"""Typed storage access: SQL in, frozen dataclasses out.

Usage::

    from cureconnect.data import Database, migrate

    db = Database(config.database, root_path)
    db.connect()
    migrate(db, root_path / "migrations" / db.driver)
    rows = db.fetch(Article, "SELECT * FROM articles WHERE status = ?", "published")
"""

from cureconnect.data._mapping import map_row, map_rows
from cureconnect.data.database import MAX_ROW_ID, Database
from cureconnect.data.migrate import MigrationResult, migrate

__all__ = [
    "MAX_ROW_ID",
    "Database",
    "MigrationResult",
    "map_row",
    "map_rows",
    "migrate",
]
