"""Forward-only SQL migration runner.

Migrations are numbered ``.sql`` files, one directory per driver::

    migrations/
        sqlite/
            001_initial.sql
        mysql/
            001_initial.sql

Applied migrations are tracked in a ``_cureconnect_migrations`` table.
If a migration fails, no further migrations are applied.

Usage::

    from cureconnect.data import Database, migrate

    db = Database(settings, root_path)
    db.connect()
    result = migrate(db, root_path / "migrations" / db.driver)
    print(result.summary)
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from cureconnect.data.database import Database
from cureconnect.errors import MigrationError

logger = logging.getLogger("cureconnect.data")

_TRACKING_TABLE = "_cureconnect_migrations"

_CREATE_TRACKING_SQL = f"""
CREATE TABLE IF NOT EXISTS {_TRACKING_TABLE} (
    version    INTEGER PRIMARY KEY,
    name       VARCHAR(255) NOT NULL,
    applied_at VARCHAR(64)  NOT NULL
)
"""


@dataclass(frozen=True, slots=True)
class Migration:
    """A single migration file."""

    version: int
    name: str
    sql: str


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Result of running migrations."""

    applied: list[str]
    already_applied: int
    total_available: int

    @property
    def summary(self) -> str:
        if not self.applied:
            return f"Already up to date ({self.already_applied} migrations applied)"
        applied_names = ", ".join(self.applied)
        return f"Applied {len(self.applied)} migration(s): {applied_names}"


@dataclass(frozen=True, slots=True)
class _Version:
    version: int


def discover_migrations(directory: str | Path) -> list[Migration]:
    """Discover and parse migration files from a directory.

    Files must match ``NNN_description.sql`` where NNN is a zero-padded
    integer version number. Files are sorted by version.
    """
    path = Path(directory)
    if not path.is_dir():
        msg = f"Migration directory does not exist: {path}"
        raise MigrationError(msg)

    migrations: list[Migration] = []
    for sql_file in sorted(path.glob("*.sql")):
        name = sql_file.stem
        parts = name.split("_", 1)
        if len(parts) < 2:
            msg = f"Invalid migration filename: {sql_file.name} (expected NNN_description.sql)"
            raise MigrationError(msg)
        try:
            version = int(parts[0])
        except ValueError:
            msg = f"Invalid migration version in {sql_file.name}: {parts[0]!r} is not an integer"
            raise MigrationError(msg) from None

        sql = sql_file.read_text(encoding="utf-8").strip()
        if not sql:
            msg = f"Empty migration file: {sql_file.name}"
            raise MigrationError(msg)

        migrations.append(Migration(version=version, name=name, sql=sql))

    versions = [m.version for m in migrations]
    if len(versions) != len(set(versions)):
        msg = "Duplicate migration version numbers found"
        raise MigrationError(msg)

    migrations.sort(key=lambda m: m.version)
    return migrations


def applied_versions(db: Database) -> set[int]:
    """Versions already recorded in the tracking table."""
    db.execute(_CREATE_TRACKING_SQL)
    return {row.version for row in db.fetch(_Version, f"SELECT version FROM {_TRACKING_TABLE}")}


def _apply_migration(db: Database, migration: Migration) -> None:
    db.execute_script(migration.sql)
    db.execute(
        f"INSERT INTO {_TRACKING_TABLE} (version, name, applied_at) VALUES (?, ?, ?)",
        migration.version,
        migration.name,
        datetime.now(UTC).isoformat(),
    )


def migrate(db: Database, directory: str | Path) -> MigrationResult:
    """Apply pending migrations from a directory.

    Discovers ``.sql`` files, compares against the tracking table, and
    applies missing migrations in version order.

    Raises:
        MigrationError: If a migration fails or the directory is invalid.
    """
    migrations = discover_migrations(directory)
    done = applied_versions(db)

    applied_names: list[str] = []
    for migration in migrations:
        if migration.version in done:
            continue
        try:
            _apply_migration(db, migration)
        except Exception as exc:
            msg = f"Migration {migration.name} failed: {exc}"
            raise MigrationError(msg) from exc
        logger.info("Applied migration %s", migration.name)
        applied_names.append(migration.name)

    return MigrationResult(
        applied=applied_names,
        already_applied=len(done),
        total_available=len(migrations),
    )
