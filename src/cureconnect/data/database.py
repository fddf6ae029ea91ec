"""Typed database access: the process-wide storage handle.

Supports SQLite (stdlib ``sqlite3``) and MySQL (``PyMySQL``).
SQL in, frozen dataclasses out.

One connection is opened per process and shared behind a re-entrant
lock, so statements from concurrent request threads are serialized and
a ``transaction()`` block owns the connection until it exits.

SQL is written with ``?`` placeholders for both drivers; statements are
adapted to PyMySQL's ``%s`` style before execution.

Usage::

    db = Database(DatabaseSettings(driver="sqlite", name=":memory:"))
    db.connect()

    @dataclass(frozen=True, slots=True)
    class Patient:
        id: int
        email: str

    patients = db.fetch(Patient, "SELECT * FROM patients")
    patient = db.fetch_one(Patient, "SELECT * FROM patients WHERE id = ?", 42)
    count = db.fetch_val("SELECT COUNT(*) FROM patients")

    with db.transaction():
        patient_id = db.insert("INSERT INTO patients (email) VALUES (?)", "a@b.co")
        db.execute("INSERT INTO appointments (patient_id) VALUES (?)", patient_id)
"""

import logging
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from cureconnect.config import DatabaseSettings
from cureconnect.data._mapping import map_row, map_rows
from cureconnect.errors import DatabaseConnectionError, DataError, QueryError

logger = logging.getLogger("cureconnect.data")

MAX_ROW_ID = 2**63 - 1
"""Largest value a signed 64-bit INTEGER column (SQLite or MySQL BIGINT) can hold."""


def _sqlite_dict_row(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    return {col[0]: value for col, value in zip(cursor.description, row, strict=True)}


def _adapt_mysql(sql: str) -> str:
    """Translate ``?`` placeholders to PyMySQL's pyformat ``%s``."""
    return sql.replace("%", "%%").replace("?", "%s")


class Database:
    """The storage handle.

    Opened once by ``Application`` during boot; fails loudly with
    ``DatabaseConnectionError`` instead of continuing without a
    connection.
    """

    __slots__ = ("_conn", "_depth", "_lock", "_root_path", "settings")

    def __init__(self, settings: DatabaseSettings, root_path: str | Path | None = None) -> None:
        self.settings = settings
        self._root_path = Path(root_path) if root_path is not None else Path.cwd()
        self._lock = threading.RLock()
        self._conn: Any = None
        self._depth = 0

    @property
    def driver(self) -> str:
        return self.settings.driver

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def sqlite_path(self) -> str:
        """Resolved SQLite database path (relative names resolve against the root)."""
        name = self.settings.name or ":memory:"
        if name == ":memory:" or Path(name).is_absolute():
            return name
        return str(self._root_path / name)

    # -- Connection management --

    def connect(self) -> None:
        """Open the connection. Idempotent.

        Raises:
            DatabaseConnectionError: If the driver cannot connect.
        """
        with self._lock:
            if self._conn is not None:
                return
            if self.driver == "sqlite":
                self._conn = self._connect_sqlite()
            elif self.driver == "mysql":
                self._conn = self._connect_mysql()
            else:
                msg = f"Unsupported database driver: {self.driver!r}"
                raise DataError(msg)
            logger.debug("Connected to %s database %s", self.driver, self._describe())

    def _connect_sqlite(self) -> sqlite3.Connection:
        path = self.sqlite_path
        try:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
            conn.row_factory = _sqlite_dict_row
            conn.execute("PRAGMA foreign_keys = ON")
        except (sqlite3.Error, OSError) as exc:
            msg = f"Could not open SQLite database {path!r}: {exc}"
            raise DatabaseConnectionError(msg) from exc
        return conn

    def _connect_mysql(self) -> Any:
        import pymysql
        import pymysql.cursors

        s = self.settings
        try:
            return pymysql.connect(
                host=s.host,
                port=s.port,
                user=s.username,
                password=s.password,
                database=s.name,
                charset=s.charset,
                cursorclass=pymysql.cursors.DictCursor,
                autocommit=True,
            )
        except pymysql.MySQLError as exc:
            msg = f"Could not connect to MySQL at {s.host}:{s.port}/{s.name}: {exc}"
            raise DatabaseConnectionError(msg) from exc

    def _describe(self) -> str:
        if self.driver == "sqlite":
            return self.sqlite_path
        s = self.settings
        return f"{s.username}@{s.host}:{s.port}/{s.name}"

    def disconnect(self) -> None:
        """Close the connection. Safe to call twice."""
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
            finally:
                self._conn = None

    def _connection(self) -> Any:
        if self._conn is None:
            self.connect()
        return self._conn

    # -- Statements --

    @contextmanager
    def _cursor(self, sql: str, params: Sequence[Any]) -> Iterator[Any]:
        """Execute *sql* and yield the cursor, wrapping driver errors in QueryError."""
        with self._lock:
            conn = self._connection()
            try:
                if self.driver == "sqlite":
                    cursor = conn.execute(sql, tuple(params))
                else:
                    cursor = conn.cursor()
                    cursor.execute(_adapt_mysql(sql), tuple(params))
            except Exception as exc:
                if isinstance(exc, DataError):
                    raise
                logger.debug("Query failed: %s", sql, exc_info=True)
                msg = f"Query failed: {exc}"
                raise QueryError(msg) from exc
            try:
                yield cursor
            finally:
                cursor.close()

    def execute(self, sql: str, *params: Any) -> int:
        """Execute a statement. Returns the number of affected rows."""
        with self._cursor(sql, params) as cursor:
            return cursor.rowcount

    def insert(self, sql: str, *params: Any) -> int:
        """Execute an INSERT. Returns the new row id."""
        with self._cursor(sql, params) as cursor:
            return int(cursor.lastrowid or 0)

    def fetch_dicts(self, sql: str, *params: Any) -> list[dict[str, Any]]:
        """All rows as plain dicts."""
        with self._cursor(sql, params) as cursor:
            return [dict(row) for row in cursor.fetchall()]

    def fetch_dict(self, sql: str, *params: Any) -> dict[str, Any] | None:
        """First row as a plain dict, or None."""
        with self._cursor(sql, params) as cursor:
            row = cursor.fetchone()
        return dict(row) if row is not None else None

    def fetch[T](self, cls: type[T], sql: str, *params: Any) -> list[T]:
        """All rows mapped onto dataclass *cls*."""
        return map_rows(cls, self.fetch_dicts(sql, *params))

    def fetch_one[T](self, cls: type[T], sql: str, *params: Any) -> T | None:
        """First row mapped onto dataclass *cls*, or None."""
        row = self.fetch_dict(sql, *params)
        return map_row(cls, row) if row is not None else None

    def fetch_val(self, sql: str, *params: Any) -> Any:
        """First column of the first row, or None."""
        row = self.fetch_dict(sql, *params)
        if not row:
            return None
        return next(iter(row.values()))

    def execute_script(self, sql: str) -> None:
        """Run several ``;``-separated statements (migrations)."""
        with self._lock:
            conn = self._connection()
            try:
                if self.driver == "sqlite":
                    conn.executescript(sql)
                else:
                    with conn.cursor() as cursor:
                        for statement in _split_statements(sql):
                            cursor.execute(statement)
            except Exception as exc:
                msg = f"Script failed: {exc}"
                raise QueryError(msg) from exc

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Execute multiple statements atomically.

        Commits on clean exit, rolls back on exception. Nesting is
        transparent: an inner ``transaction()`` joins the outer one.
        The lock is held for the whole block so no other thread can
        interleave statements.
        """
        with self._lock:
            conn = self._connection()
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._depth = 1
            if self.driver == "sqlite":
                conn.autocommit = False
            else:
                conn.begin()
            try:
                yield
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
            finally:
                self._depth = 0
                if self.driver == "sqlite":
                    conn.autocommit = True


def _split_statements(sql: str) -> list[str]:
    """Split a migration script on ``;`` line endings (no procedural SQL in migrations)."""
    statements: list[str] = []
    current: list[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        current.append(line)
        if stripped.endswith(";"):
            statements.append("\n".join(current).rstrip().rstrip(";"))
            current = []
    if current:
        statements.append("\n".join(current))
    return statements
