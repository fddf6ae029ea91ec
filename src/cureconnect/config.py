"""Application configuration.

Three frozen sections (``app``, ``database``, ``services``), immutable
after boot, IDE-autocompletable, no string-key dict lookups downstream.

Layering, lowest to highest priority:

1. Built-in defaults (the dataclass field defaults below).
2. ``config/app.toml``, ``config/database.toml``, ``config/services.toml``
   under the instance root, when present.
3. Environment variables (``APP_ENV``, ``DB_DRIVER``, ``DB_NAME``, ...).

``APP_ENV=testing`` short-circuits all of it and returns the hermetic
``testing_config()``: in-memory SQLite, no caching, the fallback renderer.

Two roots are involved. The resource root (the installed package) holds
the bundled templates, lang files and migrations; ``templates_path`` and
``lang_path`` resolve against it. The instance root holds what belongs to
one deployment: ``config/``, ``.env``, the SQLite file, ``logs_path`` and
``cache_path``. It is ``$CURECONNECT_ROOT`` when set, else the working
directory.
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

from cureconnect.errors import ConfigurationError

ENVIRONMENTS: frozenset[str] = frozenset({"testing", "development", "production"})
DRIVERS: frozenset[str] = frozenset({"sqlite", "mysql"})
TEMPLATE_ENGINES: frozenset[str] = frozenset({"kida", "fallback"})
MYSQL_DEFAULT_NAME = "cureconnect_db"
DEFAULT_SECRET_KEY = "change-me"
INSTANCE_ROOT_VAR = "CURECONNECT_ROOT"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class AppSettings:
    """The ``app`` section."""

    name: str = "CureConnect Medical Tourism Portal"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = True
    timezone: str = "Asia/Kolkata"

    # URLs
    base_url: str = "http://localhost/CureConnect"
    assets_url: str = "http://localhost/CureConnect"

    # Paths. Templates and lang resolve against the resource root, the rest
    # against the instance root.
    templates_path: str = "templates"
    lang_path: str = "lang"
    cache_path: str = "var/cache"
    logs_path: str = "var/logs"

    # Rendering
    template_engine: str = "kida"  # "kida" or "fallback"
    default_language: str = "en"

    # Security
    secret_key: str = DEFAULT_SECRET_KEY  # refused in production

    # Dev server
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass(frozen=True, slots=True)
class DatabaseSettings:
    """The ``database`` section.

    ``name`` is a file path for SQLite (``:memory:`` for an in-memory
    store) and a schema name for MySQL.
    """

    driver: str = "sqlite"
    host: str = "localhost"
    port: int = 3306
    name: str = ":memory:"
    username: str = "root"
    password: str = ""
    charset: str = "utf8mb4"
    migrate: bool = True


@dataclass(frozen=True, slots=True)
class Config:
    """The complete configuration. Immutable after creation."""

    app: AppSettings = field(default_factory=AppSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    services: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def as_dict(self) -> dict[str, Any]:
        """Plain nested dict view, used as the ``config`` template variable."""
        data = {"app": asdict(self.app), "database": asdict(self.database)}
        data["database"].pop("password", None)
        data["services"] = dict(self.services)
        return data


def instance_root(environ: Mapping[str, str] | None = None) -> Path:
    """Where deployment files live: ``$CURECONNECT_ROOT``, else the working directory."""
    environ = os.environ if environ is None else environ
    value = environ.get(INSTANCE_ROOT_VAR, "").strip()
    return Path(value) if value else Path.cwd()


def testing_config() -> Config:
    """Hermetic configuration selected by ``APP_ENV=testing``."""
    return Config(
        app=AppSettings(
            name="CureConnect Test",
            environment="testing",
            debug=True,
            base_url="http://localhost:8001",
            assets_url="http://localhost:8001",
            template_engine="fallback",
            secret_key="testing-secret-key",
        ),
        database=DatabaseSettings(driver="sqlite", name=":memory:"),
        services=MappingProxyType({}),
    )


def load_config(instance_path: str | Path, environ: Mapping[str, str] | None = None) -> Config:
    """Build the configuration for the deployment at *instance_path*.

    Args:
        instance_path: Instance root. Config files are read from
            ``<instance>/config/`` when present.
        environ: Environment mapping. Defaults to ``os.environ``.

    Raises:
        ConfigurationError: If a config file is malformed or a value is
            invalid (unknown driver, non-integer port, bad boolean).
    """
    environ = os.environ if environ is None else environ

    if environ.get("APP_ENV", "") == "testing":
        return testing_config()

    config_dir = Path(instance_path) / "config"
    app_data = _read_section(config_dir / "app.toml", "app")
    db_data = _read_section(config_dir / "database.toml", "database")
    services_data = _read_section(config_dir / "services.toml", "services")

    app = _build(AppSettings, app_data, "app")
    database = _build(DatabaseSettings, db_data, "database")

    app = _apply_env(app, environ, _APP_ENV_VARS, "app")
    database = _apply_env(database, environ, _DB_ENV_VARS, "database")
    if database.driver == "mysql" and "name" not in db_data and "DB_NAME" not in environ:
        database = replace(database, name=MYSQL_DEFAULT_NAME)

    config = Config(app=app, database=database, services=MappingProxyType(dict(services_data)))
    _check(config)
    return config


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

# Environment variable -> field name
_APP_ENV_VARS: dict[str, str] = {
    "APP_ENV": "environment",
    "APP_NAME": "name",
    "APP_DEBUG": "debug",
    "APP_BASE_URL": "base_url",
    "APP_ASSETS_URL": "assets_url",
    "APP_SECRET_KEY": "secret_key",
    "APP_TIMEZONE": "timezone",
    "TEMPLATE_ENGINE": "template_engine",
}

_DB_ENV_VARS: dict[str, str] = {
    "DB_DRIVER": "driver",
    "DB_HOST": "host",
    "DB_PORT": "port",
    "DB_NAME": "name",
    "DB_USERNAME": "username",
    "DB_PASSWORD": "password",
}


def _read_section(path: Path, section: str) -> dict[str, Any]:
    """Read one TOML file. A top-level ``[section]`` table is unwrapped."""
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Malformed configuration file {path}: {exc}"
        raise ConfigurationError(msg) from exc
    inner = data.get(section)
    if isinstance(inner, dict):
        return inner
    return data


def _coerce(value: Any, annotation: Any, key: str) -> Any:
    """Coerce a raw file/env value to the field's annotated type."""
    if annotation is bool or annotation == "bool":
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        msg = f"Invalid boolean for {key}: {value!r}"
        raise ConfigurationError(msg)
    if annotation is int or annotation == "int":
        if isinstance(value, bool):
            msg = f"Invalid integer for {key}: {value!r}"
            raise ConfigurationError(msg)
        try:
            return int(value)
        except (TypeError, ValueError):
            msg = f"Invalid integer for {key}: {value!r}"
            raise ConfigurationError(msg) from None
    return str(value)


def _build[T](cls: type[T], data: Mapping[str, Any], section: str) -> T:
    """Create a settings dataclass from defaults merged with *data*."""
    known = {f.name: f.type for f in fields(cls)}  # type: ignore[arg-type]
    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key not in known:
            # Unknown keys are tolerated so config files can carry notes
            continue
        values[key] = _coerce(raw, known[key], f"{section}.{key}")
    return cls(**values)


def _apply_env[T](obj: T, environ: Mapping[str, str], mapping: dict[str, str], section: str) -> T:
    known = {f.name: f.type for f in fields(obj)}  # type: ignore[arg-type]
    changes: dict[str, Any] = {}
    for var, name in mapping.items():
        if var in environ:
            changes[name] = _coerce(environ[var], known[name], f"{section}.{name} (${var})")
    if not changes:
        return obj
    return replace(obj, **changes)  # type: ignore[type-var]


def _check(config: Config) -> None:
    if config.app.environment not in ENVIRONMENTS:
        options = ", ".join(sorted(ENVIRONMENTS))
        msg = f"Unknown environment {config.app.environment!r} (expected one of: {options})"
        raise ConfigurationError(msg)
    if config.app.template_engine not in TEMPLATE_ENGINES:
        options = ", ".join(sorted(TEMPLATE_ENGINES))
        msg = f"Unknown template engine {config.app.template_engine!r} (expected one of: {options})"
        raise ConfigurationError(msg)
    if config.database.driver not in DRIVERS:
        options = ", ".join(sorted(DRIVERS))
        msg = f"Unsupported database driver {config.database.driver!r} (expected one of: {options})"
        raise ConfigurationError(msg)
    if config.app.is_production and config.app.secret_key in ("", DEFAULT_SECRET_KEY):
        msg = "APP_SECRET_KEY must be set to a private value in production"
        raise ConfigurationError(msg)
