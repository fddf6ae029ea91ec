"""Kida environment setup.

Creates the kida Environment from the ``app`` settings. The environment
is created once during ``Application`` boot and shared by every request.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader
from kida.environment.exceptions import TemplateNotFoundError

from cureconnect.errors import TemplateNotFound


def create_environment(templates_path: str | Path, *, auto_reload: bool = True) -> Environment:
    """Create a kida Environment rooted at *templates_path*.

    ``auto_reload`` is switched off in production so compiled templates
    are cached for the lifetime of the process.
    """
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=True,
        auto_reload=auto_reload,
    )


class KidaRenderer:
    """Renderer backed by the kida template engine."""

    __slots__ = ("_env", "_templates_path")

    def __init__(self, templates_path: str | Path, *, auto_reload: bool = True) -> None:
        self._templates_path = Path(templates_path)
        self._env = create_environment(templates_path, auto_reload=auto_reload)

    @property
    def env(self) -> Environment:
        return self._env

    @property
    def templates_path(self) -> Path:
        return self._templates_path

    def add_global(self, name: str, value: Any) -> None:
        self._env.add_global(name, value)

    def render(self, name: str, context: Mapping[str, Any] | None = None) -> str:
        try:
            template = self._env.get_template(name)
        except TemplateNotFoundError as exc:
            raise TemplateNotFound(name) from exc
        return template.render(dict(context or {}))
