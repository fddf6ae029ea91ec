"""Template rendering.

Two interchangeable renderers sit behind the ``Renderer`` protocol:

- ``KidaRenderer``: the full kida engine (loops, conditionals, filters).
- ``FallbackRenderer``: the built-in renderer (inheritance, blocks,
  includes, variable substitution).

``create_renderer()`` picks one from ``AppSettings.template_engine``.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from cureconnect.config import AppSettings
from cureconnect.errors import TemplateError
from cureconnect.templating.fallback import FallbackRenderer
from cureconnect.templating.integration import KidaRenderer


@runtime_checkable
class Renderer(Protocol):
    """Anything that renders a named template with a context."""

    def render(self, name: str, context: Mapping[str, Any] | None = None) -> str: ...

    def add_global(self, name: str, value: Any) -> None: ...


def create_renderer(settings: AppSettings, templates_path: str | Path) -> Renderer:
    """Build the renderer selected by ``settings.template_engine``.

    Raises:
        TemplateError: If the templates directory does not exist.
    """
    path = Path(templates_path)
    if not path.is_dir():
        msg = f"Templates directory does not exist: {path}"
        raise TemplateError(msg)

    if settings.template_engine == "fallback":
        return FallbackRenderer(path, cache=settings.is_production)

    return KidaRenderer(path, auto_reload=not settings.is_production)


__all__ = ["FallbackRenderer", "KidaRenderer", "Renderer", "create_renderer"]
