"""Minimal built-in renderer.

Keeps the application servable with ``template_engine = "fallback"``
(the hermetic testing configuration uses it). Supports template
inheritance through any number of ``extends`` levels, block overriding,
partial includes, and ``{{ name }}`` / ``{{ name.field }}`` substitution
with HTML escaping. Loops and conditionals are not executed; their tags
are dropped and the text between them is kept.

Substitution rules:

- ``{{ name }}`` is ``context[name]``.
- ``{{ name.field }}`` is ``context[name][field]`` for mappings, or the
  public attribute ``field`` of any other object. One level only.
- ``None`` and anything unresolved render as the empty string.
- Values with an ``__html__`` method (``Markup``) are emitted verbatim;
  everything else is escaped.
"""

import html
import logging
import re
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cureconnect.errors import TemplateNotFound, TemplateSyntaxError
from cureconnect.templating.fallback.parser import Block, Include, Node, ParsedTemplate, Text, Var, parse

logger = logging.getLogger("cureconnect.templating")

_EXPR_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(?:\.([A-Za-z_][A-Za-z0-9_]*))?")
_MISSING = object()


def _lookup(expression: str, context: Mapping[str, Any]) -> Any:
    match = _EXPR_RE.fullmatch(expression)
    if match is None:
        return _MISSING
    head, attr = match.groups()
    value = context.get(head, _MISSING)
    if value is _MISSING or attr is None:
        return value
    if isinstance(value, Mapping):
        return value.get(attr, _MISSING)
    if attr.startswith("_"):
        return _MISSING
    return getattr(value, attr, _MISSING)


def _stringify(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    if hasattr(value, "__html__"):
        return str(value.__html__())
    return html.escape(str(value), quote=True)


class FallbackRenderer:
    """Render templates from *templates_path* without a template engine.

    Args:
        templates_path: Root directory for template names.
        cache: Keep parsed templates in memory. Off during development so
            edits show up on the next request.
    """

    __slots__ = ("_cache", "_globals", "_lock", "_root", "cache_enabled")

    def __init__(self, templates_path: str | Path, *, cache: bool = False) -> None:
        self._root = Path(templates_path).resolve()
        self._globals: dict[str, Any] = {}
        self._cache: dict[str, ParsedTemplate] = {}
        self._lock = threading.Lock()
        self.cache_enabled = cache

    @property
    def templates_path(self) -> Path:
        return self._root

    @property
    def globals(self) -> Mapping[str, Any]:
        return dict(self._globals)

    def add_global(self, name: str, value: Any) -> None:
        self._globals[name] = value

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # -- Loading --

    def _path_for(self, name: str) -> Path | None:
        for candidate_name in (name, f"{name}.html"):
            candidate = (self._root / candidate_name).resolve()
            if candidate.is_relative_to(self._root) and candidate.is_file():
                return candidate
        return None

    def load(self, name: str, *, parent: bool = False) -> ParsedTemplate:
        """Read and parse template *name*.

        Raises:
            TemplateNotFound: No such file under the templates root.
            TemplateSyntaxError: The template cannot be parsed.
        """
        if self.cache_enabled:
            cached = self._cache.get(name)
            if cached is not None:
                return cached

        path = self._path_for(name)
        if path is None:
            raise TemplateNotFound(name, parent=parent)
        parsed = parse(path.read_text(encoding="utf-8"), name)

        if self.cache_enabled:
            with self._lock:
                self._cache[name] = parsed
        return parsed

    # -- Rendering --

    def render(self, name: str, context: Mapping[str, Any] | None = None) -> str:
        """Render template *name* with *context* merged over the globals."""
        merged = {**self._globals, **(context or {})}
        return self._render(name, merged, ())

    def render_string(self, source: str, context: Mapping[str, Any] | None = None) -> str:
        """Render template text that does not come from a file."""
        merged = {**self._globals, **(context or {})}
        return self._render_parsed(parse(source), merged, ())

    def _render(self, name: str, context: Mapping[str, Any], includes: tuple[str, ...]) -> str:
        return self._render_parsed(self.load(name), context, includes)

    def _render_parsed(
        self,
        template: ParsedTemplate,
        context: Mapping[str, Any],
        includes: tuple[str, ...],
    ) -> str:
        # Walk up the inheritance chain; the most derived definition of a block wins.
        overrides: dict[str, Block] = {}
        chain = [template.name]
        while template.parent is not None:
            for block_name, block in template.blocks.items():
                overrides.setdefault(block_name, block)
            parent_name = template.parent
            if parent_name in chain:
                cycle = " -> ".join([*chain, parent_name])
                msg = f"Circular template inheritance: {cycle}"
                raise TemplateSyntaxError(msg, name=template.name)
            chain.append(parent_name)
            template = self.load(parent_name, parent=True)

        out: list[str] = []
        used: set[str] = set()
        self._emit(template.nodes, context, overrides, used, out, (*includes, chain[0]))

        dropped = sorted(overrides.keys() - used)
        if dropped:
            logger.debug(
                "Blocks %s in %s are not declared by %s and were dropped",
                ", ".join(dropped),
                chain[0],
                template.name,
            )
        return "".join(out)

    def _emit(
        self,
        nodes: tuple[Node, ...],
        context: Mapping[str, Any],
        overrides: Mapping[str, Block],
        used: set[str],
        out: list[str],
        includes: tuple[str, ...],
    ) -> None:
        for node in nodes:
            match node:
                case Text(value=value):
                    out.append(value)
                case Var(expression=expression):
                    out.append(_stringify(_lookup(expression, context)))
                case Block(name=block_name):
                    used.add(block_name)
                    chosen = overrides.get(block_name, node)
                    self._emit(chosen.body, context, overrides, used, out, includes)
                case Include(name=include_name, lineno=lineno):
                    if include_name in includes:
                        msg = f"Circular include of '{include_name}'"
                        raise TemplateSyntaxError(msg, name=includes[-1], lineno=lineno)
                    out.append(self._render(include_name, context, includes))
