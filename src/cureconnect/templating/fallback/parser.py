"""Parser for the fallback template syntax.

Turns a token stream into a small node tree. Only four directives have
meaning here:

- ``{% extends "parent.html" %}``: must precede any other content, at most once
- ``{% block name %}`` ... ``{% endblock %}`` (or ``{% endblock name %}``)
- ``{% include "partial.html" %}``

Every other directive (``if``, ``for``, ``set``, ``end``, ...) is dropped
from the output; its surrounding text is kept. Comments are dropped.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cureconnect.errors import TemplateSyntaxError
from cureconnect.templating.fallback.lexer import Token, TokenKind, tokenize

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_STRING_RE = re.compile(r"""(?:"([^"]+)"|'([^']+)')""")


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Var:
    expression: str
    lineno: int


@dataclass(frozen=True, slots=True)
class Include:
    name: str
    lineno: int


@dataclass(frozen=True, slots=True)
class Block:
    name: str
    body: tuple["Node", ...]
    lineno: int


type Node = Text | Var | Include | Block


@dataclass(frozen=True, slots=True)
class ParsedTemplate:
    """A parsed template.

    ``blocks`` holds every block defined in the template, nested ones
    included, keyed by name.
    """

    name: str
    nodes: tuple[Node, ...]
    parent: str | None = None
    blocks: Mapping[str, Block] = field(default_factory=lambda: MappingProxyType({}))


class _Parser:
    __slots__ = ("_blocks", "_name", "_parent", "_root", "_seen_content", "_stack")

    def __init__(self, name: str) -> None:
        self._name = name
        self._root: list[Node] = []
        self._stack: list[tuple[str, int, list[Node]]] = []
        self._blocks: dict[str, Block] = {}
        self._parent: str | None = None
        self._seen_content = False

    def _error(self, message: str, lineno: int) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, name=self._name, lineno=lineno)

    def _target(self) -> list[Node]:
        return self._stack[-1][2] if self._stack else self._root

    def _string_arg(self, keyword: str, arg: str, token: Token) -> str:
        match = _STRING_RE.fullmatch(arg)
        if match is None:
            msg = f"'{keyword}' expects a quoted template name"
            raise self._error(msg, token.lineno)
        return match.group(1) or match.group(2)

    def parse(self, tokens: list[Token]) -> ParsedTemplate:
        for token in tokens:
            if token.kind is TokenKind.TEXT:
                if token.value.strip():
                    self._seen_content = True
                self._target().append(Text(token.value))
            elif token.kind is TokenKind.VAR:
                self._seen_content = True
                self._target().append(Var(token.value, token.lineno))
            elif token.kind is TokenKind.TAG:
                self._tag(token)

        if self._stack:
            name, lineno, _ = self._stack[-1]
            msg = f"Unclosed block '{name}'"
            raise self._error(msg, lineno)

        return ParsedTemplate(
            name=self._name,
            nodes=tuple(self._root),
            parent=self._parent,
            blocks=MappingProxyType(self._blocks),
        )

    def _tag(self, token: Token) -> None:
        keyword, _, arg = token.value.partition(" ")
        arg = arg.strip()

        if keyword == "extends":
            if self._parent is not None:
                msg = "A template may only extend one parent"
                raise self._error(msg, token.lineno)
            if self._seen_content:
                msg = "'extends' must come before any other content"
                raise self._error(msg, token.lineno)
            self._parent = self._string_arg(keyword, arg, token)
            return

        self._seen_content = True

        if keyword == "block":
            if not _IDENT_RE.fullmatch(arg):
                msg = f"Invalid block name {arg!r}"
                raise self._error(msg, token.lineno)
            if arg in self._blocks or any(open_name == arg for open_name, _, _ in self._stack):
                msg = f"Block '{arg}' defined twice"
                raise self._error(msg, token.lineno)
            self._stack.append((arg, token.lineno, []))
        elif keyword == "endblock":
            if not self._stack:
                msg = "'endblock' without an open block"
                raise self._error(msg, token.lineno)
            name, lineno, body = self._stack.pop()
            if arg and arg != name:
                msg = f"'endblock {arg}' does not close block '{name}'"
                raise self._error(msg, token.lineno)
            block = Block(name=name, body=tuple(body), lineno=lineno)
            self._blocks[name] = block
            self._target().append(block)
        elif keyword == "include":
            self._target().append(Include(self._string_arg(keyword, arg, token), token.lineno))
        # anything else is a directive this renderer does not execute: drop it


def parse(source: str, name: str = "<string>") -> ParsedTemplate:
    """Tokenize and parse template *source*."""
    return _Parser(name).parse(tokenize(source, name))
