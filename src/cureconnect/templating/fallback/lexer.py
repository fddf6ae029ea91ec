"""Tokenizer for the fallback template syntax.

Splits template source into four token kinds::

    TEXT     plain output
    VAR      {{ expression }}
    TAG      {% directive args %}
    COMMENT  {# anything #}

Delimiters never nest. An opener without its closer is a
``TemplateSyntaxError`` carrying the opener's line number.
"""

from dataclasses import dataclass
from enum import Enum

from cureconnect.errors import TemplateSyntaxError


class TokenKind(Enum):
    TEXT = "text"
    VAR = "var"
    TAG = "tag"
    COMMENT = "comment"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: str
    lineno: int


_OPENERS: dict[str, tuple[TokenKind, str, str]] = {
    "{{": (TokenKind.VAR, "}}", "variable tag"),
    "{%": (TokenKind.TAG, "%}", "block tag"),
    "{#": (TokenKind.COMMENT, "#}", "comment"),
}


def _next_opener(source: str, start: int) -> int:
    """Index of the next ``{{``/``{%``/``{#`` at or after *start*, or -1."""
    pos = source.find("{", start)
    while pos != -1:
        if source[pos : pos + 2] in _OPENERS:
            return pos
        pos = source.find("{", pos + 1)
    return -1


def tokenize(source: str, name: str | None = None) -> list[Token]:
    """Split *source* into tokens.

    Tag and variable bodies are stripped of surrounding whitespace and of
    the ``-`` whitespace-control markers, which are accepted and ignored.
    """
    tokens: list[Token] = []
    pos = 0
    lineno = 1
    length = len(source)

    while pos < length:
        start = _next_opener(source, pos)
        if start == -1:
            tokens.append(Token(TokenKind.TEXT, source[pos:], lineno))
            break
        if start > pos:
            text = source[pos:start]
            tokens.append(Token(TokenKind.TEXT, text, lineno))
            lineno += text.count("\n")

        kind, closer, label = _OPENERS[source[start : start + 2]]
        end = source.find(closer, start + 2)
        if end == -1:
            msg = f"Unterminated {label}"
            raise TemplateSyntaxError(msg, name=name, lineno=lineno)

        body = source[start + 2 : end]
        if kind is not TokenKind.COMMENT:
            body = body.strip().strip("-").strip()
        tokens.append(Token(kind, body, lineno))
        lineno += source.count("\n", start, end + 2)
        pos = end + 2

    return tokens
