"""Built-in template renderer used when the kida engine is not configured."""

from cureconnect.templating.fallback.lexer import Token, TokenKind, tokenize
from cureconnect.templating.fallback.parser import ParsedTemplate, parse
from cureconnect.templating.fallback.renderer import FallbackRenderer

__all__ = [
    "FallbackRenderer",
    "ParsedTemplate",
    "Token",
    "TokenKind",
    "parse",
    "tokenize",
]
