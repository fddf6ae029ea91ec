"""JSON-backed translation lookup.

One ``<code>.json`` file per supported language under the lang path,
each a flat ``{"key": "text"}`` object. Files are loaded on first use and
cached until ``clear_cache()``.

Language resolution for a request, first match wins:

1. ``?lang=`` query parameter (persisted to the session)
2. ``session["language"]``
3. ``Accept-Language`` header, first supported entry (persisted)
4. the configured default (persisted)
"""

import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

from cureconnect.context import current_request
from cureconnect.http.request import HttpRequest

logger = logging.getLogger("cureconnect.i18n")

SESSION_KEY = "language"


@dataclass(frozen=True, slots=True)
class Language:
    """A supported language and its text direction."""

    code: str
    name: str
    direction: str = "ltr"

    @property
    def is_rtl(self) -> bool:
        return self.direction == "rtl"


LANGUAGES: Mapping[str, Language] = {
    "en": Language("en", "English"),
    "bn": Language("bn", "বাংলা"),
    "ar": Language("ar", "العربية", "rtl"),
}

CURRENCY_SYMBOLS: Mapping[str, str] = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)  # fmt: skip


class Translator:
    """Key → localized string lookup with in-memory caching.

    Thread-safe: the cache is guarded by a lock, and per-request state
    (the language choice) lives in the request's session.
    """

    __slots__ = ("_cache", "_lock", "default_language", "lang_path")

    def __init__(self, lang_path: str | Path, default_language: str = "en") -> None:
        self.lang_path = Path(lang_path)
        self.default_language = default_language if default_language in LANGUAGES else "en"
        self._cache: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()

    # -- Language resolution --

    @staticmethod
    def is_supported(language: str | None) -> bool:
        return language in LANGUAGES

    @staticmethod
    def supported_languages() -> dict[str, str]:
        """Code → native display name, in display order."""
        return {code: lang.name for code, lang in LANGUAGES.items()}

    def direction(self, language: str | None = None) -> str:
        """``"rtl"`` or ``"ltr"`` for *language* (default: the current one)."""
        code = language or self._resolve_language()
        lang = LANGUAGES.get(code)
        return lang.direction if lang is not None else "ltr"

    def set_language(self, session: dict[str, Any], language: str) -> bool:
        if not self.is_supported(language):
            return False
        session[SESSION_KEY] = language
        return True

    def current_language(self, request: HttpRequest) -> str:
        """Resolve the request's language and remember it in the session."""
        requested = request.query.get("lang")
        if self.is_supported(requested):
            request.session[SESSION_KEY] = requested
            return requested

        stored = request.session.get(SESSION_KEY)
        if self.is_supported(stored):
            return stored

        browser = self.browser_language(request.headers.get("accept-language"))
        if browser is not None:
            request.session[SESSION_KEY] = browser
            return browser

        request.session[SESSION_KEY] = self.default_language
        return self.default_language

    @staticmethod
    def browser_language(header: str | None) -> str | None:
        """First supported language in an ``Accept-Language`` header."""
        if not header:
            return None
        for entry in header.split(","):
            code = entry.strip()[:2].lower()
            if code in LANGUAGES:
                return code
        return None

    def _resolve_language(self) -> str:
        request = current_request()
        if request is None:
            return self.default_language
        return self.current_language(request)

    # -- Lookup --

    def translations(self, language: str) -> dict[str, str]:
        """The string table for *language*, loading it on first use.

        Keys missing from a language's file are filled from the default
        language, so every table has the same keys.
        """
        cached = self._cache.get(language)
        if cached is not None:
            return cached
        with self._lock:
            if language not in self._cache:
                table = self._load(language)
                if language != self.default_language:
                    table = {**self._load(self.default_language), **table}
                self._cache[language] = table
            return self._cache[language]

    def _load(self, language: str) -> dict[str, str]:
        path = self.lang_path / f"{language}.json"
        if not path.is_file():
            path = self.lang_path / f"{self.default_language}.json"
        if not path.is_file():
            logger.warning("No translation file for %r under %s", language, self.lang_path)
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Could not load translations from %s", path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Translation file %s is not a JSON object", path)
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def translate(
        self,
        key: str,
        language: str | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> str:
        """Localized text for *key*, or *key* itself when there is none.

        ``{name}`` placeholders are replaced from *params*.
        """
        code = language or self._resolve_language()
        if not self.is_supported(code):
            code = self.default_language

        text = self.translations(code).get(key, key)
        if params:
            for name, value in params.items():
                text = text.replace(f"{{{name}}}", str(value))
        return text

    __call__ = translate

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # -- Formatting --

    def format_number(self, number: float, decimals: int = 0, language: str | None = None) -> str:
        """Group thousands; Arabic uses ``٫`` for decimals and ``٬`` for groups."""
        code = language or self._resolve_language()
        formatted = f"{number:,.{decimals}f}"
        if code == "ar":
            formatted = formatted.replace(",", "\0").replace(".", "٫").replace("\0", "٬")
        return formatted

    def format_currency(self, amount: float, currency: str = "INR", language: str | None = None) -> str:
        code = language or self._resolve_language()
        formatted = self.format_number(amount, 2, code)
        symbol = CURRENCY_SYMBOLS.get(currency, currency)
        if code == "ar":
            return f"{formatted} {symbol}"
        return f"{symbol} {formatted}"

    def format_date(self, value: str | date, language: str | None = None) -> str:
        """Long-form date; unparsable strings come back unchanged."""
        if isinstance(value, date):
            parsed = value
        else:
            try:
                parsed = datetime.fromisoformat(value.strip())
            except ValueError:
                return value

        code = language or self._resolve_language()
        month = _MONTHS[parsed.month - 1]
        if code == "bn":
            return f"{parsed.day} {month}, {parsed.year}"
        if code == "ar":
            return f"{parsed.day} {month} {parsed.year}"
        return f"{month} {parsed.day}, {parsed.year}"
