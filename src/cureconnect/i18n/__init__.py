"""Translations and locale-aware formatting."""

from cureconnect.i18n.translator import CURRENCY_SYMBOLS, LANGUAGES, Language, Translator

__all__ = ["CURRENCY_SYMBOLS", "LANGUAGES", "Language", "Translator"]
