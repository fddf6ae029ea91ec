"""Immutable request parameters.

One type backs both ``request.query`` (the URL query string) and
``request.form`` (a URL-encoded body). Controllers read either through
the same ``get(key, default)`` contract.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class Params(Mapping[str, str]):
    """Immutable multi-value string parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    _data: dict[str, list[str]]
    _raw: str

    __slots__ = ("_data", "_raw")

    def __init__(self, data: Mapping[str, str | list[str]] | None = None) -> None:
        normalized: dict[str, list[str]] = {}
        for key, value in (data or {}).items():
            normalized[key] = [value] if isinstance(value, str) else list(value)
        object.__setattr__(self, "_data", normalized)
        object.__setattr__(self, "_raw", "")

    @classmethod
    def parse(cls, encoded: str | bytes) -> Params:
        """Parse an ``application/x-www-form-urlencoded`` string."""
        if isinstance(encoded, bytes):
            encoded = encoded.decode("utf-8", errors="replace")
        params = cls(parse_qs(encoded, keep_blank_values=True))
        object.__setattr__(params, "_raw", encoded)
        return params

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Params({{{items}}})"

    @property
    def raw(self) -> str:
        """The encoded string this instance was parsed from (empty if built from a dict)."""
        return self._raw

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def to_dict(self) -> dict[str, str]:
        """First value per key, as a plain dict."""
        return {key: values[0] for key, values in self._data.items() if values}
