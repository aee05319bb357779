"""Immutable multi-value parameters parsed from a URL-encoded string.

Used for both the query string and ``application/x-www-form-urlencoded``
bodies, which share the same encoding.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Immutable URL-encoded parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, raw: bytes | str = b"") -> None:
        text = raw.decode("latin-1") if isinstance(raw, bytes) else raw
        self._raw = text
        self._data: dict[str, list[str]] = parse_qs(text, keep_blank_values=True)

    @property
    def raw(self) -> str:
        """The undecoded parameter string."""
        return self._raw

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
        return f"QueryParams({{{items}}})"

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
