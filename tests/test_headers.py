"""Tests for wren.http.headers — immutable, case-insensitive Headers."""

import pytest

from wren.http.headers import Headers


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from raw ASGI byte pairs."""
    return Headers.from_raw((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)


class TestHeaders:
    def test_getitem(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["Content-Type"] == "text/html"

    def test_case_insensitive(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"

    def test_missing_key_raises(self) -> None:
        h = _h(("Accept", "*/*"))
        with pytest.raises(KeyError):
            h["X-Missing"]

    def test_get_default(self) -> None:
        assert _h().get("accept", "none") == "none"

    def test_contains_rejects_non_str(self) -> None:
        h = _h(("Accept", "*/*"))
        assert 42 not in h  # type: ignore[operator]

    def test_len_deduplicates(self) -> None:
        h = _h(("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"))
        assert len(h) == 1

    def test_iter_yields_unique_lowercase_keys(self) -> None:
        h = _h(("Accept", "*/*"), ("Content-Type", "text/html"), ("Accept", "text/xml"))
        assert list(h) == ["accept", "content-type"]

    def test_get_list(self) -> None:
        h = _h(("Accept", "text/html"), ("Accept", "text/xml"))
        assert h.get_list("accept") == ["text/html", "text/xml"]
        assert h.get_list("x-missing") == []

    def test_from_mapping(self) -> None:
        h = Headers.from_mapping({"X-Request-Id": "abc"})
        assert h["x-request-id"] == "abc"

    def test_from_none(self) -> None:
        assert len(Headers.from_mapping(None)) == 0

    def test_immutable(self) -> None:
        h = _h(("Accept", "*/*"))
        with pytest.raises(AttributeError, match="immutable"):
            h._pairs = ()  # type: ignore[misc]
