"""Tests for wren.server.negotiation — return-value to Response mapping."""

import pytest

from wren.http.response import Redirect, Response
from wren.server.negotiation import JSON_CONTENT_TYPE, json_response, negotiate


class TestNegotiate:
    def test_response_passthrough(self) -> None:
        r = Response("x", status=201)
        assert negotiate(r) is r

    def test_str(self) -> None:
        r = negotiate("<h1>hi</h1>")
        assert r.status == 200
        assert r.content_type == "text/html; charset=utf-8"
        assert r.body == "<h1>hi</h1>"

    def test_bytes(self) -> None:
        r = negotiate(b"\x00\x01")
        assert r.content_type == "application/octet-stream"

    def test_dict(self) -> None:
        r = negotiate({"well": "This one works."})
        assert r.content_type == JSON_CONTENT_TYPE
        assert r.json() == {"well": "This one works."}

    def test_list(self) -> None:
        assert negotiate([1, 2]).json() == [1, 2]

    def test_tuple_with_status(self) -> None:
        r = negotiate(({"created": True}, 201))
        assert r.status == 201
        assert r.json() == {"created": True}

    def test_tuple_with_status_and_headers(self) -> None:
        r = negotiate(("ok", 202, {"X-Job": "7"}))
        assert r.status == 202
        assert ("X-Job", "7") in r.headers

    def test_redirect(self) -> None:
        r = negotiate(Redirect("/next", status=303))
        assert r.status == 303
        assert ("Location", "/next") in r.headers

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert int"):
            negotiate(42)

    def test_none_unsupported(self) -> None:
        with pytest.raises(TypeError):
            negotiate(None)


class TestJSONResponse:
    def test_status(self) -> None:
        r = json_response({"error": "not found"}, 404)
        assert r.status == 404
        assert r.text == '{"error": "not found"}'

    def test_non_serializable_values_use_str(self) -> None:
        class Token:
            def __str__(self) -> str:
                return "tok"

        assert json_response({"t": Token()}).json() == {"t": "tok"}
