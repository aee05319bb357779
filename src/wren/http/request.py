"""Immutable HTTP request.

Frozen metadata with async body access. A request is owned by exactly one
dispatch cycle and never changes once dispatch begins.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any

from wren._internal.asgi import Receive, Scope
from wren.errors import HTTPError
from wren.http.headers import Headers
from wren.http.query import QueryParams

_FORM_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    The body is read asynchronously via ``.body()``, ``.json()``,
    ``.text()``, or ``.form()`` and cached after the first read.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for the body and parsed payloads
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        The receive channel is consumed once; later calls return the
        cached bytes.
        """
        if "_body" not in self._cache:
            chunks = [chunk async for chunk in self.stream()]
            self._cache["_body"] = b"".join(chunks)
        return self._cache["_body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8).

        Raises:
            HTTPError: 400 if the body is not valid UTF-8.
        """
        raw = await self.body()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPError(status=400, detail="malformed text body") from exc

    async def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            HTTPError: 400 if the body is not valid JSON.
        """
        raw = await self.body()
        try:
            return json_module.loads(raw)
        except ValueError as exc:
            raise HTTPError(status=400, detail="malformed JSON body") from exc

    async def form(self) -> QueryParams:
        """Parse an ``application/x-www-form-urlencoded`` body.

        Raises:
            HTTPError: 415 for any other content type, 400 if the body is
                not valid UTF-8.
        """
        if "_form" in self._cache:
            return self._cache["_form"]
        ct = (self.content_type or _FORM_TYPE).split(";", 1)[0].strip().lower()
        if ct != _FORM_TYPE:
            raise HTTPError(status=415, detail=f"expected {_FORM_TYPE}, got {ct}")
        raw = await self.body()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPError(status=400, detail="malformed form body") from exc
        result = QueryParams(text)
        self._cache["_form"] = result
        return result

    # -- Factories --

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Request:
        """Create a request without a transport.

        Splits a ``?query`` suffix off *path*. The body is served from
        memory.
        """
        path, _, query_string = path.partition("?")
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(
            method=method.upper(),
            path=path or "/",
            headers=Headers.from_mapping(headers),
            query=QueryParams(query_string),
            _receive=receive,
        )

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers.from_raw(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
