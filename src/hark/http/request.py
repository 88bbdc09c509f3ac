"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any

from hark._internal.asgi import Receive, Scope
from hark.errors import BodyParseError
from hark.http.cookies import parse_cookies
from hark.http.headers import Headers
from hark.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.stream()``,
    ``.json()`` or ``.text()``. The receive channel is consumed once.

    Cookies are parsed once at creation time (in ``from_asgi``) and stored
    as a frozen field.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    cookies: Mapping[str, str]

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: mutable cache for the body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def media_type(self) -> str:
        """Lower-cased Content-Type without parameters (``""`` if absent)."""
        return (self.content_type or "").split(";", 1)[0].strip().lower()

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def body(self, limit: int | None = None) -> bytes:
        """Read the full request body.

        Result is cached. The ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.

        Raises:
            BodyParseError: If *limit* is given and the body exceeds it.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        declared = self.content_length
        if limit is not None and declared is not None and declared > limit:
            raise BodyParseError(f"request body too large ({declared} > {limit} bytes)")
        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if limit is not None and size > limit:
                raise BodyParseError(f"request body too large (limit {limit} bytes)")
            chunks.append(chunk)
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self, limit: int | None = None) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        raw = await self.body(limit)
        return json_module.loads(raw)

    async def text(self, limit: int | None = None) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body(limit)
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            cookies=_cookies_from(headers),
            _receive=receive,
        )


def _cookies_from(headers: Headers) -> dict[str, str]:
    """Merge every ``Cookie`` header (HTTP/2 may split them)."""
    cookies: dict[str, str] = {}
    for header in headers.get_list("cookie"):
        cookies.update(parse_cookies(header))
    return cookies
