"""ASGI response sending — writes a dispatch function's result.

Payloads are written by type:

- ``bytes``/``bytearray``/``memoryview`` and ``str`` (UTF-8) go out as one
  body with ``Content-Length``.
- ``None`` is an empty body.
- Anything with a ``read(n)`` method (sync or async) is drained in chunks
  and streamed without ``Content-Length``.

Any other payload raises ``ResponseWriteError`` before the response
starts, so a client never sees a half-written reply. Transport errors
from ``send`` propagate unchanged.
"""

import logging

from hark._internal.asgi import Send
from hark._internal.invoke import invoke
from hark.errors import ResponseWriteError
from hark.http.headers import MutableHeaders

logger = logging.getLogger("hark.server")

NOSNIFF = ("x-content-type-options", "nosniff")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _fixed_body(payload: object) -> bytes | None:
    """Encode a fixed-size payload, or ``None`` if it must be streamed."""
    if payload is None:
        return b""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    return None


async def send_response(
    status: int,
    headers: MutableHeaders,
    payload: object,
    send: Send,
    *,
    chunk_size: int = 64 * 1024,
) -> None:
    """Translate a status, header set and payload into ASGI send() calls.

    Raises:
        ResponseWriteError: If *payload* is not bytes, text or readable.
    """
    body = _fixed_body(payload)
    if body is None and not callable(getattr(payload, "read", None)):
        logger.error("cannot write payload of type %s", type(payload).__name__)
        msg = f"payload must be bytes, str or a readable stream, not {type(payload).__name__}"
        raise ResponseWriteError(msg)

    headers.set(*NOSNIFF)
    raw_headers = headers.raw()

    if not _body_allowed(status):
        body = b""

    if body is not None:
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
        await send({"type": "http.response.start", "status": status, "headers": raw_headers})
        await send({"type": "http.response.body", "body": body})
        return

    await send({"type": "http.response.start", "status": status, "headers": raw_headers})
    read = payload.read  # type: ignore[union-attr]
    while True:
        chunk = await invoke(read, chunk_size)
        if not chunk:
            break
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        await send({"type": "http.response.body", "body": bytes(chunk), "more_body": True})
    await send({"type": "http.response.body", "body": b"", "more_body": False})


async def send_not_implemented(send: Send) -> None:
    """Plain-text ``501 Not Implemented`` reply."""
    headers = MutableHeaders()
    headers.set("content-type", "text/plain; charset=utf-8")
    await send_response(501, headers, "Not Implemented\n", send)
