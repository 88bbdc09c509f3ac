"""Form body parsing — URL-encoded and multipart.

``FormData`` implements ``MultiValueMapping`` for consistent access
across ``QueryParams`` and ``FormData``.

URL-encoded forms use stdlib ``urllib.parse``. Multipart bodies are
streamed through ``python-multipart``; file parts land in spooled
temporary files that stay in memory up to a threshold and roll over
to disk past it.
"""

import tempfile
from collections.abc import AsyncIterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any
from urllib.parse import parse_qs

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, MultipartState, parse_options_header

from hark.errors import BodyParseError


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    ``file`` is a ``SpooledTemporaryFile`` positioned at the start. It is
    closed by the handler once the response has been written.
    """

    filename: str
    content_type: str
    size: int
    file: IO[bytes]

    async def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes from the current position (all by default)."""
        return self.file.read(size)

    async def seek(self, offset: int) -> None:
        self.file.seek(offset)

    async def save(self, path: Path) -> None:
        """Write the file content to disk.

        Args:
            path: Destination file path. Parent directories must exist.
        """
        self.file.seek(0)
        with path.open("wb") as out:
            while chunk := self.file.read(64 * 1024):
                out.write(chunk)
        self.file.seek(0)

    def close(self) -> None:
        self.file.close()

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Mapping[str, str]):
    """Immutable parsed form data.

    Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.
    Holds both string field values and uploaded files.

    ``__getitem__`` returns the first value for a key (string fields only).
    ``get_list`` returns all values for a key.
    ``files`` provides access to uploaded files by field name.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: dict[str, list[str]],
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_files", files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files

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
        return f"FormData({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (checkboxes, multi-selects)."""
        return list(self._data.get(key, []))


def parse_urlencoded(body: bytes) -> FormData:
    """Parse an ``application/x-www-form-urlencoded`` body.

    Raises:
        BodyParseError: If the body is not valid UTF-8.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BodyParseError(f"form body is not valid UTF-8: {exc.reason}") from exc
    return FormData(parse_qs(text, keep_blank_values=True))


async def parse_multipart(
    chunks: AsyncIterable[bytes],
    content_type: str,
    *,
    max_memory: int,
) -> FormData:
    """Stream a ``multipart/form-data`` body into FormData.

    File parts are written to ``SpooledTemporaryFile(max_size=max_memory)``.
    Plain field values are held in memory and may not exceed *max_memory*
    bytes in total.

    Raises:
        BodyParseError: On a missing boundary, oversized fields, or a
            malformed or truncated stream. Files opened so far are closed first.
    """
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        raise BodyParseError("multipart form data missing boundary parameter")

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}
    field_bytes = 0

    # Header names and values may arrive split across chunks
    header_field = bytearray()
    header_value = bytearray()
    part_headers: dict[str, bytes] = {}
    field_name: str | None = None
    filename: str | None = None
    value_buf = bytearray()
    spool: Any = None
    spool_size = 0

    def on_part_begin() -> None:
        nonlocal field_name, filename, spool, spool_size
        part_headers.clear()
        value_buf.clear()
        field_name = None
        filename = None
        spool = None
        spool_size = 0

    def on_header_field(buf: bytes, start: int, end: int) -> None:
        header_field.extend(buf[start:end])

    def on_header_value(buf: bytes, start: int, end: int) -> None:
        header_value.extend(buf[start:end])

    def on_header_end() -> None:
        part_headers[header_field.decode("latin-1").lower()] = bytes(header_value)
        header_field.clear()
        header_value.clear()

    def on_headers_finished() -> None:
        nonlocal field_name, filename, spool
        _, params = parse_options_header(part_headers.get("content-disposition", b""))
        name = params.get(b"name")
        if name is not None:
            field_name = name.decode("utf-8", errors="replace")
        fname = params.get(b"filename")
        if fname:
            filename = fname.decode("utf-8", errors="replace")
            spool = tempfile.SpooledTemporaryFile(max_size=max_memory)

    def on_part_data(buf: bytes, start: int, end: int) -> None:
        nonlocal field_bytes, spool_size
        if spool is not None:
            spool_size += spool.write(buf[start:end])
            return
        field_bytes += end - start
        if field_bytes > max_memory:
            raise BodyParseError(f"multipart fields exceed {max_memory} bytes")
        value_buf.extend(buf[start:end])

    def on_part_end() -> None:
        if spool is not None:
            spool.seek(0)
            if field_name is None:
                spool.close()
                return
            ctype = part_headers.get("content-type", b"application/octet-stream")
            previous = files.get(field_name)
            if previous is not None:
                previous.close()
            files[field_name] = UploadFile(
                filename=filename or "",
                content_type=ctype.decode("latin-1"),
                size=spool_size,
                file=spool,
            )
        elif field_name is not None:
            data.setdefault(field_name, []).append(value_buf.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_headers_finished": on_headers_finished,
    }

    def discard() -> None:
        for upload in files.values():
            upload.close()
        if spool is not None:
            spool.close()

    parser = MultipartParser(boundary, callbacks)
    try:
        async for chunk in chunks:
            parser.write(chunk)
        parser.finalize()
    except BodyParseError:
        discard()
        raise
    except MultipartParseError as exc:
        discard()
        raise BodyParseError(f"malformed multipart body: {exc}") from exc

    if parser.state != MultipartState.END:
        discard()
        raise BodyParseError("truncated multipart body")

    return FormData(data, files)
