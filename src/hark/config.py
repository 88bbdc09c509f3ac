"""Handler configuration.

``HandlerConfig`` is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.

The one piece of process-wide state is the default outgoing content type,
read and written through ``default_content_type()``. Set it once during
startup, before the server accepts traffic; it is not synchronised.
"""

from dataclasses import dataclass

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"

_MiB = 1024 * 1024

_default_content_type = DEFAULT_CONTENT_TYPE


def default_content_type(value: str | None = None) -> str:
    """Return the process-wide default content type, setting it first if given.

    Usage::

        default_content_type("application/json")  # at startup
        default_content_type()  # -> "application/json"
    """
    global _default_content_type
    if value is not None:
        _default_content_type = value
    return _default_content_type


@dataclass(frozen=True, slots=True)
class HandlerConfig:
    """Per-handler configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = HandlerConfig(content_type="application/json", max_memory=1 << 20)
    """

    # Response
    content_type: str | None = None  # None = use the process-wide default
    stream_chunk_size: int = 64 * 1024

    # Limits
    max_memory: int = 10 * _MiB  # multipart files spill to disk past this
    max_body_size: int = 10 * _MiB  # URL-encoded and JSON bodies

    def effective_content_type(self) -> str:
        """The content type applied when a handler sets none."""
        if self.content_type is not None:
            return self.content_type
        return default_content_type()
