"""Hark exception hierarchy.

Shared across the compiler, resolver, context and sender so every module
raises and catches the same types.

Three families with different lifetimes:

- ``SpecError`` is raised at registration and prevents the handler from
  ever serving traffic.
- ``ResolutionError`` subclasses describe a bad request. They are never
  raised out of the dispatcher; they are stored on ``Context.error`` and
  the handler decides how to respond.
- ``ParameterError`` and ``ResponseWriteError`` are programming errors in
  the handler and propagate to the caller.
"""


class HarkError(Exception):
    """Base for all hark-specific errors."""


class SpecError(HarkError):
    """Raised when a parameter spec is invalid.

    Typically raised by ``create_handler()`` at startup.
    """


class ResolutionError(HarkError):
    """Base for per-request parameter resolution failures."""


class MissingParameter(ResolutionError):  # noqa: N818
    """A required parameter was absent from every source."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"missing required parameter {name!r}")


class InvalidParameter(ResolutionError):  # noqa: N818
    """A supplied value could not be coerced to the declared type.

    Attributes:
        name: The declared parameter name.
        value: The raw string that failed to parse.
        type: The declared type name (``int``, ``float``, ``bool``).
    """

    _LABELS = {"int": "integer", "float": "float", "bool": "boolean"}

    def __init__(self, name: str, value: str, type: str) -> None:
        self.name = name
        self.value = value
        self.type = type
        label = self._LABELS.get(type, type)
        super().__init__(f"{value!r} is not a valid {label} (parameter {name!r})")


class BodyParseError(ResolutionError):
    """The request body could not be decoded."""


class ParameterError(HarkError, LookupError):
    """Raised by a typed accessor for an unknown name or a type mismatch."""


class ResponseWriteError(HarkError):
    """The handler's payload cannot be written to the response.

    Escalated out of the ASGI call rather than producing a partial response.
    """
