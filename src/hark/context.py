"""Per-request context handed to a dispatch function.

A ``Context`` is built fresh for every request and discarded once the
response is written. It is never shared between requests.

Always check ``ctx.error`` before trusting resolved values: when it is
set, resolution stopped early and later params are missing.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from hark.errors import ParameterError, ResolutionError
from hark.http.forms import UploadFile
from hark.http.headers import MutableHeaders
from hark.http.request import Request
from hark.params import ParamType, Values


@dataclass(slots=True)
class Context:
    """Resolved parameters plus the request they came from.

    Usage::

        def search(ctx: Context) -> tuple[int, str]:
            if ctx.error:
                return 400, str(ctx.error)
            ctx.header("Content-Type", "application/json")
            return 200, json.dumps({"q": ctx.get_str("q"), "page": ctx.get_int("page")})
    """

    request: Request
    args: tuple[str, ...] = ()
    error: ResolutionError | None = None
    headers: MutableHeaders = field(default_factory=MutableHeaders)
    files: Mapping[str, UploadFile] = field(default_factory=dict)
    values: dict[str, Values] = field(default_factory=dict, repr=False)

    def header(self, name: str, value: str) -> None:
        """Set a response header; an empty *value* removes it."""
        self.headers.set(name, value)

    def _lookup(self, name: str, expected: ParamType) -> tuple[Any, ...]:
        values = self.values.get(name)
        if values is None:
            raise ParameterError(f"parameter {name!r} does not exist")
        if values.type is not expected:
            raise ParameterError(f"parameter {name!r} is {values.type}, not {expected}")
        return values.items

    # -- Typed accessors --

    def get_str_list(self, name: str) -> tuple[str, ...]:
        return self._lookup(name, ParamType.STRING)

    def get_str(self, name: str) -> str:
        return self.get_str_list(name)[0]

    def get_int_list(self, name: str) -> tuple[int, ...]:
        return self._lookup(name, ParamType.INT)

    def get_int(self, name: str) -> int:
        return self.get_int_list(name)[0]

    def get_float_list(self, name: str) -> tuple[float, ...]:
        return self._lookup(name, ParamType.FLOAT)

    def get_float(self, name: str) -> float:
        return self.get_float_list(name)[0]

    def get_bool_list(self, name: str) -> tuple[bool, ...]:
        return self._lookup(name, ParamType.BOOL)

    def get_bool(self, name: str) -> bool:
        return self.get_bool_list(name)[0]
