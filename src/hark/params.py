"""Parameter specs — declaration, compilation, and typed coercion.

A ``Param`` is what users write. ``compile_params()`` validates a list of
them once, at registration, turning each into a ``CompiledParam`` whose
default is already coerced to its typed value. Nothing about a compiled
param changes afterwards.

Resolved request values are stored as ``Values``: a tuple of items
tagged with the ``ParamType`` they were coerced to. The tag is what the
typed accessors on ``Context`` check.
"""

import json
import math
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from hark.errors import SpecError


class ParamType(StrEnum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True, slots=True)
class Param:
    """A declared request parameter.

    Usage::

        Param("page", type="int", default="1")
        Param("q", required=True, description="search terms")
    """

    name: str
    type: str = "string"
    default: str = ""
    required: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class CompiledParam:
    """A validated ``Param`` with its default coerced to the declared type."""

    name: str
    type: ParamType
    default: str | int | float | bool
    required: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class Values:
    """Resolved values for one parameter, tagged with their type."""

    type: ParamType
    items: tuple[Any, ...]


# -- Coercion --

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:inf|infinity|nan)", re.IGNORECASE)
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_int(value: str) -> int:
    """Parse a base-10 signed 64-bit integer.

    Stricter than ``int()``: no surrounding whitespace, no underscores.
    """
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid integer literal: {value!r}")
    result = int(value)
    if not _INT64_MIN <= result <= _INT64_MAX:
        raise ValueError(f"integer out of range: {value!r}")
    return result


def parse_float(value: str) -> float:
    """Parse a floating point literal (``1.5``, ``-2e3``, ``inf``, ``nan``).

    ASCII digits only. A finite literal too large for a float is rejected
    rather than rounded to infinity.
    """
    if _SPECIAL_FLOAT_RE.fullmatch(value):
        return float(value)
    if not _FLOAT_RE.fullmatch(value):
        raise ValueError(f"invalid float literal: {value!r}")
    result = float(value)
    if math.isinf(result):
        raise ValueError(f"float out of range: {value!r}")
    return result


def parse_bool(value: str) -> bool:
    """Parse ``1/t/true/TRUE/True`` or ``0/f/false/FALSE/False``."""
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean literal: {value!r}")


# Parser per type; STRING values pass through untouched
PARSERS: dict[ParamType, Callable[[str], Any]] = {
    ParamType.STRING: str,
    ParamType.INT: parse_int,
    ParamType.FLOAT: parse_float,
    ParamType.BOOL: parse_bool,
}

ZERO: dict[ParamType, Any] = {
    ParamType.STRING: "",
    ParamType.INT: 0,
    ParamType.FLOAT: 0.0,
    ParamType.BOOL: False,
}

_LABELS = {
    ParamType.INT: "integer",
    ParamType.FLOAT: "float",
    ParamType.BOOL: "boolean",
}


# -- Compilation --


def compile_param(param: Param) -> CompiledParam:
    """Validate one ``Param`` and coerce its default.

    Raises:
        SpecError: On an empty name, unknown type, or unparsable default.
    """
    if not param.name:
        raise SpecError("parameter name must not be empty")
    try:
        ptype = ParamType(param.type.lower())
    except ValueError:
        raise SpecError(f"invalid parameter type {param.type!r}") from None

    if param.default == "":
        default = ZERO[ptype]
    else:
        try:
            default = PARSERS[ptype](param.default)
        except ValueError:
            msg = f"default value {param.default!r} is not a valid {_LABELS[ptype]}"
            raise SpecError(f"{msg} (parameter {param.name!r})") from None

    return CompiledParam(
        name=param.name,
        type=ptype,
        default=default,
        required=param.required,
        description=param.description,
    )


def compile_params(params: Iterable[Param] | None) -> tuple[CompiledParam, ...]:
    """Compile a parameter list, all or nothing.

    Order is preserved. Compiling the same list twice gives equal results.

    Raises:
        SpecError: On the first invalid param or a duplicated name.
    """
    compiled: list[CompiledParam] = []
    seen: set[str] = set()
    for param in params or ():
        cp = compile_param(param)
        if cp.name in seen:
            raise SpecError(f"duplicate parameter name {cp.name!r}")
        seen.add(cp.name)
        compiled.append(cp)
    return tuple(compiled)


def _json_field(item: dict[str, Any], index: int, key: str, kind: type, default: Any) -> Any:
    value = item.get(key)
    if value is None:
        return default
    # bool is an int subclass, so compare the exact type
    if type(value) is not kind:
        raise SpecError(f"parameter #{index}: {key!r} must be a {kind.__name__}")
    return value


def params_from_json(text: str | bytes) -> list[Param]:
    """Load ``Param`` descriptors from a JSON array of objects.

    Recognised keys: ``name``, ``type``, ``default``, ``required``,
    ``description`` (``memo`` is accepted in its place). ``null`` or an
    absent key gives the field's default. Unknown keys are ignored.

    Raises:
        SpecError: If the document is not an array of objects with a
            string ``name``, or a recognised key has the wrong JSON type.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SpecError(f"parameter list is not valid JSON: {exc}") from exc
    if not isinstance(doc, list):
        raise SpecError("parameter list must be a JSON array")

    params: list[Param] = []
    for i, item in enumerate(doc):
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise SpecError(f"parameter #{i} must be an object with a string 'name'")
        description_key = "description" if item.get("description") is not None else "memo"
        params.append(
            Param(
                name=item["name"],
                type=_json_field(item, i, "type", str, "string"),
                default=_json_field(item, i, "default", str, ""),
                required=_json_field(item, i, "required", bool, False),
                description=_json_field(item, i, description_key, str, ""),
            )
        )
    return params
