"""Request resolution — gather raw values, then coerce them per declared param.

Two passes over a request:

1. ``gather()`` merges every source into one ``name -> [str]`` map.
   Later sources overwrite earlier ones: cookies, then the body, then the
   query string. ``key=value`` pairs embedded in the path are added last
   but only for names no other source supplied.
2. ``resolve()`` walks the compiled params, not the gathered keys, so
   undeclared keys never reach the handler.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from hark._internal.multimap import MultiValueMapping
from hark.config import HandlerConfig
from hark.errors import BodyParseError, InvalidParameter, MissingParameter, ResolutionError
from hark.http.forms import FormData, UploadFile, parse_multipart, parse_urlencoded
from hark.http.query import QueryParams
from hark.http.request import Request
from hark.params import PARSERS, CompiledParam, ParamType, Values

logger = logging.getLogger("hark.resolve")

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def path_suffix(route: str, path: str) -> str:
    """The part of *path* after *route*, without a leading slash."""
    if not path.startswith(route):
        return ""
    return path[len(route) :].removeprefix("/")


def path_arguments(route: str, path: str) -> tuple[str, ...]:
    """Split the path suffix into raw segments.

    ``path_arguments("/files", "/files/a/b")`` gives ``("a", "b")``.
    """
    suffix = path_suffix(route, path)
    if not suffix:
        return ()
    return tuple(suffix.split("/"))


def _base(key: str) -> str:
    """Last ``/`` segment of *key*, ignoring trailing slashes."""
    stripped = key.rstrip("/")
    if not stripped:
        return key
    return stripped.rpartition("/")[2]


def _merge(values: dict[str, list[str]], source: MultiValueMapping) -> None:
    for key in source:
        values[key] = source.get_list(key)


def _json_entries(doc: Any) -> dict[str, list[str]]:
    """Flatten a decoded JSON object into string value lists."""
    if not isinstance(doc, dict):
        raise BodyParseError("JSON body must be an object")
    entries: dict[str, list[str]] = {}
    for key, value in doc.items():
        if value is None:
            continue
        if isinstance(value, str):
            entries[key] = [value]
        elif isinstance(value, bool):
            entries[key] = ["true" if value else "false"]
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            entries[key] = list(value)
        elif isinstance(value, (list, dict)):
            entries[key] = [json.dumps(value, separators=(",", ":"))]
        else:
            entries[key] = [str(value)]
    return entries


async def read_body(
    request: Request,
    config: HandlerConfig,
) -> tuple[dict[str, list[str]], dict[str, UploadFile]]:
    """Decode the request body by media type.

    Returns:
        The body's field values and any uploaded files.

    Raises:
        BodyParseError: If the body cannot be decoded.
    """
    media_type = request.media_type

    if media_type == "application/json":
        raw = await request.body(config.max_body_size)
        try:
            doc = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise BodyParseError(f"invalid JSON body: {exc}") from exc
        return _json_entries(doc), {}

    form: FormData
    if media_type == "multipart/form-data":
        form = await parse_multipart(
            request.stream(),
            request.content_type or "",
            max_memory=config.max_memory,
        )
    elif media_type in ("", "application/x-www-form-urlencoded"):
        form = parse_urlencoded(await request.body(config.max_body_size))
    else:
        logger.debug("Ignoring %s body", media_type)
        return {}, {}

    entries: dict[str, list[str]] = {}
    _merge(entries, form)
    return entries, dict(form.files)


async def gather(
    request: Request,
    route: str,
    config: HandlerConfig,
) -> tuple[dict[str, list[str]], dict[str, UploadFile]]:
    """Merge cookies, body, query and path values by precedence.

    Raises:
        BodyParseError: If the body cannot be decoded.
    """
    values: dict[str, list[str]] = {name: [value] for name, value in request.cookies.items()}
    files: dict[str, UploadFile] = {}

    if request.method in BODY_METHODS:
        body_values, files = await read_body(request, config)
        values.update(body_values)

    _merge(values, request.query)

    embedded = QueryParams(path_suffix(route, request.path))
    for key in embedded:
        name = _base(key)
        if name not in values:
            values[name] = embedded.get_list(key)

    return values, files


def coerce(param: CompiledParam, raw: Iterable[str]) -> Values:
    """Coerce raw strings to *param*'s type.

    Raises:
        InvalidParameter: On the first value that does not parse.
    """
    parse = PARSERS[param.type]
    items: list[Any] = []
    for value in raw:
        if param.type is ParamType.BOOL and value == "":
            items.append(True)
            continue
        try:
            items.append(parse(value))
        except ValueError:
            raise InvalidParameter(param.name, value, param.type.value) from None
    return Values(param.type, tuple(items))


def resolve(
    params: Iterable[CompiledParam],
    values: Mapping[str, list[str]],
) -> tuple[dict[str, Values], ResolutionError | None]:
    """Coerce gathered values for each declared param.

    Stops at the first missing or invalid param. Params resolved before
    that point are returned alongside the error.
    """
    resolved: dict[str, Values] = {}
    for param in params:
        raw = values.get(param.name) or []
        if not raw:
            if param.required:
                logger.debug("missing required parameter %r", param.name)
                return resolved, MissingParameter(param.name)
            resolved[param.name] = Values(param.type, (param.default,))
            continue
        try:
            resolved[param.name] = coerce(param, raw)
        except InvalidParameter as exc:
            logger.debug("%s", exc)
            return resolved, exc
    return resolved, None
