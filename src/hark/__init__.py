"""Hark — declarative request parameters for ASGI handlers.

Declare what a handler expects, and hark gathers it from cookies, the
body, the query string and the path, coerces it to the declared types,
and hands the result to your function.

Basic usage::

    from hark import Param, create_handler

    def greet(ctx):
        if ctx.error:
            return 400, str(ctx.error)
        return 200, f"Hello, {ctx.get_str('name')}! x{ctx.get_int('times')}"

    handler = create_handler(
        "/greet",
        [Param("name", required=True), Param("times", type="int", default="1")],
        greet,
    )

``handler`` is an ASGI application; serve it with any ASGI server.
"""

from hark.config import DEFAULT_CONTENT_TYPE, HandlerConfig, default_content_type
from hark.context import Context
from hark.errors import (
    BodyParseError,
    HarkError,
    InvalidParameter,
    MissingParameter,
    ParameterError,
    ResolutionError,
    ResponseWriteError,
    SpecError,
)
from hark.handler import Handler, Proc, create_handler
from hark.http.forms import UploadFile
from hark.http.request import Request
from hark.params import CompiledParam, Param, ParamType, params_from_json

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "BodyParseError",
    "CompiledParam",
    "Context",
    "Handler",
    "HandlerConfig",
    "HarkError",
    "InvalidParameter",
    "MissingParameter",
    "Param",
    "ParamType",
    "ParameterError",
    "Proc",
    "Request",
    "ResolutionError",
    "ResponseWriteError",
    "SpecError",
    "UploadFile",
    "create_handler",
    "default_content_type",
    "params_from_json",
]
