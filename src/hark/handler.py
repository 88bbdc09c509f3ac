"""Handler — the ASGI application bound to one route prefix.

The only component that touches raw ASGI scopes directly. Per request it
builds a ``Request`` and a fresh ``Context``, resolves parameters, calls
the dispatch function and writes what it returns.

A ``Handler`` holds no per-request state and can serve concurrent
requests.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from hark._internal.asgi import Receive, Scope, Send
from hark._internal.invoke import invoke
from hark.config import HandlerConfig
from hark.context import Context
from hark.errors import BodyParseError
from hark.http.request import Request
from hark.params import CompiledParam, Param, compile_params
from hark.resolve import gather, path_arguments, resolve
from hark.sender import send_not_implemented, send_response

logger = logging.getLogger("hark.handler")

# Dispatch function: returns (status, payload), sync or async
Proc: TypeAlias = Callable[[Context], tuple[int, Any] | Awaitable[tuple[int, Any]]]


@dataclass(frozen=True, slots=True)
class Handler:
    """A compiled parameter spec bound to a dispatch function.

    Create through ``create_handler()`` so the spec is validated.
    """

    route: str
    params: tuple[CompiledParam, ...]
    proc: Proc | None
    config: HandlerConfig = field(default_factory=HandlerConfig)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        if self.proc is None:
            await send_not_implemented(send)
            return

        request = Request.from_asgi(scope, receive)
        ctx = await self.prepare(request)
        try:
            status, payload = await invoke(self.proc, ctx)
            if "content-type" not in ctx.headers:
                ctx.headers.set("content-type", self.config.effective_content_type())
            await send_response(
                status,
                ctx.headers,
                payload,
                send,
                chunk_size=self.config.stream_chunk_size,
            )
        finally:
            for upload in ctx.files.values():
                upload.close()

    async def prepare(self, request: Request) -> Context:
        """Build the per-request Context: path arguments and resolved params.

        Resolution problems land on ``ctx.error``; nothing is raised.
        """
        ctx = Context(request=request, args=path_arguments(self.route, request.path))
        try:
            values, ctx.files = await gather(request, self.route, self.config)
        except BodyParseError as exc:
            logger.debug("%s %s: %s", request.method, request.path, exc)
            ctx.error = exc
            return ctx
        ctx.values, ctx.error = resolve(self.params, values)
        return ctx


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge ASGI lifespan events; a handler has nothing to set up."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


def create_handler(
    route: str,
    params: Iterable[Param] | None,
    proc: Proc | None,
    *,
    config: HandlerConfig | None = None,
) -> Handler:
    """Compile *params* and bind them with *proc* under *route*.

    Usage::

        handler = create_handler(
            "/search",
            [Param("q", required=True), Param("page", type="int", default="1")],
            search,
        )

    Raises:
        SpecError: If any param has an unknown type, a bad default, or a
            duplicate name. No handler is created.
    """
    return Handler(
        route=route,
        params=compile_params(params),
        proc=proc,
        config=config or HandlerConfig(),
    )
