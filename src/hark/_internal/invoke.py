"""Invoke helpers — call sync or async callables uniformly.

Dispatch functions can be ``def`` or ``async def``, and readable payloads
may expose a sync or an async ``read()``. This module keeps the
sync/async check in exactly one place.

Usage::

    from hark._internal.invoke import invoke

    result = await invoke(proc, ctx)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        def show(ctx):
            return 200, "hello"

        async def show(ctx):
            data = await fetch()
            return 200, data
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
