"""Search — a JSON endpoint with typed query parameters.

Demonstrates required and defaulted params, multi-valued params,
path arguments, checking ``ctx.error``, and setting response headers.

Run with any ASGI server, pointing it at ``app``.
"""

import json

from hark import Context, Param, create_handler

BOOKS = [
    {"id": 1, "title": "Dune", "year": 1965, "tags": ["scifi"]},
    {"id": 2, "title": "Emma", "year": 1815, "tags": ["classic", "romance"]},
    {"id": 3, "title": "Neuromancer", "year": 1984, "tags": ["scifi", "cyberpunk"]},
]


def search(ctx: Context) -> tuple[int, str]:
    ctx.header("Content-Type", "application/json")
    if ctx.error:
        return 400, json.dumps({"error": str(ctx.error)})

    q = ctx.get_str("q").lower()
    tags = set(ctx.get_str_list("tag")) - {""}
    after = ctx.get_int("after")
    hits = [
        b
        for b in BOOKS
        if q in b["title"].lower() and b["year"] > after and (not tags or tags & set(b["tags"]))
    ]
    if ctx.get_bool("titles_only"):
        hits = [b["title"] for b in hits]
    return 200, json.dumps({"scope": list(ctx.args), "results": hits[: ctx.get_int("limit")]})


app = create_handler(
    "/search",
    [
        Param("q", required=True, description="substring of the title"),
        Param("tag", description="repeat to match any of several tags"),
        Param("after", type="int", default="0", description="only books published after"),
        Param("limit", type="int", default="10"),
        Param("titles_only", type="bool"),
    ],
    search,
)
