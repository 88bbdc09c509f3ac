"""Upload — multipart form handling.

Text fields arrive as declared params; uploaded files are on
``ctx.files`` and are closed once the response has been written.

Run with any ASGI server, pointing it at ``app``.
"""

import hashlib

from hark import Context, Param, create_handler


async def upload(ctx: Context) -> tuple[int, str]:
    if ctx.error:
        return 400, f"error: {ctx.error}"
    doc = ctx.files.get("doc")
    if doc is None:
        return 400, "error: no file"
    digest = hashlib.sha256(await doc.read()).hexdigest()
    return 201, f"{ctx.get_str('label')} {doc.filename} {doc.size} {digest}"


app = create_handler("/upload", [Param("label", default="untitled")], upload)
