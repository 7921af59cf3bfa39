"""
Request body size limit.

Photos and descriptors are sent inline as JSON, so bodies are capped
rather than streamed.
"""
from fastapi import HTTPException
from fastapi.responses import JSONResponse


class BodySizeLimitMiddleware:
    """
    ASGI middleware rejecting request bodies larger than `max_bytes`.

    A declared Content-Length over the limit is answered with 413 before
    the app runs; chunked bodies are counted while the app reads them.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = dict(scope.get("headers", [])).get(b"content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                declared = None
            if declared is not None and declared > self.max_bytes:
                response = JSONResponse(status_code=413, content={"detail": "Request body too large"})
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)
