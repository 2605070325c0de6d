import json
from typing import List, Optional

from ..observability.logging_utils import log_event

BODY_TOO_LARGE = json.dumps({"error": "Request body too large"}).encode("utf-8")


def _content_length(scope) -> Optional[int]:
    for name, value in scope.get("headers", []):
        if name == b"content-length":
            text = value.decode("latin-1").strip()
            return int(text) if text.isdigit() else None
    return None


class BodyLimitMiddleware:
    """
    ASGI middleware that answers 413 to request bodies above ``max_bytes``.

    A declared Content-Length is checked before anything is read. A body sent
    without one (chunked transfer) is buffered up to the limit and replayed to
    the application once it is known to fit.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        path = scope.get("path", "")
        declared = _content_length(scope)
        if declared is not None:
            if declared > self.max_bytes:
                return await self._reject(send, path, declared)
            return await self.app(scope, receive, send)

        chunks: List[bytes] = []
        size = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # client went away before the body was complete
                return
            body = message.get("body", b"")
            size += len(body)
            if size > self.max_bytes:
                return await self._reject(send, path, size)
            chunks.append(body)
            more_body = message.get("more_body", False)

        buffered = b"".join(chunks)
        replayed = False

        async def replay():
            nonlocal replayed
            if replayed:
                return await receive()
            replayed = True
            return {"type": "http.request", "body": buffered, "more_body": False}

        await self.app(scope, replay, send)

    async def _reject(self, send, path: str, size: int) -> None:
        log_event("api_rejected", path=path, size=size, limit=self.max_bytes)
        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"content-length", str(len(BODY_TOO_LARGE)).encode("ascii")),
                ],
            }
        )
        await send({"type": "http.response.body", "body": BODY_TOO_LARGE})
