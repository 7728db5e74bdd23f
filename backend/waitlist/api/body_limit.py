"""Body Size Limit - ASGI middleware capping request bodies at max_body_bytes.

Invariants:
    - A declared Content-Length over the cap is answered 413 before the app runs
    - Bodies without Content-Length (chunked) are counted as they arrive; the
      first chunk that pushes the total over the cap aborts the read with 413
    - Requests within the cap pass through untouched

Design Decisions:
    - Pure ASGI class registered with app.add_middleware, like CORSMiddleware,
      so it wraps receive() instead of buffering the body itself
    - The streaming case raises fastapi.HTTPException(413) from receive(): FastAPI
      re-raises HTTPException from body parsing and the global HTTP handler
      renders it
"""

import logging

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

PAYLOAD_TOO_LARGE_BODY = {"error": "Payload too large", "code": "PAYLOAD_TOO_LARGE"}


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.warning(
                f"Rejected body of {declared} bytes", extra={"path": scope.get("path")},
            )
            response = JSONResponse(
                PAYLOAD_TOO_LARGE_BODY,
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )
            await response(scope, receive, send)
            return

        received = 0

        async def counting_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(
                        f"Rejected streamed body over {self.max_body_bytes} bytes",
                        extra={"path": scope.get("path")},
                    )
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=PAYLOAD_TOO_LARGE_BODY["error"],
                    )
            return message

        await self.app(scope, counting_receive, send)
