from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from restgen.core.observability.metrics import UNHANDLED_ERRORS_TOTAL

log = logging.getLogger("restgen.errors")


def _entity_table(request: Request) -> Optional[str]:
    # Generated entity routes carry their table as the single tag
    route = request.scope.get("route")
    tags = getattr(route, "tags", None) or []
    return str(tags[0]) if len(tags) == 1 else None


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Last line of defence for exceptions that escape the handlers.

    Storage failures are already turned into 500s with the driver message by
    the resource layer; anything reaching this point is unexpected. The client
    gets a fixed body with the request id and, for entity routes, the table.
    The traceback stays in the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            table = _entity_table(request)
            UNHANDLED_ERRORS_TOTAL.labels(table=table or "none", exception=type(e).__name__).inc()
            log.exception(
                "unhandled error table=%s method=%s path=%s rid=%s",
                table,
                request.method,
                request.url.path,
                rid,
            )

            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            if table:
                payload["table"] = table
            return JSONResponse(status_code=500, content=payload)
