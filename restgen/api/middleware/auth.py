from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from restgen.core.auth.models import Principal
from restgen.core.auth.provider import AuthError
from restgen.core.config import admin_role

log = logging.getLogger("restgen.auth")

PUBLIC_PATHS = ("/health", "/metrics")


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Authentication boundary.

    Places a Principal on request.state.principal for the role gates.
    Authorization itself happens per route, not here.
    """

    def __init__(self, app, *, enabled: bool = True, provider=None, public_paths: Iterable[str] = PUBLIC_PATHS):
        super().__init__(app)
        self.enabled = enabled
        self.provider = provider
        self.public_paths = frozenset(public_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.public_paths:
            return await call_next(request)

        # Auth disabled (dev-only): everyone is an administrator
        if not self.enabled:
            request.state.principal = Principal(subject="anonymous", roles=[admin_role()])
            return await call_next(request)

        principal: Optional[Principal]
        if self.provider is None:
            principal = Principal(subject="anonymous", roles=[])
        else:
            try:
                principal = self.provider.authenticate(request)
            except AuthError as e:
                log.info("authn deny method=%s path=%s reason=%s", request.method, path, str(e))
                return JSONResponse(status_code=401, content={"detail": str(e)})

        request.state.principal = principal or Principal(subject="anonymous", roles=[])
        return await call_next(request)
