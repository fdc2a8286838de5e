from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from fastapi import APIRouter, FastAPI

from restgen import __version__
from restgen.api.demo import DEMO_ENTITIES
from restgen.api.endpoints import health
from restgen.api.endpoints import metrics as metrics_ep
from restgen.api.middleware.auth import AuthMiddleware
from restgen.api.middleware.error_shaping import SafeErrorMiddleware
from restgen.api.middleware.request_context import RequestContextMiddleware
from restgen.api.resource import EntityResource, EntitySource, configure_all
from restgen.core.auth.provider import get_auth_provider
from restgen.core.config import Settings, load_settings
from restgen.core.entity.loader import load_entities
from restgen.core.storage.pool import SqlitePool, StatementPool

log = logging.getLogger("restgen.resource")


def log_available_endpoints(prefix: str, resources: List[EntityResource]) -> None:
    log.info("===== Available API Endpoints =====")
    for res in resources:
        roles = res.entity.roles
        log.info(
            "%s (read=%s update=%s delete=%s):",
            res.entity.name,
            roles.read,
            roles.update,
            roles.delete,
        )
        for method, path in res.routes:
            log.info("  %-6s %s%s", method, prefix, path)
    log.info("===================================")


def create_app(
    *,
    settings: Optional[Settings] = None,
    pool: Optional[StatementPool] = None,
    entities: Optional[Iterable[EntitySource]] = None,
    materialize: bool = True,
) -> FastAPI:
    settings = settings or load_settings()

    if entities is None:
        if settings.entities_file:
            entities = load_entities(Path(settings.entities_file))
        else:
            entities = DEMO_ENTITIES

    if pool is None:
        pool = SqlitePool(settings.database)

    # Resolve the identity provider up front so bad auth config fails startup
    provider = get_auth_provider() if settings.auth_enabled else None

    app = FastAPI(title="restgen", version=__version__)

    # ------------------------------------------------------------
    # Middleware stack. Starlette reverses add_middleware order:
    # the LAST call is the OUTERMOST wrapper.
    #   SafeErrorMiddleware -> RequestContext -> Auth -> handler
    # ------------------------------------------------------------
    app.add_middleware(AuthMiddleware, enabled=settings.auth_enabled, provider=provider)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SafeErrorMiddleware)

    router = APIRouter(prefix=settings.api_prefix)
    resources = configure_all(router, entities, pool, materialize=materialize)
    app.include_router(router)

    app.include_router(health.router)
    app.include_router(metrics_ep.router)

    app.state.pool = pool
    app.state.resources = {r.entity.table: r for r in resources}

    log_available_endpoints(settings.api_prefix, resources)
    return app
