from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from fastapi import HTTPException, Request

from restgen.core.auth.models import Principal
from restgen.core.config import admin_role
from restgen.core.entity.models import EntityDescriptor
from restgen.core.errors import Forbidden
from restgen.core.observability.metrics import AUTHZ_DECISIONS_TOTAL

log = logging.getLogger("restgen.auth")

# read also covers the nested list; update covers create, replace and patch
OPERATIONS = ("read", "update", "delete")


def _get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return principal


def is_allowed(principal: Principal, required_role: Optional[str], admin: str) -> bool:
    if required_role is None:
        return True
    return principal.has_any_role([required_role, admin])


def role_gate(
    required_role: Optional[str],
    *,
    operation: str,
    table: str,
    admin: Optional[str] = None,
) -> Callable:
    """
    FastAPI dependency enforcing one operation category.

    The administrator role is resolved once, when the gate is built.
    Dependencies run before the endpoint body, so a denied request never
    reaches statement building.
    """
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")
    admin_name = admin or admin_role()
    label = required_role or "none"

    def dependency(request: Request) -> Principal:
        principal = _get_principal(request)
        if is_allowed(principal, required_role, admin_name):
            AUTHZ_DECISIONS_TOTAL.labels(
                decision="allow", required_role=label, operation=operation, table=table
            ).inc()
            return principal

        AUTHZ_DECISIONS_TOTAL.labels(
            decision="deny", required_role=label, operation=operation, table=table
        ).inc()
        log.info(
            "authz deny subject=%s roles=%s required=%s operation=%s table=%s",
            principal.subject,
            sorted(principal.roles or []),
            required_role,
            operation,
            table,
        )
        raise Forbidden(required_role=required_role)

    return dependency


def gates_for(entity: EntityDescriptor, admin: Optional[str] = None) -> Dict[str, Callable]:
    return {
        op: role_gate(entity.roles.for_operation(op), operation=op, table=entity.table, admin=admin)
        for op in OPERATIONS
    }
