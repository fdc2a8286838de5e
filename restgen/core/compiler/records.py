from __future__ import annotations

from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, create_model

from restgen.core.compiler.partial import PartialDescriptor
from restgen.core.entity.models import EntityDescriptor, ScalarKind

_PY_TYPES = {
    ScalarKind.INTEGER: int,
    ScalarKind.REAL: float,
    ScalarKind.TEXT: str,
}


def record_model(entity: EntityDescriptor) -> Type[BaseModel]:
    """Body model for POST and PUT: id and timestamps optional, the rest required."""
    defs: Dict[str, Any] = {}
    for f in entity.fields:
        py = _PY_TYPES[f.kind]
        if f.is_writable:
            defs[f.name] = (py, ...)
        else:
            defs[f.name] = (Optional[py], None)
    return create_model(f"{entity.name}Record", **defs)


def partial_model(partial: PartialDescriptor) -> Type[BaseModel]:
    """Body model for PATCH. Presence is read from `model_fields_set`."""
    defs: Dict[str, Any] = {f.name: (Optional[_PY_TYPES[f.kind]], None) for f in partial.fields}
    return create_model(f"Partial{partial.entity.name}", **defs)


def present_fields(body: BaseModel) -> Dict[str, Any]:
    """Fields the client actually sent, with their (possibly None) values."""
    return {name: getattr(body, name) for name in body.model_fields_set}
