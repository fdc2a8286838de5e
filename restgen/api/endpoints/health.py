from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    resources = getattr(request.app.state, "resources", {}) or {}
    return {"status": "ok", "entities": sorted(resources.keys())}
