from typing import Any, List, Sequence, Tuple

import jwt
import pytest
from fastapi.testclient import TestClient

from restgen.api.demo import DEMO_ENTITIES
from restgen.api.main import create_app
from restgen.core.config import Settings
from restgen.core.storage.pool import ExecResult, SqlitePool

SIGNING_KEY = "restgen-test-signing-key-0123456789abcdef"


class RecordingPool:
    """Wraps a real pool and remembers every dispatched statement."""

    def __init__(self, inner):
        self.inner = inner
        self.statements: List[Tuple[str, Tuple[Any, ...]]] = []

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        self.statements.append((sql, tuple(params)))
        return self.inner.execute(sql, params)


def make_token(*roles: str, sub: str = "tester") -> str:
    return jwt.encode({"sub": sub, "roles": list(roles)}, SIGNING_KEY, algorithm="HS256")


def bearer(*roles: str) -> dict:
    return {"Authorization": f"Bearer {make_token(*roles)}"}


@pytest.fixture()
def jwt_env(monkeypatch):
    monkeypatch.setenv("RESTGEN_AUTH_MODE", "jwt")
    monkeypatch.setenv("RESTGEN_SIGNING_KEY", SIGNING_KEY)
    monkeypatch.delenv("RESTGEN_ADMIN_ROLE", raising=False)
    monkeypatch.delenv("RESTGEN_JWT_ISSUER", raising=False)
    monkeypatch.delenv("RESTGEN_JWT_AUDIENCE", raising=False)


@pytest.fixture()
def pool():
    inner = SqlitePool(":memory:")
    yield RecordingPool(inner)
    inner.close()


@pytest.fixture()
def app(jwt_env, pool):
    settings = Settings(auth_enabled=True, database=":memory:", api_prefix="/api")
    application = create_app(settings=settings, pool=pool, entities=DEMO_ENTITIES)
    for res in application.state.resources.values():
        assert res.wait_materialized(timeout=5)
    pool.statements.clear()
    return application


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def user_headers():
    return bearer("user")


@pytest.fixture()
def admin_headers():
    return bearer("admin")


@pytest.fixture()
def guest_headers():
    return bearer("guest")


@pytest.fixture()
def headers_for():
    return bearer
