import json
import logging

import pytest
from starlette.requests import Request

from restgen.core.auth.provider import (
    DEV_ADMIN_TOKEN,
    ApiKeyProvider,
    AuthError,
    JwtProvider,
    StaticTokenProvider,
    get_auth_provider,
)


def _request(headers):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }
    return Request(scope)


def test_dev_env_falls_back_to_dev_tokens(monkeypatch, caplog):
    monkeypatch.setenv("RESTGEN_ENV", "dev")
    monkeypatch.setenv("RESTGEN_AUTH_MODE", "static_token")
    monkeypatch.delenv("RESTGEN_STATIC_ADMIN_TOKEN", raising=False)
    monkeypatch.delenv("RESTGEN_STATIC_USER_TOKEN", raising=False)

    with caplog.at_level(logging.WARNING, logger="restgen.auth"):
        provider = get_auth_provider()

    assert isinstance(provider, StaticTokenProvider)
    assert provider.cfg.admin_token == DEV_ADMIN_TOKEN
    assert any("insecure" in r.message.lower() for r in caplog.records)

    admin = provider.authenticate(_request({"Authorization": "Bearer dev_admin_token"}))
    user = provider.authenticate(_request({"Authorization": "Bearer dev_user_token"}))
    assert admin.roles == ["admin"]
    assert user.roles == ["user"]


def test_prod_without_tokens_raises(monkeypatch):
    monkeypatch.setenv("RESTGEN_ENV", "prod")
    monkeypatch.delenv("RESTGEN_STATIC_ADMIN_TOKEN", raising=False)
    monkeypatch.delenv("RESTGEN_STATIC_USER_TOKEN", raising=False)
    with pytest.raises(AuthError):
        StaticTokenProvider()


def test_static_token_rejects_unknown_and_missing(monkeypatch):
    monkeypatch.setenv("RESTGEN_STATIC_ADMIN_TOKEN", "s3cret")
    provider = StaticTokenProvider()
    with pytest.raises(AuthError):
        provider.authenticate(_request({"Authorization": "Bearer nope"}))
    with pytest.raises(AuthError):
        provider.authenticate(_request({}))
    with pytest.raises(AuthError):
        provider.authenticate(_request({"Authorization": "Basic abc"}))


def test_api_key_provider(monkeypatch):
    monkeypatch.setenv("RESTGEN_API_KEYS_JSON", json.dumps({"k1": {"sub": "svc", "roles": "user"}}))
    provider = ApiKeyProvider()
    p = provider.authenticate(_request({"X-API-Key": "k1"}))
    assert p.subject == "svc"
    assert p.roles == ["user"]
    with pytest.raises(AuthError):
        provider.authenticate(_request({"X-API-Key": "k2"}))


def test_api_key_provider_requires_config(monkeypatch):
    monkeypatch.delenv("RESTGEN_API_KEYS_JSON", raising=False)
    with pytest.raises(AuthError):
        ApiKeyProvider()


def test_jwt_provider_reads_role_claims(jwt_env, headers_for):
    provider = JwtProvider()
    p = provider.authenticate(_request(headers_for("user", "editor")))
    assert p.roles == ["user", "editor"]


def test_unsupported_mode(monkeypatch):
    monkeypatch.setenv("RESTGEN_AUTH_MODE", "kerberos")
    with pytest.raises(AuthError):
        get_auth_provider()


def test_none_mode_has_no_provider(monkeypatch):
    monkeypatch.setenv("RESTGEN_AUTH_MODE", "none")
    assert get_auth_provider() is None
