from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

import jwt
from fastapi import Request

from restgen.core.auth.models import Principal
from restgen.core.config import admin_role

log = logging.getLogger("restgen.auth")

DEV_ADMIN_TOKEN = "dev_admin_token"
DEV_USER_TOKEN = "dev_user_token"


class AuthError(Exception):
    pass


def _extract_bearer(request: Request) -> str:
    auth_header = request.headers.get("authorization") or request.headers.get("x-forwarded-authorization")
    if not auth_header:
        raise AuthError("Authentication required")
    if not auth_header.startswith("Bearer "):
        raise AuthError("Invalid authorization header")
    return auth_header.replace("Bearer ", "", 1).strip()


def _role_list(value: Any) -> list:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable):
        return [str(r) for r in value]
    return []


@dataclass(frozen=True)
class StaticTokenConfig:
    admin_token: str
    user_token: Optional[str] = None
    user_roles: tuple = ("user",)


class StaticTokenProvider:
    """
    Two fixed bearer tokens: one administrator, one regular user.

    RESTGEN_STATIC_ADMIN_TOKEN / RESTGEN_STATIC_USER_TOKEN; in dev the
    well-known dev tokens are used when neither is set.
    """

    def __init__(self):
        env = (os.getenv("RESTGEN_ENV") or "dev").strip().lower()
        admin = (os.getenv("RESTGEN_STATIC_ADMIN_TOKEN") or "").strip()
        user = (os.getenv("RESTGEN_STATIC_USER_TOKEN") or "").strip() or None

        if not admin and not user:
            if env == "prod":
                raise AuthError(
                    "Missing static token config. "
                    "Set RESTGEN_STATIC_ADMIN_TOKEN or RESTGEN_STATIC_USER_TOKEN."
                )
            log.warning("No static tokens configured; using insecure dev tokens")
            admin, user = DEV_ADMIN_TOKEN, DEV_USER_TOKEN

        self.cfg = StaticTokenConfig(admin_token=admin, user_token=user)

    def authenticate(self, request: Request) -> Optional[Principal]:
        token = _extract_bearer(request)

        if self.cfg.admin_token and token == self.cfg.admin_token:
            return Principal(subject="admin", roles=[admin_role()])
        if self.cfg.user_token and token == self.cfg.user_token:
            return Principal(subject="user", roles=list(self.cfg.user_roles))

        raise AuthError("Invalid bearer token")


class ApiKeyProvider:
    """
    Service accounts keyed by X-API-Key.

    RESTGEN_API_KEYS_JSON maps each key to its subject and roles:

        {"key_abc": {"sub": "svc-loader", "roles": ["admin"]},
         "key_xyz": {"sub": "svc-report", "roles": "user"}}
    """

    def __init__(self):
        raw = (os.getenv("RESTGEN_API_KEYS_JSON") or "").strip()
        if not raw:
            raise AuthError("Missing RESTGEN_API_KEYS_JSON for api_key mode")

        try:
            accounts = json.loads(raw)
        except json.JSONDecodeError as e:
            raise AuthError(f"Invalid RESTGEN_API_KEYS_JSON: {e}") from e

        if not isinstance(accounts, dict) or not accounts:
            raise AuthError("RESTGEN_API_KEYS_JSON must be a non-empty object")
        self.accounts: Mapping[str, Mapping[str, Any]] = accounts

    def authenticate(self, request: Request) -> Optional[Principal]:
        key = request.headers.get("x-api-key")
        if not key:
            raise AuthError("Authentication required")

        account = self.accounts.get(key)
        if not isinstance(account, Mapping):
            raise AuthError("Invalid api key")

        return Principal(subject=account.get("sub") or "service", roles=_role_list(account.get("roles")))


@dataclass(frozen=True)
class JwtConfig:
    signing_key: str
    issuer: Optional[str] = None
    audience: Optional[str] = None
    leeway_seconds: int = 30


class JwtProvider:
    """
    HS256 bearer tokens signed with RESTGEN_SIGNING_KEY.

    Optional:
      RESTGEN_JWT_ISSUER
      RESTGEN_JWT_AUDIENCE
      RESTGEN_JWT_LEEWAY_SECONDS

    Roles come from the "roles" (list) or "role" (string) claim.
    """

    algorithm = "HS256"

    def __init__(self):
        key = (os.getenv("RESTGEN_SIGNING_KEY") or "").strip()
        if not key:
            raise AuthError("Missing RESTGEN_SIGNING_KEY for jwt mode")

        leeway_raw = (os.getenv("RESTGEN_JWT_LEEWAY_SECONDS") or "").strip()
        self.cfg = JwtConfig(
            signing_key=key,
            issuer=(os.getenv("RESTGEN_JWT_ISSUER") or "").strip() or None,
            audience=(os.getenv("RESTGEN_JWT_AUDIENCE") or "").strip() or None,
            leeway_seconds=int(leeway_raw) if leeway_raw else 30,
        )

    def _decode(self, token: str) -> dict:
        kwargs: dict = {"algorithms": [self.algorithm], "leeway": self.cfg.leeway_seconds}
        # iss / aud are only checked when configured
        if self.cfg.issuer is not None:
            kwargs["issuer"] = self.cfg.issuer
        if self.cfg.audience is not None:
            kwargs["audience"] = self.cfg.audience
        else:
            kwargs["options"] = {"verify_aud": False}
        return jwt.decode(token, self.cfg.signing_key, **kwargs)

    def authenticate(self, request: Request) -> Optional[Principal]:
        token = _extract_bearer(request)
        try:
            claims = self._decode(token)
        except jwt.PyJWTError as e:
            raise AuthError("Invalid bearer token") from e

        roles = _role_list(claims.get("roles") or claims.get("role"))
        return Principal(subject=claims.get("sub") or "user", roles=roles)


def get_auth_provider():
    mode = (os.getenv("RESTGEN_AUTH_MODE") or "static_token").strip().lower()
    log.info("auth mode=%s", mode)

    if mode == "none":
        return None
    if mode == "static_token":
        return StaticTokenProvider()
    if mode == "jwt":
        return JwtProvider()
    if mode == "api_key":
        return ApiKeyProvider()

    raise AuthError(f"Unsupported auth mode: {mode}")
