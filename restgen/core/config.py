from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_ADMIN_ROLE = "admin"


def _env(key: str, default: str = "") -> str:
    return (os.getenv(key) or default).strip()


def _env_flag(key: str, default: bool) -> bool:
    raw = _env(key, "true" if default else "false").lower()
    return raw not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    auth_enabled: bool = True
    database: str = "restgen.db"
    entities_file: Optional[str] = None
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 8080


def load_settings() -> Settings:
    """Read settings from RESTGEN_* environment variables."""
    return Settings(
        env=_env("RESTGEN_ENV", "dev").lower(),
        auth_enabled=_env_flag("RESTGEN_AUTH_ENABLED", True),
        database=_env("RESTGEN_DATABASE", "restgen.db"),
        entities_file=_env("RESTGEN_ENTITIES_FILE") or None,
        api_prefix=_env("RESTGEN_API_PREFIX", "/api").rstrip("/"),
        host=_env("RESTGEN_HOST", "127.0.0.1"),
        port=int(_env("RESTGEN_PORT", "8080") or "8080"),
    )


def admin_role() -> str:
    """Role that bypasses every role gate."""
    return _env("RESTGEN_ADMIN_ROLE", DEFAULT_ADMIN_ROLE) or DEFAULT_ADMIN_ROLE
