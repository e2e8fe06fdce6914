from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from qualityedu.core.errors import ConfigError

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

# HS256 keys shorter than the digest size are brute-forceable offline.
MIN_SECRET_BYTES = 32


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {raw!r})") from None


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"{name} must be a boolean (got {raw!r})")


def validate_jwt_secret(secret: str | None) -> str:
    """Return the secret unchanged, or raise ConfigError if it is unusable.

    Never include the secret itself in the message.
    """
    if not secret:
        raise ConfigError("JWT_SECRET must be set")
    if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
        raise ConfigError(
            f"JWT_SECRET must be at least {MIN_SECRET_BYTES} bytes "
            f"(got {len(secret.encode('utf-8'))})"
        )
    return secret


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    jwt_secret: str = ""
    jwt_ttl_seconds: int = 86400
    reset_code_ttl_seconds: int = 3600
    frontend_url: str = "http://localhost:3000"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    mail_from: str = "no-reply@qualityedu.dev"
    seed_supervisor_password: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ConfigError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ConfigError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port = _getenv_int("PORT", 8000)
    jwt_secret = validate_jwt_secret(os.environ.get("JWT_SECRET"))

    jwt_ttl_seconds = _getenv_int("JWT_TTL_SECONDS", 86400)
    if jwt_ttl_seconds <= 0:
        raise ConfigError(
            f"JWT_TTL_SECONDS must be positive (got {jwt_ttl_seconds!r})"
        )

    reset_code_ttl_seconds = _getenv_int("RESET_CODE_TTL_SECONDS", 3600)
    if reset_code_ttl_seconds <= 0:
        raise ConfigError(
            f"RESET_CODE_TTL_SECONDS must be positive (got {reset_code_ttl_seconds!r})"
        )

    cors_origins = tuple(
        origin.strip()
        for origin in _getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        jwt_secret=jwt_secret,
        jwt_ttl_seconds=jwt_ttl_seconds,
        reset_code_ttl_seconds=reset_code_ttl_seconds,
        frontend_url=_getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
        cors_origins=cors_origins,
        smtp_host=_getenv("SMTP_HOST", "") or None,
        smtp_port=_getenv_int("SMTP_PORT", 587),
        smtp_user=_getenv("SMTP_USER", "") or None,
        smtp_password=_getenv("SMTP_PASSWORD", "") or None,
        mail_from=_getenv("MAIL_FROM", "no-reply@qualityedu.dev"),
        seed_supervisor_password=_getenv("SEED_SUPERVISOR_PASSWORD", "") or None,
    )


# Loaded once at import: a bad environment stops the process here.
SETTINGS = load_settings()
