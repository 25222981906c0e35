from __future__ import annotations

import os
from collections.abc import Iterable
from functools import lru_cache
from typing import Final

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from .inquiry import SCHEMA_REVISIONS, SchemaRevision

# Hosting dashboards disagree on casing, so every alias is checked in order.
USER_ENV_ALIASES: Final[tuple[str, ...]] = ("gmail_user", "GMAIL_USER", "SMTP_USER", "EMAIL_USER")
PASS_ENV_ALIASES: Final[tuple[str, ...]] = ("gmail_pass", "GMAIL_PASS", "SMTP_PASS", "EMAIL_PASS")

DEFAULT_SMTP_HOST: Final[str] = "smtp.gmail.com"
DEFAULT_SMTP_PORT: Final[int] = 465


def _first_env(names: Iterable[str]) -> str:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return ""


def _as_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "y", "on")


def _as_int(name: str, default: int) -> int:
    try:
        return int(str(os.getenv(name, default)).strip())
    except ValueError:
        return default


def _as_float(name: str, default: float) -> float:
    try:
        return float(str(os.getenv(name, default)).strip())
    except ValueError:
        return default


def split_recipients(raw: str | None) -> list[str]:
    """Split a comma-separated address list, dropping blanks."""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def _alias_presence(names: Iterable[str]) -> dict[str, bool]:
    return {name: bool(os.getenv(name)) for name in names}


def _credential_env_report() -> dict[str, dict[str, bool]]:
    return {"user": _alias_presence(USER_ENV_ALIASES), "pass": _alias_presence(PASS_ENV_ALIASES)}


def _default_cors_origin() -> str:
    explicit = (os.getenv("CORS_ORIGIN") or "").strip()
    if explicit:
        return explicit
    vercel_url = (os.getenv("VERCEL_URL") or "").strip()
    if vercel_url:
        return f"https://{vercel_url}"
    return "*"


class Settings(BaseModel):
    # --- SMTP relay credentials (account must match the From address) ---
    smtp_user: str = Field(default_factory=lambda: _first_env(USER_ENV_ALIASES))
    smtp_password: SecretStr = Field(
        default_factory=lambda: SecretStr(_first_env(PASS_ENV_ALIASES))
    )
    # Which credential aliases were set when these settings were built.
    credential_env: dict[str, dict[str, bool]] = Field(default_factory=_credential_env_report)

    # --- Relay endpoint: implicit TLS ---
    smtp_host: str = Field(
        default_factory=lambda: os.getenv("SMTP_HOST", DEFAULT_SMTP_HOST).strip()
    )
    smtp_port: int = Field(default_factory=lambda: _as_int("SMTP_PORT", DEFAULT_SMTP_PORT))
    smtp_timeout: float = Field(default_factory=lambda: _as_float("SMTP_TIMEOUT", 20.0))
    verify_before_send: bool = Field(default_factory=lambda: _as_bool("SMTP_VERIFY", True))

    # Optional override: comma-separated list in EMAIL_TO.
    email_to: list[str] = Field(default_factory=lambda: split_recipients(os.getenv("EMAIL_TO")))

    cors_origin: str = Field(default_factory=_default_cors_origin)

    inquiry_schema: str = Field(
        default_factory=lambda: (os.getenv("INQUIRY_SCHEMA") or "v2").strip()
    )

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    @field_validator("inquiry_schema")
    @classmethod
    def _known_schema(cls, value: str) -> str:
        if value not in SCHEMA_REVISIONS:
            known = ", ".join(sorted(SCHEMA_REVISIONS))
            raise ValueError(f"unknown inquiry schema {value!r} (expected one of: {known})")
        return value

    @model_validator(mode="after")
    def _injected_credentials_skip_env(self) -> Settings:
        # Credentials passed in directly did not come from any env alias.
        if "credential_env" in self.model_fields_set:
            return self
        if "smtp_user" in self.model_fields_set:
            self.credential_env["user"] = dict.fromkeys(USER_ENV_ALIASES, False)
        if "smtp_password" in self.model_fields_set:
            self.credential_env["pass"] = dict.fromkeys(PASS_ENV_ALIASES, False)
        return self

    @property
    def schema_revision(self) -> SchemaRevision:
        return SCHEMA_REVISIONS[self.inquiry_schema]

    def has_credentials(self) -> bool:
        return bool(self.smtp_user.strip() and self.smtp_password.get_secret_value().strip())

    def recipients(self) -> list[str]:
        """EMAIL_TO override if configured, otherwise the sending account itself."""
        return list(self.email_to) or [self.smtp_user]

    def credential_report(self) -> dict[str, dict[str, bool]]:
        """
        Which credential env aliases fed these settings.

        Only booleans are reported so the payload is safe to return to a client.
        """
        return {kind: dict(aliases) for kind, aliases in self.credential_env.items()}


@lru_cache
def get_settings() -> Settings:
    return Settings()
