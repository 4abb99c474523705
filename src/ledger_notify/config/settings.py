"""Settings for the notification engine and its HTTP surface.

Values resolve in this order (first wins):

1. Environment variables, ``LEDGERNOTIFY_`` prefix, sections split by ``__``
   (``LEDGERNOTIFY_NOTIFICATIONS__RETRY_MAX_DELAY=30``)
2. The YAML file named by ``--config`` or ``LEDGERNOTIFY_CONFIG_PATH``
3. The defaults below
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_PREFIX = "LEDGERNOTIFY_"


def _section_env(section: str) -> SettingsConfigDict:
    return SettingsConfigDict(env_prefix=f"{_ENV_PREFIX}{section}__", case_sensitive=False)


class DatabaseEngine(enum.StrEnum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class CacheEngine(enum.StrEnum):
    MEMORY = "memory"
    REDIS = "redis"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """Bind address of the admin/stream API."""

    model_config = _section_env("SERVER")

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000


class DatabaseConfig(BaseSettings):
    """The ledger database holding transfers, subscriptions and notifications."""

    model_config = _section_env("DB")

    engine: DatabaseEngine = DatabaseEngine.SQLITE
    dsn: str = Field(
        default="sqlite+aiosqlite:///./ledger_notify.db",
        description="SQLAlchemy async URL (sqlite+aiosqlite or postgresql+asyncpg)",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    debug_sql: bool = False


class CacheConfig(BaseSettings):
    """Where signatures of undelivered notifications are kept between attempts."""

    model_config = _section_env("CACHE")

    engine: CacheEngine = CacheEngine.MEMORY
    url: str = "redis://localhost:6379/0"
    max_connections: int = 10
    max_size: int = Field(default=10000, description="Entry cap of the memory backend")
    ttl_seconds: int = Field(
        default=0,
        description="Expiry for cached signatures; 0 keeps entries until delivery succeeds",
    )
    key_prefix: str = "notification_signature:"


class NotificationConfig(BaseSettings):
    """Signing, webhook delivery and retry scheduling."""

    model_config = _section_env("NOTIFICATIONS")

    enabled: bool = Field(
        default=True, description="Start the retry scheduler with the engine"
    )
    sign_secret: str = Field(
        default="",
        description="Hex-encoded secp256k1 private key; generated per process if empty",
    )
    send_timeout: float = 10.0
    retry_base_delay: float = Field(default=0.1, gt=0)
    retry_max_delay: float = Field(default=120.0, gt=0)
    batch_size: int = Field(default=100, ge=1)
    poll_interval: float = Field(
        default=30.0,
        gt=0,
        description="Longest the scheduler sleeps before re-checking the queue",
    )
    claim_timeout: float = Field(
        default=60.0,
        description="How long new notifications stay hidden from sweeps while sent immediately",
    )
    tls_cert: str = ""
    tls_key: str = ""
    tls_ca: str = ""

    @model_validator(mode="after")
    def _check_delays(self) -> Self:
        if self.retry_max_delay < self.retry_base_delay:
            msg = "retry_max_delay must not be smaller than retry_base_delay"
            raise ValueError(msg)
        return self


class MetricsConfig(BaseSettings):
    model_config = _section_env("METRICS")

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Mapping at the top of the YAML file; empty if the file is missing or not a mapping."""
    p = Path(path)
    if not p.is_file():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def _underlay(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Merge *top* over *base*, section by section."""
    merged = dict(base)
    for key, value in top.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _underlay(merged[key], value)
        else:
            merged[key] = value
    return merged


class AppConfig(BaseSettings):
    """Everything the engine and the API need."""

    model_config = SettingsConfigDict(
        env_prefix=_ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    version: str = "0.1.0"
    base_uri: str = Field(
        default="http://localhost:3000",
        description="Public ledger URI that resource and subscription URIs are built on",
    )
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _apply_yaml(cls, values: Any) -> Any:
        if not isinstance(values, dict) or not values.get("config_path"):
            return values
        return _underlay(_load_yaml(values["config_path"]), values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Load *path* underneath any environment overrides."""
        return cls(config_path=str(path))
