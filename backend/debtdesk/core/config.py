"""
Unified Configuration System.

Settings for the remote store, the local record store, read retries,
logging and per-entity reconciliation overrides. Values come from a YAML
or JSON file, then environment variables override them.

Usage:
    from debtdesk.core.config import get_config, load_config

    config = load_config("config/debtdesk.yaml")
    timeout = config.remote.timeout
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from debtdesk.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class RemoteSettings:
    """
    Remote store settings.

    Attributes:
        base_url: Service root; empty selects the in-memory stand-in
        api_key: API key, may be an env var reference like ${SUPABASE_KEY}
        timeout: Bounded wait per call in seconds
        verify_ssl: Verify TLS certificates
    """
    base_url: str = ""
    api_key: str | None = None
    timeout: float = 10.0
    verify_ssl: bool = True

    def resolve_api_key(self) -> str | None:
        """Resolve API key from environment variable if needed."""
        if not self.api_key:
            return None

        if self.api_key.startswith("${") and self.api_key.endswith("}"):
            return os.environ.get(self.api_key[2:-1])

        if self.api_key.startswith("$"):
            return os.environ.get(self.api_key[1:])

        return self.api_key


@dataclass
class LocalStoreSettings:
    """
    Local record store settings.

    Attributes:
        backend: "memory" or "sql"
        database_url: Async SQLAlchemy URL for the sql backend
        capacity: Max records per entity, None for unbounded
    """
    backend: str = "memory"
    database_url: str = "sqlite+aiosqlite:///debtdesk_local.db"
    capacity: int | None = None

    def resolve_database_url(self) -> str:
        """Resolve database URL from environment variable if needed."""
        if self.database_url.startswith("${") and self.database_url.endswith("}"):
            return os.environ.get(self.database_url[2:-1], self.database_url)
        return self.database_url


@dataclass
class RetrySettings:
    """Backoff settings for remote reads."""
    max_retries: int = 2
    base_delay: float = 0.2
    max_delay: float = 5.0
    exponential_base: float = 2.0


@dataclass
class LoggingSettings:
    """Logging settings."""
    level: str = "INFO"
    enable_file: bool = False


@dataclass
class EntityPolicySettings:
    """Per-entity override of the reconciliation category."""
    category: str = "remote_primary"
    fallback: bool = True


@dataclass
class DebtDeskConfig:
    """
    Complete configuration.

    Attributes:
        remote: Remote store settings
        local: Local record store settings
        retry: Read retry settings
        logging: Logging settings
        entities: Entity name to policy override
    """
    version: str = "1.0"
    remote: RemoteSettings = field(default_factory=RemoteSettings)
    local: LocalStoreSettings = field(default_factory=LocalStoreSettings)
    retry: RetrySettings = field(default_factory=RetrySettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    entities: dict[str, EntityPolicySettings] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, without secrets."""
        return {
            "version": self.version,
            "remote": {
                "base_url": self.remote.base_url,
                "timeout": self.remote.timeout,
                "verify_ssl": self.remote.verify_ssl,
            },
            "local": {
                "backend": self.local.backend,
                "database_url": self.local.database_url,
                "capacity": self.local.capacity,
            },
            "retry": {
                "max_retries": self.retry.max_retries,
                "base_delay": self.retry.base_delay,
                "max_delay": self.retry.max_delay,
            },
            "logging": {
                "level": self.logging.level,
            },
            "entities": {
                name: {"category": e.category, "fallback": e.fallback}
                for name, e in self.entities.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DebtDeskConfig":
        """Create from dictionary."""
        try:
            remote = RemoteSettings(**data.get("remote", {}))
            local = LocalStoreSettings(**data.get("local", {}))
            retry = RetrySettings(**data.get("retry", {}))
            log_settings = LoggingSettings(**data.get("logging", {}))
            entities = {
                name: EntityPolicySettings(**(override or {}))
                for name, override in data.get("entities", {}).items()
            }
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        _coerce_numbers(remote, local, retry)

        if local.backend not in ("memory", "sql"):
            raise ConfigurationError(
                f"Unknown local store backend: {local.backend}",
                config_key="local.backend",
            )

        return cls(
            version=str(data.get("version", "1.0")),
            remote=remote,
            local=local,
            retry=retry,
            logging=log_settings,
            entities=entities,
        )


def _coerce_numbers(remote: RemoteSettings, local: LocalStoreSettings, retry: RetrySettings) -> None:
    """Environment overrides arrive as strings."""
    try:
        remote.timeout = float(remote.timeout)
        retry.max_retries = int(retry.max_retries)
        retry.base_delay = float(retry.base_delay)
        retry.max_delay = float(retry.max_delay)
        retry.exponential_base = float(retry.exponential_base)
        if local.capacity is not None:
            local.capacity = int(local.capacity)
        if isinstance(remote.verify_ssl, str):
            remote.verify_ssl = remote.verify_ssl.lower() not in ("0", "false", "no")
    except ValueError as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e

    if remote.timeout <= 0:
        raise ConfigurationError("remote.timeout must be positive", config_key="remote.timeout")


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "DEBTDESK_",
) -> DebtDeskConfig:
    """
    Load configuration from file and environment.

    Args:
        config_path: Path to config file (YAML or JSON); a missing file is skipped
        env_prefix: Environment variable prefix

    Returns:
        Loaded configuration
    """
    config_data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix in (".yaml", ".yml"):
                    config_data = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    config_data = json.load(f)
                else:
                    logger.warning(f"Unknown config format: {path.suffix}")
        else:
            logger.debug(f"Config file {path} not found, using defaults")

    _apply_env_overrides(config_data, env_prefix)

    return DebtDeskConfig.from_dict(config_data)


def _apply_env_overrides(config: dict[str, Any], prefix: str) -> None:
    """Apply environment variable overrides to config."""
    env_mappings = {
        f"{prefix}REMOTE_URL": ("remote", "base_url"),
        f"{prefix}REMOTE_API_KEY": ("remote", "api_key"),
        f"{prefix}REMOTE_TIMEOUT": ("remote", "timeout"),
        f"{prefix}LOCAL_BACKEND": ("local", "backend"),
        f"{prefix}DATABASE_URL": ("local", "database_url"),
        f"{prefix}LOG_LEVEL": ("logging", "level"),
        f"{prefix}MAX_RETRIES": ("retry", "max_retries"),
    }

    for env_var, config_path in env_mappings.items():
        value = os.environ.get(env_var)
        if value:
            section, key = config_path
            config.setdefault(section, {})[key] = value


_global_config: DebtDeskConfig | None = None


def get_config() -> DebtDeskConfig:
    """Get the global configuration."""
    global _global_config
    if _global_config is None:
        config_path = os.environ.get("DEBTDESK_CONFIG", "config/debtdesk.yaml")
        _global_config = load_config(config_path)
    return _global_config


def set_config(config: DebtDeskConfig | None) -> None:
    """Set (or with None, reset) the global configuration."""
    global _global_config
    _global_config = config
