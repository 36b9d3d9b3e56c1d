# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Centralized configuration loader for StockWatch.

Loads config.yaml from the repository root (or the file named by STOCKWATCH_CONFIG)
and provides typed access to settings. Falls back to sensible defaults if the file is
missing or incomplete. Environment variables override config.yaml values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

_CONFIG_CACHE: Optional["StockWatchConfig"] = None

_TRUE = ("true", "1", "yes")
_FALSE = ("false", "0", "no")


def _repo_root() -> Path:
    """Return the repository root."""
    # stockwatch/core/config.py -> repo root
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class ProviderConfig:
    """Quote provider configuration."""
    base_url: str
    api_key: Optional[str]
    timeout: float
    max_sessions: int


@dataclass(frozen=True)
class SchedulerConfig:
    """Automatic refresh configuration."""
    enabled: bool
    interval_seconds: float
    warm_start: bool


@dataclass(frozen=True)
class StoreConfig:
    """Persistent store configuration."""
    db_path: str


@dataclass(frozen=True)
class ServerConfig:
    """HTTP surface configuration."""
    environment: str  # "development" | "production"
    force_https: bool
    cors_origins: Tuple[str, ...]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@dataclass(frozen=True)
class NotifyConfig:
    """Broadcast configuration."""
    webhook_url: Optional[str]
    queue_size: int


@dataclass(frozen=True)
class StockWatchConfig:
    """Root configuration object."""
    provider: ProviderConfig
    scheduler: SchedulerConfig
    store: StoreConfig
    server: ServerConfig
    notify: NotifyConfig
    log_level: str


def _config_path() -> Path:
    override = os.getenv("STOCKWATCH_CONFIG")
    return Path(override) if override else _repo_root() / "config.yaml"


def _load_yaml_config(path: Path) -> dict:
    """Load the YAML config file. Returns empty dict if not found or unreadable."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("[CONFIG] Could not read %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _as_bool(value: Any) -> Optional[bool]:
    """Parse a flag from YAML or the environment; None if unrecognized."""
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return None


def _env_bool(name: str, default: Any) -> bool:
    parsed = _as_bool(os.getenv(name, ""))
    if parsed is not None:
        return parsed
    parsed = _as_bool(default)
    if parsed is None:
        logger.warning("[CONFIG] Unrecognized boolean for %s: %r, using False", name, default)
        return False
    return parsed


def load_config(*, reload: bool = False, path: Optional[Path] = None) -> StockWatchConfig:
    """Load and return the StockWatch configuration.

    Priority order (highest to lowest):
    1. Environment variables (STOCK_API_KEY, REFRESH_INTERVAL_SECONDS, APP_ENV, etc.)
    2. config.yaml values
    3. Built-in defaults

    Parameters
    ----------
    reload : bool
        If True, force reload from disk. Otherwise use cached config.
    path : Path, optional
        Explicit config file; bypasses the cache.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE is not None and not reload and path is None:
        return _CONFIG_CACHE

    raw = _load_yaml_config(path or _config_path())

    provider_raw = raw.get("provider", {}) or {}
    provider = ProviderConfig(
        base_url=os.getenv("STOCK_API_URL", provider_raw.get("base_url", "https://www.alphavantage.co/query")),
        api_key=os.getenv("STOCK_API_KEY") or provider_raw.get("api_key"),
        timeout=float(os.getenv("STOCK_API_TIMEOUT", str(provider_raw.get("timeout", 10.0)))),
        max_sessions=int(provider_raw.get("max_sessions", 25)),
    )

    sched_raw = raw.get("scheduler", {}) or {}
    scheduler = SchedulerConfig(
        enabled=_env_bool("REFRESH_ENABLED", sched_raw.get("enabled", True)),
        interval_seconds=float(os.getenv(
            "REFRESH_INTERVAL_SECONDS",
            str(sched_raw.get("interval_seconds", 10)),
        )),
        warm_start=_env_bool("REFRESH_WARM_START", sched_raw.get("warm_start", False)),
    )

    store_raw = raw.get("store", {}) or {}
    db_path = os.getenv("STOCKWATCH_DB_PATH", store_raw.get("db_path", "data/stockwatch.db"))
    if not Path(db_path).is_absolute():
        db_path = str(_repo_root() / db_path)
    store = StoreConfig(db_path=db_path)

    server_raw = raw.get("server", {}) or {}
    origins_raw = os.getenv("CORS_ORIGINS")
    if origins_raw is not None:
        origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip())
    else:
        origins = tuple(server_raw.get("cors_origins", ["*"]))
    server = ServerConfig(
        environment=os.getenv("APP_ENV", server_raw.get("environment", "production")).strip().lower(),
        force_https=_env_bool("FORCE_HTTPS", server_raw.get("force_https", False)),
        cors_origins=origins,
    )

    notify_raw = raw.get("notify", {}) or {}
    notify = NotifyConfig(
        webhook_url=os.getenv("BROADCAST_WEBHOOK_URL") or notify_raw.get("webhook_url"),
        queue_size=int(notify_raw.get("queue_size", 100)),
    )

    log_raw = raw.get("logging", {}) or {}
    log_level = os.getenv("LOG_LEVEL", log_raw.get("level", "INFO")).upper()

    config = StockWatchConfig(
        provider=provider,
        scheduler=scheduler,
        store=store,
        server=server,
        notify=notify,
        log_level=log_level,
    )

    if path is None:
        _CONFIG_CACHE = config
    return config


__all__ = [
    "NotifyConfig",
    "ProviderConfig",
    "SchedulerConfig",
    "ServerConfig",
    "StockWatchConfig",
    "StoreConfig",
    "load_config",
]
