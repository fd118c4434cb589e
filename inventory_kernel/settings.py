"""
Settings -- runtime configuration for the inventory kernel.

Responsibility:
    Provides the single way to obtain runtime configuration through
    ``load_settings()``.  Values come from an optional YAML file and are
    overlaid by ``INVENTORY_*`` environment variables, so a deployment can
    ship one file and override individual values per host.

Failure modes:
    - ``FileNotFoundError`` when an explicit ``config_path`` does not exist.
    - ``yaml.YAMLError`` on malformed YAML.
    - ``ValueError`` on unknown keys or non-numeric pool sizes.

Precedence (highest first):
    1. Environment variables (``INVENTORY_DATABASE_URL`` ...)
    2. YAML file (``config_path`` argument or ``INVENTORY_CONFIG``)
    3. Defaults below
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from inventory_kernel.logging_config import get_logger

logger = get_logger("settings")

DEFAULT_DATABASE_URL = "sqlite:///inventory.db"

_ENV_PREFIX = "INVENTORY_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class InventorySettings:
    """Resolved runtime configuration."""

    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    sqlite_busy_timeout: int = 30
    log_level: str = "INFO"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _coerce(name: str, raw: Any) -> Any:
    """Convert a raw YAML/env value to the field's type."""
    default = getattr(InventorySettings, name)
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        try:
            return int(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Setting '{name}' must be an integer, got {raw!r}") from exc
    return str(raw)


def _from_mapping(data: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(InventorySettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")
    return {key: _coerce(key, val) for key, val in data.items()}


def _from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for f in fields(InventorySettings):
        env_name = _ENV_PREFIX + f.name.upper()
        if env_name in environ:
            values[f.name] = _coerce(f.name, environ[env_name])
    return values


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> InventorySettings:
    """
    Resolve settings from defaults, an optional YAML file and the environment.

    Args:
        config_path: YAML file to read.  Falls back to ``INVENTORY_CONFIG``.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Frozen InventorySettings.
    """
    env = os.environ if environ is None else environ
    settings = InventorySettings()

    path = config_path or env.get(_ENV_PREFIX + "CONFIG")
    if path:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        settings = replace(settings, **_from_mapping(data))

    overrides = _from_environ(env)
    if overrides:
        settings = replace(settings, **overrides)

    logger.debug(
        "settings_loaded",
        extra={
            "config_path": str(path) if path else None,
            "env_overrides": sorted(overrides),
            "dialect": "sqlite" if settings.is_sqlite else "server",
        },
    )
    return settings
