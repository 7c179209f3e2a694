"""
Configuration Loader (``lease_config.loader``).

Responsibility
--------------
Reads a YAML settings file, applies environment-variable overrides and
builds the typed ``lease_config.schema`` dataclasses.  Runtime callers go
through ``lease_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from lease_config.schema import (
    DatabaseSettings,
    LeaseEngineConfig,
    NotificationSettings,
    SmtpSettings,
)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

# Environment variable -> (section, field, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Any]] = {
    "LEASE_DATABASE_URL": ("database", "url", str),
    "LEASE_NOTIFICATION_DAYS_BEFORE": ("notification", "horizon_days", int),
    "LEASE_NOTIFICATION_TIMEZONE": ("notification", "timezone", str),
    "LEASE_INTERNAL_NOTIFICATION_EMAIL": ("notification", "internal_recipient", str),
    "LEASE_SMTP_HOST": ("smtp", "host", str),
    "LEASE_SMTP_PORT": ("smtp", "port", int),
    "LEASE_SMTP_USERNAME": ("smtp", "username", str),
    "LEASE_SMTP_PASSWORD": ("smtp", "password", str),
}

_SECTIONS = {
    "database": DatabaseSettings,
    "notification": NotificationSettings,
    "smtp": SmtpSettings,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(
    data: dict[str, Any],
    env: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of ``data`` with environment overrides applied."""
    merged = {section: dict(data.get(section) or {}) for section in _SECTIONS}
    for var, (section, key, convert) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            merged[section][key] = convert(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid value for {var}: {raw!r}") from exc
    return merged


def _parse_section(name: str, data: dict[str, Any]):
    cls = _SECTIONS[name]
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {name} settings: {sorted(unknown)}")
    return cls(**data)


def parse_config(data: dict[str, Any]) -> LeaseEngineConfig:
    """Build a LeaseEngineConfig from a dict shaped like defaults.yaml."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")
    return LeaseEngineConfig(
        database=_parse_section("database", data.get("database") or {}),
        notification=_parse_section("notification", data.get("notification") or {}),
        smtp=_parse_section("smtp", data.get("smtp") or {}),
    )


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> LeaseEngineConfig:
    """Load YAML (defaults.yaml when ``path`` is None) and apply ``env``."""
    data = load_yaml_file(path or DEFAULTS_PATH)
    return parse_config(apply_env_overrides(data, env or {}))
