"""
lease_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way the engine obtains settings.
    It loads ``defaults.yaml`` (or an explicit YAML file) and applies
    ``LEASE_*`` environment overrides.

Architecture position:
    Configuration -- imports nothing from ``lease_kernel``.  Callers
    (``lease_notify``, the CLI) translate settings into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- explicit path does not exist.
    - ``ValueError`` -- unknown keys or values rejected by validation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from lease_config.loader import load_config
from lease_config.schema import (
    DatabaseSettings,
    LeaseEngineConfig,
    NotificationSettings,
    SmtpSettings,
)

_logger = logging.getLogger("lease_kernel.config")


def get_active_config(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> LeaseEngineConfig:
    """
    Load the active configuration.

    Args:
        path: YAML file to read; the packaged defaults when None.
        env: Environment mapping; ``os.environ`` when None.
    """
    config = load_config(
        Path(path) if path is not None else None,
        os.environ if env is None else env,
    )
    _logger.info(
        "lease_config_loaded",
        extra={
            "config_path": str(path) if path else "defaults",
            "horizon_days": config.notification.horizon_days,
            "notification_timezone": config.notification.timezone,
            "smtp_host": config.smtp.host,
        },
    )
    return config


__all__ = [
    "DatabaseSettings",
    "LeaseEngineConfig",
    "NotificationSettings",
    "SmtpSettings",
    "get_active_config",
]
