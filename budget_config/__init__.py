"""
budget_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables.

Architecture position:
    Configuration.  Sits beside ``budget_kernel`` and below
    ``budget_services``.  The kernel never imports from this package; the
    trigger layer passes plain values into kernel services.

Source precedence:
    1. ``config_path`` argument.
    2. ``BUDGET_CYCLE_CONFIG`` environment variable.
    3. The packaged ``defaults.yaml``.
    ``BUDGET_CYCLE_DATABASE_URL`` overrides ``database.url`` in all cases.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ValueError`` / ``KeyError`` -- invalid or incomplete configuration.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from budget_config.loader import load_yaml_file, parse_config
from budget_config.schema import (
    BudgetEngineConfig,
    ChargesConfig,
    DatabaseConfig,
    LoggingConfig,
    SnapshotConfig,
)

_logger = logging.getLogger("budget_kernel.config")

CONFIG_ENV_VAR = "BUDGET_CYCLE_CONFIG"
DATABASE_URL_ENV_VAR = "BUDGET_CYCLE_DATABASE_URL"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def resolve_config_path(config_path: Path | str | None = None) -> Path:
    if config_path:
        return Path(config_path)
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG_PATH


def get_active_config(config_path: Path | str | None = None) -> BudgetEngineConfig:
    """
    The ONLY public configuration entrypoint.

    Guarantees:
        - The returned config is frozen and fully validated.
        - A ``budget_config_loaded`` log entry is emitted on every call.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ValueError: If validation fails.
        KeyError: If a required key is missing.
    """
    path = resolve_config_path(config_path)
    data = load_yaml_file(path)
    config = parse_config(
        data,
        source=str(path),
        database_url=os.environ.get(DATABASE_URL_ENV_VAR) or None,
    )

    _logger.info(
        "budget_config_loaded",
        extra={
            "config_source": config.source,
            "config_checksum": config.checksum,
            "config_version": config.version,
            "currency": config.currency,
        },
    )
    return config


__all__ = [
    "BudgetEngineConfig",
    "ChargesConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "SnapshotConfig",
    "get_active_config",
    "resolve_config_path",
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
]
