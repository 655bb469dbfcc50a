"""
Configuration Loader (``budget_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``budget_config.schema`` dataclasses.  Runtime callers go through
``budget_config.get_active_config()`` instead.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong value types or unknown enum values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from budget_config.schema import (
    BudgetEngineConfig,
    ChargesConfig,
    DatabaseConfig,
    LoggingConfig,
    SnapshotConfig,
)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_ACCOUNT_TYPES = frozenset({"checking", "savings", "investment", "other"})
_TEMPLATE_FIELDS = {"name": "Rent", "cycle_label": "2025-01", "category": "rent"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root in {path} must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Configuration section {name!r} must be a mapping")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"{key} must be true or false, got {value!r}")


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """``url`` is required; the rest default."""
    return DatabaseConfig(
        url=str(data["url"]),
        echo=_as_bool(data.get("echo", False), "database.echo"),
        pool_size=_as_int(data.get("pool_size", 20), "database.pool_size"),
        max_overflow=_as_int(data.get("max_overflow", 10), "database.max_overflow"),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")
    return LoggingConfig(level=level)


def parse_charges(data: dict[str, Any]) -> ChargesConfig:
    template = str(data.get("description_template", ChargesConfig.description_template))
    try:
        rendered = template.format(**_TEMPLATE_FIELDS)
    except (KeyError, IndexError, ValueError) as exc:
        raise ValueError(
            f"charges.description_template {template!r} is invalid: {exc}"
        ) from exc
    if _TEMPLATE_FIELDS["name"] not in rendered:
        raise ValueError("charges.description_template must include {name}")
    return ChargesConfig(
        description_template=template,
        match_legacy_descriptions=_as_bool(
            data.get("match_legacy_descriptions", True),
            "charges.match_legacy_descriptions",
        ),
    )


def parse_snapshot(data: dict[str, Any]) -> SnapshotConfig:
    account_type = str(data.get("current_account_type", "checking")).lower()
    if account_type not in _ACCOUNT_TYPES:
        raise ValueError(
            f"snapshot.current_account_type must be one of {sorted(_ACCOUNT_TYPES)}, "
            f"got {account_type!r}"
        )
    return SnapshotConfig(current_account_type=account_type)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(
    data: dict[str, Any],
    *,
    source: str = "",
    database_url: str | None = None,
) -> BudgetEngineConfig:
    """
    Build a BudgetEngineConfig from a parsed YAML mapping.

    ``database_url`` replaces ``database.url`` when given.
    """
    database = dict(_section(data, "database"))
    if database_url:
        database["url"] = database_url
    effective = {**data, "database": database}

    return BudgetEngineConfig(
        database=parse_database(database),
        logging=parse_logging(_section(data, "logging")),
        charges=parse_charges(_section(data, "charges")),
        snapshot=parse_snapshot(_section(data, "snapshot")),
        currency=str(data.get("currency", "EUR")).upper(),
        version=_as_int(data.get("version", 1), "version"),
        source=source,
        checksum=compute_checksum(effective),
    )
