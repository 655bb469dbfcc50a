"""
Runtime configuration schema.

Every section is a frozen dataclass; ``BudgetEngineConfig`` is the single
artifact handed to the trigger layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class ChargesConfig:
    """How recurring charges are written and matched."""

    # Placeholders: {name}, {cycle_label}, {category}
    description_template: str = "{name} - {cycle_label}"
    # Also treat an entry whose description contains the charge name (same
    # category, same cycle) as already applied
    match_legacy_descriptions: bool = True


@dataclass(frozen=True)
class SnapshotConfig:
    current_account_type: str = "checking"


@dataclass(frozen=True)
class BudgetEngineConfig:
    """
    Frozen runtime configuration.

    ``checksum`` identifies the parsed source so log lines can be tied to
    the configuration that produced them.
    """

    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    charges: ChargesConfig = field(default_factory=ChargesConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    currency: str = "EUR"
    version: int = 1
    source: str = ""
    checksum: str = ""
