"""
Configuration loaders.

App config:        reads config.yaml, resolves env var overrides.
Treasury params:   reads treasury.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    IdentitiesConfig,
    JournalConfig,
    KeeperConfig,
    PaperConfig,
    PoolSeed,
    load_config,
)
from config.treasury_config import (
    TreasuryConfigError,
    TreasuryParams,
    load_treasury_config,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "IdentitiesConfig",
    "JournalConfig",
    "KeeperConfig",
    "PaperConfig",
    "PoolSeed",
    "load_config",
    # Treasury params (JSON + schema)
    "TreasuryConfigError",
    "TreasuryParams",
    "load_treasury_config",
]
