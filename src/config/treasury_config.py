"""
Treasury parameter loader: JSON file -> TreasuryConfig + FeeHookConfig, validated against JSON Schema.

Default values:  docs/config/treasury.default.json
Schema:          docs/config/treasury_config.schema.json

An optional override file holding only the keys to change is deep-merged on
top of the base parameters before schema validation.

Usage:
    from config.treasury_config import load_treasury_config
    params = load_treasury_config()                          # loads default
    params = load_treasury_config(override_path="ops.json")  # merges overrides
    params.treasury.min_profit_percent  # -> 10
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

from treasury_core.contracts import FeeHookConfig, TreasuryConfig

logger = logging.getLogger("treasury.config")


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml; fall back to CWD when installed."""
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_PARAMS_PATH = _PROJECT_ROOT / "docs" / "config" / "treasury.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "treasury_config.schema.json"


@dataclass(frozen=True)
class TreasuryParams:
    version: str
    treasury: TreasuryConfig
    fee_hook: FeeHookConfig


class TreasuryConfigError(Exception):
    """Raised when treasury parameter loading or validation fails."""


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*; override keys win."""
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


def _read_json(path: Path, label: str) -> dict[str, Any]:
    if not path.exists():
        raise TreasuryConfigError(f"{label} not found: {path}")
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise TreasuryConfigError(f"{label} is not valid JSON: {exc}") from exc


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    schema = _read_json(schema_path, "Schema file")
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise TreasuryConfigError(f"Treasury parameters failed validation: {exc.message}") from exc


def _build_params(data: dict[str, Any]) -> TreasuryParams:
    t = data["treasury"]
    h = data["fee_hook"]
    return TreasuryParams(
        version=data["version"],
        treasury=TreasuryConfig(
            target_asset=t["target_asset"],
            acquisition_size=t["acquisition_size"],
            min_profit_percent=t["min_profit_percent"],
            fee_tier=t["fee_tier"],
            caller_reward=t["caller_reward"],
            buyback_asset=t["buyback_asset"],
            buyback_fee_tier=t["buyback_fee_tier"],
        ),
        fee_hook=FeeHookConfig(fee_percent=h["fee_percent"], fee_recipient=h["fee_recipient"]),
    )


def load_treasury_config(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    override_path: str | Path | None = None,
) -> TreasuryParams:
    """Load and validate treasury parameters.

    Raises
    ------
    TreasuryConfigError
        If a file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_PARAMS_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    data = _read_json(cfg_path, "Treasury parameter file")
    if override_path:
        overrides = _read_json(Path(override_path), "Override file")
        data = _deep_merge(data, overrides)
        logger.info("Applied treasury overrides from %s", override_path)

    _validate_schema(data, sch_path)
    return _build_params(data)
