"""
Config loader: YAML file -> frozen dataclass tree.

Overrides resolved from environment variables (TREASURY_ADMIN, TREASURY_WEBHOOK_URL).
Treasury trading parameters live in the JSON parameter file (see treasury_config).
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from treasury_core.contracts import NATIVE


@dataclass(frozen=True)
class IdentitiesConfig:
    admin: str = "admin"
    treasury: str = "treasury"
    hook: str = "fee-hook"


@dataclass(frozen=True)
class PoolSeed:
    asset_a: str
    asset_b: str
    fee: int
    reserve_a: int
    reserve_b: int
    hooked: bool = False


@dataclass(frozen=True)
class PaperConfig:
    treasury_funding: int = 100 * 10**18
    pools: tuple[PoolSeed, ...] = ()


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class KeeperConfig:
    interval_seconds: float = 60.0
    caller: str = "keeper"


@dataclass(frozen=True)
class AppConfig:
    state_path: str
    settlement_asset: str
    treasury_params_path: str
    identities: IdentitiesConfig
    paper: PaperConfig
    journal: JournalConfig
    alerting: AlertingConfig = AlertingConfig()
    keeper: KeeperConfig = KeeperConfig()


def _pool_seed(raw: dict) -> PoolSeed:
    try:
        return PoolSeed(
            asset_a=str(raw["asset_a"]),
            asset_b=str(raw["asset_b"]),
            fee=int(raw["fee"]),
            reserve_a=int(raw["reserve_a"]),
            reserve_b=int(raw["reserve_b"]),
            hooked=bool(raw.get("hooked", False)),
        )
    except KeyError as exc:
        raise ValueError(f"Pool entry missing key {exc.args[0]!r}: {raw}") from exc


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Environment overrides:
      - TREASURY_ADMIN: administrator identity
      - TREASURY_WEBHOOK_URL: alert webhook (kept out of the config file)
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    id_raw = raw.get("identities", {})
    id_cfg = IdentitiesConfig(
        admin=os.environ.get("TREASURY_ADMIN", id_raw.get("admin", "admin")),
        treasury=id_raw.get("treasury", "treasury"),
        hook=id_raw.get("hook", "fee-hook"),
    )

    p_raw = raw.get("paper", {})
    p_cfg = PaperConfig(
        treasury_funding=int(p_raw.get("treasury_funding", 100 * 10**18)),
        pools=tuple(_pool_seed(p) for p in p_raw.get("pools", [])),
    )

    j_raw = raw.get("journal", {})
    j_cfg = JournalConfig(
        path=j_raw.get("path", "data/journal.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=os.environ.get("TREASURY_WEBHOOK_URL", str(a_raw.get("webhook_url", ""))),
    )

    k_raw = raw.get("keeper", {})
    k_cfg = KeeperConfig(
        interval_seconds=float(k_raw.get("interval_seconds", 60.0)),
        caller=str(k_raw.get("caller", "keeper")),
    )

    return AppConfig(
        state_path=raw.get("state_path", "data/treasury_state.db"),
        settlement_asset=raw.get("settlement_asset", NATIVE),
        treasury_params_path=raw.get("treasury_params_path", ""),
        identities=id_cfg,
        paper=p_cfg,
        journal=j_cfg,
        alerting=a_cfg,
        keeper=k_cfg,
    )
