"""
In-memory token bank: balances and supplies per asset, strict-success transfers.

Stands in for the fungible-token contracts and native balances of a chain.
Holders can be marked as refusing incoming transfers to exercise failure paths.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from treasury_core.errors import TransferFailed

logger = logging.getLogger("treasury.bank")


class TokenBank:
    """Single-writer balance book. Amounts are non-negative integers."""

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)
        self._supply: dict[str, int] = defaultdict(int)
        self._refusing: set[str] = set()

    # -- queries ------------------------------------------------------------

    def balance_of(self, holder: str, asset: str) -> int:
        return self._balances.get((holder, asset), 0)

    def total_supply(self, asset: str) -> int:
        return self._supply.get(asset, 0)

    def holdings(self) -> dict[tuple[str, str], int]:
        return {k: v for k, v in self._balances.items() if v}

    def supplies(self) -> dict[str, int]:
        return dict(self._supply)

    # -- mutations ----------------------------------------------------------

    def mint(self, asset: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"mint amount must be >= 0, got {amount}")
        self._balances[(holder, asset)] += amount
        self._supply[asset] += amount

    def burn(self, asset: str, holder: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"burn amount must be >= 0, got {amount}")
        held = self.balance_of(holder, asset)
        if held < amount:
            raise TransferFailed(f"cannot burn {amount} {asset}: {holder} holds {held}")
        self._balances[(holder, asset)] = held - amount
        self._supply[asset] -= amount
        logger.debug("burned %d %s from %s", amount, asset, holder)

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TransferFailed(f"negative transfer amount: {amount}")
        if recipient in self._refusing:
            raise TransferFailed(f"{recipient} rejected {amount} {asset}")
        held = self.balance_of(sender, asset)
        if held < amount:
            raise TransferFailed(f"{sender} holds {held} {asset}, cannot send {amount}")
        if amount == 0 or sender == recipient:
            return
        self._balances[(sender, asset)] = held - amount
        self._balances[(recipient, asset)] += amount

    def set_refusing(self, holder: str, refusing: bool = True) -> None:
        """Make ``holder`` reject (or accept again) every incoming transfer."""
        if refusing:
            self._refusing.add(holder)
        else:
            self._refusing.discard(holder)

    # -- checkpointing ------------------------------------------------------

    def snapshot(self) -> Any:
        return dict(self._balances), dict(self._supply)

    def restore(self, state: Any) -> None:
        balances, supply = state
        self._balances = defaultdict(int, balances)
        self._supply = defaultdict(int, supply)
