"""
Collaborator protocols: token ledger, price quoter, swap venue, swap hook.

Implement per venue. The paper implementations in this package are used by
the CLI and the tests; a chain-backed adapter only has to satisfy these.
"""

from __future__ import annotations

from typing import Protocol

from treasury_core.atomic import Checkpointable
from treasury_core.contracts import BalanceDelta, PoolKey, SwapParams


class TokenLedger(Checkpointable, Protocol):
    """Balances per (holder, asset). Transfers raise TransferFailed on failure."""

    def balance_of(self, holder: str, asset: str) -> int:
        ...

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        ...

    def burn(self, asset: str, holder: str, amount: int) -> None:
        ...


class PriceQuoter(Protocol):
    def estimate_input_for_exact_output(self, asset_in: str, asset_out: str, fee_tier: int, amount_out: int) -> int:
        """Read-only estimate of the input needed to receive exactly ``amount_out``."""
        ...


class SwapVenue(Protocol):
    """Executes swaps. Both swap calls raise SlippageExceeded when the bound cannot be met."""

    def swap_exact_output(
        self,
        sender: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_out: int,
        input_cap: int,
    ) -> int:
        ...

    def swap_exact_input(
        self,
        sender: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_in: int,
        output_floor: int,
    ) -> int:
        ...

    def take(self, key: PoolKey, currency: str, recipient: str, amount: int) -> None:
        """Pull funds out of a pool. Only valid inside a hook callback for that pool."""
        ...


class SwapHook(Protocol):
    address: str

    def validate_pool(self, key: PoolKey) -> None:
        """Raise if this hook cannot govern the pool."""
        ...

    def after_swap(self, sender: str, key: PoolKey, params: SwapParams, delta: BalanceDelta) -> tuple[str, int]:
        """Post-settlement callback. Returns (acknowledgement, fee_adjustment)."""
        ...
