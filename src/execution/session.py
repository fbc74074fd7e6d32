"""
Treasury session: wires bank, paper venue, fee hook and ledger from config,
loading the persisted world from the store or seeding a fresh one.

One session per CLI invocation. Call ``save()`` after a successful operation.
"""

from __future__ import annotations

import logging

from config.loader import AppConfig
from config.treasury_config import TreasuryParams, load_treasury_config
from execution.store import TreasuryStore
from treasury_core.atomic import atomic
from treasury_core.audit import AuditTrail
from treasury_core.contracts import FeeHookConfig
from treasury_core.fee_hook import FeeExtractionHook
from treasury_core.ledger import TreasuryLedger
from venue.bank import TokenBank
from venue.paper_venue import PaperVenue

logger = logging.getLogger("treasury.session")


class TreasurySession:
    def __init__(
        self,
        cfg: AppConfig,
        params: TreasuryParams | None = None,
        *,
        store: TreasuryStore | None = None,
    ) -> None:
        self.cfg = cfg
        self.params = params or load_treasury_config(cfg.treasury_params_path or None)
        self.store = store or TreasuryStore(cfg.state_path)
        self.settlement = cfg.settlement_asset
        self.bank = TokenBank()
        self.venue = PaperVenue(self.bank)
        self.audit = AuditTrail()

        ids = cfg.identities
        initialized = self.store.is_initialized()
        recipient = self.store.load_fee_recipient() if initialized else None
        self.hook = FeeExtractionHook(
            ids.hook,
            bank=self.bank,
            venue=self.venue,
            config=FeeHookConfig(
                fee_percent=self.params.fee_hook.fee_percent,
                fee_recipient=recipient or self.params.fee_hook.fee_recipient,
            ),
            settlement_asset=self.settlement,
            audit=self.audit,
        )
        self.venue.register_hook(self.hook)
        self.ledger = TreasuryLedger(
            self.params.treasury,
            admin=ids.admin,
            treasury=ids.treasury,
            bank=self.bank,
            venue=self.venue,
            quoter=self.venue,
            audit=self.audit,
            checkpoints=(self.venue,),
            settlement_asset=self.settlement,
        )

        if initialized:
            self._load()
        else:
            self._seed()

    def _seed(self) -> None:
        paper = self.cfg.paper
        ids = self.cfg.identities
        self.bank.mint(self.settlement, ids.treasury, paper.treasury_funding)
        for seed in paper.pools:
            self.venue.create_pool(
                seed.asset_a,
                seed.asset_b,
                seed.fee,
                seed.reserve_a,
                seed.reserve_b,
                hook=ids.hook if seed.hooked else None,
            )
        self.save()
        logger.info("seeded paper world at %s (%d pools)", self.store.path, len(paper.pools))

    def _load(self) -> None:
        self.store.load_bank(self.bank)
        for key, reserve0, reserve1 in self.store.load_pools():
            self.venue.restore_pool(key, reserve0, reserve1)
        state = self.store.load_ledger_state()
        if state is not None:
            self.ledger.load(state)

    def save(self) -> None:
        self.store.save(self.bank, self.venue, self.ledger.state(), self.hook.fee_recipient)

    def swap(
        self,
        trader: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_in: int,
        *,
        min_out: int = 0,
        fund: bool = False,
    ) -> int:
        """Trader swap on a paper pool. ``fund`` mints the input to the trader first."""
        with atomic(self.bank, self.venue, self.audit):
            if fund:
                self.bank.mint(asset_in, trader, amount_in)
            received = self.venue.swap_exact_input(trader, asset_in, asset_out, fee_tier, amount_in, min_out)
        self.audit.flush()
        return received
