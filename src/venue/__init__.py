"""
Venue layer: collaborator protocols plus the paper token bank and constant
product venue used by the CLI and tests.

Depends on treasury_core.contracts; no dependency from treasury_core back to venue
outside of type checking.
"""

from venue.bank import TokenBank
from venue.interfaces import PriceQuoter, SwapHook, SwapVenue, TokenLedger
from venue.paper_venue import PaperVenue, Pool

__all__ = [
    "PaperVenue",
    "Pool",
    "PriceQuoter",
    "SwapHook",
    "SwapVenue",
    "TokenBank",
    "TokenLedger",
]
