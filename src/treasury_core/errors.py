"""
Error taxonomy. Every failure aborts the whole triggering operation; nothing
in treasury-core retries locally.
"""


class TreasuryError(Exception):
    """Base class for all treasury-core failures."""


class InvalidConfiguration(TreasuryError):
    """Zero or out-of-range parameter."""


class InsufficientFunds(TreasuryError):
    """Treasury cannot cover a planned spend plus reward, or a withdrawal."""


class FillMismatch(TreasuryError):
    """Acquired amount differs from the exact requested size."""


class InsufficientProfit(TreasuryError):
    """Sale cannot clear the profit floor."""


class InvalidOrderState(TreasuryError):
    """Operation attempted against an order outside the expected lifecycle state."""


class TransferFailed(TreasuryError):
    """A payment leg could not complete."""


class RewardTransferFailed(TransferFailed):
    """The caller incentive could not be paid."""


class Unauthorized(TreasuryError):
    """Caller lacks the required identity."""


class ReentrantCall(TreasuryError):
    """A guarded operation was entered while another one is in progress."""


class SwapFailed(TreasuryError):
    """The swap venue could not execute the request."""


class SlippageExceeded(SwapFailed):
    """The venue could not honour the caller's input cap or output floor."""
