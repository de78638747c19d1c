"""Errors raised by the wager calculator and the create-game flow."""
from typing import Optional


class TicTacError(Exception):
    """Base class for all tictac-stakes errors."""


class InvalidStake(TicTacError, ValueError):
    """Stake is non-numeric, non-finite or negative."""


class ZeroStake(InvalidStake):
    """A game cannot be created without a stake."""

    def __init__(self, message: str = "Enter a bet amount greater than 0 STX."):
        super().__init__(message)


class InvalidMove(TicTacError, ValueError):
    """Cell index out of range or an opening board with more than one mark."""


class NoMoveSelected(TicTacError):
    """Create-game attempted before the opening move was played."""

    def __init__(self, message: str = "Please make your first move on the board!"):
        super().__init__(message)


class InsufficientBalance(TicTacError):
    """Balance does not cover the stake (or the collateral when borrowing)."""

    def __init__(self, required_micro: int, balance_micro: int, collateral: bool):
        self.required_micro = required_micro
        self.balance_micro = balance_micro
        self.collateral = collateral
        # units imports this module
        from .units import format_stx
        if collateral:
            message = f"Insufficient balance! You need {format_stx(required_micro)} STX for collateral."
        else:
            message = f"Insufficient balance! You need {format_stx(required_micro)} STX."
        super().__init__(message)

    @property
    def shortfall_micro(self) -> int:
        return max(self.required_micro - self.balance_micro, 0)


class WalletNotConnected(TicTacError):
    """No wallet address (and therefore no balance) is available."""

    def __init__(self, message: str = "Connect a wallet first: tictac wallet connect <address>"):
        super().__init__(message)


class FormStateError(TicTacError):
    """Submission attempted while one is in flight or after it completed."""


class ChainError(TicTacError):
    """A balance query or contract call failed downstream."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
