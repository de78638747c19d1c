"""Create-game form: stake, lending toggle, opening move and submission."""
import asyncio
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from loguru import logger

from .board import Board, EMPTY_BOARD, Move, opening_move, place_opening_move
from ..core.chain import ChainClient
from ..core.errors import (
    FormStateError,
    InsufficientBalance,
    InvalidMove,
    NoMoveSelected,
    TicTacError,
    WalletNotConnected,
    ZeroStake,
)
from ..core.stake import MoveSubmission, SubmissionResult
from ..core.units import Amount, parse_stake, to_micro
from ..core.wager import (
    CostBreakdown,
    DEFAULT_TERMS,
    LendingTerms,
    WagerInputs,
    WagerQuote,
    cost_breakdown,
    max_stake,
    quote_inputs,
)


class FormState(str, Enum):
    IDLE = "idle"
    STAKED = "staked"
    CONFIGURED = "configured"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    REJECTED = "rejected"


REJECTIONS = (WalletNotConnected, ZeroStake, NoMoveSelected, InvalidMove, InsufficientBalance)


@dataclass(frozen=True)
class FormSnapshot:
    """Immutable view of the form inputs."""
    stake: Decimal
    use_lending: bool
    balance_micro: Optional[int]
    board: Board

    def wager_inputs(self) -> WagerInputs:
        return WagerInputs(self.stake, self.use_lending, self.balance_micro or 0)


class GameCreationForm:
    """State machine behind the create-game page.

    Every edit moves the form back to its editing state (idle, staked or
    configured). ``create_game`` validates the inputs, hands a
    ``MoveSubmission`` to the chain client and ends submitted or rejected.
    A rejected form can be corrected and resubmitted.
    """

    def __init__(self, chain: ChainClient, balance_micro: Optional[int] = None,
                 terms: LendingTerms = DEFAULT_TERMS):
        self.chain = chain
        self.terms = terms
        self._stake = Decimal(0)
        self._use_lending = False
        self._balance_micro: Optional[int] = None
        self._board: Board = EMPTY_BOARD
        self.state = FormState.IDLE
        self.rejection: Optional[TicTacError] = None
        self.result: Optional[SubmissionResult] = None
        if balance_micro is not None:
            self.set_balance(balance_micro)

    @property
    def snapshot(self) -> FormSnapshot:
        return FormSnapshot(self._stake, self._use_lending, self._balance_micro, self._board)

    @property
    def quote(self) -> WagerQuote:
        """Recomputed from the current snapshot on every access."""
        return quote_inputs(self.snapshot.wager_inputs(), self.terms)

    @property
    def cost_breakdown(self) -> CostBreakdown:
        return cost_breakdown(self.quote, self.terms)

    @property
    def can_submit(self) -> bool:
        """Whether the create button is enabled."""
        wager = self.quote
        return (
            self._balance_micro is not None
            and wager.stake_micro > 0
            and wager.can_afford
            and self.state not in (FormState.SUBMITTING, FormState.SUBMITTED)
        )

    @property
    def submit_label(self) -> str:
        return "Create Game with Loan" if self._use_lending else "Create Game"

    def _editing_state(self) -> FormState:
        if to_micro(self._stake) == 0:
            return FormState.IDLE
        if self._use_lending:
            return FormState.CONFIGURED
        return FormState.STAKED

    def _edit(self) -> None:
        if self.state in (FormState.SUBMITTING, FormState.SUBMITTED):
            raise FormStateError(f"Form cannot be edited while {self.state.value}")
        self.state = self._editing_state()
        self.rejection = None

    def set_stake(self, value: Amount) -> Decimal:
        """Set the stake from user input.

        Raises:
            InvalidStake: If the input is not a non-negative number
        """
        stake = parse_stake(value)
        self._edit()
        self._stake = stake
        self.state = self._editing_state()
        return stake

    def set_lending(self, use_lending: bool) -> None:
        self._edit()
        self._use_lending = bool(use_lending)
        self.state = self._editing_state()

    def toggle_lending(self) -> bool:
        self.set_lending(not self._use_lending)
        return self._use_lending

    def set_balance(self, balance_micro: Optional[int]) -> None:
        """Update the balance reported by the wallet (None when disconnected)."""
        if balance_micro is not None and balance_micro < 0:
            raise ValueError(f"Balance must not be negative, got {balance_micro}")
        self._balance_micro = balance_micro
        if self.state not in (FormState.SUBMITTING, FormState.SUBMITTED):
            self._edit()

    def use_max_stake(self) -> Decimal:
        """Stake as much as the balance covers, accounting for collateral when borrowing."""
        if self._balance_micro is None:
            raise WalletNotConnected()
        return self.set_stake(max_stake(self._balance_micro, self._use_lending, self.terms))

    def select_cell(self, index: int, mark: Move = Move.X) -> Board:
        """Play the opening move. Selecting a new cell replaces the previous one."""
        board = place_opening_move(index, mark)
        self._edit()
        self._board = board
        return board

    def validate(self) -> MoveSubmission:
        """Check the form and build the submission.

        Raises:
            WalletNotConnected: No balance is known
            ZeroStake: The stake is zero
            NoMoveSelected: No cell has been played
            InsufficientBalance: Balance does not cover the stake or collateral
        """
        if self._balance_micro is None:
            raise WalletNotConnected()
        wager = self.quote
        if wager.stake_micro == 0:
            raise ZeroStake()
        cell_index, mark = opening_move(self._board)
        if not wager.can_afford:
            raise InsufficientBalance(wager.required_micro, self._balance_micro, wager.use_lending)
        return MoveSubmission(
            cell_index=cell_index,
            mark=mark,
            stake_micro=wager.stake_micro,
            use_lending=wager.use_lending,
        )

    async def create_game(self) -> SubmissionResult:
        """Validate and submit the opening move with its stake.

        Raises:
            FormStateError: A submission is in flight or already done
            WalletNotConnected, ZeroStake, NoMoveSelected, InvalidMove,
            InsufficientBalance: The form was rejected; nothing was sent
            ChainError: The chain client failed; the form can be resubmitted
        """
        if self.state is FormState.SUBMITTING:
            raise FormStateError("A submission is already in flight")
        if self.state is FormState.SUBMITTED:
            raise FormStateError(f"Game already submitted in {self.result.txid}")

        try:
            submission = self.validate()
        except REJECTIONS as e:
            self.state = FormState.REJECTED
            self.rejection = e
            logger.warning(f"Create game rejected: {e}")
            raise

        self.state = FormState.SUBMITTING
        self.rejection = None
        logger.info(
            f"Creating game: {submission.stake_micro} microSTX on cell {submission.cell_index}"
            f"{' with loan' if submission.use_lending else ''}"
        )
        try:
            result = await self.chain.submit(submission)
        except Exception as e:
            logger.error(f"Create game failed: {e}")
            self.state = self._editing_state()
            raise
        except asyncio.CancelledError:
            logger.warning("Create game cancelled")
            self.state = self._editing_state()
            raise

        self.state = FormState.SUBMITTED
        self.result = result
        return result
