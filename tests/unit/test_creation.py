"""Unit tests for the create-game form."""
import asyncio
import pytest
from decimal import Decimal
from tictac.core.errors import (
    ChainError,
    FormStateError,
    InsufficientBalance,
    InvalidMove,
    InvalidStake,
    NoMoveSelected,
    WalletNotConnected,
    ZeroStake,
)
from tictac.core.stake import MoveSubmission
from tictac.games.board import Move
from tictac.games.creation import FormState, GameCreationForm

@pytest.fixture
def form(fake_chain):
    return GameCreationForm(fake_chain, balance_micro=160_000_000)

def test_initial_state(form):
    assert form.state is FormState.IDLE
    assert form.snapshot.stake == Decimal(0)
    assert not form.snapshot.use_lending
    assert form.quote.can_afford
    assert not form.can_submit
    assert form.submit_label == "Create Game"

def test_editing_states(form):
    form.set_stake("10")
    assert form.state is FormState.STAKED
    assert form.toggle_lending()
    assert form.state is FormState.CONFIGURED
    assert form.submit_label == "Create Game with Loan"
    assert not form.toggle_lending()
    assert form.state is FormState.STAKED
    form.set_stake(0)
    assert form.state is FormState.IDLE

def test_quote_follows_inputs(form):
    form.set_stake(100)
    assert form.quote.can_afford
    form.set_balance(50_000_000)
    assert not form.quote.can_afford
    form.set_lending(True)
    assert form.quote.collateral_micro == 150_000_000
    form.set_balance(150_000_000)
    assert form.quote.can_afford

def test_snapshot_is_immutable(form):
    snapshot = form.snapshot
    with pytest.raises(AttributeError):
        snapshot.stake = Decimal(5)
    form.set_stake(5)
    assert snapshot.stake == Decimal(0)

def test_invalid_stake_keeps_previous_value(form):
    form.set_stake(10)
    with pytest.raises(InvalidStake):
        form.set_stake("ten")
    with pytest.raises(InvalidStake):
        form.set_stake(-1)
    assert form.snapshot.stake == Decimal(10)

def test_negative_balance_rejected(form):
    with pytest.raises(ValueError):
        form.set_balance(-1)

def test_use_max_stake(form):
    assert form.use_max_stake() == Decimal("160")
    form.set_lending(True)
    form.set_balance(150_000_000)
    assert form.use_max_stake() == Decimal("100")
    assert form.quote.can_afford

def test_use_max_stake_requires_wallet(fake_chain):
    form = GameCreationForm(fake_chain)
    with pytest.raises(WalletNotConnected):
        form.use_max_stake()

def test_select_cell_replaces_previous(form):
    form.select_cell(0)
    form.select_cell(4)
    assert form.snapshot.board[0] == Move.EMPTY
    assert form.snapshot.board[4] == Move.X

def test_select_cell_out_of_range(form):
    with pytest.raises(InvalidMove):
        form.select_cell(9)

def test_empty_board_rejected(form, fake_chain):
    form.set_stake(10)
    with pytest.raises(NoMoveSelected):
        asyncio.run(form.create_game())
    assert form.state is FormState.REJECTED
    assert isinstance(form.rejection, NoMoveSelected)
    assert fake_chain.calls == []

def test_zero_stake_blocks_create(form, fake_chain):
    form.select_cell(4)
    assert form.quote.can_afford
    assert not form.can_submit
    with pytest.raises(ZeroStake):
        asyncio.run(form.create_game())
    assert form.state is FormState.REJECTED
    assert fake_chain.calls == []

def test_zero_stake_checked_before_move(form):
    with pytest.raises(ZeroStake):
        asyncio.run(form.create_game())

def test_no_wallet_rejected(fake_chain):
    form = GameCreationForm(fake_chain)
    form.set_stake(10)
    form.select_cell(4)
    assert not form.can_submit
    with pytest.raises(WalletNotConnected):
        asyncio.run(form.create_game())
    assert fake_chain.calls == []

def test_insufficient_collateral(form, fake_chain):
    form.set_balance(140_000_000)
    form.set_stake(100)
    form.set_lending(True)
    form.select_cell(4)
    with pytest.raises(InsufficientBalance) as exc_info:
        asyncio.run(form.create_game())
    error = exc_info.value
    assert error.collateral
    assert error.required_micro == 150_000_000
    assert error.shortfall_micro == 10_000_000
    assert str(error) == "Insufficient balance! You need 150 STX for collateral."
    assert form.state is FormState.REJECTED
    assert fake_chain.calls == []

def test_insufficient_own_stake(form):
    form.set_balance(50_000_000)
    form.set_stake(100)
    form.select_cell(0)
    with pytest.raises(InsufficientBalance) as exc_info:
        asyncio.run(form.create_game())
    assert not exc_info.value.collateral
    assert exc_info.value.shortfall_micro == 50_000_000
    assert str(exc_info.value) == "Insufficient balance! You need 100 STX."

def test_create_game_with_loan(form, fake_chain):
    form.set_stake(100)
    form.set_lending(True)
    form.select_cell(4)
    assert form.can_submit

    result = asyncio.run(form.create_game())

    assert result.function_name == "create-game-with-loan"
    assert form.state is FormState.SUBMITTED
    assert form.result == result
    assert fake_chain.calls == [
        MoveSubmission(cell_index=4, mark=Move.X, stake_micro=100_000_000, use_lending=True)
    ]

def test_create_game_with_own_stake(form, fake_chain):
    form.set_stake("2.5")
    form.select_cell(8)
    result = asyncio.run(form.create_game())
    assert result.function_name == "create-game"
    assert fake_chain.calls[0].stake_micro == 2_500_000
    assert not fake_chain.calls[0].use_lending

def test_submission_is_consumed_once(form, fake_chain):
    form.set_stake(10)
    form.select_cell(4)
    asyncio.run(form.create_game())
    assert not form.can_submit
    with pytest.raises(FormStateError):
        asyncio.run(form.create_game())
    with pytest.raises(FormStateError):
        form.set_stake(20)
    assert len(fake_chain.calls) == 1

def test_rejected_form_can_be_corrected(form, fake_chain):
    form.set_stake(10)
    with pytest.raises(NoMoveSelected):
        asyncio.run(form.create_game())
    form.select_cell(2)
    assert form.state is FormState.STAKED
    assert form.rejection is None
    asyncio.run(form.create_game())
    assert form.state is FormState.SUBMITTED
    assert fake_chain.calls[0].cell_index == 2

def test_chain_failure_propagates(form, fake_chain):
    fake_chain.error = ChainError("mempool full")
    form.set_stake(10)
    form.set_lending(True)
    form.select_cell(4)
    with pytest.raises(ChainError, match="mempool full"):
        asyncio.run(form.create_game())
    assert form.state is FormState.CONFIGURED

    fake_chain.error = None
    asyncio.run(form.create_game())
    assert form.state is FormState.SUBMITTED
    assert len(fake_chain.calls) == 2

def test_cancelled_submission_returns_to_editing(form, fake_chain):
    form.set_stake(10)
    form.set_lending(True)
    form.select_cell(4)

    async def cancel_while_sending():
        sending = asyncio.Event()

        async def stalled_create_game(*args):
            sending.set()
            await asyncio.sleep(10)

        fake_chain.create_game = stalled_create_game
        task = asyncio.create_task(form.create_game())
        await sending.wait()
        assert form.state is FormState.SUBMITTING
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(cancel_while_sending())
    assert form.state is FormState.CONFIGURED
    assert form.can_submit

    del fake_chain.create_game
    form.set_stake(20)
    result = asyncio.run(form.create_game())
    assert form.state is FormState.SUBMITTED
    assert result.function_name == "create-game-with-loan"
    assert fake_chain.calls[0].stake_micro == 20_000_000
