"""Test configuration and fixtures for tictac-stakes."""
import pytest
from unittest.mock import patch
from tictac.core.chain import ChainClient, CREATE_GAME, CREATE_GAME_WITH_LOAN
from tictac.core.stake import MoveSubmission, SubmissionResult
from tictac.core.wallet import StacksWallet

TESTNET_ADDRESS = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"

class FakeChainClient(ChainClient):
    """Chain client that records calls instead of talking to a node."""

    def __init__(self, balance: int = 0, error: Exception = None):
        self.balance = balance
        self.error = error
        self.calls = []

    async def get_balance(self, address: str) -> int:
        if self.error:
            raise self.error
        return self.balance

    async def create_game(self, stake_micro, cell_index, mark, use_lending):
        self.calls.append(MoveSubmission(
            cell_index=cell_index,
            mark=mark,
            stake_micro=stake_micro,
            use_lending=use_lending,
        ))
        if self.error:
            raise self.error
        return SubmissionResult(
            txid=f"0x{len(self.calls):064x}",
            function_name=CREATE_GAME_WITH_LOAN if use_lending else CREATE_GAME,
        )

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer overrides out of the tests."""
    for name in ("TICTAC_CONTRACT_ID", "TICTAC_SIGNER_URL", "TICTAC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

@pytest.fixture
def fake_chain():
    return FakeChainClient(balance=160_000_000)

@pytest.fixture
def temp_config_dir(tmp_path):
    """Point the wallet config at a temporary directory."""
    with patch('tictac.core.wallet.StacksWallet._get_config_dir') as mock_dir:
        mock_dir.return_value = tmp_path
        yield tmp_path

@pytest.fixture
def wallet(temp_config_dir, fake_chain):
    """Disconnected testnet wallet backed by the fake chain client."""
    return StacksWallet(client=fake_chain)

@pytest.fixture
def connected_wallet(wallet):
    assert wallet.connect(
        TESTNET_ADDRESS,
        contract_id=f"{TESTNET_ADDRESS}.tic-tac-toe",
        signer_url="http://localhost:3999",
    )
    return wallet
