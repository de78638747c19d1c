"""Stacks wallet configuration and balance lookup."""
import os
import re
import json
import platform
from pathlib import Path
from typing import Optional
from loguru import logger
from pydantic import BaseModel

from .chain import ChainClient, HTTPChainClient

NETWORK_API_URLS = {
    "mainnet": "https://api.hiro.so",
    "testnet": "https://api.testnet.hiro.so",
}

# c32 alphabet; mainnet addresses start SP/SM, testnet ST/SN
ADDRESS_PATTERN = re.compile(r"^S[PMTN][0-9A-HJKMNP-TV-Z]{28,41}$")
NETWORK_PREFIXES = {
    "mainnet": ("SP", "SM"),
    "testnet": ("ST", "SN"),
}

class WalletConfig(BaseModel):
    """Stacks wallet configuration."""
    network: str = "testnet"
    address: Optional[str] = None
    api_url: Optional[str] = None
    signer_url: Optional[str] = None
    contract_id: Optional[str] = None  # e.g. ST1...ABC.tic-tac-toe

    def __init__(self, **data):
        super().__init__(**data)
        if self.network not in NETWORK_API_URLS:
            raise ValueError(f"Unknown network {self.network!r}, expected one of {sorted(NETWORK_API_URLS)}")
        if not self.api_url:
            self.api_url = NETWORK_API_URLS[self.network]

    # Environment wins over the saved file, read at use so it is never saved
    @property
    def resolved_contract_id(self) -> Optional[str]:
        return os.getenv("TICTAC_CONTRACT_ID") or self.contract_id

    @property
    def resolved_signer_url(self) -> Optional[str]:
        return os.getenv("TICTAC_SIGNER_URL") or self.signer_url

def is_valid_address(address: str, network: str) -> bool:
    """Check an address is well formed and belongs to ``network``."""
    if not ADDRESS_PATTERN.match(address):
        return False
    return address[:2] in NETWORK_PREFIXES[network]

class StacksWallet:
    """Stacks wallet with local state management.

    Only the address and endpoints are kept; keys stay with the external
    signer.
    """

    def __init__(self, network: str = "testnet", client: Optional[ChainClient] = None):
        """Initialize the wallet.

        Args:
            network: Stacks network to use (testnet/mainnet)
            client: Chain client override, mostly for tests
        """
        self.config = WalletConfig(network=network)
        self.config_dir = self._get_config_dir()
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self._load_config()
        self._client = client

    def _get_config_dir(self) -> Path:
        """Get platform-specific config directory."""
        if os.name == 'nt':  # Windows
            return Path(os.getenv('APPDATA')) / 'tictac-stakes'
        elif platform.system() == 'Darwin':  # macOS
            return Path.home() / 'Library' / 'Application Support' / 'tictac-stakes'
        else:  # Linux and others
            return Path.home() / '.config' / 'tictac-stakes'

    def _load_config(self) -> None:
        """Load wallet configuration from disk."""
        config_path = self.config_dir / 'wallet_config.json'
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                self.config = WalletConfig(**data)
            except (OSError, ValueError, TypeError) as e:
                logger.error(f"Failed to load wallet config: {e}")

    def _save_config(self) -> None:
        """Save wallet configuration to disk."""
        config_path = self.config_dir / 'wallet_config.json'
        try:
            with open(config_path, 'w') as f:
                json.dump(self.config.model_dump(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save wallet config: {e}")

    @property
    def client(self) -> ChainClient:
        """Chain client for the configured network."""
        if self._client is None:
            self._client = HTTPChainClient(self.config)
        return self._client

    def connect(self, address: str, network: Optional[str] = None,
                contract_id: Optional[str] = None, signer_url: Optional[str] = None) -> bool:
        """Remember a wallet address and, optionally, the endpoints to use.

        Args:
            address: Stacks principal, e.g. ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM
            network: Switch network (testnet/mainnet)
            contract_id: Game contract, ``<deployer>.<name>``
            signer_url: Endpoint that signs and broadcasts contract calls

        Returns:
            True if the address was accepted
        """
        network = network or self.config.network
        if network not in NETWORK_API_URLS:
            logger.error(f"Unknown network {network}")
            return False
        if not is_valid_address(address, network):
            logger.error(f"{address} is not a valid {network} address")
            return False

        data = self.config.model_dump()
        if network != self.config.network:
            data["api_url"] = None
        data.update(network=network, address=address)
        if contract_id:
            data["contract_id"] = contract_id
        if signer_url:
            data["signer_url"] = signer_url
        self.config = WalletConfig(**data)
        if isinstance(self._client, HTTPChainClient):
            self._client = None
        self._save_config()

        logger.info(f"Connected {address} on {network}")
        return True

    def disconnect(self) -> None:
        """Forget the wallet address."""
        self.config.address = None
        self._save_config()
        logger.info("Wallet disconnected")

    def is_connected(self) -> bool:
        return bool(self.config.address)

    async def get_balance(self) -> Optional[int]:
        """Spendable balance in microSTX, or None when no wallet is connected.

        Raises:
            ChainError: If the balance query fails
        """
        if not self.config.address:
            return None
        return await self.client.get_balance(self.config.address)
