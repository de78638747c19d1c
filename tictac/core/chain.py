"""Stacks chain access: balance lookups and create-game contract calls."""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

import aiohttp
from loguru import logger

from .errors import ChainError, WalletNotConnected
from .stake import MoveSubmission, SubmissionResult
from ..games.board import Move

if TYPE_CHECKING:
    from .wallet import WalletConfig

CREATE_GAME = "create-game"
CREATE_GAME_WITH_LOAN = "create-game-with-loan"


def clarity_uint(value: int) -> str:
    """Encode a non-negative integer as a Clarity uint literal."""
    if value < 0:
        raise ValueError(f"Clarity uint must be non-negative, got {value}")
    return f"u{value}"


class ChainClient(ABC):
    """Collaborator that reads balances and submits the opening move."""

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Spendable balance of ``address`` in microSTX."""

    @abstractmethod
    async def create_game(self, stake_micro: int, cell_index: int, mark: Move,
                          use_lending: bool) -> SubmissionResult:
        """Submit the stake and the first move of a new game."""

    async def submit(self, submission: MoveSubmission) -> SubmissionResult:
        return await self.create_game(
            submission.stake_micro,
            submission.cell_index,
            submission.mark,
            submission.use_lending,
        )


class HTTPChainClient(ChainClient):
    """Chain client backed by the Stacks API and an external signer.

    Balances come from the Stacks blockchain API. Contract calls are
    posted unsigned to ``signer_url``; the signer owns the keys, signs
    and broadcasts, and answers with the transaction id.
    """

    def __init__(self, config: "WalletConfig", session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = 30.0):
        self.config = config
        self._session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        if self._session is not None:
            return await self._send(self._session, method, url, **kwargs)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await self._send(session, method, url, **kwargs)

    async def _send(self, session: aiohttp.ClientSession, method: str, url: str,
                    **kwargs) -> Dict[str, Any]:
        try:
            async with session.request(method, url, **kwargs) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = None
                if response.status >= 400:
                    detail = payload.get("error") if isinstance(payload, dict) else None
                    raise ChainError(
                        f"{method} {url} failed with HTTP {response.status}: {detail or 'no details'}",
                        status=response.status,
                    )
                if not isinstance(payload, dict):
                    raise ChainError(f"{method} {url} returned an unexpected payload: {payload!r}")
                if "error" in payload:
                    raise ChainError(f"{method} {url} failed: {payload['error']}", status=response.status)
                return payload
        except asyncio.TimeoutError as e:
            raise ChainError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise ChainError(f"{method} {url} failed: {e}") from e

    async def get_balance(self, address: str) -> int:
        url = f"{self.config.api_url.rstrip('/')}/extended/v1/address/{address}/stx"
        payload = await self._request("GET", url)
        try:
            balance = int(payload["balance"]) - int(payload.get("locked", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise ChainError(f"Malformed balance response for {address}: {payload!r}") from e
        logger.debug(f"Balance of {address}: {balance} microSTX")
        return balance

    async def create_game(self, stake_micro: int, cell_index: int, mark: Move,
                          use_lending: bool) -> SubmissionResult:
        if not self.config.address:
            raise WalletNotConnected()
        contract_id = self.config.resolved_contract_id
        signer_url = self.config.resolved_signer_url
        if not contract_id:
            raise ChainError("No game contract configured. Set TICTAC_CONTRACT_ID or run: tictac wallet connect --contract-id")
        if not signer_url:
            raise ChainError("No signer configured. Set TICTAC_SIGNER_URL or run: tictac wallet connect --signer-url")

        function_name = CREATE_GAME_WITH_LOAN if use_lending else CREATE_GAME
        body = {
            "network": self.config.network,
            "contract_id": contract_id,
            "function_name": function_name,
            "function_args": [
                clarity_uint(stake_micro),
                clarity_uint(cell_index),
                clarity_uint(int(mark)),
            ],
            "sender": self.config.address,
        }
        url = f"{signer_url.rstrip('/')}/contract-call"
        logger.debug(f"Submitting {function_name} to {url}: {body}")

        payload = await self._request("POST", url, json=body)
        txid = payload.get("txid")
        if not txid:
            raise ChainError(f"Signer did not return a transaction id: {payload!r}")

        logger.info(f"Submitted {function_name} ({stake_micro} microSTX, cell {cell_index}): {txid}")
        return SubmissionResult(txid=txid, function_name=function_name,
                                status=payload.get("tx_status", "pending"))
