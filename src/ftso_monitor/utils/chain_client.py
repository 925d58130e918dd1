"""
Async JSON-RPC client for the monitored chain.

Wraps ``AsyncWeb3`` so that every transport or RPC failure surfaces as
``ChainUnavailable`` and a block the node does not know raises ``ChainDataMissing``.
"""

import logging
from typing import Any

from aiohttp import ClientTimeout
from web3 import AsyncWeb3, Web3
from web3.exceptions import BlockNotFound
from web3.types import BlockData

from ..errors import ChainDataMissing, ChainUnavailable

logger = logging.getLogger(__name__)


class ChainClient:
    """
    Read-only chain access over HTTP RPC.

    Each component that needs the chain builds its own instance; instances
    share nothing and are safe to use from concurrent tasks.
    """

    def __init__(self, rpc_url: str, request_timeout: float = 30.0) -> None:
        """
        Initialize the ChainClient.

        Args:
            rpc_url: HTTP(S) RPC endpoint URL
            request_timeout: Per-request timeout in seconds
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")

        self.rpc_url = rpc_url
        self.request_timeout = request_timeout
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": ClientTimeout(total=request_timeout)},
            )
        )

    async def current_height(self) -> int:
        """Get the latest block number."""
        try:
            return int(await self.w3.eth.block_number)
        except Exception as e:
            raise ChainUnavailable(
                f"Couldn't get current block number from {self.rpc_url}: {e}"
            ) from e

    async def get_block(self, height: int) -> BlockData:
        """
        Fetch a block with its full transactions.

        Args:
            height: The block number to fetch

        Returns:
            Block data including transaction objects

        Raises:
            ChainDataMissing: If the node does not know the block
            ChainUnavailable: If the request fails
        """
        try:
            return await self.w3.eth.get_block(height, full_transactions=True)
        except BlockNotFound:
            raise ChainDataMissing(f"Block {height} not found") from None
        except Exception as e:
            raise ChainUnavailable(f"Couldn't get block {height}: {e}") from e

    async def get_balance(self, address: str) -> int:
        """Get the balance of an address in wei."""
        try:
            return int(await self.w3.eth.get_balance(Web3.to_checksum_address(address)))
        except Exception as e:
            raise ChainUnavailable(f"Couldn't get balance of {address}: {e}") from e

    async def syncing_info(self) -> dict[str, Any] | None:
        """
        Get the node's sync status.

        Returns:
            None if the node is not syncing, otherwise the sync progress fields
        """
        try:
            status = await self.w3.eth.syncing
        except Exception as e:
            raise ChainUnavailable(
                f"Couldn't get syncing info for {self.rpc_url}: {e}"
            ) from e

        match status:
            case False | None:
                return None
            case True:
                return {}
            case _:
                return dict(status)
