"""Shared fixtures for the FTSO monitor tests."""

from unittest.mock import AsyncMock

import pytest
from web3 import Web3

from ftso_monitor.config import MonitorConfig, TrackedAddresses

SPA = Web3.to_checksum_address("0x85bfe05492afc3d04ff3b2ca6771acf6f853d90d")
SA = Web3.to_checksum_address("0x742d35cc6634c0532925a3b844bc9e7595f0beb7")
SSA = Web3.to_checksum_address("0xdcc23a03e6b6aa254ca5b0be942dd5cafc9a2299")
OTHER = Web3.to_checksum_address("0x1f54b7af3a462aabed01d5910a3e5911e76d4b51")


def make_block(number: int, *senders: str) -> dict:
    """Build a block dict shaped like web3's full-transaction BlockData."""
    return {
        "number": number,
        "transactions": [{"from": sender, "blockNumber": number} for sender in senders],
    }


@pytest.fixture
def monitor_config():
    """Monitor configuration with a two-block window."""
    return MonitorConfig(
        rpc_url="https://test.rpc",
        addresses=TrackedAddresses(signing_policy=SPA, submit=SA, submit_signature=SSA),
        block_window=2,
        retry_delay=0,
    )


@pytest.fixture
def mock_chain():
    """Chain client mock; blocks are served from ``mock_chain.blocks``."""
    chain = AsyncMock()
    chain.blocks = {}
    chain.current_height = AsyncMock(return_value=100)
    chain.get_balance = AsyncMock(return_value=0)
    chain.syncing_info = AsyncMock(return_value=None)

    async def get_block(height):
        return chain.blocks.get(height)

    chain.get_block = AsyncMock(side_effect=get_block)
    return chain


@pytest.fixture
def mock_notifier():
    notifier = AsyncMock()
    notifier.send_message = AsyncMock(return_value=True)
    return notifier
