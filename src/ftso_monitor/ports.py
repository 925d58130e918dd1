"""
Interfaces the monitoring engine consumes.

The scanner and the metrics exporter only depend on these protocols, so any
client that offers the same coroutines can stand in for the web3 and
Telegram implementations (tests use ``AsyncMock`` objects).
"""

from typing import Any, Protocol

from web3.types import BlockData


class ChainQuery(Protocol):
    """Read access to the chain.

    Every method raises ``ChainUnavailable`` on transport or RPC failure.
    """

    async def current_height(self) -> int:
        """Latest block number."""
        ...

    async def get_block(self, height: int) -> BlockData | None:
        """Block with full transactions.

        A block that does not exist raises ``ChainDataMissing`` (or
        returns ``None``).
        """
        ...

    async def get_balance(self, address: str) -> int:
        """Balance of ``address`` in wei."""
        ...

    async def syncing_info(self) -> dict[str, Any] | None:
        """``None`` when the node is not syncing, otherwise progress details."""
        ...


class Notifier(Protocol):
    """Fire-and-forget text alert delivery."""

    async def send_message(self, text: str) -> bool:
        """Deliver ``text``.

        Returns False when alerting is disabled; raises
        ``AlertDeliveryFailed`` when delivery was attempted and failed.
        """
        ...
