"""
Prometheus exposition of chain health and the latest scan snapshot.
"""

import logging
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from .errors import ChainUnavailable, RenderFailure
from .models import Role, WindowSnapshot

if TYPE_CHECKING:
    from .ports import ChainQuery
    from .snapshot_channel import SnapshotReader

logger = logging.getLogger(__name__)

# Reported by ftso_rpc_is_syncing when the node could not be asked
SYNC_UNKNOWN = -1


class MetricsExporter:
    """
    Renders chain diagnostics and the latest ``WindowSnapshot`` on demand.

    Gauges are registered once in a private registry; every ``render`` sets
    all of them again, so no value outlives the request that produced it.
    """

    def __init__(
        self,
        chain: "ChainQuery",
        reader: "SnapshotReader",
        block_window: int,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the exporter and register its gauges.

        Args:
            chain: Chain client owned by the exporter
            reader: Subscription to the scanner's snapshot channel
            block_window: Configured scan window, exported as-is
            registry: Registry to use (a fresh one by default)

        Raises:
            RenderFailure: If a gauge cannot be registered
        """
        self.chain = chain
        self.reader = reader
        self.block_window = block_window
        self.registry = registry if registry is not None else CollectorRegistry()

        try:
            self.tx_found: dict[Role, Gauge] = {
                role: Gauge(
                    f"{role.metric_prefix}_tx_found",
                    f"Was a tx from the {role.label.lower()} found within the block window?",
                    registry=self.registry,
                )
                for role in Role
            }
            self.balance: dict[Role, Gauge] = {
                role: Gauge(
                    f"{role.metric_prefix}_balance",
                    f"The balance of the {role.label.lower()}",
                    registry=self.registry,
                )
                for role in Role
            }
            self.is_syncing = Gauge(
                "ftso_rpc_is_syncing",
                "Is the RPC syncing? (1 = syncing, 0 = synced, -1 = unknown)",
                registry=self.registry,
            )
            self.rpc_current_block = Gauge(
                "ftso_rpc_current_block",
                "The latest block from the RPC",
                registry=self.registry,
            )
            self.search_window = Gauge(
                "ftso_search_window",
                "The ftso block search window",
                registry=self.registry,
            )
        except ValueError as e:
            raise RenderFailure(f"Couldn't register metrics: {e}") from e

    async def update_for_rpc(self) -> None:
        """
        Refresh the live chain gauges.

        A failed sync query is reported as unknown; a failed height query
        propagates.

        Raises:
            ChainUnavailable: If the current height cannot be fetched
        """
        logger.debug("Updating metrics for RPC")

        try:
            sync_info = await self.chain.syncing_info()
        except ChainUnavailable as e:
            logger.error(f"Sync status unknown: {e}")
            self.is_syncing.set(SYNC_UNKNOWN)
        else:
            if sync_info is not None:
                logger.debug(f"RPC syncing: {sync_info}")
            self.is_syncing.set(0 if sync_info is None else 1)

        self.rpc_current_block.set(float(await self.chain.current_height()))

    def update_for_snapshot(self, snapshot: WindowSnapshot) -> None:
        """Copy a scan snapshot into the per-role gauges."""
        for role in Role:
            self.tx_found[role].set(1 if snapshot.found[role] else 0)
            self.balance[role].set(snapshot.balance[role])
        self.search_window.set(self.block_window)

    def close(self) -> None:
        """Stop receiving snapshots from the scanner."""
        self.reader.close()

    async def render(self) -> tuple[bytes, str]:
        """
        Produce the exposition payload for one scrape.

        Returns:
            The encoded metrics and their content type

        Raises:
            ChainUnavailable: If the current height cannot be fetched
            RenderFailure: If encoding fails
        """
        await self.update_for_rpc()
        self.update_for_snapshot(self.reader.read())

        try:
            payload = generate_latest(self.registry)
        except Exception as e:
            raise RenderFailure(f"Couldn't encode metric families: {e}") from e

        return payload, CONTENT_TYPE_LATEST
