"""
Liveness scanner for the tracked FTSO addresses.

Walks the most recent block window on every pass, records which tracked
addresses sent a transaction and what each address holds, publishes the
result and alerts on every address that stayed silent.
"""

import json
import logging
from typing import TYPE_CHECKING

from .errors import (
    AlertDeliveryFailed,
    ChainDataMissing,
    ChainUnavailable,
    SnapshotChannelClosed,
)
from .models import Role, ScanWindow, WindowSnapshot, wei_to_tokens

if TYPE_CHECKING:
    from .config import MonitorConfig
    from .ports import ChainQuery, Notifier
    from .shutdown import ShutdownFlag
    from .snapshot_channel import SnapshotChannel


class LivenessScanner:
    """
    Repeatedly scans the block window and publishes ``WindowSnapshot`` results.

    Missing blocks are skipped, an unreachable RPC aborts only the current
    pass, and the shutdown flag is checked before every block and after every
    transaction.
    """

    def __init__(
        self,
        config: "MonitorConfig",
        chain: "ChainQuery",
        notifier: "Notifier",
        channel: "SnapshotChannel",
        shutdown_flag: "ShutdownFlag",
    ) -> None:
        """
        Initialize the scanner.

        Args:
            config: Monitor configuration
            chain: Chain client owned by the scanner
            notifier: Alert delivery
            channel: Where completed snapshots are published
            shutdown_flag: Polled to stop the loop
        """
        self.config = config
        self.chain = chain
        self.notifier = notifier
        self.channel = channel
        self.shutdown_flag = shutdown_flag

        # Lowercased sender -> roles it satisfies (roles may share an address)
        self._roles_by_address: dict[str, set[Role]] = {}
        for role, address in config.addresses.items():
            self._roles_by_address.setdefault(address.lower(), set()).add(role)

        self.scans_completed = 0
        self.scans_aborted = 0

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def fetch_balances(self) -> dict[Role, float]:
        """Current balance of every tracked address, in native tokens."""
        balances: dict[Role, float] = {}
        for role, address in self.config.addresses.items():
            balances[role] = wei_to_tokens(await self.chain.get_balance(address))
        return balances

    async def scan_window(self, window: ScanWindow) -> dict[Role, bool] | None:
        """
        Find which roles sent at least one transaction inside ``window``.

        Args:
            window: Heights to inspect

        Returns:
            Found flag per role, or None if shutdown was requested mid-scan
        """
        found = {role: False for role in Role}
        pending = set(Role)

        for height in window:
            if self.shutdown_flag.is_set():
                return None

            try:
                block = await self.chain.get_block(height)
            except ChainDataMissing:
                block = None
            except ChainUnavailable as e:
                self.logger.error(f"Couldn't get block contents of {height}: {e}")
                block = None

            if block is None:
                self.logger.warning(f"Couldn't get block {height}... Moving on...")
                continue

            for tx in block.get("transactions", []):
                # Hash-only entries carry no sender
                sender = tx.get("from") if hasattr(tx, "get") else None
                if sender:
                    for role in self._roles_by_address.get(str(sender).lower(), ()):
                        if not found[role]:
                            self.logger.debug(f"{role.label} seen in block {height}")
                            found[role] = True
                            pending.discard(role)

                if self.shutdown_flag.is_set():
                    return None

            if not pending:
                self.logger.debug(
                    f"All tracked addresses seen by block {height}, skipping rest of window"
                )
                break

        return found

    async def scan_once(self) -> WindowSnapshot | None:
        """
        Run one full pass over the current block window.

        Returns:
            The published snapshot, or None if shutdown interrupted the pass

        Raises:
            ChainUnavailable: If the head height or a balance could not be fetched
        """
        head = await self.chain.current_height()
        window = ScanWindow.ending_at(head, self.config.block_window)
        self.logger.info(
            f"Starting block_id: {head} and going back {self.config.block_window} blocks"
        )

        balances = await self.fetch_balances()
        self.logger.info(
            "SPA, SA, SSA balances: "
            f"{balances[Role.SIGNING_POLICY]}, {balances[Role.SUBMIT]}, "
            f"{balances[Role.SUBMIT_SIGNATURE]}"
        )

        found = await self.scan_window(window)
        if found is None:
            self.logger.info(f"Scan of window {window} interrupted by shutdown")
            return None

        snapshot = WindowSnapshot(found=found, balance=balances)
        self.publish(snapshot)
        await self.send_alerts(snapshot)
        return snapshot

    def publish(self, snapshot: WindowSnapshot) -> None:
        """Hand the snapshot to the channel, logging when nobody listens."""
        try:
            version = self.channel.publish(snapshot)
            self.logger.debug(f"Published snapshot #{version}: {json.dumps(snapshot.to_dict())}")
        except SnapshotChannelClosed as e:
            self.logger.error(f"Couldn't send to metrics task: {e}")

    async def send_alerts(self, snapshot: WindowSnapshot) -> None:
        """Send one alert per role with no transaction in the window."""
        for role in snapshot.missing:
            self.logger.warning(f"{role.label} has no transaction in the last {self.config.block_window} blocks")
            try:
                await self.notifier.send_message(
                    f"v2: {role.label} has not signed for {self.config.block_window} blocks!"
                )
            except AlertDeliveryFailed as e:
                self.logger.error(f"Couldn't send alert for {role.label}: {e}")

    async def run(self) -> None:
        """
        Scan until the shutdown flag is set.

        Only ``ChainUnavailable`` is absorbed here; anything else ends the loop
        and propagates to the caller.
        """
        self.logger.info(
            f"Starting liveness scanner over the last {self.config.block_window} blocks"
        )

        while not self.shutdown_flag.is_set():
            try:
                snapshot = await self.scan_once()
            except ChainUnavailable as e:
                self.scans_aborted += 1
                self.logger.error(f"Scan aborted, chain unavailable: {e}")
                await self.shutdown_flag.sleep(self.config.retry_delay)
                continue

            if snapshot is None:
                break

            self.scans_completed += 1
            await self.shutdown_flag.sleep(self.config.scan_interval)

        self.logger.info(
            f"Liveness scanner stopped ({self.scans_completed} scans completed, "
            f"{self.scans_aborted} aborted)"
        )
