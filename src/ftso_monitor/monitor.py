"""
FTSO monitor service.

This module wires the scanner, snapshot channel, metrics exporter and HTTP
server together and runs the two long-lived tasks side by side.
"""

import asyncio
import logging

from .config import MonitorConfig
from .metrics import MetricsExporter
from .scanner import LivenessScanner
from .server import MetricsServer, create_app
from .shutdown import ShutdownFlag
from .snapshot_channel import SnapshotChannel
from .utils.chain_client import ChainClient
from .utils.telegram_utility import TelegramNotifier

logger = logging.getLogger(__name__)


class FtsoMonitor:
    """
    Main service that owns every component and their lifecycle.

    The scanner and the metrics server run as independent tasks; the server
    sets the shutdown flag when it ends and the scanner follows.
    """

    # Seconds the surviving task gets to stop after the other one failed
    SHUTDOWN_TIMEOUT = 10.0

    def __init__(
        self,
        config: MonitorConfig,
        scanner: LivenessScanner,
        server: MetricsServer,
        channel: SnapshotChannel,
        shutdown_flag: ShutdownFlag,
    ) -> None:
        self.config = config
        self.scanner = scanner
        self.server = server
        self.channel = channel
        self.shutdown_flag = shutdown_flag

    @classmethod
    def from_config(cls, config: MonitorConfig, log_level: str = "info") -> "FtsoMonitor":
        """
        Build the full service from configuration.

        The scanner and the exporter each get their own chain client.

        Args:
            config: Validated monitor configuration
            log_level: Level passed to uvicorn

        Returns:
            Ready-to-run FtsoMonitor
        """
        shutdown_flag = ShutdownFlag()
        channel = SnapshotChannel()

        notifier = TelegramNotifier(
            api_key=config.telegram.api_key,
            chat_id=config.telegram.chat_id,
        )
        if not notifier.enabled:
            logger.warning("No Telegram credentials configured, alerts will only be logged")

        scanner = LivenessScanner(
            config=config,
            chain=ChainClient(config.rpc_url, config.request_timeout),
            notifier=notifier,
            channel=channel,
            shutdown_flag=shutdown_flag,
        )

        exporter = MetricsExporter(
            chain=ChainClient(config.rpc_url, config.request_timeout),
            reader=channel.subscribe(),
            block_window=config.block_window,
        )
        server = MetricsServer(
            app=create_app(exporter),
            server_config=config.server,
            shutdown_flag=shutdown_flag,
            log_level=log_level,
        )

        return cls(config, scanner, server, channel, shutdown_flag)

    async def run(self) -> None:
        """
        Run the scanner and the metrics server until both have finished.

        A failure in either task is logged as soon as it happens and the
        other task is asked to stop. It gets ``SHUTDOWN_TIMEOUT`` seconds to
        unwind before it is cancelled.

        Raises:
            Exception: The first failure of either task, after every failure has been logged
        """
        logger.info("Starting monitoring task...")
        logger.info("Starting metrics server task...")
        tasks = {
            "monitoring": asyncio.create_task(self.scanner.run(), name="monitoring"),
            "metrics server": asyncio.create_task(self.server.serve(), name="metrics-server"),
        }

        try:
            done, pending = await asyncio.wait(
                tasks.values(), return_when=asyncio.FIRST_EXCEPTION
            )
            errors = self._check_task_health(tasks, done)

            if pending:
                logger.error("Critical task failure, shutting down")
                self.stop()
                await asyncio.wait(pending, timeout=self.SHUTDOWN_TIMEOUT)
                await self._cleanup_tasks(tasks)
                errors += self._check_task_health(tasks, pending)
        except asyncio.CancelledError:
            await self._cleanup_tasks(tasks)
            raise

        if errors:
            raise errors[0]

    def _check_task_health(
        self, tasks: dict[str, asyncio.Task], finished: set[asyncio.Task]
    ) -> list[BaseException]:
        """Log how each finished task ended and return the failures."""
        errors: list[BaseException] = []
        for name, task in tasks.items():
            if task not in finished:
                continue
            if task.cancelled():
                logger.warning(f"{name} task did not stop in time and was cancelled")
                continue
            error = task.exception()
            if error is not None:
                logger.error(f"{name} task failed: {error!r}", exc_info=error)
                errors.append(error)
            else:
                logger.info(f"{name} task stopped gracefully")
        return errors

    async def _cleanup_tasks(self, tasks: dict[str, asyncio.Task]) -> None:
        """Stop both loops and wait for the tasks to unwind."""
        self.stop()
        for name, task in tasks.items():
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass  # Expected when cancelling
                except Exception as e:
                    logger.warning(f"{name} task failed during cleanup: {e}")

    def stop(self) -> None:
        """Request a graceful stop of both tasks."""
        self.shutdown_flag.set("stop requested")
        self.server.stop()
