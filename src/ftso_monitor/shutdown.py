"""
One-way shutdown flag shared by the metrics server and the scanner.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class ShutdownFlag:
    """
    Boolean that moves from unset to set exactly once and never resets.

    The server sets it when it stops; the scanner polls it at its
    checkpoints and never blocks on it outside of ``sleep``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def is_set(self) -> bool:
        return self._event.is_set()

    def set(self, reason: str = "") -> None:
        """Request shutdown. Later calls are ignored."""
        if self._event.is_set():
            return
        logger.info(f"Shutdown requested{f': {reason}' if reason else ''}")
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """
        Wait up to ``seconds``, returning early if shutdown is requested.

        Returns:
            True if the flag is set when the wait ends
        """
        if seconds <= 0:
            await asyncio.sleep(0)
            return self.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return self.is_set()
