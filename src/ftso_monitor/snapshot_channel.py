"""
Single-slot, latest-value-wins broadcast of scan results.

One writer (the scanner) replaces the held snapshot; any number of readers
(the metrics exporter) pick up whatever is current when they look. There is
no queue and no history.
"""

import logging

from .errors import SnapshotChannelClosed
from .models import WindowSnapshot

logger = logging.getLogger(__name__)


class SnapshotChannel:
    """
    Holds the most recently published ``WindowSnapshot``.

    Snapshots are immutable and the slot is replaced by a single reference
    assignment, so a reader always sees one whole snapshot.
    """

    def __init__(self, initial: WindowSnapshot | None = None) -> None:
        self._value: WindowSnapshot = initial or WindowSnapshot.empty()
        self._version: int = 0
        self._readers: int = 0

    @property
    def latest(self) -> WindowSnapshot:
        return self._value

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

    @property
    def reader_count(self) -> int:
        return self._readers

    def publish(self, snapshot: WindowSnapshot) -> int:
        """
        Replace the held snapshot.

        Args:
            snapshot: The result of a completed scan

        Returns:
            The version number assigned to ``snapshot``

        Raises:
            SnapshotChannelClosed: If no reader is subscribed; the snapshot is dropped
        """
        if self._readers == 0:
            raise SnapshotChannelClosed("No snapshot readers subscribed")

        self._value = snapshot
        self._version += 1
        return self._version

    def subscribe(self) -> "SnapshotReader":
        """Register a new reader positioned at the current version."""
        self._readers += 1
        return SnapshotReader(self)

    def _unsubscribe(self) -> None:
        self._readers -= 1


class SnapshotReader:
    """A reader's view of a ``SnapshotChannel`` with its own version cursor."""

    def __init__(self, channel: SnapshotChannel) -> None:
        self._channel = channel
        self._seen: int = channel.version
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def has_changed(self) -> bool:
        """Whether a snapshot newer than the last one read has been published."""
        return self._channel.version > self._seen

    def read(self) -> WindowSnapshot:
        """Return the current snapshot and mark it as seen.

        Before the first publish this is the zero-valued placeholder.
        """
        self._seen = self._channel.version
        return self._channel.latest

    def close(self) -> None:
        """Unsubscribe; later publishes no longer count this reader."""
        if not self._closed:
            self._closed = True
            self._channel._unsubscribe()
