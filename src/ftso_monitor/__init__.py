"""
FTSO monitor package.

Liveness monitoring and Prometheus metrics for Flare FTSOv2 operator addresses.
"""

__version__ = "0.2.0"

from .config import MonitorConfig, TrackedAddresses
from .models import Role, ScanWindow, WindowSnapshot
from .monitor import FtsoMonitor
from .scanner import LivenessScanner
from .snapshot_channel import SnapshotChannel

__all__ = [
    "FtsoMonitor",
    "LivenessScanner",
    "MonitorConfig",
    "Role",
    "ScanWindow",
    "SnapshotChannel",
    "TrackedAddresses",
    "WindowSnapshot",
]
