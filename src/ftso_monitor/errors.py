#!/usr/bin/env python3
"""Exception hierarchy for the FTSO monitor.

Every failure the monitor knows how to classify derives from ``MonitorError``
so callers can catch the whole family at the process boundary.
"""


class MonitorError(Exception):
    """Base class for all monitor errors."""


class ChainUnavailable(MonitorError):
    """The chain RPC could not be reached or returned an error."""


class ChainDataMissing(MonitorError):
    """A requested block or transaction does not exist on the chain."""


class AlertDeliveryFailed(MonitorError):
    """The notifier could not deliver an alert message."""


class RenderFailure(MonitorError):
    """Metrics could not be registered or encoded."""


class ServerError(MonitorError):
    """The metrics HTTP server failed to start or crashed."""


class SnapshotChannelClosed(MonitorError):
    """A snapshot was published while no reader was subscribed."""


class ConfigurationInvalid(MonitorError, ValueError):
    """Startup configuration is malformed (bad address, endpoint, ...)."""
