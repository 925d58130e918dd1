#!/usr/bin/env python3
"""Configuration management for the FTSO monitor.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded from environment variables or parsed command line
arguments, and is immutable once constructed.
"""

import logging
import os
from argparse import Namespace
from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlparse

from web3 import Web3

from .errors import ConfigurationInvalid
from .models import Role

# Get logger for this module
logger = logging.getLogger(__name__)


def _checksum(address: str, name: str) -> str:
    """Validate an EVM address and return its checksum form."""
    if not address:
        raise ConfigurationInvalid(f"{name} is required")
    if not Web3.is_address(address):
        raise ConfigurationInvalid(f"Invalid {name}: {address}")
    return Web3.to_checksum_address(address)


@dataclass(frozen=True, slots=True)
class TrackedAddresses:
    """The three FTSO operator addresses being watched.

    Attributes:
        signing_policy: Signing policy address
        submit: Submit address
        submit_signature: Submit signature address
    """

    signing_policy: str
    submit: str
    submit_signature: str

    def __post_init__(self) -> None:
        """Validate and checksum all addresses."""
        for role in Role:
            value = getattr(self, role.value)
            # Use object.__setattr__ since dataclass is frozen
            object.__setattr__(self, role.value, _checksum(value, role.label))

    def for_role(self, role: Role) -> str:
        return getattr(self, role.value)

    def items(self) -> list[tuple[Role, str]]:
        return [(role, self.for_role(role)) for role in Role]


@dataclass(frozen=True, slots=True)
class TelegramConfig:
    """Credentials for Telegram alert delivery.

    Both fields empty means alerting is disabled.
    """

    api_key: str = ""
    chat_id: str = ""

    def __post_init__(self) -> None:
        # Secrets files often leave a trailing newline
        object.__setattr__(self, "api_key", self.api_key.strip())
        object.__setattr__(self, "chat_id", self.chat_id.strip())

        if bool(self.api_key) != bool(self.chat_id):
            raise ConfigurationInvalid(
                "Telegram API key and chat ID must be provided together"
            )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.chat_id)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Listen address for the metrics HTTP server."""

    host: str = "0.0.0.0"
    port: int = 6969

    def __post_init__(self) -> None:
        if not self.host:
            raise ConfigurationInvalid("Metrics listen address is required")
        if not 0 < self.port < 65536:
            raise ConfigurationInvalid(f"Invalid metrics port: {self.port}")


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Main configuration for the FTSO monitor.

    Attributes:
        rpc_url: HTTP(S) JSON-RPC endpoint of the Flare node
        addresses: The tracked operator addresses
        block_window: Number of most recent blocks inspected per scan
        telegram: Alert notifier credentials
        server: Metrics server listen address
        request_timeout: Per-request RPC timeout in seconds
        retry_delay: Pause after a scan aborted by an RPC failure, in seconds
        scan_interval: Pause between successful scans, in seconds
    """

    rpc_url: str
    addresses: TrackedAddresses
    block_window: int = 100
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    request_timeout: float = 30.0
    retry_delay: float = 5.0
    scan_interval: float = 0.0

    MAX_BLOCK_WINDOW: ClassVar[int] = 65535
    SUPPORTED_SCHEMES: ClassVar[set[str]] = {"http", "https"}

    def __post_init__(self) -> None:
        """Validate monitor configuration."""
        if not self.rpc_url:
            raise ConfigurationInvalid("RPC URL is required (FTSO_RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in self.SUPPORTED_SCHEMES or not parsed.netloc:
            raise ConfigurationInvalid(
                f"Invalid RPC URL: {self.rpc_url}. Expected an http or https endpoint"
            )

        if self.block_window <= 0:
            raise ConfigurationInvalid(
                f"Block window must be positive, got {self.block_window}"
            )
        if self.block_window > self.MAX_BLOCK_WINDOW:
            raise ConfigurationInvalid(
                f"Block window too large (max {self.MAX_BLOCK_WINDOW}), got {self.block_window}"
            )

        if self.request_timeout <= 0:
            raise ConfigurationInvalid(
                f"Request timeout must be positive, got {self.request_timeout}"
            )
        if self.retry_delay < 0:
            raise ConfigurationInvalid(
                f"Retry delay must be non-negative, got {self.retry_delay}"
            )
        if self.scan_interval < 0:
            raise ConfigurationInvalid(
                f"Scan interval must be non-negative, got {self.scan_interval}"
            )

    @classmethod
    def from_env(cls) -> "MonitorConfig":
        """Load configuration from environment variables.

        Returns:
            MonitorConfig instance with loaded values

        Raises:
            ConfigurationInvalid: If required variables are missing or invalid
        """
        return cls._build(
            rpc_url=os.environ.get("FTSO_RPC_URL", ""),
            signing_policy=os.environ.get("FTSO_SIGNING_POLICY_ADDRESS", ""),
            submit=os.environ.get("FTSO_SUBMIT_ADDRESS", ""),
            submit_signature=os.environ.get("FTSO_SUBMIT_SIGNATURE_ADDRESS", ""),
            block_window=os.environ.get("FTSO_BLOCK_WINDOW", "100"),
            tg_api_key=os.environ.get("FTSO_TG_API_KEY", ""),
            tg_chat_id=os.environ.get("FTSO_TG_CHAT_ID", ""),
            metrics_addr=os.environ.get("FTSO_METRICS_ADDR", "0.0.0.0"),
            metrics_port=os.environ.get("FTSO_METRICS_PORT", "6969"),
            request_timeout=os.environ.get("FTSO_REQUEST_TIMEOUT", "30"),
            retry_delay=os.environ.get("FTSO_RETRY_DELAY", "5"),
            scan_interval=os.environ.get("FTSO_SCAN_INTERVAL", "0"),
        )

    @classmethod
    def from_args(cls, args: Namespace) -> "MonitorConfig":
        """Build configuration from parsed ``start`` command arguments."""
        return cls._build(
            rpc_url=args.rpc_url or "",
            signing_policy=args.signing_policy_address or "",
            submit=args.submit_address or "",
            submit_signature=args.submit_signature_address or "",
            block_window=args.block_window,
            tg_api_key=args.tg_api_key or "",
            tg_chat_id=args.tg_chat_id or "",
            metrics_addr=args.metrics_addr,
            metrics_port=args.metrics_port,
            request_timeout=args.request_timeout,
            retry_delay=args.retry_delay,
            scan_interval=args.scan_interval,
        )

    @classmethod
    def _build(
        cls,
        *,
        rpc_url: str,
        signing_policy: str,
        submit: str,
        submit_signature: str,
        block_window: int | str,
        tg_api_key: str,
        tg_chat_id: str,
        metrics_addr: str,
        metrics_port: int | str,
        request_timeout: float | str,
        retry_delay: float | str,
        scan_interval: float | str,
    ) -> "MonitorConfig":
        try:
            window = int(block_window)
            port = int(metrics_port)
            timeout = float(request_timeout)
            delay = float(retry_delay)
            interval = float(scan_interval)
        except ValueError as e:
            raise ConfigurationInvalid(f"Invalid numeric setting: {e}") from None

        return cls(
            rpc_url=rpc_url,
            addresses=TrackedAddresses(
                signing_policy=signing_policy,
                submit=submit,
                submit_signature=submit_signature,
            ),
            block_window=window,
            telegram=TelegramConfig(api_key=tg_api_key, chat_id=tg_chat_id),
            server=ServerConfig(host=metrics_addr, port=port),
            request_timeout=timeout,
            retry_delay=delay,
            scan_interval=interval,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("FTSO Monitor Configuration")
        logger.info("=" * 60)

        logger.info("Chain:")
        logger.info(f"  RPC URL: {self.rpc_url}")
        logger.info(f"  Request Timeout: {self.request_timeout} seconds")

        logger.info("Tracked Addresses:")
        for role, address in self.addresses.items():
            logger.info(f"  {role.label}: {address}")

        logger.info("Scanner:")
        logger.info(f"  Block Window: {self.block_window} blocks")
        logger.info(f"  Retry Delay: {self.retry_delay} seconds")
        logger.info(f"  Scan Interval: {self.scan_interval} seconds")

        logger.info("Metrics Server:")
        logger.info(f"  Listen: {self.server.host}:{self.server.port}")

        logger.info("Alerts:")
        if self.telegram.enabled:
            logger.info("  Telegram API Key: [CONFIGURED]")
            logger.info(f"  Telegram Chat ID: {self.telegram.chat_id}")
        else:
            logger.info("  Telegram: disabled")

        logger.info("=" * 60)
