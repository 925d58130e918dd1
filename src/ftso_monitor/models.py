#!/usr/bin/env python3
"""Data models for the FTSO monitor.

This module provides the tracked address roles and the immutable results
produced by each scan of the block window.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# Native token balances are reported by the RPC in wei
WEI_PER_TOKEN = 10**18


class Role(Enum):
    """The three operator addresses an FTSO data provider runs."""

    SIGNING_POLICY = "signing_policy"
    SUBMIT = "submit"
    SUBMIT_SIGNATURE = "submit_signature"

    @property
    def label(self) -> str:
        """Human-readable name used in alerts and logs."""
        return _ROLE_LABELS[self]

    @property
    def metric_prefix(self) -> str:
        return f"ftso_{self.value}"


_ROLE_LABELS: dict[Role, str] = {
    Role.SIGNING_POLICY: "Signing Policy Address",
    Role.SUBMIT: "Submit Address",
    Role.SUBMIT_SIGNATURE: "Submit Signature Address",
}


def wei_to_tokens(wei: int) -> float:
    """Convert a wei balance to whole native-token units."""
    return wei / WEI_PER_TOKEN


@dataclass(frozen=True, slots=True)
class ScanWindow:
    """Half-open range of block heights ``[start, end)`` scanned in one pass.

    Attributes:
        start: First height inspected
        end: Chain head at the start of the pass (exclusive)
    """

    start: int
    end: int

    @classmethod
    def ending_at(cls, head: int, block_window: int) -> "ScanWindow":
        """Build the window of ``block_window`` heights before ``head``.

        The start is clamped at genesis for chains shorter than the window.
        """
        return cls(start=max(0, head - block_window), end=head)

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True, slots=True)
class WindowSnapshot:
    """Result of one complete scan of the block window.

    Both mappings always hold an entry for every ``Role`` and are wrapped in
    read-only views, so a published snapshot can be shared freely.

    Attributes:
        found: Whether each role sent a transaction inside the window
        balance: Current balance of each role, in native tokens
    """

    found: Mapping[Role, bool] = field(default_factory=dict)
    balance: Mapping[Role, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        found = {role: bool(self.found.get(role, False)) for role in Role}
        balance = {role: float(self.balance.get(role, 0.0)) for role in Role}
        object.__setattr__(self, "found", MappingProxyType(found))
        object.__setattr__(self, "balance", MappingProxyType(balance))

    @classmethod
    def empty(cls) -> "WindowSnapshot":
        """Placeholder served before the first scan completes."""
        return cls()

    @property
    def missing(self) -> list[Role]:
        """Roles with no transaction in the window, in declaration order."""
        return [role for role in Role if not self.found[role]]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            role.value: {
                "found": self.found[role],
                "balance": self.balance[role],
            }
            for role in Role
        }
