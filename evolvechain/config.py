"""Node-wide defaults, txpool limits and the shared block gas limit."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Mapping

DEFAULT_CHAIN_ID = 3788
"""Default chain ID of the node."""

DEFAULT_RPC_PORT = 8545
"""Default HTTP RPC port."""

DEFAULT_WS_PORT = 8546
"""Default WebSocket port."""

DEFAULT_METRICS_PORT = 9001
"""Default metrics port."""

DEFAULT_MAX_TXPOOL_BYTES = 1_939_865
"""Default cap on transaction bytes returned from the txpool (1.85 MiB)."""

DEFAULT_MAX_TXPOOL_GAS = 30_000_000
"""Default cap on total gas of transactions returned from the txpool."""

_U64_MAX = 2**64 - 1


def _check_u64(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{name} must fit in an unsigned 64-bit integer, got {value}")
    return value


@dataclass
class EvolveConfig:
    """Limits applied when the txpool hands transactions to the sequencer."""

    max_txpool_bytes: int = DEFAULT_MAX_TXPOOL_BYTES
    max_txpool_gas: int = DEFAULT_MAX_TXPOOL_GAS

    def __post_init__(self) -> None:
        _check_u64("max_txpool_bytes", self.max_txpool_bytes)
        _check_u64("max_txpool_gas", self.max_txpool_gas)

    def to_dict(self) -> dict[str, int]:
        """Return the configuration as a plain mapping."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EvolveConfig":
        """Build a configuration from a mapping holding both fields."""
        missing = [name for name in ("max_txpool_bytes", "max_txpool_gas") if name not in data]
        if missing:
            raise ValueError(f"missing field `{missing[0]}`")
        return cls(
            max_txpool_bytes=data["max_txpool_bytes"],
            max_txpool_gas=data["max_txpool_gas"],
        )


class _GasLimitCell:
    """Thread-safe holder for the most recent effective block gas limit."""

    def __init__(self, value: int) -> None:
        self._value = value
        self._lock = threading.Lock()

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value

    def load(self) -> int:
        with self._lock:
            return self._value


# Starts at the txpool gas cap so selection has a sensible value
# before the first payload is built.
_CURRENT_BLOCK_GAS_LIMIT = _GasLimitCell(DEFAULT_MAX_TXPOOL_GAS)


def set_current_block_gas_limit(gas_limit: int) -> None:
    """Record the effective gas limit chosen by the payload builder."""
    _CURRENT_BLOCK_GAS_LIMIT.store(_check_u64("gas_limit", gas_limit))


def current_block_gas_limit() -> int:
    """Return the most recently recorded block gas limit."""
    return _CURRENT_BLOCK_GAS_LIMIT.load()