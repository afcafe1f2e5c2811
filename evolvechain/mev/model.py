"""Configuration, metrics and record types shared by the MEV components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

WEI_PER_ANDE = 10**18

DEFAULT_MIN_MEV_VALUE = WEI_PER_ANDE // 10
"""Smallest MEV value worth reporting: 0.1 ANDE."""

DEFAULT_RPC_ENDPOINT = "http://localhost:8545"

DEFAULT_DEPOSIT_INTERVAL = timedelta(hours=1)

DEFAULT_MAX_MEV_BUFFER = 1000 * WEI_PER_ANDE
"""Buffered MEV that forces a deposit: 1000 ANDE."""


@dataclass
class MevConfig:
    """Settings for MEV detection, auctions and distribution."""

    enable_detection: bool = True
    enable_auction: bool = True
    enable_distribution: bool = True
    distributor_address: Optional[bytes] = None
    auction_address: Optional[bytes] = None
    min_mev_value: int = DEFAULT_MIN_MEV_VALUE
    rpc_endpoint: str = DEFAULT_RPC_ENDPOINT
    deposit_interval: timedelta = DEFAULT_DEPOSIT_INTERVAL
    max_mev_buffer: int = DEFAULT_MAX_MEV_BUFFER

    def validate(self) -> None:
        """Raise ValueError if an enabled feature lacks its contract address."""
        if self.enable_distribution and self.distributor_address is None:
            raise ValueError("MEV distribution enabled but no distributor address provided")
        if self.enable_auction and self.auction_address is None:
            raise ValueError("MEV auction enabled but no auction address provided")


@dataclass
class MevMetrics:
    """Running counters for MEV monitoring."""

    total_mev_captured: int = 0
    opportunities_detected: int = 0
    bundles_executed: int = 0
    total_distributed: int = 0
    current_epoch: int = 0
    epoch_mev: int = 0
    avg_mev_per_block: int = 0
    failed_submissions: int = 0

    def record_opportunity(self, value: int) -> None:
        """Count a detected opportunity and add its value."""
        self.opportunities_detected += 1
        self.total_mev_captured += value
        self.epoch_mev += value

    def record_bundle_execution(self, value: int) -> None:
        """Count an executed bundle and add its value."""
        self.bundles_executed += 1
        self.total_mev_captured += value
        self.epoch_mev += value

    def record_failed_submission(self) -> None:
        """Count a failed bundle submission."""
        self.failed_submissions += 1

    def new_epoch(self) -> None:
        """Advance to the next epoch and reset the epoch total."""
        self.current_epoch += 1
        self.epoch_mev = 0

    def calculate_avg_mev(self, total_blocks: int) -> None:
        """Update the average MEV per block; zero blocks leave it unchanged."""
        if total_blocks > 0:
            self.avg_mev_per_block = self.total_mev_captured // total_blocks


@dataclass
class BundleInfo:
    """A bundle as offered to the auction."""

    hash: bytes
    searcher: bytes
    bid_amount: int
    target_block: int
    transactions: list[bytes] = field(default_factory=list)
    estimated_mev: int = 0


@dataclass
class EpochInfo:
    """Distribution figures of one epoch."""

    epoch_number: int
    total_mev: int = 0
    stakers_reward: int = 0
    protocol_fee: int = 0
    treasury_amount: int = 0
    settled: bool = False
    timestamp: int = 0