"""In-memory MEV auction bookkeeping for the sequencer."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

_log = logging.getLogger(__name__)

MAX_EXECUTED_HISTORY = 10_000


class AuctionError(ValueError):
    """A bundle was rejected by the auction."""


@dataclass(frozen=True)
class BundleSubmission:
    """A searcher's bundle bid for a target block."""

    bundle_hash: bytes
    bid_amount: int
    target_block: int
    transactions: tuple[bytes, ...]
    searcher: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "transactions", tuple(self.transactions))


@dataclass(frozen=True)
class BundleExecutionResult:
    """What happened to a bundle once it left the pending set."""

    executed: bool
    mev_captured: int
    bid_paid: int
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class AuctionStats:
    """Aggregate figures of the auction."""

    total_bundles: int
    pending_bundles: int
    executed_bundles: int
    rejected_bundles: int
    total_mev_captured: int
    total_bids_paid: int

    def avg_mev_per_bundle(self) -> int:
        """Average MEV captured per executed bundle, or zero."""
        if self.executed_bundles > 0:
            return self.total_mev_captured // self.executed_bundles
        return 0

    def success_rate(self) -> float:
        """Share of all bundles that were executed."""
        if self.total_bundles > 0:
            return self.executed_bundles / self.total_bundles
        return 0.0


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


class MevAuctionClient:
    """Tracks pending and settled bundles for the auction manager contract."""

    def __init__(self, contract_address: bytes, sequencer_address: bytes) -> None:
        self._contract_address = bytes(contract_address)
        self._sequencer_address = bytes(sequencer_address)
        self._pending: list[BundleSubmission] = []
        self._executed: list[tuple[bytes, BundleExecutionResult]] = []
        self._lock = threading.RLock()

    @property
    def contract_address(self) -> bytes:
        return self._contract_address

    @property
    def sequencer_address(self) -> bytes:
        return self._sequencer_address

    def get_bundles_for_block(self, block_number: int) -> list[BundleSubmission]:
        """Return the pending bundles targeting ``block_number``, in submission order."""
        with self._lock:
            return [b for b in self._pending if b.target_block == block_number]

    def submit_bundle(self, bundle: BundleSubmission) -> None:
        """Add a bundle to the pending set; raise AuctionError if it is invalid."""
        if not bundle.transactions:
            raise AuctionError("Bundle must contain at least one transaction")
        if bundle.bid_amount == 0:
            raise AuctionError("Bid amount must be positive")
        with self._lock:
            self._pending.append(bundle)
        _log.info(
            "Bundle submitted: hash=%s, bid=%d, target_block=%d",
            _hex(bundle.bundle_hash),
            bundle.bid_amount,
            bundle.target_block,
        )

    def _remove_pending(self, bundle_hash: bytes) -> bool:
        for position, bundle in enumerate(self._pending):
            if bundle.bundle_hash == bundle_hash:
                del self._pending[position]
                return True
        return False

    def mark_bundle_executed(self, bundle_hash: bytes, mev_captured: int, bid_paid: int) -> None:
        """Move a bundle out of the pending set and record its execution."""
        bundle_hash = bytes(bundle_hash)
        with self._lock:
            if not self._remove_pending(bundle_hash):
                _log.warning(
                    "Attempted to mark unknown bundle as executed: %s", _hex(bundle_hash)
                )
            result = BundleExecutionResult(True, mev_captured, bid_paid)
            self._executed.append((bundle_hash, result))
        _log.info(
            "Bundle executed: hash=%s, mev_captured=%d, bid_paid=%d",
            _hex(bundle_hash),
            mev_captured,
            bid_paid,
        )

    def mark_bundle_rejected(self, bundle_hash: bytes, reason: str) -> None:
        """Move a bundle out of the pending set and record its rejection."""
        bundle_hash = bytes(bundle_hash)
        with self._lock:
            self._remove_pending(bundle_hash)
            result = BundleExecutionResult(False, 0, 0, reason)
            self._executed.append((bundle_hash, result))
        _log.debug("Bundle rejected: hash=%s, reason=%s", _hex(bundle_hash), reason)

    def select_winning_bundle(self, block_number: int) -> Optional[BundleSubmission]:
        """Return the highest bid for the block; on a tie the latest submission wins."""
        bundles = self.get_bundles_for_block(block_number)
        if not bundles:
            return None
        winner = max(reversed(bundles), key=lambda b: b.bid_amount)
        _log.info(
            "Winning bundle selected: hash=%s, bid=%d, block=%d",
            _hex(winner.bundle_hash),
            winner.bid_amount,
            block_number,
        )
        return winner

    def get_auction_stats(self) -> AuctionStats:
        """Summarise pending, executed and rejected bundles."""
        with self._lock:
            pending = len(self._pending)
            results = [result for _, result in self._executed]
        executed = [r for r in results if r.executed]
        return AuctionStats(
            total_bundles=pending + len(results),
            pending_bundles=pending,
            executed_bundles=len(executed),
            rejected_bundles=len(results) - len(executed),
            total_mev_captured=sum(r.mev_captured for r in executed),
            total_bids_paid=sum(r.bid_paid for r in executed),
        )

    def cleanup_old_bundles(self, current_block: int, blocks_to_keep: int) -> None:
        """Drop pending bundles for old blocks and trim the settled history."""
        cutoff_block = max(current_block - blocks_to_keep, 0)
        with self._lock:
            self._pending = [b for b in self._pending if b.target_block >= cutoff_block]
            if len(self._executed) > MAX_EXECUTED_HISTORY:
                self._executed = self._executed[-MAX_EXECUTED_HISTORY:]
            _log.debug(
                "Cleaned up old bundles: pending=%d, executed=%d",
                len(self._pending),
                len(self._executed),
            )

    def validate_bundle_execution(
        self, bundle: BundleSubmission, executed_txs: Sequence[bytes] | Iterable[bytes]
    ) -> bool:
        """Tell whether every bundle transaction ran, in the bundle's order."""
        executed = list(executed_txs)
        missing = next((tx for tx in bundle.transactions if tx not in executed), None)
        if missing is not None:
            _log.warning("Bundle validation failed: tx %s not found in block", _hex(missing))
            return False

        last_index = 0
        for tx_hash in bundle.transactions:
            index = executed.index(tx_hash)
            if index < last_index:
                _log.warning("Bundle validation failed: incorrect transaction order")
                return False
            last_index = index

        _log.debug("Bundle validation passed: hash=%s", _hex(bundle.bundle_hash))
        return True