"""Buffering of captured MEV and deposits to the distributor contract."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from evolvechain.mev.model import DEFAULT_DEPOSIT_INTERVAL, DEFAULT_MAX_MEV_BUFFER

_log = logging.getLogger(__name__)

_ZERO = timedelta(0)


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


@dataclass(frozen=True)
class EpochData:
    """Figures of one distribution epoch."""

    epoch: int
    total_mev: int = 0
    stakers_reward: int = 0
    protocol_fee: int = 0
    treasury_amount: int = 0
    settled: bool = False
    timestamp: int = 0


@dataclass(frozen=True)
class DistributorStats:
    """Snapshot of the distributor client's state."""

    current_epoch: int
    buffer_amount: int
    time_since_last_deposit: timedelta
    total_deposited: int = 0
    deposits_count: int = 0

    def avg_deposit_amount(self) -> int:
        """Average amount per deposit, or zero when nothing was deposited."""
        if self.deposits_count > 0:
            return self.total_deposited // self.deposits_count
        return 0


class MevDistributorClient:
    """Accumulates MEV and deposits it to the distributor contract.

    A deposit happens once the buffer reaches ``max_buffer`` or once
    ``deposit_interval`` has passed since the last deposit.
    """

    def __init__(
        self,
        contract_address: bytes,
        sequencer_address: bytes,
        deposit_interval: timedelta,
        max_buffer: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._contract_address = bytes(contract_address)
        self._sequencer_address = bytes(sequencer_address)
        self._deposit_interval = deposit_interval
        self._max_buffer = max_buffer
        self._clock = clock
        self._lock = threading.RLock()
        self._buffer = 0
        self._last_deposit_time = clock()
        self._current_epoch = 1

    @classmethod
    def default_config(
        cls, contract_address: bytes, sequencer_address: bytes
    ) -> "MevDistributorClient":
        """Create a client depositing hourly or once 1000 ANDE are buffered."""
        return cls(
            contract_address,
            sequencer_address,
            DEFAULT_DEPOSIT_INTERVAL,
            DEFAULT_MAX_MEV_BUFFER,
        )

    @property
    def contract_address(self) -> bytes:
        return self._contract_address

    @property
    def sequencer_address(self) -> bytes:
        return self._sequencer_address

    @property
    def deposit_interval(self) -> timedelta:
        return self._deposit_interval

    @property
    def max_buffer(self) -> int:
        return self._max_buffer

    def _elapsed(self) -> timedelta:
        with self._lock:
            last = self._last_deposit_time
        seconds = self._clock() - last
        return timedelta(seconds=seconds) if seconds > 0 else _ZERO

    def add_mev(self, amount: int) -> None:
        """Add captured MEV to the buffer, depositing if a threshold is met."""
        if amount < 0:
            raise ValueError(f"MEV amount must not be negative, got {amount}")
        if amount == 0:
            return
        with self._lock:
            self._buffer += amount
            total = self._buffer
        _log.debug("MEV added to buffer: amount=%d, total_buffer=%d", amount, total)
        self._check_and_deposit()

    def _check_and_deposit(self) -> None:
        with self._lock:
            buffer = self._buffer
        elapsed = self._elapsed()
        should_deposit = buffer >= self._max_buffer or elapsed >= self._deposit_interval
        if should_deposit and buffer > 0:
            try:
                self.deposit_mev()
            except Exception as err:  # a failed deposit leaves the node running
                _log.error("Failed to deposit MEV: %s", err)

    def deposit_mev(self) -> None:
        """Deposit the buffered MEV and empty the buffer."""
        with self._lock:
            amount = self._buffer
            if amount == 0:
                return
            self._buffer = 0
            self._last_deposit_time = self._clock()
        _log.info(
            "Depositing MEV to distributor: amount=%d, contract=%s",
            amount,
            _hex(self._contract_address),
        )

    def force_deposit(self) -> int:
        """Deposit whatever is buffered now; return the amount deposited."""
        with self._lock:
            amount = self._buffer
            if amount > 0:
                self.deposit_mev()
                return amount
        return 0

    def get_buffer_amount(self) -> int:
        """Return the MEV waiting to be deposited."""
        with self._lock:
            return self._buffer

    def get_current_epoch(self) -> EpochData:
        """Return the data of the current epoch, stamped with the current time."""
        with self._lock:
            epoch = self._current_epoch
        return EpochData(epoch=epoch, timestamp=int(self._clock()))

    def get_epoch_info(self, epoch: int) -> EpochData:
        """Return the data of the given epoch."""
        return EpochData(epoch=epoch)

    def check_epoch_settlement(self) -> bool:
        """Tell whether the current epoch needs settling."""
        self.get_current_epoch()
        return False

    def settle_epoch(self) -> None:
        """Settle the current epoch and move on to the next."""
        with self._lock:
            _log.info("Settling epoch %d", self._current_epoch)
            self._current_epoch += 1

    def get_distributor_stats(self) -> DistributorStats:
        """Return a snapshot of the buffer, epoch and deposit timing."""
        with self._lock:
            buffer = self._buffer
            epoch = self._current_epoch
        return DistributorStats(
            current_epoch=epoch,
            buffer_amount=buffer,
            time_since_last_deposit=self._elapsed(),
        )

    def time_until_next_deposit(self) -> timedelta:
        """Return how long until the deposit interval runs out; never negative."""
        remaining = self._deposit_interval - self._elapsed()
        return remaining if remaining > _ZERO else _ZERO

    def is_deposit_pending(self) -> bool:
        """Tell whether the buffer is full or the deposit interval has run out."""
        with self._lock:
            buffer = self._buffer
        return buffer >= self._max_buffer or self.time_until_next_deposit() == _ZERO