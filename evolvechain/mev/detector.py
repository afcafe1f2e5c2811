"""Heuristic detection of MEV opportunities in transaction flows."""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from evolvechain.mev.model import DEFAULT_MIN_MEV_VALUE, WEI_PER_ANDE

_log = logging.getLogger(__name__)

_ZERO_ADDRESS = bytes(20)
_GWEI = 10**9
_BASE_GAS_PRICE = 50 * _GWEI
_ARBITRAGE_GAS_MULTIPLIER = 2
_SANDWICH_GAS_MULTIPLIER = 3
_ARBITRAGE_VALUE_FACTOR = 100_000
_SANDWICH_VALUE_FACTOR = 50_000
_CROSS_SANDWICH_VALUE_FACTOR = 100_000
_MIN_LIQUIDATION_VALUE = WEI_PER_ANDE
_LIQUIDATION_SHARE_DIVISOR = 10

DEFAULT_MAX_RECENT_TXS = 1000


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


class MevType(enum.Enum):
    """Kind of MEV opportunity; the value is its human-readable label."""

    ARBITRAGE = "Arbitrage"
    SANDWICH = "Sandwich"
    LIQUIDATION = "Liquidation"
    FRONT_RUN = "Front-Run"
    BACK_RUN = "Back-Run"
    JIT_LIQUIDITY = "JIT Liquidity"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


@dataclass
class MevOpportunity:
    """A detected MEV opportunity."""

    mev_type: MevType
    tx_hash: bytes
    value: int
    block_number: int
    addresses: list[bytes] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    def add_address(self, address: bytes) -> None:
        """Record an address involved in the opportunity."""
        self.addresses.append(bytes(address))

    def add_metadata(self, key: str, value: str) -> None:
        """Attach a metadata entry, replacing any previous value for ``key``."""
        self.metadata[key] = value


@dataclass
class DetectorConfig:
    """Which heuristics run, and the addresses they look for."""

    detect_arbitrage: bool = True
    detect_sandwich: bool = True
    detect_liquidation: bool = True
    min_value: int = DEFAULT_MIN_MEV_VALUE
    dex_routers: set[bytes] = field(default_factory=set)
    lending_protocols: set[bytes] = field(default_factory=set)


@dataclass(frozen=True)
class Transaction:
    """The parts of a signed transaction that detection looks at.

    ``sender`` is the recovered signer, or None if recovery failed.
    ``gas_price`` is set for legacy-priced transactions; ``max_fee_per_gas``
    for dynamic-fee ones. A legacy transaction's max fee is its gas price.
    """

    hash: bytes
    sender: Optional[bytes] = None
    to: Optional[bytes] = None
    value: int = 0
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None

    @property
    def signer(self) -> bytes:
        return bytes(self.sender) if self.sender is not None else _ZERO_ADDRESS

    @property
    def effective_max_fee(self) -> int:
        if self.max_fee_per_gas is not None:
            return self.max_fee_per_gas
        return self.gas_price or 0


@dataclass(frozen=True)
class _TxInfo:
    hash: bytes
    sender: bytes
    to: Optional[bytes]
    value: int
    gas_price: int
    block_number: int


def _extract(tx: Transaction, block_number: int) -> _TxInfo:
    max_fee = tx.effective_max_fee
    if max_fee > 0:
        gas_price = max_fee
    elif tx.gas_price is not None:
        gas_price = tx.gas_price
    else:
        gas_price = 0
    return _TxInfo(
        hash=bytes(tx.hash),
        sender=tx.signer,
        to=bytes(tx.to) if tx.to is not None else None,
        value=tx.value,
        gas_price=gas_price,
        block_number=block_number,
    )


class MevDetector:
    """Scans transactions for MEV patterns, remembering recent ones."""

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        max_recent_txs: int = DEFAULT_MAX_RECENT_TXS,
    ) -> None:
        self.config = config if config is not None else DetectorConfig()
        self._max_recent_txs = max_recent_txs
        self._recent: deque[_TxInfo] = deque(maxlen=max_recent_txs)

    @property
    def max_recent_txs(self) -> int:
        return self._max_recent_txs

    @property
    def recent_hashes(self) -> list[bytes]:
        """Hashes of the remembered transactions, oldest first."""
        return [info.hash for info in self._recent]

    def analyze_transaction(self, tx: Transaction, block_number: int) -> list[MevOpportunity]:
        """Run the single-transaction heuristics and remember the transaction."""
        info = _extract(tx, block_number)
        found: list[Optional[MevOpportunity]] = []
        if self.config.detect_arbitrage:
            found.append(self._detect_arbitrage(info))
        if self.config.detect_sandwich:
            found.append(self._detect_sandwich(info))
        if self.config.detect_liquidation:
            found.append(self._detect_liquidation(info))

        self._recent.append(info)

        opportunities = [
            opp for opp in found if opp is not None and opp.value >= self.config.min_value
        ]
        for opp in opportunities:
            _log.info(
                "MEV detected: type=%s, value=%d, tx=%s",
                opp.mev_type.label,
                opp.value,
                _hex(opp.tx_hash),
            )
        return opportunities

    def analyze_block(
        self, transactions: Sequence[Transaction] | Iterable[Transaction], block_number: int
    ) -> list[MevOpportunity]:
        """Analyse every transaction, then look for patterns across them."""
        txs = list(transactions)
        opportunities = [
            opp for tx in txs for opp in self.analyze_transaction(tx, block_number)
        ]
        opportunities.extend(self._detect_cross_transaction(txs, block_number))
        return opportunities

    def _detect_arbitrage(self, info: _TxInfo) -> Optional[MevOpportunity]:
        if info.to is None or info.to not in self.config.dex_routers:
            return None
        if info.gas_price <= _BASE_GAS_PRICE * _ARBITRAGE_GAS_MULTIPLIER:
            return None
        premium = info.gas_price - _BASE_GAS_PRICE
        opp = MevOpportunity(
            MevType.ARBITRAGE, info.hash, premium * _ARBITRAGE_VALUE_FACTOR, info.block_number
        )
        opp.add_address(info.to)
        opp.add_address(info.sender)
        _log.debug("Potential arbitrage detected: tx=%s", _hex(info.hash))
        return opp

    def _detect_sandwich(self, info: _TxInfo) -> Optional[MevOpportunity]:
        if info.gas_price <= _BASE_GAS_PRICE * _SANDWICH_GAS_MULTIPLIER:
            return None
        victim = next(
            (
                recent
                for recent in self._recent
                if recent.to == info.to
                and recent.sender != info.sender
                and recent.block_number == info.block_number
            ),
            None,
        )
        if victim is None:
            return None
        opp = MevOpportunity(
            MevType.SANDWICH,
            info.hash,
            info.gas_price * _SANDWICH_VALUE_FACTOR,
            info.block_number,
        )
        opp.add_address(info.sender)
        if info.to is not None:
            opp.add_address(info.to)
        _log.debug("Potential sandwich attack detected: tx=%s", _hex(info.hash))
        return opp

    def _detect_liquidation(self, info: _TxInfo) -> Optional[MevOpportunity]:
        if info.to is None or info.to not in self.config.lending_protocols:
            return None
        if info.value <= _MIN_LIQUIDATION_VALUE:
            return None
        opp = MevOpportunity(
            MevType.LIQUIDATION,
            info.hash,
            info.value // _LIQUIDATION_SHARE_DIVISOR,
            info.block_number,
        )
        opp.add_address(info.to)
        opp.add_address(info.sender)
        _log.debug("Potential liquidation detected: tx=%s", _hex(info.hash))
        return opp

    @staticmethod
    def _detect_cross_transaction(
        transactions: list[Transaction], block_number: int
    ) -> list[MevOpportunity]:
        opportunities = []
        for front, victim, back in zip(transactions, transactions[1:], transactions[2:]):
            attacker = front.signer
            victim_signer = victim.signer
            if attacker != back.signer or attacker == victim_signer or front.to != back.to:
                continue
            front_price = front.gas_price or 0
            victim_price = victim.gas_price or 0
            if front_price <= victim_price:
                continue
            opp = MevOpportunity(
                MevType.SANDWICH,
                bytes(victim.hash),
                (front_price - victim_price) * _CROSS_SANDWICH_VALUE_FACTOR,
                block_number,
            )
            opp.add_address(attacker)
            opp.add_address(victim_signer)
            opp.add_metadata("sandwich_type", "detected")
            opp.add_metadata("front_run_tx", _hex(front.hash))
            opp.add_metadata("back_run_tx", _hex(back.hash))
            opportunities.append(opp)
        return opportunities

    def cleanup(self, current_block: int, blocks_to_keep: int) -> None:
        """Forget transactions from blocks older than the retention window."""
        cutoff = max(current_block - blocks_to_keep, 0)
        kept = [info for info in self._recent if info.block_number >= cutoff]
        self._recent = deque(kept, maxlen=self._max_recent_txs)

    def add_dex_router(self, address: bytes) -> None:
        """Watch ``address`` as a DEX router."""
        self.config.dex_routers.add(bytes(address))

    def add_lending_protocol(self, address: bytes) -> None:
        """Watch ``address`` as a lending protocol."""
        self.config.lending_protocols.add(bytes(address))