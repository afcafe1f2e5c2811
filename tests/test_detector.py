import pytest

from evolvechain.mev.detector import (
    DetectorConfig,
    MevDetector,
    MevOpportunity,
    MevType,
    Transaction,
)

GWEI = 10**9
ALICE = b"\xa1" * 20
BOB = b"\xb0" * 20
EVE = b"\xee" * 20
POOL = b"\x77" * 20
ROUTER = b"\x55" * 20
LENDER = b"\x44" * 20


def tx_hash(n: int) -> bytes:
    return n.to_bytes(32, "big")


@pytest.mark.parametrize(
    "mev_type, label",
    [
        (MevType.ARBITRAGE, "Arbitrage"),
        (MevType.SANDWICH, "Sandwich"),
        (MevType.LIQUIDATION, "Liquidation"),
        (MevType.JIT_LIQUIDITY, "JIT Liquidity"),
    ],
)
def test_mev_type_name(mev_type, label):
    opp = MevOpportunity(mev_type, tx_hash(1), 1, 1)
    assert opp.mev_type.label == label
    assert str(opp.mev_type) == label


def test_mev_opportunity_creation():
    h = tx_hash(1)
    opp = MevOpportunity(MevType.ARBITRAGE, h, 1000, 100)
    assert opp.mev_type is MevType.ARBITRAGE
    assert opp.value == 1000
    assert opp.block_number == 100
    opp.add_address(ALICE)
    assert opp.addresses == [ALICE]
    opp.add_metadata("k", "v")
    opp.add_metadata("k", "w")
    assert opp.metadata == {"k": "w"}


def test_detector_creation():
    detector = MevDetector(DetectorConfig())
    assert detector.recent_hashes == []
    assert detector.max_recent_txs == 1000


def test_detector_config():
    config = DetectorConfig()
    assert config.detect_arbitrage
    assert config.detect_sandwich
    assert config.detect_liquidation
    config.dex_routers.add(ROUTER)
    assert ROUTER in config.dex_routers


def test_arbitrage_detected_with_dex_router():
    detector = MevDetector()
    detector.add_dex_router(ROUTER)
    tx = Transaction(tx_hash(1), sender=ALICE, to=ROUTER, gas_price=2000 * GWEI)
    opps = detector.analyze_transaction(tx, 10)
    assert len(opps) == 1
    assert opps[0].mev_type is MevType.ARBITRAGE
    assert opps[0].value == 195_000_000_000_000_000
    assert opps[0].addresses == [ROUTER, ALICE]


def test_low_value_opportunity_filtered():
    detector = MevDetector()
    detector.add_dex_router(ROUTER)
    tx = Transaction(tx_hash(1), sender=ALICE, to=ROUTER, gas_price=200 * GWEI)
    assert detector.analyze_transaction(tx, 10) == []
    assert detector.recent_hashes == [tx_hash(1)]


def test_sandwich_detected_against_recent_tx():
    detector = MevDetector(DetectorConfig(min_value=0))
    victim = Transaction(tx_hash(1), sender=ALICE, to=POOL, gas_price=1 * GWEI)
    attacker = Transaction(tx_hash(2), sender=BOB, to=POOL, gas_price=200 * GWEI)
    assert detector.analyze_transaction(victim, 5) == []
    opps = detector.analyze_transaction(attacker, 5)
    assert [o.mev_type for o in opps] == [MevType.SANDWICH]
    assert opps[0].value == 200 * GWEI * 50_000
    assert opps[0].addresses == [BOB, POOL]


def test_sandwich_requires_same_block():
    detector = MevDetector(DetectorConfig(min_value=0))
    detector.analyze_transaction(Transaction(tx_hash(1), sender=ALICE, to=POOL), 4)
    attacker = Transaction(tx_hash(2), sender=BOB, to=POOL, gas_price=200 * GWEI)
    assert detector.analyze_transaction(attacker, 5) == []


def test_liquidation_detected():
    detector = MevDetector()
    detector.add_lending_protocol(LENDER)
    tx = Transaction(tx_hash(3), sender=ALICE, to=LENDER, value=5 * 10**18)
    opps = detector.analyze_transaction(tx, 7)
    assert len(opps) == 1
    assert opps[0].mev_type is MevType.LIQUIDATION
    assert opps[0].value == 5 * 10**17
    assert opps[0].addresses == [LENDER, ALICE]


def test_disabled_detection_finds_nothing():
    config = DetectorConfig(detect_liquidation=False, min_value=0)
    detector = MevDetector(config)
    detector.add_lending_protocol(LENDER)
    tx = Transaction(tx_hash(3), sender=ALICE, to=LENDER, value=5 * 10**18)
    assert detector.analyze_transaction(tx, 7) == []


def test_cross_transaction_sandwich():
    detector = MevDetector()
    front = Transaction(tx_hash(1), sender=EVE, to=POOL, gas_price=100 * GWEI)
    victim = Transaction(tx_hash(2), sender=ALICE, to=POOL, gas_price=10 * GWEI)
    back = Transaction(tx_hash(3), sender=EVE, to=POOL, gas_price=100 * GWEI)
    opps = detector.analyze_block([front, victim, back], 42)
    assert len(opps) == 1
    opp = opps[0]
    assert opp.mev_type is MevType.SANDWICH
    assert opp.tx_hash == tx_hash(2)
    assert opp.value == 90 * GWEI * 100_000
    assert opp.addresses == [EVE, ALICE]
    assert opp.metadata["front_run_tx"] == "0x" + tx_hash(1).hex()
    assert opp.metadata["back_run_tx"] == "0x" + tx_hash(3).hex()
    assert opp.metadata["sandwich_type"] == "detected"


def test_recent_history_is_bounded():
    detector = MevDetector(max_recent_txs=3)
    for n in range(5):
        detector.analyze_transaction(Transaction(tx_hash(n), sender=ALICE), 1)
    assert detector.recent_hashes == [tx_hash(2), tx_hash(3), tx_hash(4)]


@pytest.mark.parametrize(
    "current, keep, expected",
    [(10, 3, [tx_hash(7), tx_hash(8)]), (2, 5, [tx_hash(6), tx_hash(7), tx_hash(8)])],
)
def test_cleanup_keeps_recent_blocks(current, keep, expected):
    detector = MevDetector()
    for block in (6, 7, 8):
        detector.analyze_transaction(Transaction(tx_hash(block), sender=ALICE), block)
    detector.cleanup(current, keep)
    assert detector.recent_hashes == expected