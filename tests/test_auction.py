import os

import pytest

from evolvechain.mev.auction import (
    AuctionError,
    AuctionStats,
    BundleSubmission,
    MevAuctionClient,
)


def random_address():
    return os.urandom(20)


def random_hash():
    return os.urandom(32)


def make_bundle(bid=1000, block=100, transactions=None):
    return BundleSubmission(
        bundle_hash=random_hash(),
        bid_amount=bid,
        target_block=block,
        transactions=transactions if transactions is not None else [random_hash()],
        searcher=random_address(),
    )


@pytest.fixture
def client():
    return MevAuctionClient(random_address(), random_address())


def test_auction_client_creation():
    contract = random_address()
    client = MevAuctionClient(contract, random_address())
    stats = client.get_auction_stats()
    assert stats.total_bundles == 0
    assert client.contract_address == contract


def test_bundle_submission(client):
    bundle = make_bundle()
    client.submit_bundle(bundle)
    bundles = client.get_bundles_for_block(100)
    assert len(bundles) == 1
    assert bundles[0].bundle_hash == bundle.bundle_hash
    assert client.get_bundles_for_block(101) == []


def test_submission_rejects_empty_bundle(client):
    with pytest.raises(AuctionError, match="at least one transaction"):
        client.submit_bundle(make_bundle(transactions=[]))
    assert client.get_auction_stats().total_bundles == 0


def test_submission_rejects_zero_bid(client):
    with pytest.raises(AuctionError, match="Bid amount must be positive"):
        client.submit_bundle(make_bundle(bid=0))


def test_bundle_execution(client):
    bundle = make_bundle()
    client.submit_bundle(bundle)
    client.mark_bundle_executed(bundle.bundle_hash, 2000, 900)

    assert client.get_bundles_for_block(100) == []
    stats = client.get_auction_stats()
    assert stats.executed_bundles == 1
    assert stats.total_mev_captured == 2000
    assert stats.total_bids_paid == 900


def test_bundle_rejection(client):
    bundle = make_bundle()
    client.submit_bundle(bundle)
    client.mark_bundle_rejected(bundle.bundle_hash, "reverted")
    stats = client.get_auction_stats()
    assert stats.pending_bundles == 0
    assert stats.rejected_bundles == 1
    assert stats.executed_bundles == 0
    assert stats.total_mev_captured == 0


def test_unknown_bundle_execution_is_still_recorded(client):
    client.mark_bundle_executed(random_hash(), 10, 5)
    stats = client.get_auction_stats()
    assert stats.total_bundles == 1
    assert stats.executed_bundles == 1


def test_winning_bundle_selection(client):
    for i in range(1, 6):
        client.submit_bundle(make_bundle(bid=i * 1000))
    winner = client.select_winning_bundle(100)
    assert winner.bid_amount == 5000


def test_winning_bundle_tie_picks_latest(client):
    first = make_bundle(bid=700)
    second = make_bundle(bid=700)
    client.submit_bundle(first)
    client.submit_bundle(second)
    assert client.select_winning_bundle(100).bundle_hash == second.bundle_hash


def test_no_winner_without_bundles(client):
    assert client.select_winning_bundle(42) is None


def test_auction_stats(client):
    for i in range(1, 4):
        bundle = make_bundle(bid=i * 1000)
        client.submit_bundle(bundle)
        if i <= 2:
            client.mark_bundle_executed(bundle.bundle_hash, i * 2000, bundle.bid_amount)

    stats = client.get_auction_stats()
    assert stats.total_bundles == 3
    assert stats.executed_bundles == 2
    assert stats.pending_bundles == 1
    assert stats.success_rate() > 0.6
    assert stats.total_mev_captured == 6000
    assert stats.avg_mev_per_bundle() == 3000


def test_stats_helpers_with_no_bundles():
    stats = AuctionStats(0, 0, 0, 0, 0, 0)
    assert stats.success_rate() == 0.0
    assert stats.avg_mev_per_bundle() == 0


def test_cleanup_old_bundles(client):
    client.submit_bundle(make_bundle(block=10))
    client.submit_bundle(make_bundle(block=95))
    client.submit_bundle(make_bundle(block=100))
    client.cleanup_old_bundles(100, 5)
    assert client.get_bundles_for_block(10) == []
    assert len(client.get_bundles_for_block(95)) == 1
    assert client.get_auction_stats().pending_bundles == 2


def test_cleanup_saturates_at_block_zero(client):
    client.submit_bundle(make_bundle(block=0))
    client.cleanup_old_bundles(3, 10)
    assert len(client.get_bundles_for_block(0)) == 1


def test_cleanup_trims_executed_history(client):
    for _ in range(10_005):
        client.mark_bundle_rejected(random_hash(), "old")
    client.cleanup_old_bundles(0, 0)
    assert client.get_auction_stats().rejected_bundles == 10_000


def test_validate_bundle_execution_in_order(client):
    a, b, c = random_hash(), random_hash(), random_hash()
    bundle = make_bundle(transactions=[a, c])
    assert client.validate_bundle_execution(bundle, [a, b, c]) is True


def test_validate_bundle_execution_missing_tx(client):
    a, b = random_hash(), random_hash()
    bundle = make_bundle(transactions=[a, b])
    assert client.validate_bundle_execution(bundle, [a]) is False


def test_validate_bundle_execution_wrong_order(client):
    a, b = random_hash(), random_hash()
    bundle = make_bundle(transactions=[b, a])
    assert client.validate_bundle_execution(bundle, [a, b]) is False


def test_bundle_transactions_are_immutable():
    tx = random_hash()
    bundle = make_bundle(transactions=[tx])
    assert bundle.transactions == (tx,)