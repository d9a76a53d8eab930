import random

import pytest

from workflow.bids import (
    bid_label,
    comparison_slice,
    labelled_bids,
    order_bids,
    partition_by_revision,
)
from workflow.snapshot import Bid


def make_bid(bid_id, submitted_at="2026-03-01T10:00:00+00:00", **kw):
    return Bid(bid_id=bid_id, submitted_at=submitted_at, **kw)


def ids(bids):
    return [b.bid_id for b in bids]


def test_orders_by_timestamp_then_id():
    bids = [
        make_bid(9, "2026-03-02T09:00:00+00:00"),
        make_bid(4, "2026-03-01T12:00:00+00:00"),
        make_bid(2, "2026-03-01T12:00:00+00:00"),
        make_bid(7, "2026-03-01T08:00:00Z"),
    ]
    assert ids(order_bids(bids)) == [7, 2, 4, 9]


def test_equal_timestamps_sort_by_bid_id():
    bids = [make_bid(i) for i in (30, 10, 20)]
    assert ids(order_bids(bids)) == [10, 20, 30]


@pytest.mark.parametrize("seed", range(5))
def test_ordering_is_idempotent_and_input_order_independent(seed):
    rng = random.Random(seed)
    stamps = ["2026-03-01T10:00:00+00:00", "2026-03-01T11:00:00+00:00", "2026-03-02T10:00:00+00:00"]
    bids = [make_bid(i, rng.choice(stamps)) for i in range(1, 15)]
    once = order_bids(bids)
    shuffled = bids[:]
    rng.shuffle(shuffled)
    assert ids(order_bids(once)) == ids(once)
    assert ids(order_bids(shuffled)) == ids(once)


def test_missing_timestamp_sorts_last():
    bids = [make_bid(1, None), make_bid(2)]
    assert ids(order_bids(bids)) == [2, 1]


def test_labels():
    assert [bid_label(i) for i in (0, 1, 25, 26, 27)] == ["A", "B", "Z", "AA", "AB"]
    bids = [make_bid(5, "2026-03-02T00:00:00+00:00"), make_bid(3)]
    assert [(label, b.bid_id) for label, b in labelled_bids(bids)] == [("A", 3), ("B", 5)]


def test_partition_by_revision():
    bids = [
        make_bid(1, revision_at_submit=1),
        make_bid(2, revision_at_submit=2),
        make_bid(3, revision_at_submit=2, status="withdrawn"),
        make_bid(4, revision_at_submit=1, status="draft"),
        make_bid(5, revision_at_submit=None),
    ]
    current, outdated = partition_by_revision(bids, 2)
    assert ids(current) == [2]
    assert ids(outdated) == [1]


def test_partition_without_revision_tracking():
    bids = [make_bid(1, revision_at_submit=1), make_bid(2), make_bid(3, status="withdrawn")]
    current, outdated = partition_by_revision(bids, None)
    assert ids(current) == [1, 2]
    assert outdated == []


def test_comparison_shows_first_three_only():
    bids = [make_bid(i) for i in range(1, 6)]
    shown = comparison_slice(bids)
    assert [label for label, _ in shown] == ["A", "B", "C"]
    assert len(labelled_bids(bids)) == 5


def test_comparison_keeps_labels_from_the_full_list():
    bids = [
        make_bid(1, "2026-03-01T08:00:00+00:00", revision_at_submit=1),
        make_bid(2, "2026-03-01T09:00:00+00:00", revision_at_submit=2),
        make_bid(3, "2026-03-01T10:00:00+00:00", revision_at_submit=2),
    ]
    current, _ = partition_by_revision(bids, 2)
    shown = comparison_slice(bids, [b.bid_id for b in current])
    assert [(label, b.bid_id) for label, b in shown] == [("B", 2), ("C", 3)]
    assert dict((b.bid_id, label) for label, b in labelled_bids(bids))[2] == "B"
