# bids.py
# Deterministic bid ordering, display labels and revision partitioning.

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .snapshot import Bid

COMPARISON_LIMIT = 3

_EPOCH_MAX = datetime.max.replace(tzinfo=timezone.utc)


def _timestamp(value: Optional[str]) -> datetime:
    if not value:
        return _EPOCH_MAX
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH_MAX
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def sort_key(bid: Bid) -> Tuple[datetime, int]:
    return (_timestamp(bid.submitted_at), bid.bid_id)


def order_bids(bids: Iterable[Bid]) -> List[Bid]:
    """Oldest submission first, ties by ascending bid_id. Bids without a
    timestamp sort last."""
    return sorted(bids, key=sort_key)


def bid_label(index: int) -> str:
    # 0 -> A, 25 -> Z, 26 -> AA
    label = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        label = chr(ord("A") + rem) + label
    return label


def labelled_bids(bids: Iterable[Bid]) -> List[Tuple[str, Bid]]:
    return [(bid_label(i), b) for i, b in enumerate(order_bids(bids))]


def partition_by_revision(bids: Iterable[Bid], revision_current: Optional[int]) -> Tuple[List[Bid], List[Bid]]:
    """Split submitted bids into (current, outdated), both in display order.

    Drafts and withdrawn bids are in neither list. With revision tracking active,
    a bid that carries no revision number is in neither list either.
    """
    current, outdated = [], []
    for bid in order_bids(bids):
        if bid.status != "submitted":
            continue
        if revision_current is None or bid.revision_at_submit == revision_current:
            current.append(bid)
        elif bid.revision_at_submit is not None:
            outdated.append(bid)
    return current, outdated


def comparison_slice(bids: Iterable[Bid], current_ids: Optional[Iterable[int]] = None,
                     limit: int = COMPARISON_LIMIT) -> List[Tuple[str, Bid]]:
    """First `limit` bids for side-by-side comparison.

    Labels come from the full list, so a bid keeps its label when outdated bids
    are left out of the comparison.
    """
    labelled = labelled_bids(bids)
    if current_ids is not None:
        keep = set(current_ids)
        labelled = [(label, b) for label, b in labelled if b.bid_id in keep]
    return labelled[:limit]


def awarded_bids(bids: Iterable[Bid]) -> List[Bid]:
    return [b for b in bids if b.is_awarded]
