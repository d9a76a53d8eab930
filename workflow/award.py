# award.py
# Single-award guarantee and the payment gate in front of CAD/prototype work.

from dataclasses import replace
from typing import Any, Dict, List, Optional

from . import config
from .errors import ClientValidationError, InvalidTransition, PartialAwardError
from .snapshot import Bid, ItemSnapshot, PaymentRecord


def check_can_award(snapshot: ItemSnapshot, bid_id: int) -> Bid:
    bid = snapshot.bid(bid_id)
    if bid is None:
        raise InvalidTransition(f"Bid {bid_id} is not part of this item.")
    if bid.is_awarded:
        raise InvalidTransition(f"Bid {bid_id} is already awarded.")
    if any(b.is_awarded for b in snapshot.bids) or snapshot.awarded_bid_id is not None:
        raise InvalidTransition("This item already has an awarded bid.")
    if snapshot.payment is not None and snapshot.payment.bid_id != bid_id:
        raise InvalidTransition(f"CAD and prototype are already paid for on bid {snapshot.payment.bid_id}.")
    if not bid.can_award:
        raise InvalidTransition(f"Bid {bid_id} cannot be awarded.")
    return bid


def apply_award(bids: List[Bid], bid_id: int, payment_bid_id: Optional[int] = None) -> List[Bid]:
    """Award one bid and decline every other non-declined bid, all at once.

    Once a payment exists the only bid that can still be awarded is the one it
    was requested on.
    """
    if any(b.is_awarded for b in bids):
        raise InvalidTransition("This item already has an awarded bid.")
    target = next((b for b in bids if b.bid_id == bid_id), None)
    if target is None:
        raise InvalidTransition(f"Bid {bid_id} is not part of this item.")
    if target.status != "submitted" or target.is_declined:
        raise InvalidTransition(f"Bid {bid_id} cannot be awarded.")
    if payment_bid_id is not None and payment_bid_id != bid_id:
        raise InvalidTransition(f"CAD and prototype are already paid for on bid {payment_bid_id}.")

    out = []
    for b in bids:
        if b.bid_id == bid_id:
            out.append(replace(b, is_awarded=True, is_declined=False, can_award=False))
        elif not b.is_declined:
            out.append(replace(b, is_declined=True, can_award=False))
        else:
            out.append(b)
    return out


def verify_award_applied(snapshot: ItemSnapshot, bid_id: int) -> None:
    """Raise PartialAwardError unless the refreshed snapshot shows the full award."""
    awarded = [b for b in snapshot.bids if b.is_awarded]
    if len(awarded) != 1 or awarded[0].bid_id != bid_id:
        raise PartialAwardError(f"Award of bid {bid_id} was not applied. Refresh and try again.")
    undeclined = [
        b.bid_id for b in snapshot.bids
        if b.bid_id != bid_id and b.status == "submitted" and not b.is_declined
    ]
    if undeclined:
        raise PartialAwardError(
            f"Award of bid {bid_id} was only partly applied (bids {undeclined} not declined). Refresh and try again."
        )


def award(client, snapshot: ItemSnapshot, bid_id: int) -> Dict[str, Any]:
    check_can_award(snapshot, bid_id)
    return client.award_bid(snapshot.item_id, bid_id)


# --- payment ---

def payment_total_due(prototype_cost: Optional[float], cad_fee: Optional[float] = None) -> float:
    fee = config.CAD_FEE if cad_fee is None else cad_fee
    return round(float(fee) + float(prototype_cost or 0), 2)


def is_payment_gate_open(snapshot: ItemSnapshot) -> bool:
    return snapshot.payment is not None and snapshot.payment.is_received


def require_payment_received(snapshot: ItemSnapshot) -> PaymentRecord:
    if snapshot.payment is None:
        raise ClientValidationError("Request CAD and prototype before starting this work.")
    if not snapshot.payment.is_received:
        raise ClientValidationError("CAD and prototype work unlock once payment is marked received.")
    return snapshot.payment


def check_can_request_cad_prototype(snapshot: ItemSnapshot, bid_id: int) -> Bid:
    if snapshot.payment is not None:
        raise InvalidTransition("CAD and prototype have already been requested for this item.")
    bid = snapshot.bid(bid_id)
    if bid is None or bid.status != "submitted" or bid.is_declined:
        raise InvalidTransition(f"Bid {bid_id} is not available for a CAD and prototype request.")
    if snapshot.awarded_bid_id is not None and snapshot.awarded_bid_id != bid_id:
        raise InvalidTransition("CAD and prototype can only be requested on the awarded bid.")
    return bid


def request_cad_prototype(client, snapshot: ItemSnapshot, bid_id: int) -> Dict[str, Any]:
    check_can_request_cad_prototype(snapshot, bid_id)
    return client.request_cad_prototype(snapshot.item_id, bid_id)
