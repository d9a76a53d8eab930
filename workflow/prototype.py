# prototype.py
# Prototype video review: not_submitted -> submitted -> approved | changes_requested -> submitted ...

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .award import require_payment_received
from .errors import FeedbackPacketError, InvalidTransition
from .snapshot import ItemSnapshot, PrototypeState, PrototypeSubmission

FEEDBACK_STATUSES = ("satisfied", "needs_adjustment", "not_addressed")
SEVERITIES = ("must_fix", "should_fix", "optional")

MAX_PHRASES_PER_KEYWORD = 3
MAX_PHRASES_TOTAL = 18
MAX_DETAIL_CHARS = 200


@dataclass(frozen=True)
class KeywordFeedback:
    status: str
    severity: Optional[str] = None
    phrase_ids: FrozenSet[str] = field(default_factory=frozenset)
    revision_detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "severity": self.severity,
            "phrase_ids": sorted(self.phrase_ids),
            "revision_detail": self.revision_detail,
        }


FeedbackPacket = Dict[str, KeywordFeedback]


def parse_packet(raw: Mapping[str, Mapping[str, Any]]) -> FeedbackPacket:
    packet = {}
    for keyword_id, entry in (raw or {}).items():
        packet[str(keyword_id)] = KeywordFeedback(
            status=entry.get("status"),
            severity=entry.get("severity"),
            phrase_ids=frozenset(str(p) for p in entry.get("phrase_ids") or ()),
            revision_detail=entry.get("revision_detail") or "",
        )
    return packet


def packet_to_dict(packet: FeedbackPacket) -> Dict[str, Dict[str, Any]]:
    return {k: v.to_dict() for k, v in packet.items()}


def phrase_total(packet: FeedbackPacket) -> int:
    return sum(len(v.phrase_ids) for v in packet.values())


def packet_problems(packet: FeedbackPacket, keyword_ids: Iterable[str]) -> List[str]:
    problems = []
    missing = [k for k in keyword_ids if k not in packet]
    if missing:
        problems.append(f"Feedback is missing for keywords: {', '.join(missing)}")

    for keyword_id, fb in packet.items():
        if fb.status not in FEEDBACK_STATUSES:
            problems.append(f"{keyword_id}: unknown status {fb.status!r}")
        if fb.severity is not None and fb.severity not in SEVERITIES:
            problems.append(f"{keyword_id}: unknown severity {fb.severity!r}")
        if fb.status == "satisfied" and fb.phrase_ids:
            problems.append(f"{keyword_id}: a satisfied keyword cannot carry phrases")
        if len(fb.phrase_ids) > MAX_PHRASES_PER_KEYWORD:
            problems.append(f"{keyword_id}: at most {MAX_PHRASES_PER_KEYWORD} phrases per keyword")
        if len(fb.revision_detail) > MAX_DETAIL_CHARS:
            problems.append(f"{keyword_id}: revision detail is limited to {MAX_DETAIL_CHARS} characters")

    total = phrase_total(packet)
    if total > MAX_PHRASES_TOTAL:
        problems.append(f"At most {MAX_PHRASES_TOTAL} phrases in total (got {total})")
    return problems


def validate_packet(packet: FeedbackPacket, keyword_ids: Iterable[str]) -> FeedbackPacket:
    problems = packet_problems(packet, keyword_ids)
    if problems:
        raise FeedbackPacketError(problems)
    return packet


# --- transitions ---

def apply_submission(proto: PrototypeState, links: List[Dict[str, str]], submitted_at: str) -> PrototypeState:
    if proto.status == "submitted":
        raise InvalidTransition("A prototype submission is already awaiting review.")
    if proto.status == "approved":
        raise InvalidTransition("The prototype is already approved.")
    if not links:
        raise InvalidTransition("A prototype submission needs at least one video link.")
    version = proto.current_version + 1
    sub = PrototypeSubmission(version=version, links=list(links), submitted_at=submitted_at)
    return replace(
        proto,
        status="submitted",
        current_version=version,
        submission=sub,
        history=list(proto.history) + [sub],
    )


def _check_reviewable(proto: PrototypeState, version: int) -> None:
    if proto.status != "submitted":
        raise InvalidTransition("Only a submitted prototype can be reviewed.")
    if version != proto.current_version:
        raise InvalidTransition(
            f"Version {version} is not the current prototype submission (v{proto.current_version})."
        )


def apply_approve(proto: PrototypeState, version: int) -> PrototypeState:
    _check_reviewable(proto, version)
    return replace(proto, status="approved", approved_version=version)


def apply_changes_requested(proto: PrototypeState, version: int) -> PrototypeState:
    _check_reviewable(proto, version)
    return replace(proto, status="changes_requested")


# --- intents ---

def approve(client, snapshot: ItemSnapshot) -> Dict[str, Any]:
    payment = require_payment_received(snapshot)
    proto = snapshot.prototype
    apply_approve(proto, proto.current_version)
    return client.approve_prototype(snapshot.item_id, payment.id, payment.bid_id, proto.current_version)


def request_changes(client, snapshot: ItemSnapshot, packet) -> Dict[str, Any]:
    if not isinstance(next(iter(packet.values()), None), KeywordFeedback):
        packet = parse_packet(packet)
    validate_packet(packet, snapshot.item.keyword_ids)
    payment = require_payment_received(snapshot)
    proto = snapshot.prototype
    apply_changes_requested(proto, proto.current_version)
    return client.request_prototype_changes(
        payment.id, snapshot.item_id, payment.bid_id, proto.current_version, packet_to_dict(packet)
    )
