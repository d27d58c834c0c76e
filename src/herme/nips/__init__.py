"""Nostr Implementation Possibilities -- protocol-specific builders and parsers.

Depends on [herme.models][herme.models] only and performs no I/O.

Attributes:
    event_builders: NIP-10 threaded replies, top-level notes, zap thank-you
        notes and NIP-01 profile metadata drafts.
    nip57: Zap receipt parsing and BOLT-11 amount decoding.
"""

from herme.nips.event_builders import (
    append_topics,
    build_note,
    build_profile,
    build_reply,
    build_zap_thanks,
    normalize_topics,
    thread_tags,
)
from herme.nips.nip57 import ZapReceipt, bolt11_amount_sats, parse_zap_receipt


__all__ = [
    "ZapReceipt",
    "append_topics",
    "bolt11_amount_sats",
    "build_note",
    "build_profile",
    "build_reply",
    "build_zap_thanks",
    "normalize_topics",
    "parse_zap_receipt",
    "thread_tags",
]
