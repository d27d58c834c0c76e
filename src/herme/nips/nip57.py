"""NIP-57 zap receipt parsing.

A zap receipt (kind 9735) is published by the recipient's wallet service.
It carries the payer in an uppercase ``P`` tag, the paid invoice in a
``bolt11`` tag, and the original zap request (kind 9734) as JSON in a
``description`` tag; the request content is the payer's comment.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from herme.models.event import NetworkEvent


logger = logging.getLogger(__name__)

_MSAT_PER_UNIT = {
    "": 100_000_000_000,
    "m": 100_000_000,
    "u": 100_000,
    "n": 100,
}
_BOLT11_HRP = re.compile(r"^ln(?:bcrt|bc|tbs|tb|sb)(\d*)([munp]?)$")


@dataclass(frozen=True, slots=True)
class ZapReceipt:
    """The fields of a zap receipt the agent uses.

    Attributes:
        sender: Hex pubkey of the payer.
        amount_sats: Paid amount, or ``None`` when the invoice has none.
        comment: Payer comment from the embedded zap request.
        bolt11: The raw invoice.
    """

    sender: str
    amount_sats: int | None = None
    comment: str = ""
    bolt11: str = ""


def bolt11_amount_sats(invoice: str) -> int | None:
    """Decode the amount of a BOLT-11 invoice from its human-readable part.

    Returns ``None`` for invoices without an amount or with an unparsable
    prefix.

    Examples:
        ```python
        bolt11_amount_sats("lnbc2500u1pvjluez...")  # 250000
        bolt11_amount_sats("lnbc1pvjluez...")       # None
        ```
    """
    invoice = invoice.strip().lower()
    if invoice.startswith("lightning:"):
        invoice = invoice[len("lightning:") :]
    separator = invoice.rfind("1")
    if separator <= 0:
        return None
    match = _BOLT11_HRP.match(invoice[:separator])
    if match is None or not match.group(1):
        return None
    amount = int(match.group(1))
    unit = match.group(2)
    if unit == "p":
        return amount // 10_000
    return amount * _MSAT_PER_UNIT[unit] // 1000


def parse_zap_receipt(event: NetworkEvent) -> ZapReceipt | None:
    """Extract a [ZapReceipt][herme.nips.nip57.ZapReceipt] from a kind-9735 event.

    Returns ``None`` when the receipt has no ``P`` sender tag. A malformed
    ``description`` only loses the comment.
    """
    sender_tag = event.first_tag("P")
    if sender_tag is None or len(sender_tag) < 2 or not sender_tag[1]:
        return None

    bolt11_tag = event.first_tag("bolt11")
    bolt11 = bolt11_tag[1] if bolt11_tag and len(bolt11_tag) > 1 else ""

    comment = ""
    description_tag = event.first_tag("description")
    if description_tag and len(description_tag) > 1:
        try:
            request = json.loads(description_tag[1])
            if isinstance(request, dict) and isinstance(request.get("content"), str):
                comment = request["content"]
        except json.JSONDecodeError:
            logger.warning("zap_description_invalid event_id=%s", event.id)

    return ZapReceipt(
        sender=sender_tag[1],
        amount_sats=bolt11_amount_sats(bolt11) if bolt11 else None,
        comment=comment,
        bolt11=bolt11,
    )
