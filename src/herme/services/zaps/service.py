"""Zaps monitor.

Subscribes to kind-9735 zap receipts that ``p``-tag the agent. The payer is
read from the receipt's uppercase ``P`` tag; receipts without one are
ignored, as are zaps the agent sent itself. Each remaining receipt is
answered with a top-level kind-1 note that ``p``-tags the sender and
mentions them inline as ``nostr:npub...``.

See Also:
    [parse_zap_receipt][herme.nips.nip57.parse_zap_receipt]: Receipt decoding.
    [build_zap_thanks][herme.nips.event_builders.build_zap_thanks]: Note layout.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from nostr_sdk import NostrSdkError, PublicKey

from herme.core.exceptions import ProtocolError
from herme.models.constants import EventKind, ServiceName
from herme.models.filter import EventFilter
from herme.nips.event_builders import build_zap_thanks
from herme.nips.nip57 import parse_zap_receipt
from herme.services.common.monitor import StreamMonitor
from herme.services.common.prompts import insert_mention, zap_thanks_prompt

from .configs import ZapsConfig


if TYPE_CHECKING:
    from herme.models.event import NetworkEvent
    from herme.models.response import ResponseDraft


def npub_mention(pubkey: str) -> str:
    """Return the ``nostr:npub...`` inline mention of a hex public key.

    Raises:
        ProtocolError: If *pubkey* is not a valid public key.
    """
    try:
        return "nostr:" + PublicKey.parse(pubkey).to_bech32()
    except NostrSdkError as e:
        raise ProtocolError(f"invalid sender pubkey {pubkey!r}: {e}") from e


class ZapsMonitor(StreamMonitor[ZapsConfig]):
    """Publishes a thank-you note for every zap receipt."""

    SERVICE_NAME: ClassVar[str] = ServiceName.ZAPS
    CONFIG_CLASS: ClassVar[type[ZapsConfig]] = ZapsConfig

    def build_filter(self) -> EventFilter:
        return EventFilter(
            kinds=(EventKind.ZAP_RECEIPT,),
            tags={"p": (self.own_pubkey,)},
            since=self._config.since(),
            limit=self._config.limit,
        )

    def is_eligible(self, event: NetworkEvent) -> bool:
        receipt = parse_zap_receipt(event)
        if receipt is None:
            self._logger.debug("zap_without_sender", event_id=event.id)
            return False
        return receipt.sender != self.own_pubkey

    async def respond(self, event: NetworkEvent) -> ResponseDraft | None:
        receipt = parse_zap_receipt(event)
        if receipt is None:
            return None

        self._logger.info(
            "zap_received",
            event_id=event.id,
            sender=receipt.sender,
            amount_sats=receipt.amount_sats,
        )
        prompt = zap_thanks_prompt(
            receipt.amount_sats if self._config.include_amount else None,
            receipt.comment if self._config.include_comment else "",
        )
        text = await self.generate(prompt)
        return build_zap_thanks(
            receipt.sender,
            insert_mention(text, npub_mention(receipt.sender)),
            topics=self.pick_topics(),
        )
