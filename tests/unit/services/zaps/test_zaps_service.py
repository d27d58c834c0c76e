"""
Unit tests for services.zaps module.

Tests:
- npub_mention() encoding and invalid keys
- ZapsMonitor.build_filter() subscription shape
- is_eligible(): sender required, self-zaps ignored
- Thank-you note layout and prompt contents
- Duplicate receipt delivery answered once
"""

import asyncio
import json

import pytest
from nostr_sdk import PublicKey

from herme.core.exceptions import ProtocolError
from herme.models.constants import EventKind
from herme.models.tags import AuthorRef, EventRef, TopicTag
from herme.services.common.monitor import MonitorContext
from herme.services.zaps import ZapsConfig, ZapsMonitor
from herme.services.zaps.service import npub_mention
from herme.utils.relays import CAUGHT_UP


BOLT11_21_SATS = "lnbc210n1pvjluezpp5qqqsyqcyq5rqwzqf"


@pytest.fixture
def monitor(context: MonitorContext) -> ZapsMonitor:
    return ZapsMonitor(context=context)


@pytest.fixture
def make_receipt(make_event, own_pubkey: str):
    """Factory for kind-9735 receipts paying the agent."""

    def _make(label: str, sender: str | None, *, comment: str = "great thread"):
        tags = [["p", own_pubkey], ["bolt11", BOLT11_21_SATS]]
        if sender is not None:
            tags.append(["P", sender])
            tags.append(["description", json.dumps({"pubkey": sender, "content": comment})])
        return make_event(label, kind=EventKind.ZAP_RECEIPT, tags=tags, content="")

    return _make


# ============================================================================
# npub_mention Tests
# ============================================================================


class TestNpubMention:
    """npub_mention()."""

    def test_encodes_bech32(self, other_pubkey: str) -> None:
        mention = npub_mention(other_pubkey)
        assert mention == "nostr:" + PublicKey.parse(other_pubkey).to_bech32()
        assert mention.startswith("nostr:npub1")

    def test_invalid_key(self) -> None:
        with pytest.raises(ProtocolError):
            npub_mention("not-a-key")


# ============================================================================
# Filter and Eligibility Tests
# ============================================================================


class TestFilter:
    """Subscription filter."""

    def test_receipts_tagging_agent(self, monitor: ZapsMonitor, own_pubkey: str) -> None:
        event_filter = monitor.build_filter()
        assert event_filter.kinds == (EventKind.ZAP_RECEIPT,)
        assert event_filter.tags == {"p": (own_pubkey,)}

    def test_config_defaults(self) -> None:
        config = ZapsConfig()
        assert config.include_amount
        assert config.include_comment


class TestEligibility:
    """is_eligible()."""

    def test_with_sender(self, monitor: ZapsMonitor, other_pubkey: str, make_receipt) -> None:
        assert monitor.is_eligible(make_receipt("z", other_pubkey))

    def test_without_sender(self, monitor: ZapsMonitor, make_receipt) -> None:
        assert not monitor.is_eligible(make_receipt("z", None))

    def test_self_zap(self, monitor: ZapsMonitor, own_pubkey: str, make_receipt) -> None:
        assert not monitor.is_eligible(make_receipt("z", own_pubkey))


# ============================================================================
# Response Tests
# ============================================================================


class TestRespond:
    """Thank-you notes."""

    async def test_thank_you_note(
        self,
        monitor: ZapsMonitor,
        gateway,
        inference,
        other_pubkey: str,
        make_receipt,
    ) -> None:
        inference.default = "@user thank you for the zap! Did you know sats are 1e-8 BTC?"
        receipt = make_receipt("zap1", other_pubkey)

        assert await monitor.handle_event(receipt) is True

        draft = gateway.published[0]
        assert draft.kind == EventKind.TEXT_NOTE
        assert draft.tags[0] == AuthorRef(other_pubkey)
        assert not any(isinstance(t, EventRef) for t in draft.tags)
        assert len([t for t in draft.tags if isinstance(t, TopicTag)]) == 2
        assert draft.content.startswith(npub_mention(other_pubkey) + " thank you")
        assert "a 21 sat zap" in inference.prompts[0]
        assert '"great thread"' in inference.prompts[0]

    async def test_mention_prefixed_without_placeholder(
        self, monitor: ZapsMonitor, gateway, inference, other_pubkey: str, make_receipt
    ) -> None:
        inference.default = "Thanks for the support!"
        await monitor.handle_event(make_receipt("zap2", other_pubkey))
        assert gateway.published[0].content.startswith(
            npub_mention(other_pubkey) + " Thanks for the support!"
        )

    async def test_amount_and_comment_can_be_omitted(
        self, context: MonitorContext, inference, other_pubkey: str, make_receipt
    ) -> None:
        monitor = ZapsMonitor(
            ZapsConfig(include_amount=False, include_comment=False), context=context
        )
        await monitor.handle_event(make_receipt("zap3", other_pubkey))
        assert "a zap" in inference.prompts[0]
        assert "great thread" not in inference.prompts[0]

    async def test_duplicate_receipt_answered_once(
        self, monitor: ZapsMonitor, gateway, other_pubkey: str, make_receipt
    ) -> None:
        receipt = make_receipt("zap-dup", other_pubkey)
        gateway.script = [receipt, CAUGHT_UP]

        async with monitor:
            await asyncio.wait_for(monitor.run_backlog(), timeout=1.0)
        assert await monitor.handle_event(receipt) is False

        assert len(gateway.published) == 1
        assert gateway.published[0].tag_lists()[0] == ["p", other_pubkey]
