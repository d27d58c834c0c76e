"""
Unit tests for services.replies module.

Tests:
- RepliesConfig defaults and kind de-duplication
- RepliesMonitor.build_filter() subscription shape
- is_eligible() via p tags and e-tag author slots
- End-to-end reply in a thread, kind mirroring
- Self-loop prevention and dedup across a restart
"""

import asyncio

import pytest

from herme.models.constants import EventKind
from herme.models.tags import AuthorRef, EventRef, TopicTag
from herme.services.common.monitor import MonitorContext
from herme.services.replies import RepliesConfig, RepliesMonitor
from herme.utils.relays import CAUGHT_UP


@pytest.fixture
def monitor(context: MonitorContext) -> RepliesMonitor:
    return RepliesMonitor(context=context)


# ============================================================================
# Config Tests
# ============================================================================


class TestRepliesConfig:
    """RepliesConfig defaults."""

    def test_defaults(self) -> None:
        config = RepliesConfig()
        assert config.kinds == [EventKind.TEXT_NOTE, EventKind.COMMENT]
        assert config.lookback is None
        assert config.interval == 10.0

    def test_kinds_deduplicated(self) -> None:
        assert RepliesConfig(kinds=[1, 1111, 1]).kinds == [1, 1111]

    def test_empty_kinds_rejected(self) -> None:
        with pytest.raises(ValueError):
            RepliesConfig(kinds=[])


# ============================================================================
# Filter and Eligibility Tests
# ============================================================================


class TestFilter:
    """Subscription filter."""

    def test_tags_own_pubkey(self, monitor: RepliesMonitor, own_pubkey: str) -> None:
        event_filter = monitor.build_filter()
        assert event_filter.kinds == (1, 1111)
        assert event_filter.tags == {"p": (own_pubkey,)}
        assert event_filter.since is None
        assert event_filter.limit == 100

    def test_lookback_sets_since(self, context: MonitorContext) -> None:
        monitor = RepliesMonitor(RepliesConfig(lookback=60), context=context)
        assert monitor.build_filter().since is not None


class TestEligibility:
    """is_eligible()."""

    def test_p_tag(self, monitor: RepliesMonitor, own_pubkey: str, make_event) -> None:
        assert monitor.is_eligible(make_event("r", tags=[["p", own_pubkey]]))

    def test_e_tag_author_slot(
        self, monitor: RepliesMonitor, own_pubkey: str, make_event, hex_id
    ) -> None:
        event = make_event("r", tags=[["e", hex_id("root"), "", "root", own_pubkey]])
        assert monitor.is_eligible(event)

    def test_unrelated(self, monitor: RepliesMonitor, other_pubkey: str, make_event) -> None:
        assert not monitor.is_eligible(make_event("r", tags=[["p", other_pubkey]]))


# ============================================================================
# Response Tests
# ============================================================================


class TestRespond:
    """Threaded replies."""

    async def test_reply_in_thread(
        self,
        monitor: RepliesMonitor,
        gateway,
        inference,
        own_pubkey: str,
        other_pubkey: str,
        make_event,
        hex_id,
    ) -> None:
        third = hex_id("third-party")
        trigger = make_event(
            "reply",
            author=other_pubkey,
            tags=[
                ["e", hex_id("root"), "", "root"],
                ["p", own_pubkey],
                ["p", third],
            ],
            content="What is a UTXO?",
        )

        assert await monitor.handle_event(trigger) is True

        draft = gateway.published[0]
        assert draft.kind == EventKind.TEXT_NOTE
        assert draft.content.startswith("Bitcoin fixes this.\n\n#")
        assert draft.tags[:4] == (
            EventRef(hex_id("root"), "", "root"),
            EventRef(trigger.id, "", "reply"),
            AuthorRef(other_pubkey),
            AuthorRef(third),
        )
        assert AuthorRef(own_pubkey) not in draft.tags
        topic_tags = [t for t in draft.tags if isinstance(t, TopicTag)]
        assert len(topic_tags) == 2
        assert '"What is a UTXO?"' in inference.prompts[0]

    async def test_comment_answered_with_comment(
        self, monitor: RepliesMonitor, gateway, own_pubkey: str, make_event
    ) -> None:
        trigger = make_event("comment", kind=EventKind.COMMENT, tags=[["p", own_pubkey]])
        await monitor.handle_event(trigger)
        assert gateway.published[0].kind == EventKind.COMMENT

    async def test_own_reply_ignored(
        self, monitor: RepliesMonitor, gateway, own_pubkey: str, make_event
    ) -> None:
        mine = make_event("mine", author=own_pubkey, tags=[["p", own_pubkey]])
        assert await monitor.handle_event(mine) is False
        assert gateway.published == []


# ============================================================================
# Session Tests
# ============================================================================


class TestSession:
    """Backlog processing and restart."""

    async def test_no_double_answer_after_restart(
        self, context: MonitorContext, gateway, own_pubkey: str, make_event
    ) -> None:
        trigger = make_event("persisted", tags=[["p", own_pubkey]])
        gateway.script = [trigger, CAUGHT_UP]

        first = RepliesMonitor(context=context)
        async with first:
            await asyncio.wait_for(first.run_backlog(), timeout=1.0)

        restarted = RepliesMonitor(context=context)
        async with restarted:
            await asyncio.wait_for(restarted.run_backlog(), timeout=1.0)

        assert len(gateway.published) == 1

    async def test_duplicate_delivery_answered_once(
        self, monitor: RepliesMonitor, gateway, own_pubkey: str, make_event
    ) -> None:
        trigger = make_event("dup", tags=[["p", own_pubkey]])
        gateway.script = [trigger, trigger, CAUGHT_UP]

        async with monitor:
            await asyncio.wait_for(monitor.run_backlog(), timeout=1.0)

        assert len(gateway.published) == 1
