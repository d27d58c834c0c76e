"""
Unit tests for nips.event_builders module.

Tests:
- Topic normalization and hashtag suffix
- thread_tags(): root propagation, no-root fallback, participant handling
- build_reply(), build_note(), build_zap_thanks(), build_profile()
"""

from __future__ import annotations

import json
from collections.abc import Callable

from herme.models.event import NetworkEvent
from herme.nips.event_builders import (
    append_topics,
    build_note,
    build_profile,
    build_reply,
    build_zap_thanks,
    normalize_topics,
    thread_tags,
)


ROOT = "11" * 32
A0 = "a0" * 32
A1 = "a1" * 32
S1 = "51" * 32
OWN = "00" * 32


class TestTopics:
    """Tests for normalize_topics() and append_topics()."""

    def test_normalize_strips_hash_and_dedups(self) -> None:
        assert normalize_topics(["#bitcoin", "Bitcoin", " nostr ", "", "#"]) == [
            "bitcoin",
            "nostr",
        ]

    def test_append_topics(self) -> None:
        assert append_topics("gm", ["bitcoin", "nostr"]) == "gm\n\n#bitcoin #nostr"

    def test_append_no_topics_unchanged(self) -> None:
        assert append_topics("gm", []) == "gm"


class TestThreadTags:
    """Tests for thread_tags()."""

    def test_reply_scenario(self, make_event: Callable[..., NetworkEvent]) -> None:
        trigger = make_event("c1", author=A1, tags=[["e", ROOT, "", "root"], ["p", A0]])
        draft = build_reply(trigger, "Great question.", own_pubkey=OWN, topics=["bitcoin"])

        assert draft.tag_lists() == [
            ["e", ROOT, "", "root"],
            ["e", trigger.id, "", "reply"],
            ["p", A1],
            ["p", A0],
            ["t", "bitcoin"],
        ]
        assert draft.content == "Great question.\n\n#bitcoin"
        assert draft.kind == trigger.kind

    def test_no_root_fallback(self, make_event: Callable[..., NetworkEvent]) -> None:
        trigger = make_event("c1", author=A1)
        lists = [t.to_list() for t in thread_tags(trigger, OWN)]
        assert lists == [["e", trigger.id, "", "root"], ["p", A1]]

    def test_root_pointing_at_trigger_is_ignored(
        self, make_event: Callable[..., NetworkEvent], hex_id: Callable[[str], str]
    ) -> None:
        trigger = make_event("self-root", author=A1, tags=[["e", hex_id("self-root"), "", "root"]])
        lists = [t.to_list() for t in thread_tags(trigger, OWN)]
        assert lists[0] == ["e", trigger.id, "", "root"]
        assert len([t for t in lists if t[0] == "e"]) == 1

    def test_root_relay_hint_kept(self, make_event: Callable[..., NetworkEvent]) -> None:
        trigger = make_event("c1", author=A1, tags=[["e", ROOT, "wss://hint", "root"]])
        assert thread_tags(trigger, OWN)[0].to_list() == ["e", ROOT, "wss://hint", "root"]

    def test_unmarked_e_tags_are_not_roots(self, make_event: Callable[..., NetworkEvent]) -> None:
        trigger = make_event("c1", author=A1, tags=[["e", ROOT]])
        assert thread_tags(trigger, OWN)[0].to_list() == ["e", trigger.id, "", "root"]

    def test_own_key_and_author_not_repeated(
        self, make_event: Callable[..., NetworkEvent]
    ) -> None:
        trigger = make_event("c1", author=A1, tags=[["p", OWN], ["p", A1], ["p", A0], ["p", A0]])
        p_tags = [t.to_list() for t in thread_tags(trigger, OWN) if t.to_list()[0] == "p"]
        assert p_tags == [["p", A1], ["p", A0]]

    def test_explicit_kind(self, make_event: Callable[..., NetworkEvent]) -> None:
        trigger = make_event("c1", author=A1, kind=1111)
        assert build_reply(trigger, "x", own_pubkey=OWN).kind == 1111
        assert build_reply(trigger, "x", own_pubkey=OWN, kind=1).kind == 1


class TestNotes:
    """Tests for build_note() and build_zap_thanks()."""

    def test_zap_thanks(self) -> None:
        draft = build_zap_thanks(S1, "nostr:npub1xyz thank you!", topics=["zap"])
        assert draft.kind == 1
        assert draft.tag_lists() == [["p", S1], ["t", "zap"]]
        assert draft.content == "nostr:npub1xyz thank you!\n\n#zap"

    def test_note_mentions_dedup_no_e_tags(self) -> None:
        draft = build_note("Lesson", topics=["#ai"], mentions=[A0, A1, A0])
        assert draft.tag_lists() == [["p", A0], ["p", A1], ["t", "ai"]]
        assert not [t for t in draft.tag_lists() if t[0] == "e"]

    def test_plain_note(self) -> None:
        draft = build_note("Hello")
        assert draft.content == "Hello"
        assert draft.tags == ()


class TestProfile:
    """Tests for build_profile()."""

    def test_profile_fields(self) -> None:
        draft = build_profile(
            name="Herme PhD",
            about="Teaching Bitcoin",
            picture="https://example.com/p.png",
            lud16="herme@example.com",
        )
        assert draft.kind == 0
        assert json.loads(draft.content) == {
            "name": "Herme PhD",
            "display_name": "Herme PhD",
            "about": "Teaching Bitcoin",
            "picture": "https://example.com/p.png",
            "lud16": "herme@example.com",
        }

    def test_empty_fields_omitted(self) -> None:
        assert json.loads(build_profile(name="Herme").content) == {
            "name": "Herme",
            "display_name": "Herme",
        }
