"""
Unit tests for services.common.prompts module.

Tests:
- Prompt texts embed their inputs
- extract_json_object() tolerant parsing
- insert_mention() placeholder replacement
"""

import json

import pytest

from herme.services.common.prompts import (
    MENTION_PLACEHOLDER,
    candidate_reply_prompt,
    extract_json_object,
    insert_mention,
    mention_prompt,
    persona_prompt,
    reply_prompt,
    selection_prompt,
    synthesis_prompt,
    zap_thanks_prompt,
)


# ============================================================================
# Prompt Text Tests
# ============================================================================


class TestPromptTexts:
    """Prompts carry the context the model needs."""

    def test_persona(self) -> None:
        prompt = persona_prompt("Herme PhD", "You teach Bitcoin.")
        assert prompt.startswith("You are Herme PhD")
        assert "You teach Bitcoin." in prompt

    def test_reply_embeds_content(self) -> None:
        assert '"What is a UTXO?"' in reply_prompt("What is a UTXO?")

    def test_mention_embeds_content(self) -> None:
        assert '"hey @herme"' in mention_prompt("hey @herme")

    def test_zap_thanks_with_amount_and_comment(self) -> None:
        prompt = zap_thanks_prompt(21, "great thread")
        assert "a 21 sat zap" in prompt
        assert '"great thread"' in prompt
        assert MENTION_PLACEHOLDER in prompt

    def test_zap_thanks_without_amount(self) -> None:
        prompt = zap_thanks_prompt(None)
        assert "a zap" in prompt
        assert "comment" not in prompt

    def test_selection_lists_candidates(self) -> None:
        offers = [{"id": "ab" * 32, "content": "gm", "hashtag": "bitcoin"}]
        prompt = selection_prompt(offers)
        assert json.dumps(offers, indent=2) in prompt
        assert "selectedPostId" in prompt

    def test_candidate_reply_names_topic(self) -> None:
        assert "#lightning" in candidate_reply_prompt("channels?", "lightning")

    def test_synthesis_lists_posts(self) -> None:
        assert '"hashtag": "nostr"' in synthesis_prompt([{"content": "gm", "hashtag": "nostr"}])


# ============================================================================
# extract_json_object Tests
# ============================================================================


class TestExtractJsonObject:
    """Tolerant JSON answer parsing."""

    def test_plain_object(self) -> None:
        assert extract_json_object('{"selectedPostId": "x"}') == {"selectedPostId": "x"}

    def test_fenced_block(self) -> None:
        answer = 'Sure!\n```json\n{"selectedPostId": "x", "reason": "y"}\n```'
        assert extract_json_object(answer) == {"selectedPostId": "x", "reason": "y"}

    def test_embedded_in_prose(self) -> None:
        answer = 'I pick {"selectedPostId": "x"} because it is interesting.'
        assert extract_json_object(answer) == {"selectedPostId": "x"}

    @pytest.mark.parametrize("answer", ["", "no json here", "[1, 2]", "{broken", '"string"'])
    def test_unparsable(self, answer: str) -> None:
        assert extract_json_object(answer) is None


# ============================================================================
# insert_mention Tests
# ============================================================================


class TestInsertMention:
    """Mention placement in zap thank-you notes."""

    def test_replaces_first_placeholder(self) -> None:
        text = f"{MENTION_PLACEHOLDER} thanks! {MENTION_PLACEHOLDER}"
        assert insert_mention(text, "nostr:npub1x") == f"nostr:npub1x thanks! {MENTION_PLACEHOLDER}"

    def test_prefixes_when_missing(self) -> None:
        assert insert_mention("Thanks for the zap!", "nostr:npub1x") == (
            "nostr:npub1x Thanks for the zap!"
        )
