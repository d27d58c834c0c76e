"""Persona and per-monitor prompt texts.

Every prompt is a plain function returning a string so monitors can be
tested against the exact text they send. The persona is configurable via
[ProfileConfig][herme.services.common.configs.ProfileConfig]; the task
prompts only describe the shape of the expected answer.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any


MENTION_PLACEHOLDER = "@user"

_PLAIN_TEXT = "Use plain text only, no formatting."
_TWEET = "Write a tweet-length (max 280 chars)"


def persona_prompt(name: str, persona: str) -> str:
    """System prompt shared by every generation call."""
    return (
        f"You are {name}, an autonomous agent on the Nostr network. {persona}\n\n"
        "Meet people at their level of understanding: simple for beginners, nuanced "
        "for experts. Stay accurate, friendly and concrete. Thank people who support "
        "you with zaps and never pretend to be a human."
    )


def profile_about_prompt() -> str:
    return (
        f"{_TWEET} profile description for yourself that explains what you teach "
        "and why people should follow you. Only return the description."
    )


def announcement_prompt() -> str:
    return (
        f"{_TWEET} insight that teaches one valuable concept in an engaging way. "
        "Make it accessible for beginners and still interesting for experts, and end "
        "with a subtle invitation to engage. Only return the post."
    )


def reply_prompt(content: str) -> str:
    return (
        f'Someone replied to you: "{content}"\n\n'
        f"{_TWEET} answer that teaches something relevant to their comment with a "
        f"clear explanation and invites further conversation. {_PLAIN_TEXT}"
    )


def mention_prompt(content: str) -> str:
    return (
        f'A post mentioned you: "{content}"\n\n'
        f"{_TWEET} answer that addresses the mention directly and teaches something "
        f"related to the post. {_PLAIN_TEXT}"
    )


def zap_thanks_prompt(amount_sats: int | None, comment: str = "") -> str:
    amount = f"a {amount_sats} sat zap" if amount_sats else "a zap"
    note = f' with the comment "{comment}"' if comment else ""
    return (
        f"Someone just sent you {amount}{note} to support your work.\n\n"
        f'{_TWEET} thank-you note that starts with "{MENTION_PLACEHOLDER}", thanks '
        f"them sincerely and teaches one concept they might not know. {_PLAIN_TEXT}"
    )


def selection_prompt(candidates: Sequence[dict[str, Any]]) -> str:
    """Ask the model to pick the candidate post with the best teaching opportunity."""
    return (
        "Here are recent posts from the network:\n"
        f"{json.dumps(list(candidates), indent=2)}\n\n"
        "Select the single post that offers the best opportunity to teach something "
        "valuable. Respond with ONLY a JSON object of the form\n"
        '{"selectedPostId": "<id>", "reason": "<why this post>"}\n'
        "and nothing else."
    )


def candidate_reply_prompt(content: str, topic: str) -> str:
    return (
        f'You are replying to this post tagged #{topic}: "{content}"\n\n'
        f"{_TWEET} answer that shows you understand their perspective and explains "
        f"one related concept clearly. {_PLAIN_TEXT}"
    )


def synthesis_prompt(posts: Sequence[dict[str, Any]]) -> str:
    return (
        "Below are recent posts from the network:\n"
        f"{json.dumps(list(posts), indent=2)}\n\n"
        "Based on these discussions, write a NEW tweet-length (max 280 chars) post that "
        "teaches a fundamental concept related to the trending topics. Write in your "
        f"own voice and do not quote or reference the original posts. {_PLAIN_TEXT}"
    )


# =============================================================================
# Answer parsing
# =============================================================================

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_BRACED_SPAN = re.compile(r"\{.*?\}", re.DOTALL)


def extract_json_object(answer: str) -> dict[str, Any] | None:
    """Extract a JSON object from a model answer.

    Tries, in order: the whole answer, the first fenced code block, then
    every ``{...}`` span. Returns ``None`` when nothing parses to an object.
    """
    attempts = [answer.strip()]
    fenced = _FENCED_BLOCK.search(answer)
    if fenced:
        attempts.append(fenced.group(1).strip())
    attempts.extend(m.group(0) for m in _BRACED_SPAN.finditer(answer))

    for text in attempts:
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def insert_mention(text: str, mention: str) -> str:
    """Replace the first placeholder with *mention*, or prefix it when absent."""
    if MENTION_PLACEHOLDER in text:
        return text.replace(MENTION_PLACEHOLDER, mention, 1)
    return f"{mention} {text}"
