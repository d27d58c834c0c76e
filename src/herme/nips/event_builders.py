"""Nostr event builders for every event the agent publishes.

Standalone functions that turn generated text into
[ResponseDraft][herme.models.response.ResponseDraft] values with
protocol-correct tags. Threaded replies follow NIP-10 marked ``e`` tags:

1. If the trigger carries an ``e`` tag marked ``root`` pointing at another
   event, that root is propagated with its relay hint.
2. The trigger itself is referenced with marker ``reply``, or with marker
   ``root`` when rule 1 did not apply.
3. The trigger author is ``p``-tagged, followed by every other participant
   the trigger ``p``-tagged, excluding the agent and without duplicates.
4. Topics are appended as ``t`` tags and as ``#hashtags`` in the content.

See Also:
    [herme.models.tags][]: Tag variants used here.
    [RelayGateway.publish()][herme.utils.relays.RelayGateway.publish]:
        Signs and sends the drafts.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence

from herme.models.constants import EventKind
from herme.models.event import NetworkEvent
from herme.models.response import ResponseDraft
from herme.models.tags import AuthorRef, EventMarker, EventRef, Tag, TopicTag


# =============================================================================
# Topics
# =============================================================================


def normalize_topics(topics: Iterable[str]) -> list[str]:
    """Strip ``#`` prefixes and drop empty or repeated topics, keeping order."""
    seen: set[str] = set()
    result: list[str] = []
    for topic in topics:
        value = topic.strip().lstrip("#")
        if value and value.lower() not in seen:
            seen.add(value.lower())
            result.append(value)
    return result


def append_topics(text: str, topics: Sequence[str]) -> str:
    """Return *text* followed by a blank line and the topics as hashtags."""
    if not topics:
        return text
    return text + "\n\n" + " ".join(f"#{t}" for t in topics)


def _topic_tags(topics: Sequence[str]) -> list[Tag]:
    return [TopicTag(t) for t in topics]


# =============================================================================
# Threaded replies (NIP-10)
# =============================================================================


def thread_tags(trigger: NetworkEvent, own_pubkey: str) -> list[Tag]:
    """Build the ``e``/``p`` tags of a reply to *trigger*.

    Examples:
        With ``trigger.tags == [["e", ROOT, "", "root"], ["p", A0]]``:

        ```python
        [EventRef(ROOT, "", "root"), EventRef(trigger.id, "", "reply"),
         AuthorRef(trigger.author), AuthorRef(A0)]
        ```
    """
    parsed = trigger.parsed_tags()
    root = next(
        (
            t
            for t in parsed
            if isinstance(t, EventRef) and t.marker == EventMarker.ROOT and t.event_id != trigger.id
        ),
        None,
    )

    tags: list[Tag] = []
    if root is not None:
        tags.append(EventRef(root.event_id, root.relay_hint, EventMarker.ROOT))
        tags.append(EventRef(trigger.id, "", EventMarker.REPLY))
    else:
        tags.append(EventRef(trigger.id, "", EventMarker.ROOT))

    tags.append(AuthorRef(trigger.author))
    seen = {own_pubkey, trigger.author}
    for tag in parsed:
        if isinstance(tag, AuthorRef) and tag.pubkey not in seen:
            seen.add(tag.pubkey)
            tags.append(AuthorRef(tag.pubkey))
    return tags


def build_reply(
    trigger: NetworkEvent,
    text: str,
    *,
    own_pubkey: str,
    topics: Sequence[str] = (),
    kind: int | None = None,
) -> ResponseDraft:
    """Build a threaded reply to *trigger*.

    Args:
        trigger: The event being answered.
        text: Generated reply text.
        own_pubkey: The agent's hex public key, never ``p``-tagged.
        topics: Hashtags appended to content and tags.
        kind: Output kind; defaults to the trigger's kind.
    """
    topics = normalize_topics(topics)
    return ResponseDraft(
        kind=trigger.kind if kind is None else kind,
        content=append_topics(text, topics),
        tags=(*thread_tags(trigger, own_pubkey), *_topic_tags(topics)),
    )


# =============================================================================
# Top-level notes
# =============================================================================


def build_note(
    text: str,
    *,
    topics: Sequence[str] = (),
    mentions: Iterable[str] = (),
) -> ResponseDraft:
    """Build a kind-1 top-level note ``p``-tagging *mentions* (no ``e`` tags)."""
    topics = normalize_topics(topics)
    tags: list[Tag] = []
    seen: set[str] = set()
    for pubkey in mentions:
        if pubkey not in seen:
            seen.add(pubkey)
            tags.append(AuthorRef(pubkey))
    tags.extend(_topic_tags(topics))
    return ResponseDraft(
        kind=EventKind.TEXT_NOTE,
        content=append_topics(text, topics),
        tags=tuple(tags),
    )


def build_zap_thanks(sender: str, text: str, *, topics: Sequence[str] = ()) -> ResponseDraft:
    """Build the kind-1 thank-you note for a zap: ``["p", sender]`` plus topics."""
    return build_note(text, topics=topics, mentions=[sender])


# =============================================================================
# Kind 0 (NIP-01)
# =============================================================================


def build_profile(
    *,
    name: str | None = None,
    about: str | None = None,
    picture: str | None = None,
    lud16: str | None = None,
    website: str | None = None,
) -> ResponseDraft:
    """Build a Kind 0 profile metadata draft per NIP-01."""
    profile_data: dict[str, str] = {}
    if name:
        profile_data["name"] = name
        profile_data["display_name"] = name
    if about:
        profile_data["about"] = about
    if picture:
        profile_data["picture"] = picture
    if lud16:
        profile_data["lud16"] = lud16
    if website:
        profile_data["website"] = website
    return ResponseDraft(kind=EventKind.SET_METADATA, content=json.dumps(profile_data))
