"""Typed Nostr tag variants.

Tags travel on the wire as arrays of strings whose meaning depends on the
first element. This module parses the three tag names the agent reasons
about into named-field variants and keeps everything else as
[RawTag][herme.models.tags.RawTag] so no information is lost.

```text
["e", <event-id>, <relay-hint>, <marker>, <author>]  -> EventRef
["p", <pubkey>, <relay-hint>]                        -> AuthorRef
["t", <topic>]                                       -> TopicTag
anything else (including malformed e/p/t)            -> RawTag
```

See Also:
    [NetworkEvent.parsed_tags()][herme.models.event.NetworkEvent.parsed_tags]:
        Parses every tag of an event with [parse_tag()][herme.models.tags.parse_tag].
    [herme.nips.event_builders][]: Builds outbound tag lists from these variants.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class EventMarker(StrEnum):
    """NIP-10 markers carried in the fourth slot of ``e`` tags."""

    ROOT = "root"
    REPLY = "reply"
    MENTION = "mention"


@dataclass(frozen=True, slots=True)
class EventRef:
    """Reference to another event (``e`` tag).

    Attributes:
        event_id: Hex id of the referenced event.
        relay_hint: Relay URL where the event can be found, or ``""``.
        marker: NIP-10 marker (``root``, ``reply``, ``mention``) or ``""``.
        author: Hex pubkey of the referenced event's author, or ``""``.
    """

    event_id: str
    relay_hint: str = ""
    marker: str = ""
    author: str = ""

    def to_list(self) -> list[str]:
        values = ["e", self.event_id, self.relay_hint, self.marker, self.author]
        # trailing empty slots are dropped, inner ones are kept positional
        while len(values) > 2 and not values[-1]:
            values.pop()
        return values


@dataclass(frozen=True, slots=True)
class AuthorRef:
    """Reference to a participant (``p`` tag)."""

    pubkey: str
    relay_hint: str = ""

    def to_list(self) -> list[str]:
        if self.relay_hint:
            return ["p", self.pubkey, self.relay_hint]
        return ["p", self.pubkey]


@dataclass(frozen=True, slots=True)
class TopicTag:
    """Hashtag (``t`` tag); ``value`` is stored without the leading ``#``."""

    value: str

    def to_list(self) -> list[str]:
        return ["t", self.value]


@dataclass(frozen=True, slots=True)
class RawTag:
    """Any tag the agent does not interpret, kept verbatim."""

    values: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.values[0] if self.values else ""

    def to_list(self) -> list[str]:
        return list(self.values)


Tag = EventRef | AuthorRef | TopicTag | RawTag


def parse_tag(values: Sequence[str]) -> Tag:
    """Parse one wire tag into its typed variant.

    Tags whose identifying slot is missing or empty fall back to
    [RawTag][herme.models.tags.RawTag] rather than raising, since relays
    routinely deliver malformed tags from third-party clients.

    Args:
        values: The tag as delivered on the wire.

    Returns:
        The parsed [Tag][herme.models.tags.Tag] variant.

    Examples:
        ```python
        parse_tag(["e", "ab" * 32, "", "root"])
        # EventRef(event_id='abab...', relay_hint='', marker='root', author='')
        parse_tag(["t", "nostr"])   # TopicTag(value='nostr')
        parse_tag(["client", "x"])  # RawTag(values=('client', 'x'))
        ```
    """
    if len(values) >= 2 and values[1]:
        name = values[0]
        if name == "e":
            return EventRef(
                event_id=values[1],
                relay_hint=values[2] if len(values) > 2 else "",
                marker=values[3] if len(values) > 3 else "",
                author=values[4] if len(values) > 4 else "",
            )
        if name == "p":
            return AuthorRef(
                pubkey=values[1],
                relay_hint=values[2] if len(values) > 2 else "",
            )
        if name == "t":
            return TopicTag(value=values[1])
    return RawTag(values=tuple(values))


def tags_to_lists(tags: Sequence[Tag]) -> list[list[str]]:
    """Serialize typed tags in order."""
    return [tag.to_list() for tag in tags]
