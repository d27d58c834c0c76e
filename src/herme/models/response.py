"""Outbound event drafts and publish outcomes.

A [ResponseDraft][herme.models.response.ResponseDraft] is what the response
composer produces: kind, content and typed tags, not yet signed. The relay
gateway signs and sends it and reports a
[PublishResult][herme.models.response.PublishResult].
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ._validation import validate_kind
from .tags import Tag, tags_to_lists


@dataclass(frozen=True, slots=True)
class ResponseDraft:
    """Unsigned outbound event.

    Attributes:
        kind: Event kind to publish.
        content: Final content, hashtags already appended.
        tags: Typed tags in the order they are sent on the wire.
    """

    kind: int
    content: str
    tags: tuple[Tag, ...] = ()

    def __post_init__(self) -> None:
        validate_kind(self.kind)
        object.__setattr__(self, "tags", tuple(self.tags))

    def tag_lists(self) -> list[list[str]]:
        """Return the tags as wire arrays."""
        return tags_to_lists(self.tags)


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Per-relay acknowledgement of one published event.

    Attributes:
        event_id: Hex id of the signed event.
        accepted: Relay URLs that acknowledged the event.
        rejected: Relay URL to rejection message.
    """

    event_id: str
    accepted: frozenset[str] = frozenset()
    rejected: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def ok(self) -> bool:
        """True when at least one relay accepted the event."""
        return bool(self.accepted)
