"""
Immutable Nostr event value received from the network.

[NetworkEvent][herme.models.event.NetworkEvent] is the read-only view every
monitor works with. It is built either from a ``nostr_sdk.Event`` delivered
by the relay gateway
([from_nostr()][herme.models.event.NetworkEvent.from_nostr]) or from a
NIP-01 JSON object
([from_dict()][herme.models.event.NetworkEvent.from_dict]), for example the
zap request embedded in a zap receipt.

See Also:
    [herme.models.tags][]: Typed tag variants returned by
        [parsed_tags()][herme.models.event.NetworkEvent.parsed_tags].
    [RelayGateway][herme.utils.relays.RelayGateway]: Produces instances for
        every subscription and query.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._validation import validate_hex64, validate_kind, validate_timestamp
from .tags import Tag, parse_tag


if TYPE_CHECKING:
    from nostr_sdk import Event as NostrEvent


@dataclass(frozen=True, slots=True)
class NetworkEvent:
    """Immutable signed event as observed on a relay.

    Equality and hashing use ``id`` alone: two deliveries of the same event
    from different relays compare equal.

    Attributes:
        id: 64-character hex event id.
        author: 64-character hex public key of the author.
        kind: Integer event kind.
        created_at: Unix timestamp in seconds.
        tags: Tags as tuples of strings, in wire order.
        content: Raw event content.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``id``/``author`` are not 64 hex characters or
            ``kind``/``created_at`` are out of range.

    Examples:
        ```python
        event = NetworkEvent.from_dict({
            "id": "ab" * 32, "pubkey": "cd" * 32, "kind": 1,
            "created_at": 1700000000, "tags": [["t", "nostr"]], "content": "gm",
        })
        event.tag_values("t")   # ['nostr']
        ```
    """

    id: str
    author: str = field(compare=False)
    kind: int = field(compare=False)
    created_at: int = field(compare=False)
    tags: tuple[tuple[str, ...], ...] = field(compare=False)
    content: str = field(compare=False)

    def __post_init__(self) -> None:
        validate_hex64(self.id, "id")
        validate_hex64(self.author, "author")
        validate_kind(self.kind)
        validate_timestamp(self.created_at, "created_at")
        if not isinstance(self.content, str):
            raise TypeError(f"content must be a str, got {type(self.content).__name__}")
        if not isinstance(self.tags, tuple) or not all(
            isinstance(tag, tuple) and all(isinstance(v, str) for v in tag) for tag in self.tags
        ):
            raise TypeError("tags must be a tuple of tuples of str")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_nostr(cls, event: NostrEvent) -> NetworkEvent:
        """Build from a ``nostr_sdk.Event`` delivered by a relay."""
        return cls(
            id=event.id().to_hex(),
            author=event.author().to_hex(),
            kind=event.kind().as_u16(),
            created_at=event.created_at().as_secs(),
            tags=tuple(tuple(tag.as_vec()) for tag in event.tags().to_vec()),
            content=event.content(),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NetworkEvent:
        """Build from a NIP-01 JSON object (``pubkey`` maps to ``author``).

        Raises:
            TypeError: If a field is missing-typed or not a mapping.
            ValueError: If a required field is missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"event must be a mapping, got {type(data).__name__}")
        try:
            raw_tags = data.get("tags") or []
            if not isinstance(raw_tags, list):
                raise TypeError("tags must be a list")
            return cls(
                id=data["id"],
                author=data["pubkey"],
                kind=data["kind"],
                created_at=data["created_at"],
                tags=tuple(tuple(tag) for tag in raw_tags),
                content=data.get("content", ""),
            )
        except KeyError as e:
            raise ValueError(f"event is missing field {e}") from e

    # -------------------------------------------------------------------------
    # Tag access
    # -------------------------------------------------------------------------

    def parsed_tags(self) -> list[Tag]:
        """Return every tag as a typed variant, in wire order."""
        return [parse_tag(tag) for tag in self.tags]

    def first_tag(self, name: str) -> tuple[str, ...] | None:
        """Return the first tag named *name*, or ``None``."""
        for tag in self.tags:
            if tag and tag[0] == name:
                return tag
        return None

    def tag_values(self, name: str) -> list[str]:
        """Return the second element of every tag named *name*."""
        return [tag[1] for tag in self.tags if len(tag) > 1 and tag[0] == name]

    def __repr__(self) -> str:
        return f"NetworkEvent(id={self.id[:16]}..., kind={self.kind}, author={self.author[:16]}...)"
