"""Immutable subscription / query filter.

[EventFilter][herme.models.filter.EventFilter] describes which events a
monitor wants, independent of the SDK. It converts to a ``nostr_sdk.Filter``
only at the gateway boundary via
[to_nostr()][herme.models.filter.EventFilter.to_nostr].
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from nostr_sdk import Alphabet, Filter, Kind, PublicKey, SingleLetterTag, Timestamp

from ._validation import validate_kind, validate_timestamp


@dataclass(frozen=True, slots=True)
class EventFilter:
    """Immutable filter: kinds, optional authors, tag values and time window.

    Attributes:
        kinds: Event kinds to match.
        authors: Hex public keys of accepted authors (empty for any).
        tags: Single-letter tag name to accepted values,
            e.g. ``{"p": ("ab12...",)}`` or ``{"t": ("nostr",)}``.
        since: Lower time bound (Unix seconds), inclusive.
        until: Upper time bound (Unix seconds), inclusive.
        limit: Maximum number of stored events to return.

    Examples:
        ```python
        f = EventFilter(kinds=(1, 1111), tags={"p": (own_pubkey,)})
        f.with_limit(3).to_nostr()
        ```
    """

    kinds: tuple[int, ...]
    authors: tuple[str, ...] = ()
    tags: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    since: int | None = None
    until: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kinds", tuple(self.kinds))
        object.__setattr__(self, "authors", tuple(self.authors))
        for kind in self.kinds:
            validate_kind(kind)
        frozen: dict[str, tuple[str, ...]] = {}
        for name, values in self.tags.items():
            if len(name) != 1 or not name.isalpha():
                raise ValueError(f"tag filter name must be a single letter, got {name!r}")
            frozen[name] = tuple(values)
        object.__setattr__(self, "tags", MappingProxyType(frozen))
        for attr in ("since", "until", "limit"):
            value = getattr(self, attr)
            if value is not None:
                validate_timestamp(value, attr)

    def with_limit(self, limit: int) -> EventFilter:
        """Return a copy with ``limit`` replaced."""
        return dataclasses.replace(self, limit=limit)

    def with_until(self, until: int) -> EventFilter:
        """Return a copy with ``until`` replaced."""
        return dataclasses.replace(self, until=until)

    def to_nostr(self) -> Filter:
        """Convert to a ``nostr_sdk.Filter``.

        Raises:
            NostrSdkError: If an author is not a valid public key.
        """
        f = Filter()
        if self.kinds:
            f = f.kinds([Kind(k) for k in self.kinds])
        if self.authors:
            f = f.authors([PublicKey.parse(a) for a in self.authors])
        for name, values in self.tags.items():
            tag = (
                SingleLetterTag.lowercase(getattr(Alphabet, name.upper()))
                if name.islower()
                else SingleLetterTag.uppercase(getattr(Alphabet, name))
            )
            for value in values:
                f = f.custom_tag(tag, value)
        if self.since is not None:
            f = f.since(Timestamp.from_secs(self.since))
        if self.until is not None:
            f = f.until(Timestamp.from_secs(self.until))
        if self.limit is not None:
            f = f.limit(self.limit)
        return f
