"""Replies monitor configuration models.

See Also:
    [RepliesMonitor][herme.services.replies.RepliesMonitor]: The service
        class that consumes this configuration.
    [StreamConfig][herme.services.common.configs.StreamConfig]: Base class
        providing ``interval``, ``lookback``, ``limit`` and ``metrics``.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from herme.models.constants import EventKind
from herme.services.common.configs import StreamConfig


class RepliesConfig(StreamConfig):
    """Configuration for the replies monitor.

    Attributes:
        kinds: Event kinds accepted as replies (notes and NIP-22 comments).
    """

    kinds: list[int] = Field(
        default_factory=lambda: [EventKind.TEXT_NOTE, EventKind.COMMENT],
        min_length=1,
    )

    @field_validator("kinds")
    @classmethod
    def _dedupe_kinds(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(int(k) for k in v))
