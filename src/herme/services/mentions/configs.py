"""Mentions monitor configuration models."""

from __future__ import annotations

from pydantic import Field

from herme.services.common.configs import StreamConfig


class MentionsConfig(StreamConfig):
    """Configuration for the mentions monitor.

    The subscription is an unfiltered kind-1 stream, so a look-back window
    is set by default to keep the stored backlog small.

    Attributes:
        match_name: Also answer ``@<profile name>`` mentions, not only npubs.
    """

    lookback: int | None = Field(default=3600, ge=0)
    match_name: bool = Field(default=True)
