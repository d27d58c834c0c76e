"""Shared configuration models for Herme services.

Sections embedded in [AgentConfig][herme.services.agent.AgentConfig] and
handed to the monitors. Every field has a default, so a YAML file only
needs to override what differs.

Examples:
    ```yaml
    timeouts:
      query: 10
      inference: 90
    topics:
      vocabulary: [bitcoin, nostr, lightning]
      per_post: 2
    ```
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field, field_validator

from herme.core.base_service import BaseServiceConfig


DEFAULT_TOPICS: tuple[str, ...] = (
    "bitcoin",
    "nostr",
    "lightning",
    "ai",
    "privacy",
    "btc",
    "sats",
    "zap",
    "p2p",
    "decentralized",
    "cryptography",
    "opensource",
    "freedom",
    "education",
    "tech",
)


class TimeoutsConfig(BaseModel):
    """Upper bounds in seconds for every suspension point."""

    query: float = Field(default=10.0, ge=0.1, le=300.0, description="One-shot relay queries")
    profile: float = Field(default=5.0, ge=0.1, le=60.0, description="Profile lookup")
    publish: float = Field(default=15.0, ge=0.1, le=300.0, description="Event publishing")
    inference: float = Field(default=90.0, ge=1.0, le=600.0, description="One chat completion")
    settle: float = Field(default=60.0, ge=1.0, le=600.0, description="One invoice payment")
    shutdown: float = Field(default=10.0, ge=0.1, le=120.0, description="Monitor stop grace")
    backlog: float = Field(
        default=300.0, ge=1.0, le=3600.0, description="Stream backlog processing in --once mode"
    )
    stream_idle: float = Field(
        default=900.0, ge=1.0, le=86400.0, description="Silence before a subscription is re-opened"
    )


class ProfileConfig(BaseModel):
    """Identity published as kind 0 when the agent has no profile yet."""

    name: str = Field(default="Herme PhD", min_length=1)
    picture: str | None = None
    lud16: str | None = None
    website: str | None = None
    persona: str = Field(
        default=(
            "You are a passionate Bitcoin educator who breaks complex concepts down "
            "into clear explanations and earns zaps by providing real value."
        ),
        description="Persona appended to the system prompt",
    )


class TopicsConfig(BaseModel):
    """Hashtag vocabulary used for scans and appended to posts."""

    vocabulary: list[str] = Field(default_factory=lambda: list(DEFAULT_TOPICS), min_length=1)
    per_post: int = Field(default=2, ge=0, le=10, description="Hashtags appended per post")

    @field_validator("vocabulary")
    @classmethod
    def _normalize(cls, value: list[str]) -> list[str]:
        topics: list[str] = []
        for raw in value:
            topic = raw.strip().lstrip("#").lower()
            if topic and topic not in topics:
                topics.append(topic)
        if not topics:
            raise ValueError("vocabulary must contain at least one topic")
        return topics


class AnnounceConfig(BaseModel):
    """Startup note published once the agent is initialized."""

    enabled: bool = Field(default=True, description="Publish a note at startup")


class StreamConfig(BaseServiceConfig):
    """Base for subscription monitors.

    ``interval`` is the delay before a failed or ended subscription is
    re-opened.

    Attributes:
        lookback: Only request stored events newer than this many seconds
            (``None`` requests the whole backlog, deduplicated locally).
        limit: Maximum number of stored events requested per session.
    """

    interval: float = Field(default=10.0, ge=0.1, description="Reconnect delay in seconds")
    lookback: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=100, ge=0)

    def since(self, now: int | None = None) -> int | None:
        """Lower time bound of the subscription, or ``None`` without a look-back."""
        if self.lookback is None:
            return None
        now = int(time.time()) if now is None else now
        return max(0, now - self.lookback)
