"""Agent configuration models.

[AgentConfig][herme.services.agent.configs.AgentConfig] is the root of the
YAML file: shared sections (identity, relays, timeouts, backends, profile,
topics) plus one section per monitor.

See Also:
    [Agent][herme.services.agent.Agent]: The orchestrator that consumes this
        configuration.

Examples:
    ```yaml
    relays:
      - wss://relay.damus.io
      - wss://relay.snort.social
    data_dir: data
    inference:
      base_url: https://api.openai.com/v1
      model: gpt-4o
    hashtags:
      interval: 45
    ```
"""

from __future__ import annotations

from pathlib import Path

from nostr_sdk import NostrSdkError, RelayUrl
from pydantic import BaseModel, Field, field_validator

from herme.core.metrics import MetricsConfig
from herme.services.common.configs import (
    AnnounceConfig,
    ProfileConfig,
    TimeoutsConfig,
    TopicsConfig,
)
from herme.services.hashtags.configs import HashtagsConfig
from herme.services.mentions.configs import MentionsConfig
from herme.services.replies.configs import RepliesConfig
from herme.services.zaps.configs import ZapsConfig
from herme.utils.inference import InferenceConfig
from herme.utils.keys import KeysConfig
from herme.utils.wallet import WalletConfig


DEFAULT_RELAYS: tuple[str, ...] = ("wss://relay.damus.io", "wss://relay.snort.social")


class AgentConfig(BaseModel):
    """Root configuration of the agent.

    Attributes:
        relays: Relay URLs shared by every monitor.
        data_dir: Directory holding the key file and the dedup files.
        keys: Identity source.
        timeouts: Upper bounds of every suspension point.
        inference: Chat-completion backend.
        wallet: Invoice settlement backend.
        profile: Identity published when the agent has no profile yet.
        topics: Hashtag vocabulary.
        announce: Startup note.
        metrics: Prometheus endpoint, shared by every monitor.
        replies: Replies monitor.
        zaps: Zaps monitor.
        mentions: Mentions monitor.
        hashtags: Hashtags monitor.
    """

    relays: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS), min_length=1)
    data_dir: Path = Field(default=Path("data"))
    keys: KeysConfig = Field(default_factory=KeysConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    topics: TopicsConfig = Field(default_factory=TopicsConfig)
    announce: AnnounceConfig = Field(default_factory=AnnounceConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    replies: RepliesConfig = Field(default_factory=RepliesConfig)
    zaps: ZapsConfig = Field(default_factory=ZapsConfig)
    mentions: MentionsConfig = Field(default_factory=MentionsConfig)
    hashtags: HashtagsConfig = Field(default_factory=HashtagsConfig)

    @field_validator("relays")
    @classmethod
    def validate_relay_urls(cls, v: list[str]) -> list[str]:
        """Validate that all relay URLs are valid WebSocket URLs."""
        urls: list[str] = []
        for url in v:
            try:
                RelayUrl.parse(url)
            except NostrSdkError as e:
                raise ValueError(f"Invalid relay URL '{url}': {e}") from e
            if url not in urls:
                urls.append(url)
        return urls
