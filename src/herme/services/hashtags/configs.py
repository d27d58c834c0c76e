"""Hashtags monitor configuration models.

See Also:
    [HashtagsMonitor][herme.services.hashtags.HashtagsMonitor]: The service
        class that consumes this configuration.
    [BaseServiceConfig][herme.core.base_service.BaseServiceConfig]: Base
        class providing ``interval``, ``max_consecutive_failures`` and
        ``metrics`` fields.

Examples:
    ```yaml
    hashtags:
      interval: 45
      topics_per_scan: 3
      reply_probability: 0.5
    ```
"""

from __future__ import annotations

from pydantic import Field

from herme.core.base_service import BaseServiceConfig


class HashtagsConfig(BaseServiceConfig):
    """Configuration for the hashtags monitor.

    Attributes:
        interval: Seconds between scans.
        topics_per_scan: Topics sampled and queried per scan.
        limit_per_topic: Posts requested per topic.
        max_candidates: Posts offered to the selection step in the reply branch.
        lookback_days: Width of the window the random ``until`` is drawn from.
        reply_probability: Chance of the reply branch; otherwise a new post
            is synthesized from all candidates.
        synthesis_topics: Hashtags appended to a synthesized post.
        selection_temperature: Sampling temperature of selection and reply.
        synthesis_temperature: Sampling temperature of the synthesized post.
    """

    interval: float = Field(default=45.0, ge=1.0, description="Seconds between scans")
    topics_per_scan: int = Field(default=3, ge=1, le=20)
    limit_per_topic: int = Field(default=3, ge=1, le=100)
    max_candidates: int = Field(default=3, ge=1, le=50)
    lookback_days: int = Field(default=14, ge=1, le=365)
    reply_probability: float = Field(default=0.5, ge=0.0, le=1.0)
    synthesis_topics: int = Field(default=3, ge=0, le=10)
    selection_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    synthesis_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
