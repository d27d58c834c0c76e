"""Shared building blocks for the Herme monitors.

Attributes:
    configs: Timeouts, profile, topic and announcement settings.
    dedup: Persisted per-stream set of handled event ids.
    monitor: Stream and poll monitor templates plus the shared context.
    payments: FIFO single-drain invoice settlement queue.
    prompts: Persona and task prompts, and tolerant JSON answer parsing.
    topics: Random hashtag sampling.
"""

from .configs import AnnounceConfig, ProfileConfig, StreamConfig, TimeoutsConfig, TopicsConfig
from .dedup import DedupStore
from .monitor import BaseMonitor, Candidate, MonitorContext, PollMonitor, StreamMonitor
from .payments import PaymentQueue
from .topics import TopicPicker


__all__ = [
    "AnnounceConfig",
    "BaseMonitor",
    "Candidate",
    "DedupStore",
    "MonitorContext",
    "PaymentQueue",
    "PollMonitor",
    "ProfileConfig",
    "StreamConfig",
    "StreamMonitor",
    "TimeoutsConfig",
    "TopicPicker",
    "TopicsConfig",
]
