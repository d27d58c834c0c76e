"""Shared constants for the models layer.

Defines enumerations used across model, builder and service modules.
Placing them here avoids circular dependencies between the models and the
services layers.

See Also:
    [BaseService][herme.core.base_service.BaseService]: Uses
        [ServiceName][herme.models.constants.ServiceName] for logging and
        metrics labels.
    [Agent][herme.services.agent.Agent]: Drives the
        [AgentState][herme.models.constants.AgentState] machine.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging, metrics, and dedup files.

    Each monitor name doubles as its dedup stream name, so the persisted
    file of the replies monitor is ``responded-replies.json``.

    Attributes:
        REPLIES: Responds to replies and comments addressed to the agent
            ([RepliesMonitor][herme.services.replies.RepliesMonitor]).
        ZAPS: Thanks senders of zap receipts
            ([ZapsMonitor][herme.services.zaps.ZapsMonitor]).
        MENTIONS: Responds to notes mentioning the agent by key or name
            ([MentionsMonitor][herme.services.mentions.MentionsMonitor]).
        HASHTAGS: Periodic topic scan
            ([HashtagsMonitor][herme.services.hashtags.HashtagsMonitor]).
        AGENT: The orchestrator itself
            ([Agent][herme.services.agent.Agent]).
    """

    REPLIES = "replies"
    ZAPS = "zaps"
    MENTIONS = "mentions"
    HASHTAGS = "hashtags"
    AGENT = "agent"


class AgentState(StrEnum):
    """Lifecycle states of the [Agent][herme.services.agent.Agent].

    Transitions are strictly forward:
    ``IDLE -> INITIALIZING -> RUNNING -> SHUTTING_DOWN -> STOPPED``.
    A failed initialization goes straight to ``SHUTTING_DOWN``.
    """

    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class EventKind(IntEnum):
    """Well-known Nostr event kinds consumed or produced by the agent.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
        COMMENT: Kind 1111 -- threaded comment (NIP-22).
        ZAP_REQUEST: Kind 9734 -- zap request embedded in receipts (NIP-57).
        ZAP_RECEIPT: Kind 9735 -- zap receipt published by a wallet (NIP-57).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1
    COMMENT = 1111
    ZAP_REQUEST = 9734
    ZAP_RECEIPT = 9735


EVENT_KIND_MAX = 65_535
