"""Pure frozen dataclasses with zero I/O for events, filters, tags and drafts.

The models layer is the foundation of the package. It depends on nothing
else in Herme; only ``nostr_sdk`` types appear, at the conversion edges
([NetworkEvent.from_nostr()][herme.models.event.NetworkEvent.from_nostr],
[EventFilter.to_nostr()][herme.models.filter.EventFilter.to_nostr]).
All validation happens in ``__post_init__`` so invalid instances never
escape the constructor.

Attributes:
    NetworkEvent: Immutable event received from a relay, equal by id.
    EventFilter: Subscription/query filter.
    EventRef, AuthorRef, TopicTag, RawTag: Typed tag variants.
    ResponseDraft: Unsigned outbound event.
    PublishResult: Per-relay acknowledgement sets.
    ChatMessage, ChatOptions, ChatResult: Inference conversation types.
    EventKind, ServiceName, AgentState: Shared enumerations.
"""

from .chat import ChatMessage, ChatOptions, ChatResult, ChatRole
from .constants import EVENT_KIND_MAX, AgentState, EventKind, ServiceName
from .event import NetworkEvent
from .filter import EventFilter
from .response import PublishResult, ResponseDraft
from .tags import AuthorRef, EventMarker, EventRef, RawTag, Tag, TopicTag, parse_tag


__all__ = [
    "EVENT_KIND_MAX",
    "AgentState",
    "AuthorRef",
    "ChatMessage",
    "ChatOptions",
    "ChatResult",
    "ChatRole",
    "EventFilter",
    "EventKind",
    "EventMarker",
    "EventRef",
    "NetworkEvent",
    "PublishResult",
    "RawTag",
    "ResponseDraft",
    "ServiceName",
    "Tag",
    "TopicTag",
    "parse_tag",
]
