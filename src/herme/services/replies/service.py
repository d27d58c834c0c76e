"""Replies monitor.

Subscribes to notes and comments that ``p``-tag the agent and answers each
one in its thread. The response mirrors the trigger's kind, so a NIP-22
comment is answered with a comment and a note with a note.

An event is eligible when it addresses the agent either through a ``p`` tag
or through an ``e`` tag whose author slot (index 4, NIP-10) is the agent's
key. Self-authored and already handled events never reach this check.

See Also:
    [StreamMonitor][herme.services.common.monitor.StreamMonitor]: The
        per-event pipeline (self, dedup, eligibility, respond, publish, record).
    [build_reply][herme.nips.event_builders.build_reply]: Thread tag layout.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from herme.models.constants import ServiceName
from herme.models.filter import EventFilter
from herme.models.tags import AuthorRef, EventRef
from herme.nips.event_builders import build_reply
from herme.services.common.monitor import StreamMonitor
from herme.services.common.prompts import reply_prompt

from .configs import RepliesConfig


if TYPE_CHECKING:
    from herme.models.event import NetworkEvent
    from herme.models.response import ResponseDraft


class RepliesMonitor(StreamMonitor[RepliesConfig]):
    """Answers replies addressed to the agent."""

    SERVICE_NAME: ClassVar[str] = ServiceName.REPLIES
    CONFIG_CLASS: ClassVar[type[RepliesConfig]] = RepliesConfig

    def build_filter(self) -> EventFilter:
        return EventFilter(
            kinds=tuple(self._config.kinds),
            tags={"p": (self.own_pubkey,)},
            since=self._config.since(),
            limit=self._config.limit,
        )

    def is_eligible(self, event: NetworkEvent) -> bool:
        for tag in event.parsed_tags():
            if isinstance(tag, AuthorRef) and tag.pubkey == self.own_pubkey:
                return True
            if isinstance(tag, EventRef) and tag.author == self.own_pubkey:
                return True
        return False

    async def respond(self, event: NetworkEvent) -> ResponseDraft:
        text = await self.generate(reply_prompt(event.content))
        return build_reply(
            event,
            text,
            own_pubkey=self.own_pubkey,
            topics=self.pick_topics(),
        )
