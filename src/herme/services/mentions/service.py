"""Mentions monitor.

Subscribes to kind-1 notes and answers those whose content mentions the
agent as ``nostr:<npub>``, ``@<npub>`` or ``@<profile name>``. Matching is
case-insensitive; the profile name is resolved once at startup and
regex-escaped. Answers are threaded kind-1 replies.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, ClassVar

from nostr_sdk import PublicKey

from herme.models.constants import EventKind, ServiceName
from herme.models.filter import EventFilter
from herme.nips.event_builders import build_reply
from herme.services.common.monitor import MonitorContext, StreamMonitor
from herme.services.common.prompts import mention_prompt

from .configs import MentionsConfig


if TYPE_CHECKING:
    from herme.models.event import NetworkEvent
    from herme.models.response import ResponseDraft


def mention_pattern(npub: str, name: str = "") -> re.Pattern[str]:
    """Compile the case-insensitive mention pattern for *npub* and *name*."""
    alternatives = [f"nostr:{re.escape(npub)}", f"@{re.escape(npub)}"]
    if name:
        alternatives.append(f"@{re.escape(name)}")
    return re.compile("|".join(alternatives), re.IGNORECASE)


class MentionsMonitor(StreamMonitor[MentionsConfig]):
    """Answers notes that mention the agent."""

    SERVICE_NAME: ClassVar[str] = ServiceName.MENTIONS
    CONFIG_CLASS: ClassVar[type[MentionsConfig]] = MentionsConfig

    def __init__(self, config: MentionsConfig | None = None, *, context: MonitorContext) -> None:
        super().__init__(config, context=context)
        self._npub = PublicKey.parse(context.own_pubkey).to_bech32()
        name = context.profile_name if self._config.match_name else ""
        self._pattern = mention_pattern(self._npub, name)

    @property
    def npub(self) -> str:
        return self._npub

    def build_filter(self) -> EventFilter:
        return EventFilter(
            kinds=(EventKind.TEXT_NOTE,),
            since=self._config.since(),
            limit=self._config.limit,
        )

    def is_eligible(self, event: NetworkEvent) -> bool:
        return self._pattern.search(event.content) is not None

    async def respond(self, event: NetworkEvent) -> ResponseDraft:
        text = await self.generate(mention_prompt(event.content))
        return build_reply(
            event,
            text,
            own_pubkey=self.own_pubkey,
            topics=self.pick_topics(),
            kind=EventKind.TEXT_NOTE,
        )
