"""Hashtags monitor.

Every ``interval`` seconds the monitor samples ``topics_per_scan`` topics
from the vocabulary, picks a random ``until`` inside the last
``lookback_days`` and fetches up to ``limit_per_topic`` notes per topic.
Handled and self-authored posts are dropped by the
[PollMonitor][herme.services.common.monitor.PollMonitor] template before
[act()][herme.services.hashtags.service.HashtagsMonitor.act] sees them.

A coin flip (fair by default, ``reply_probability``) then chooses between
two branches:

* **reply**: the model is shown the first ``max_candidates`` posts and asked
  for ``{"selectedPostId": ...}``; the chosen post receives a threaded reply
  carrying its own topic plus random extras. An unparsable answer or an id
  outside the offered set publishes nothing.
* **synthesize**: the model writes a new top-level note inspired by every
  candidate; the note ``p``-tags the candidate authors and references no
  candidate event.

Once either branch publishes, every examined candidate is recorded.
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, ClassVar

from herme.models.chat import ChatOptions
from herme.models.constants import EventKind, ServiceName
from herme.models.filter import EventFilter
from herme.nips.event_builders import build_note, build_reply
from herme.services.common.monitor import Candidate, MonitorContext, PollMonitor
from herme.services.common.prompts import (
    candidate_reply_prompt,
    extract_json_object,
    selection_prompt,
    synthesis_prompt,
)

from .configs import HashtagsConfig


if TYPE_CHECKING:
    from herme.models.response import PublishResult


_SECONDS_PER_DAY = 86_400


class HashtagsMonitor(PollMonitor[HashtagsConfig]):
    """Scans random topics and engages with what it finds."""

    SERVICE_NAME: ClassVar[str] = ServiceName.HASHTAGS
    CONFIG_CLASS: ClassVar[type[HashtagsConfig]] = HashtagsConfig

    def __init__(
        self,
        config: HashtagsConfig | None = None,
        *,
        context: MonitorContext,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(config, context=context)
        self._rng = rng or random.Random()

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    def scan_until(self, now: int | None = None) -> int:
        """Draw the upper bound of this scan's window."""
        now = int(time.time()) if now is None else now
        window = self._config.lookback_days * _SECONDS_PER_DAY
        return now - self._rng.randint(0, window)

    async def collect(self) -> list[Candidate]:
        topics = self._ctx.topics.pick(self._config.topics_per_scan)
        until = self.scan_until()
        self._logger.info("scan_started", topics=",".join(topics), until=until)

        candidates: list[Candidate] = []
        for topic in topics:
            event_filter = EventFilter(
                kinds=(EventKind.TEXT_NOTE,),
                tags={"t": (topic,)},
                until=until,
                limit=self._config.limit_per_topic,
            )
            events = await self._ctx.gateway.fetch(event_filter)
            self._logger.debug("topic_fetched", topic=topic, events=len(events))
            candidates.extend(Candidate(event, topic) for event in events)
        return candidates

    # -------------------------------------------------------------------------
    # Action
    # -------------------------------------------------------------------------

    async def act(self, candidates: list[Candidate]) -> PublishResult | None:
        if self._rng.random() < self._config.reply_probability:
            return await self.reply_to_best(candidates)
        return await self.synthesize(candidates)

    async def reply_to_best(self, candidates: list[Candidate]) -> PublishResult | None:
        """Let the model choose one of the offered candidates and reply to it."""
        offered = candidates[: self._config.max_candidates]
        options = ChatOptions(temperature=self._config.selection_temperature)

        offers = [
            {"id": c.event.id, "content": c.event.content, "hashtag": c.topic} for c in offered
        ]
        answer = await self.generate(selection_prompt(offers), options)
        parsed = extract_json_object(answer)
        if parsed is None:
            self._logger.warning("selection_unparsable", answer=answer)
            return None
        selected_id = parsed.get("selectedPostId")
        chosen = next((c for c in offered if c.event.id == selected_id), None)
        if chosen is None:
            self._logger.warning("selection_unknown", selected=selected_id)
            return None

        self._logger.info("selection_made", event_id=chosen.event.id, topic=chosen.topic)
        prompt = candidate_reply_prompt(chosen.event.content, chosen.topic)
        text = await self.generate(prompt, options)
        topics = [chosen.topic, *self.pick_topics(exclude=[chosen.topic])]
        draft = build_reply(
            chosen.event,
            text,
            own_pubkey=self.own_pubkey,
            topics=topics,
            kind=EventKind.TEXT_NOTE,
        )
        return await self.publish(draft)

    async def synthesize(self, candidates: list[Candidate]) -> PublishResult:
        """Publish a new note inspired by every candidate."""
        posts = [{"content": c.event.content, "hashtag": c.topic} for c in candidates]
        text = await self.generate(
            synthesis_prompt(posts),
            ChatOptions(temperature=self._config.synthesis_temperature),
        )
        draft = build_note(
            text,
            topics=self._ctx.topics.pick(self._config.synthesis_topics),
            mentions=[c.event.author for c in candidates if c.event.author != self.own_pubkey],
        )
        self._logger.info("synthesis_built", candidates=len(candidates))
        return await self.publish(draft)
