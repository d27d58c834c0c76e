"""Monitor templates shared by the four event classes.

A monitor is a [BaseService][herme.core.base_service.BaseService] that owns
a dedup store and a respond step:

* [StreamMonitor][herme.services.common.monitor.StreamMonitor] keeps a live
  subscription open. One ``run()`` is one subscription session; when the
  stream fails ``run_forever()`` re-opens it after ``interval`` seconds.
* [PollMonitor][herme.services.common.monitor.PollMonitor] runs one scan per
  ``run()`` and records every examined candidate once its action has been
  published.

Per event the stream template applies, in order: self-authored events are
skipped, already handled ids are skipped, ``is_eligible()`` must hold,
``respond()`` builds a draft, the draft is published and only then is the id
recorded. Generation, publishing and decode failures are logged and leave
the id unrecorded so a later session or restart retries it.
"""

from __future__ import annotations

import asyncio
from abc import abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Self

from herme.core.base_service import BaseService, ConfigT
from herme.core.exceptions import (
    ConnectivityError,
    InferenceError,
    ProtocolError,
    PublishingError,
)
from herme.models.chat import ChatMessage, ChatOptions
from herme.utils.relays import CAUGHT_UP

from .dedup import DedupStore


if TYPE_CHECKING:
    from herme.models.event import NetworkEvent
    from herme.models.filter import EventFilter
    from herme.models.response import PublishResult, ResponseDraft
    from herme.utils.inference import InferenceGateway
    from herme.utils.relays import RelayGateway, Subscription

    from .payments import PaymentQueue
    from .topics import TopicPicker


# Faults absorbed per event; anything else ends the session.
_EVENT_FAULTS = (InferenceError, PublishingError, ProtocolError, ConnectivityError, TimeoutError)


@dataclass(frozen=True, slots=True)
class MonitorContext:
    """Collaborators shared by every monitor, built once by the agent.

    Attributes:
        gateway: Shared relay gateway.
        inference: Chat-completion client.
        payments: Invoice queue fed with every invoice returned by inference.
        topics: Hashtag sampler.
        data_dir: Directory of the dedup files.
        own_pubkey: The agent's hex public key.
        topics_per_post: Hashtags appended to every response.
        profile_name: Display name the agent answers to.
        stream_idle: Seconds without any subscription item before the
            session is ended and re-opened (``None`` waits forever).
    """

    gateway: RelayGateway
    inference: InferenceGateway
    payments: PaymentQueue
    topics: TopicPicker
    data_dir: Path
    own_pubkey: str
    topics_per_post: int = 2
    profile_name: str = ""
    stream_idle: float | None = None


@dataclass(frozen=True, slots=True)
class Candidate:
    """A post found by a scan, with the topic that surfaced it."""

    event: NetworkEvent
    topic: str = ""


class BaseMonitor(BaseService[ConfigT]):
    """Dedup store, generation and publishing helpers for monitors."""

    def __init__(self, config: ConfigT | None = None, *, context: MonitorContext) -> None:
        super().__init__(config)
        self._ctx = context
        self._dedup = DedupStore(context.data_dir, self.SERVICE_NAME)

    @property
    def dedup(self) -> DedupStore:
        return self._dedup

    @property
    def own_pubkey(self) -> str:
        return self._ctx.own_pubkey

    async def __aenter__(self) -> Self:
        self._dedup.load()
        self.set_gauge("dedup_size", len(self._dedup))
        return await super().__aenter__()

    def is_self(self, event: NetworkEvent) -> bool:
        return event.author == self._ctx.own_pubkey

    def pick_topics(self, *, exclude: Sequence[str] = ()) -> list[str]:
        return self._ctx.topics.pick(self._ctx.topics_per_post, exclude=exclude)

    async def generate(self, prompt: str, options: ChatOptions | None = None) -> str:
        """Run one generation; any returned invoice is queued, never awaited.

        Raises:
            InferenceError: If the backend fails.
        """
        result = await self._ctx.inference.chat([ChatMessage.user(prompt)], options)
        if result.invoice:
            self._ctx.payments.enqueue(result.invoice)
        return result.text

    async def publish(self, draft: ResponseDraft) -> PublishResult:
        """Publish *draft* through the shared gateway.

        Raises:
            PublishingError: If no relay accepted the event.
        """
        result = await self._ctx.gateway.publish(draft)
        self.inc_counter("responses_published")
        return result

    def record(self, *event_ids: str) -> None:
        self._dedup.add_many(event_ids)
        self.set_gauge("dedup_size", len(self._dedup))


class StreamMonitor(BaseMonitor[ConfigT]):
    """Template for monitors driven by a live subscription."""

    def __init__(self, config: ConfigT | None = None, *, context: MonitorContext) -> None:
        super().__init__(config, context=context)
        self._subscription: Subscription | None = None
        self._stop_when_caught_up = False

    @abstractmethod
    def build_filter(self) -> EventFilter:
        """Filter of the live subscription."""
        ...

    @abstractmethod
    def is_eligible(self, event: NetworkEvent) -> bool:
        """Whether *event* warrants a response (self and dedup already excluded)."""
        ...

    @abstractmethod
    async def respond(self, event: NetworkEvent) -> ResponseDraft | None:
        """Build the response draft, or ``None`` to skip without recording."""
        ...

    def request_shutdown(self) -> None:
        super().request_shutdown()
        if self._subscription is not None:
            self._subscription.close()

    async def run(self) -> None:
        """Run one subscription session until it ends or shutdown is requested.

        Raises:
            ConnectivityError: If the subscription cannot be opened, the
                relays end it, or nothing arrives for ``stream_idle`` seconds.
        """
        subscription = await self._ctx.gateway.subscribe(self.build_filter())
        self._subscription = subscription
        idle = self._ctx.stream_idle
        self._logger.info("subscription_started", id=subscription.id)
        try:
            while True:
                try:
                    item = await asyncio.wait_for(anext(subscription), timeout=idle)
                except StopAsyncIteration:
                    break
                except TimeoutError as e:
                    self.inc_counter("subscriptions_idle")
                    raise ConnectivityError(
                        f"subscription {subscription.id} idle for {idle}s"
                    ) from e
                if item is CAUGHT_UP:
                    self._logger.info("caught_up", id=subscription.id)
                    if self._stop_when_caught_up:
                        break
                    continue
                if not self.is_running:
                    break
                await self.handle_event(item)
        finally:
            subscription.close()
            self._subscription = None
        self._logger.info("subscription_ended", id=subscription.id)

    async def run_backlog(self) -> None:
        """Run one session that stops at the caught-up marker (``--once`` mode)."""
        self._stop_when_caught_up = True
        try:
            await self.run()
        finally:
            self._stop_when_caught_up = False

    async def handle_event(self, event: NetworkEvent) -> bool:
        """Apply the per-event pipeline.

        Returns:
            ``True`` when a response was published and the id recorded.
        """
        self.inc_counter("events_received")
        if self.is_self(event):
            self.inc_counter("events_self")
            return False
        if self._dedup.contains(event.id):
            self.inc_counter("events_duplicate")
            return False
        if not self.is_eligible(event):
            self.inc_counter("events_ineligible")
            return False

        try:
            draft = await self.respond(event)
            if draft is None:
                return False
            result = await self.publish(draft)
        except _EVENT_FAULTS as e:
            self.inc_counter("responses_failed")
            self._logger.error(
                "response_failed",
                event_id=event.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self.record(event.id)
        self._logger.info(
            "response_published",
            event_id=event.id,
            response_id=result.event_id,
            relays=len(result.accepted),
        )
        return True


class PollMonitor(BaseMonitor[ConfigT]):
    """Template for monitors that scan periodically instead of subscribing."""

    @abstractmethod
    async def collect(self) -> list[Candidate]:
        """Gather this cycle's candidates (may include handled or own posts)."""
        ...

    @abstractmethod
    async def act(self, candidates: list[Candidate]) -> PublishResult | None:
        """Publish one action for *candidates*; ``None`` when nothing was published."""
        ...

    async def run(self) -> None:
        """Run one scan; every examined candidate is recorded after a publish."""
        seen: set[str] = set()
        candidates: list[Candidate] = []
        for candidate in await self.collect():
            event = candidate.event
            if event.id in seen or self.is_self(event) or self._dedup.contains(event.id):
                continue
            seen.add(event.id)
            candidates.append(candidate)

        if not candidates:
            self._logger.info("scan_empty")
            return

        try:
            result = await self.act(candidates)
        except _EVENT_FAULTS as e:
            self.inc_counter("responses_failed")
            self._logger.error(
                "scan_action_failed",
                candidates=len(candidates),
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        if result is None:
            return
        self.record(*(c.event.id for c in candidates))
        self._logger.info(
            "scan_completed",
            candidates=len(candidates),
            response_id=result.event_id,
        )
