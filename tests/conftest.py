"""
Pytest configuration and shared fixtures for Herme tests.

Provides:
- Real ``nostr_sdk.Keys`` for the agent identity
- An event factory producing valid ``NetworkEvent`` instances
- In-memory fakes for the relay gateway, inference gateway and settler
- A ``MonitorContext`` wired to the fakes
"""

from __future__ import annotations

import hashlib
import logging
import random
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from nostr_sdk import Keys

from herme.core.exceptions import PublishingError
from herme.models.chat import ChatMessage, ChatOptions, ChatResult
from herme.models.event import NetworkEvent
from herme.models.filter import EventFilter
from herme.models.response import PublishResult, ResponseDraft
from herme.services.common.monitor import MonitorContext
from herme.services.common.payments import PaymentQueue
from herme.services.common.topics import TopicPicker
from herme.utils.relays import CAUGHT_UP, Subscription


# Valid secp256k1 test key (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)

RELAY_URL = "wss://relay.example.com"


def hex64(label: str) -> str:
    """Deterministic 64-char hex id derived from *label*."""
    return hashlib.sha256(label.encode()).hexdigest()


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Fakes
# ============================================================================


class FakeGateway:
    """In-memory relay gateway.

    ``script`` holds the items delivered to each new subscription (events
    and ``CAUGHT_UP``); ``stored`` maps a tag value (``#t``/``#p``) or
    ``"*"`` to the events returned by ``fetch``.
    """

    def __init__(self, public_key: str) -> None:
        self.public_key = public_key
        self.relays = [RELAY_URL]
        self.script: list[Any] = []
        self.stored: dict[str, list[NetworkEvent]] = {}
        self.profile: NetworkEvent | None = None
        self.published: list[ResponseDraft] = []
        self.fetched: list[EventFilter] = []
        self.filters: list[EventFilter] = []
        self.subscriptions: list[Subscription] = []
        self.fail_publish = False
        self.connected = False
        self.closed = False

    async def connect(self, timeout: float = 10.0) -> int:  # noqa: ASYNC109
        self.connected = True
        return len(self.relays)

    async def close(self) -> None:
        for subscription in self.subscriptions:
            subscription.close()
        self.closed = True

    async def subscribe(self, event_filter: EventFilter) -> Subscription:
        self.filters.append(event_filter)
        subscription = Subscription(f"sub{len(self.subscriptions)}")
        self.subscriptions.append(subscription)
        for item in self.script:
            if item is CAUGHT_UP:
                subscription.mark_caught_up()
            else:
                subscription.deliver(item)
        return subscription

    async def publish(self, draft: ResponseDraft) -> PublishResult:
        if self.fail_publish:
            raise PublishingError("no relay accepted event")
        self.published.append(draft)
        if draft.kind == 0:
            self.profile = NetworkEvent(
                id=hex64(f"profile{len(self.published)}"),
                author=self.public_key,
                kind=0,
                created_at=1_700_000_000,
                tags=(),
                content=draft.content,
            )
        return PublishResult(
            event_id=hex64(f"published{len(self.published)}"),
            accepted=frozenset({RELAY_URL}),
        )

    async def fetch(
        self,
        event_filter: EventFilter,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> list[NetworkEvent]:
        self.fetched.append(event_filter)
        if 0 in event_filter.kinds:
            return [self.profile] if self.profile is not None else []
        values = [v for vs in event_filter.tags.values() for v in vs] or ["*"]
        events = [e for v in values for e in self.stored.get(v, [])]
        if event_filter.limit is not None:
            events = events[: event_filter.limit]
        return events

    async def get_one(
        self,
        event_filter: EventFilter,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> NetworkEvent | None:
        events = await self.fetch(event_filter.with_limit(1), timeout)
        return events[0] if events else None


class FakeInference:
    """Inference gateway answering from a script.

    Each call pops the next entry of ``answers`` (a ``str``, a
    ``ChatResult`` or an exception instance to raise); when the script is
    empty ``default`` is returned.
    """

    def __init__(self, default: str = "Bitcoin fixes this.") -> None:
        self.default = default
        self.answers: list[Any] = []
        self.prompts: list[str] = []
        self.options: list[ChatOptions | None] = []
        self.closed = False

    async def chat(
        self,
        conversation: Sequence[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        self.prompts.append(conversation[-1].content)
        self.options.append(options)
        answer: Any = self.answers.pop(0) if self.answers else self.default
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, ChatResult):
            return answer
        return ChatResult(text=answer)

    async def close(self) -> None:
        self.closed = True


class FakeSettler:
    """Settler recording invoices; ``outcomes`` maps invoice to result or exception."""

    def __init__(self) -> None:
        self.settled: list[str] = []
        self.outcomes: dict[str, Any] = {}

    async def settle(self, invoice: str) -> bool:
        self.settled.append(invoice)
        outcome = self.outcomes.get(invoice, True)
        if isinstance(outcome, Exception):
            raise outcome
        return bool(outcome)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def keys() -> Keys:
    """Agent identity."""
    return Keys.parse(VALID_HEX_KEY)


@pytest.fixture
def own_pubkey(keys: Keys) -> str:
    return keys.public_key().to_hex()


@pytest.fixture
def other_pubkey() -> str:
    """Public key of a third party."""
    return Keys.generate().public_key().to_hex()


@pytest.fixture
def make_event(other_pubkey: str) -> Callable[..., NetworkEvent]:
    """Factory for valid events; ``label`` seeds the id."""

    def _make(
        label: str = "event",
        *,
        author: str | None = None,
        kind: int = 1,
        tags: Sequence[Sequence[str]] = (),
        content: str = "What is a UTXO?",
        created_at: int = 1_700_000_000,
    ) -> NetworkEvent:
        return NetworkEvent(
            id=hex64(label),
            author=author or other_pubkey,
            kind=kind,
            created_at=created_at,
            tags=tuple(tuple(t) for t in tags),
            content=content,
        )

    return _make


@pytest.fixture
def gateway(own_pubkey: str) -> FakeGateway:
    return FakeGateway(own_pubkey)


@pytest.fixture
def inference() -> FakeInference:
    return FakeInference()


@pytest.fixture
def settler() -> FakeSettler:
    return FakeSettler()


@pytest.fixture
def payments(settler: FakeSettler) -> PaymentQueue:
    return PaymentQueue(settler, timeout=1.0)


@pytest.fixture
def context(
    gateway: FakeGateway,
    inference: FakeInference,
    payments: PaymentQueue,
    tmp_path: Path,
    own_pubkey: str,
) -> MonitorContext:
    """Monitor context wired to the fakes, with a seeded topic sampler."""
    return MonitorContext(
        gateway=gateway,  # type: ignore[arg-type]
        inference=inference,  # type: ignore[arg-type]
        payments=payments,
        topics=TopicPicker(["bitcoin", "nostr", "lightning"], random.Random(7)),
        data_dir=tmp_path,
        own_pubkey=own_pubkey,
        topics_per_post=2,
        profile_name="Herme PhD",
    )


@pytest.fixture
def hex_id() -> Callable[[str], str]:
    """Deterministic 64-char hex id factory."""
    return hex64
