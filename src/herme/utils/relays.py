"""Shared relay client for every monitor.

[RelayGateway][herme.utils.relays.RelayGateway] owns one ``nostr_sdk.Client``
connected to all configured relays and exposes four operations:

* [subscribe()][herme.utils.relays.RelayGateway.subscribe]: a live
  [Subscription][herme.utils.relays.Subscription] yielding events and a
  one-time [CAUGHT_UP][herme.utils.relays.CAUGHT_UP] marker.
* [publish()][herme.utils.relays.RelayGateway.publish]: sign and send a
  [ResponseDraft][herme.models.response.ResponseDraft].
* [get_one()][herme.utils.relays.RelayGateway.get_one] and
  [fetch()][herme.utils.relays.RelayGateway.fetch]: one-shot queries that
  always return within their timeout.

A single notification pump (``client.handle_notifications``) runs per
gateway and routes every incoming event to the subscription whose id it
carries. When the pump dies every open subscription ends with
[ConnectivityError][herme.core.exceptions.ConnectivityError].

Examples:
    ```python
    gateway = RelayGateway(["wss://relay.damus.io"], keys)
    await gateway.connect()
    async with await gateway.subscribe(EventFilter(kinds=(1,))) as sub:
        async for item in sub:
            if item is CAUGHT_UP:
                continue
            print(item.content)
    await gateway.close()
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from collections.abc import Callable
from datetime import timedelta
from types import TracebackType
from typing import TYPE_CHECKING, Any, Final, Self

from nostr_sdk import (
    Client,
    ClientBuilder,
    EventBuilder,
    HandleNotification,
    Kind,
    NostrSdkError,
    NostrSigner,
    RelayMessageEnum,
    RelayUrl,
    Tag,
)

from herme.core.exceptions import ConnectivityError, PublishingError
from herme.models.event import NetworkEvent
from herme.models.response import PublishResult


if TYPE_CHECKING:
    from nostr_sdk import Event as NostrEvent
    from nostr_sdk import Keys, RelayMessage

    from herme.models.filter import EventFilter
    from herme.models.response import ResponseDraft


logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 10.0
DEFAULT_PUBLISH_TIMEOUT = 15.0

# Extra wall-clock slack on top of the SDK-side timeout for one-shot queries.
_QUERY_GRACE = 2.0


class _CaughtUp:
    """Marker type for the end of stored events on a subscription."""

    _instance: _CaughtUp | None = None

    def __new__(cls) -> _CaughtUp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CAUGHT_UP"


CAUGHT_UP: Final = _CaughtUp()

_END = object()


# =============================================================================
# Client Factory
# =============================================================================


def create_client(keys: Keys | None = None) -> Client:
    """Create a Nostr client, signing with *keys* when given."""
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


# =============================================================================
# Subscription
# =============================================================================


class Subscription:
    """Live handle on one subscription filter.

    Iterating yields [NetworkEvent][herme.models.event.NetworkEvent] items in
    arrival order and [CAUGHT_UP][herme.utils.relays.CAUGHT_UP] exactly once.
    Iteration stops cleanly after [close()][herme.utils.relays.Subscription.close]
    and raises [ConnectivityError][herme.core.exceptions.ConnectivityError]
    when the relays or the transport end the stream.

    Note:
        ``close()`` is synchronous and idempotent, so it is safe to call
        from another task while a handler is mid-flight. Items still queued
        at that point are discarded.
    """

    def __init__(
        self,
        subscription_id: str,
        on_close: Callable[[str], None] | None = None,
    ) -> None:
        self._id = subscription_id
        self._on_close = on_close
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._caught_up = False
        self._error: ConnectivityError | None = None
        self._seen: set[str] = set()

    @property
    def id(self) -> str:
        return self._id

    @property
    def closed(self) -> bool:
        return self._closed or self._error is not None

    # -- producer side (gateway) ----------------------------------------------

    def deliver(self, event: NetworkEvent) -> None:
        """Queue an event; repeated deliveries of one id from several relays collapse."""
        if self.closed or event.id in self._seen:
            return
        self._seen.add(event.id)
        self._queue.put_nowait(event)

    def mark_caught_up(self) -> None:
        """Queue the caught-up marker (first call only)."""
        if self.closed or self._caught_up:
            return
        self._caught_up = True
        self._queue.put_nowait(CAUGHT_UP)

    def fail(self, error: ConnectivityError) -> None:
        """End the stream with *error* after items already queued."""
        if self.closed:
            return
        self._error = error
        self._queue.put_nowait(_END)

    # -- consumer side (monitor) ----------------------------------------------

    def close(self) -> None:
        """Stop delivery immediately and release the relay-side subscription."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)
        if self._on_close is not None:
            self._on_close(self._id)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> NetworkEvent | _CaughtUp:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if self._closed:
            raise StopAsyncIteration
        if item is _END:
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        self.close()


# =============================================================================
# Notification Router
# =============================================================================


class _NotificationRouter(HandleNotification):
    """Dispatches client notifications to the gateway's subscriptions."""

    def __init__(self, gateway: RelayGateway) -> None:
        super().__init__()
        self._gateway = gateway

    async def handle(self, relay_url: Any, subscription_id: str, event: NostrEvent) -> None:
        self._gateway._route_event(str(relay_url), str(subscription_id), event)

    async def handle_msg(self, relay_url: Any, msg: RelayMessage) -> None:
        self._gateway._route_message(str(relay_url), msg)


# =============================================================================
# Relay Gateway
# =============================================================================


class RelayGateway:
    """One signing client shared by all monitors.

    Args:
        relays: Relay URLs to connect to.
        keys: Signing keys; ``None`` gives a read-only gateway.
        query_timeout: Default timeout for ``fetch``/``get_one`` (seconds).
        publish_timeout: Timeout for one ``publish`` call (seconds).
        client: Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        relays: list[str],
        keys: Keys | None = None,
        *,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
        publish_timeout: float = DEFAULT_PUBLISH_TIMEOUT,
        client: Client | None = None,
    ) -> None:
        self._relays = list(relays)
        self._keys = keys
        self._query_timeout = query_timeout
        self._publish_timeout = publish_timeout
        self._client = client if client is not None else create_client(keys)
        self._subscriptions: dict[str, Subscription] = {}
        self._closed_by: dict[str, set[str]] = {}
        self._pump: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[Any]] = set()
        self._closing = False

    @property
    def public_key(self) -> str:
        """Hex public key of the signing identity (``""`` when read-only)."""
        return self._keys.public_key().to_hex() if self._keys is not None else ""

    @property
    def relays(self) -> list[str]:
        return list(self._relays)

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    async def connect(self, timeout: float = DEFAULT_QUERY_TIMEOUT) -> int:  # noqa: ASYNC109
        """Add every relay and wait up to *timeout* for connections.

        Relays that fail are logged and retried in the background by the
        client.

        Returns:
            Number of relays connected within the timeout.
        """
        for url in self._relays:
            await self._client.add_relay(RelayUrl.parse(url))
        output = await self._client.try_connect(timedelta(seconds=timeout))
        for relay_url, error in output.failed.items():
            logger.warning("relay_connect_failed relay=%s error=%s", relay_url, error)
        connected = len(output.success)
        logger.info("relays_connected connected=%s total=%s", connected, len(self._relays))
        return connected

    async def close(self) -> None:
        """Close every subscription, stop the pump and shut the client down."""
        self._closing = True
        for subscription in list(self._subscriptions.values()):
            subscription.close()
        self._subscriptions.clear()

        if self._pump is not None:
            self._pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump
            self._pump = None

        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

        # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
        with contextlib.suppress(Exception):
            await asyncio.wait_for(self._client.shutdown(), timeout=self._query_timeout)
        logger.info("gateway_closed")

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    async def subscribe(self, event_filter: EventFilter) -> Subscription:
        """Open a live subscription.

        The route is registered before the REQ is sent, so no event can
        arrive for an unknown id.

        Raises:
            ConnectivityError: If the gateway is closed or the REQ cannot
                be sent.
        """
        if self._closing:
            raise ConnectivityError("gateway is closed")

        self._ensure_pump()
        subscription_id = secrets.token_hex(8)
        subscription = Subscription(subscription_id, on_close=self._release)
        self._subscriptions[subscription_id] = subscription
        try:
            await asyncio.wait_for(
                self._client.subscribe_with_id(subscription_id, event_filter.to_nostr(), None),
                timeout=self._query_timeout,
            )
        except (TimeoutError, OSError, NostrSdkError) as e:
            self._subscriptions.pop(subscription_id, None)
            raise ConnectivityError(f"subscribe failed: {e}") from e

        logger.debug("subscription_opened id=%s kinds=%s", subscription_id, event_filter.kinds)
        return subscription

    def _release(self, subscription_id: str) -> None:
        self._subscriptions.pop(subscription_id, None)
        self._closed_by.pop(subscription_id, None)
        if self._closing:
            return
        task = asyncio.get_running_loop().create_task(self._unsubscribe(subscription_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _unsubscribe(self, subscription_id: str) -> None:
        try:
            await asyncio.wait_for(
                self._client.unsubscribe(subscription_id), timeout=self._query_timeout
            )
        except (TimeoutError, OSError, NostrSdkError) as e:
            logger.debug("unsubscribe_failed id=%s error=%s", subscription_id, e)

    def _ensure_pump(self) -> None:
        if self._pump is not None and not self._pump.done():
            return
        self._pump = asyncio.get_running_loop().create_task(
            self._client.handle_notifications(_NotificationRouter(self))
        )
        self._pump.add_done_callback(self._on_pump_done)

    def _on_pump_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or self._closing:
            return
        error = task.exception()
        logger.warning("notification_pump_stopped error=%s", error)
        for subscription in list(self._subscriptions.values()):
            subscription.fail(ConnectivityError(f"notification stream ended: {error}"))
        self._subscriptions.clear()
        self._pump = None

    def _route_event(self, relay_url: str, subscription_id: str, event: NostrEvent) -> None:
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            return
        try:
            subscription.deliver(NetworkEvent.from_nostr(event))
        except (ValueError, TypeError) as e:
            logger.warning("event_decode_failed relay=%s error=%s", relay_url, e)

    def _route_message(self, relay_url: str, msg: RelayMessage) -> None:
        message = msg.as_enum()
        if isinstance(message, RelayMessageEnum.END_OF_STORED_EVENTS):
            subscription = self._subscriptions.get(str(message.subscription_id))
            if subscription is not None:
                subscription.mark_caught_up()
        elif isinstance(message, RelayMessageEnum.CLOSED):
            subscription_id = str(message.subscription_id)
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return
            logger.warning(
                "subscription_closed_by_relay relay=%s id=%s reason=%s",
                relay_url,
                subscription_id,
                message.message,
            )
            closed_by = self._closed_by.setdefault(subscription_id, set())
            closed_by.add(relay_url)
            if len(closed_by) >= max(len(self._relays), 1):
                self._subscriptions.pop(subscription_id, None)
                self._closed_by.pop(subscription_id, None)
                subscription.fail(ConnectivityError(f"closed by relays: {message.message}"))

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    async def publish(self, draft: ResponseDraft) -> PublishResult:
        """Sign and send *draft* to all relays.

        Raises:
            PublishingError: If sending failed, timed out, or no relay
                accepted the event.
        """
        builder = EventBuilder(Kind(draft.kind), draft.content).tags(
            [Tag.parse(values) for values in draft.tag_lists()]
        )
        try:
            output = await asyncio.wait_for(
                self._client.send_event_builder(builder), timeout=self._publish_timeout
            )
        except TimeoutError as e:
            raise PublishingError(f"publish timed out after {self._publish_timeout}s") from e
        except (OSError, NostrSdkError) as e:
            raise PublishingError(f"publish failed: {e}") from e

        result = PublishResult(
            event_id=output.id.to_hex(),
            accepted=frozenset(str(url) for url in output.success),
            rejected={str(url): str(reason) for url, reason in output.failed.items()},
        )
        if not result.ok:
            raise PublishingError(f"no relay accepted event {result.event_id}: {result.rejected}")
        return result

    # -------------------------------------------------------------------------
    # One-shot queries
    # -------------------------------------------------------------------------

    async def fetch(
        self,
        event_filter: EventFilter,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> list[NetworkEvent]:
        """Return stored events matching *event_filter*, newest first.

        Never raises for transport problems: a timeout or relay error
        yields whatever was decoded so far (an empty list).
        """
        timeout = self._query_timeout if timeout is None else timeout
        try:
            events = await asyncio.wait_for(
                self._client.fetch_events(event_filter.to_nostr(), timedelta(seconds=timeout)),
                timeout=timeout + _QUERY_GRACE,
            )
        except TimeoutError:
            logger.warning("fetch_timeout kinds=%s timeout=%s", event_filter.kinds, timeout)
            return []
        except (OSError, NostrSdkError) as e:
            logger.warning("fetch_failed kinds=%s error=%s", event_filter.kinds, e)
            return []

        result: dict[str, NetworkEvent] = {}
        for raw in events.to_vec():
            try:
                event = NetworkEvent.from_nostr(raw)
            except (ValueError, TypeError) as e:
                logger.warning("event_decode_failed error=%s", e)
                continue
            result.setdefault(event.id, event)
        return sorted(result.values(), key=lambda e: e.created_at, reverse=True)

    async def get_one(
        self,
        event_filter: EventFilter,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> NetworkEvent | None:
        """Return the newest event matching *event_filter*, or ``None``."""
        events = await self.fetch(event_filter.with_limit(1), timeout)
        return events[0] if events else None
