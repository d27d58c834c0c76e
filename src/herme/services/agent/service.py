"""Agent orchestrator.

The [Agent][herme.services.agent.service.Agent] owns every shared resource
(identity, relay gateway, inference gateway, payment queue, metrics server)
and the four monitors built on top of them. Its lifecycle follows
[AgentState][herme.models.constants.AgentState]:

```text
IDLE -> INITIALIZING -> RUNNING -> SHUTTING_DOWN -> STOPPED
```

``INITIALIZING`` loads or creates the identity keys, connects the gateway,
makes sure a kind-0 profile exists (generating and publishing one when it
does not) and optionally publishes a startup note. ``RUNNING`` runs every
enabled monitor concurrently. ``SHUTTING_DOWN`` drains pending payments,
stops the monitors and closes every resource; the same path runs when
initialization fails.

Examples:
    ```python
    agent = Agent.from_yaml("config/agent.yaml")
    shutdown = await agent.start()
    try:
        await agent.serve()
    finally:
        await shutdown()
    ```
"""

from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ClassVar, Self

from herme.core.exceptions import (
    ConfigurationError,
    HermeError,
    InferenceError,
    PublishingError,
)
from herme.core.logger import Logger
from herme.core.metrics import MetricsServer, start_metrics_server
from herme.core.yaml import load_yaml
from herme.models.chat import ChatMessage
from herme.models.constants import AgentState, EventKind, ServiceName
from herme.models.filter import EventFilter
from herme.nips.event_builders import build_note, build_profile
from herme.services.common.monitor import BaseMonitor, MonitorContext, StreamMonitor
from herme.services.common.payments import PaymentQueue
from herme.services.common.prompts import (
    announcement_prompt,
    persona_prompt,
    profile_about_prompt,
)
from herme.services.common.topics import TopicPicker
from herme.services.hashtags import HashtagsMonitor
from herme.services.mentions import MentionsMonitor
from herme.services.replies import RepliesMonitor
from herme.services.zaps import ZapsMonitor
from herme.utils.inference import InferenceGateway
from herme.utils.relays import RelayGateway
from herme.utils.wallet import Settler, create_settler

from .configs import AgentConfig


if TYPE_CHECKING:
    from nostr_sdk import Keys

    from herme.models.response import ResponseDraft


ShutdownCallback = Callable[[], Awaitable[None]]


class Agent:
    """Wires the shared resources and runs the monitors.

    Every collaborator can be injected; anything left as ``None`` is built
    from the configuration during
    [start()][herme.services.agent.service.Agent.start].

    Args:
        config: Agent configuration (defaults when ``None``).
        keys: Identity keys; loaded or created from ``config.keys`` when omitted.
        gateway: Relay gateway; its public key becomes the agent identity.
        inference: Chat-completion gateway.
        settler: Invoice payment collaborator.
        rng: Random source shared by topic sampling and the hashtag scan.
    """

    SERVICE_NAME: ClassVar[str] = ServiceName.AGENT
    CONFIG_CLASS: ClassVar[type[AgentConfig]] = AgentConfig

    def __init__(
        self,
        config: AgentConfig | None = None,
        *,
        keys: Keys | None = None,
        gateway: RelayGateway | None = None,
        inference: InferenceGateway | None = None,
        settler: Settler | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or AgentConfig()
        self._keys = keys
        self._gateway = gateway
        self._inference = inference
        self._settler = settler
        self._rng = rng or random.Random()
        self._logger = Logger(self.SERVICE_NAME)

        self._state = AgentState.IDLE
        self._payments: PaymentQueue | None = None
        self._metrics_server: MetricsServer | None = None
        self._monitors: list[BaseMonitor[Any]] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._stop_requested = asyncio.Event()
        self._stopped = asyncio.Event()

    # -------------------------------------------------------------------------
    # Factory Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str, **kwargs: Any) -> Self:
        """Create an agent from a YAML configuration file."""
        return cls.from_dict(load_yaml(config_path), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Create an agent from a configuration dictionary."""
        return cls(config=cls.CONFIG_CLASS(**data), **kwargs)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def public_key(self) -> str:
        """Hex public key of the agent, ``""`` before initialization."""
        return self._gateway.public_key if self._gateway is not None else ""

    @property
    def monitors(self) -> list[BaseMonitor[Any]]:
        return list(self._monitors)

    @property
    def payments(self) -> PaymentQueue | None:
        return self._payments

    def _set_state(self, state: AgentState) -> None:
        self._logger.info("state_changed", previous=self._state, state=state)
        self._state = state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self, *, once: bool = False) -> ShutdownCallback:
        """Initialize every resource and start the monitors.

        Args:
            once: Build the monitors without starting their loops; use
                [run_once()][herme.services.agent.service.Agent.run_once]
                afterwards.

        Returns:
            The async shutdown callback.

        Raises:
            HermeError: If initialization fails. Everything already opened
                is closed before the error propagates.
            RuntimeError: If the agent was already started.
        """
        if self._state is not AgentState.IDLE:
            raise RuntimeError(f"agent cannot start from state {self._state}")

        self._set_state(AgentState.INITIALIZING)
        try:
            await self._initialize()
            if not once:
                self._start_monitors()
        except Exception as e:  # Intentionally broad: any init failure runs the shutdown path
            self._logger.error(
                "initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.shutdown()
            raise

        self._set_state(AgentState.RUNNING)
        return self.shutdown

    async def serve(self) -> None:
        """Block until shutdown is requested or every monitor has stopped."""
        if not self._tasks:
            await self._stop_requested.wait()
            return
        stop_waiter = asyncio.ensure_future(self._stop_requested.wait())
        monitors_done = asyncio.ensure_future(asyncio.wait(self._tasks))
        try:
            await asyncio.wait({stop_waiter, monitors_done}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_waiter.cancel()
            monitors_done.cancel()

    def request_shutdown(self) -> None:
        """Ask every monitor to stop and wake up
        [serve()][herme.services.agent.service.Agent.serve].

        Safe to call from a signal handler.
        """
        self._stop_requested.set()
        for monitor in self._monitors:
            monitor.request_shutdown()

    async def shutdown(self) -> None:
        """Drain payments, stop the monitors and close every resource.

        Idempotent: a concurrent or repeated call waits for the first one.
        """
        if self._state is AgentState.STOPPED:
            return
        if self._state is AgentState.SHUTTING_DOWN:
            await self._stopped.wait()
            return

        self._set_state(AgentState.SHUTTING_DOWN)
        try:
            if self._payments is not None:
                await self._payments.drain_remaining()

            self.request_shutdown()
            await self._stop_monitors()

            # Monitors stopped mid-generation may have queued one last invoice.
            if self._payments is not None and len(self._payments):
                await self._payments.drain_remaining()

            if self._inference is not None:
                await self._inference.close()
            if self._gateway is not None:
                await self._gateway.close()
            if self._metrics_server is not None:
                await self._metrics_server.stop()
                self._logger.info("metrics_server_stopped")
        finally:
            self._set_state(AgentState.STOPPED)
            self._stopped.set()

    async def run_once(self) -> bool:
        """Run one cycle of every enabled monitor concurrently.

        Stream monitors process their stored backlog and stop at the
        caught-up marker (bounded by ``timeouts.backlog``); poll monitors
        run one scan.

        Returns:
            ``True`` when every monitor completed its cycle.
        """
        if self._state is not AgentState.RUNNING:
            raise RuntimeError(f"agent cannot run from state {self._state}")
        results = await asyncio.gather(*(self._run_monitor_once(m) for m in self._monitors))
        return all(results)

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    async def _initialize(self) -> None:
        config = self._config
        config.data_dir.mkdir(parents=True, exist_ok=True)

        if self._gateway is None:
            if self._keys is None:
                self._keys = config.keys.load(config.data_dir)
            self._gateway = RelayGateway(
                config.relays,
                self._keys,
                query_timeout=config.timeouts.query,
                publish_timeout=config.timeouts.publish,
            )
        if not self._gateway.public_key:
            raise ConfigurationError("relay gateway has no signing keys")
        self._logger.info("identity_loaded", pubkey=self._gateway.public_key)

        connected = await self._gateway.connect(config.timeouts.query)
        if connected == 0:
            self._logger.warning("no_relays_connected", relays=len(config.relays))

        if self._inference is None:
            self._inference = InferenceGateway(
                config.inference,
                system_prompt=persona_prompt(config.profile.name, config.profile.persona),
                timeout=config.timeouts.inference,
            )
        if self._settler is None:
            self._settler = create_settler(config.wallet)
        self._payments = PaymentQueue(
            self._settler,
            timeout=config.timeouts.settle,
            metrics_enabled=config.metrics.enabled,
        )

        if config.metrics.enabled:
            self._metrics_server = await start_metrics_server(config.metrics)
            self._logger.info(
                "metrics_server_started",
                host=config.metrics.host,
                port=config.metrics.port,
                path=config.metrics.path,
            )

        profile_name = await self._ensure_profile()
        if config.announce.enabled:
            await self._announce()

        self._monitors = self._build_monitors(profile_name)

    async def _generate(self, prompt: str) -> str:
        assert self._inference is not None  # noqa: S101
        assert self._payments is not None  # noqa: S101
        result = await self._inference.chat([ChatMessage.user(prompt)])
        if result.invoice:
            self._payments.enqueue(result.invoice)
        return result.text

    async def _publish(self, draft: ResponseDraft) -> str:
        assert self._gateway is not None  # noqa: S101
        result = await self._gateway.publish(draft)
        return result.event_id

    async def _fetch_profile(self) -> dict[str, Any] | None:
        """Return the agent's published kind-0 content, or ``None``."""
        assert self._gateway is not None  # noqa: S101
        event = await self._gateway.get_one(
            EventFilter(kinds=(EventKind.SET_METADATA,), authors=(self._gateway.public_key,)),
            timeout=self._config.timeouts.profile,
        )
        if event is None:
            return None
        try:
            content = json.loads(event.content)
        except json.JSONDecodeError:
            self._logger.warning("profile_invalid", event_id=event.id)
            return None
        if not isinstance(content, dict):
            self._logger.warning("profile_invalid", event_id=event.id)
            return None
        return content

    async def _ensure_profile(self) -> str:
        """Make sure a profile exists and return the name the agent answers to."""
        profile = self._config.profile
        existing = await self._fetch_profile()
        if existing is not None:
            name = existing.get("name")
            self._logger.info("profile_found", name=name)
            return name if isinstance(name, str) and name else profile.name

        self._logger.info("profile_missing", name=profile.name)
        try:
            about = await self._generate(profile_about_prompt())
            event_id = await self._publish(
                build_profile(
                    name=profile.name,
                    about=about,
                    picture=profile.picture,
                    lud16=profile.lud16,
                    website=profile.website,
                )
            )
        except (InferenceError, PublishingError) as e:
            self._logger.error("profile_publish_failed", error=str(e), error_type=type(e).__name__)
            return profile.name

        verified = await self._fetch_profile() is not None
        self._logger.info("profile_published", event_id=event_id, verified=verified)
        return profile.name

    async def _announce(self) -> None:
        """Publish the startup note; failures are logged and ignored."""
        topics = TopicPicker(self._config.topics.vocabulary, self._rng)
        try:
            text = await self._generate(announcement_prompt())
            event_id = await self._publish(
                build_note(text, topics=topics.pick(self._config.topics.per_post))
            )
        except (InferenceError, PublishingError) as e:
            self._logger.error("announcement_failed", error=str(e), error_type=type(e).__name__)
            return
        self._logger.info("announcement_published", event_id=event_id)

    # -------------------------------------------------------------------------
    # Monitors
    # -------------------------------------------------------------------------

    def _build_monitors(self, profile_name: str) -> list[BaseMonitor[Any]]:
        assert self._gateway is not None  # noqa: S101
        assert self._inference is not None  # noqa: S101
        assert self._payments is not None  # noqa: S101
        config = self._config
        context = MonitorContext(
            gateway=self._gateway,
            inference=self._inference,
            payments=self._payments,
            topics=TopicPicker(config.topics.vocabulary, self._rng),
            data_dir=config.data_dir,
            own_pubkey=self._gateway.public_key,
            topics_per_post=config.topics.per_post,
            profile_name=profile_name,
            stream_idle=config.timeouts.stream_idle,
        )
        metrics = {"metrics": config.metrics}

        monitors: list[BaseMonitor[Any]] = []
        if config.replies.enabled:
            monitors.append(
                RepliesMonitor(config.replies.model_copy(update=metrics), context=context)
            )
        if config.zaps.enabled:
            monitors.append(ZapsMonitor(config.zaps.model_copy(update=metrics), context=context))
        if config.mentions.enabled:
            monitors.append(
                MentionsMonitor(config.mentions.model_copy(update=metrics), context=context)
            )
        if config.hashtags.enabled:
            monitors.append(
                HashtagsMonitor(
                    config.hashtags.model_copy(update=metrics),
                    context=context,
                    rng=self._rng,
                )
            )

        self._logger.info(
            "monitors_built",
            enabled=",".join(m.SERVICE_NAME for m in monitors) or "none",
        )
        return monitors

    def _start_monitors(self) -> None:
        for monitor in self._monitors:
            task = asyncio.create_task(self._run_monitor(monitor), name=monitor.SERVICE_NAME)
            self._tasks.append(task)

    async def _run_monitor(self, monitor: BaseMonitor[Any]) -> None:
        async with monitor:
            # entering clears the monitor's shutdown flag; honor an earlier request
            if self._stop_requested.is_set():
                return
            await monitor.run_forever()

    async def _run_monitor_once(self, monitor: BaseMonitor[Any]) -> bool:
        try:
            async with monitor:
                if isinstance(monitor, StreamMonitor):
                    async with asyncio.timeout(self._config.timeouts.backlog):
                        await monitor.run_backlog()
                else:
                    await monitor.run()
        except TimeoutError:
            self._logger.warning("monitor_backlog_timeout", monitor=monitor.SERVICE_NAME)
            return True
        except HermeError as e:
            self._logger.error(
                "monitor_once_failed",
                monitor=monitor.SERVICE_NAME,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True

    async def _stop_monitors(self) -> None:
        if not self._tasks:
            return
        _done, pending = await asyncio.wait(self._tasks, timeout=self._config.timeouts.shutdown)
        for task in pending:
            self._logger.warning("monitor_stop_timeout", monitor=task.get_name())
            task.cancel()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results, strict=True):
            if isinstance(result, Exception):
                self._logger.error(
                    "monitor_crashed",
                    monitor=task.get_name(),
                    error=str(result),
                    error_type=type(result).__name__,
                )
        self._tasks.clear()
