r"""Herme -- autonomous Nostr agent that teaches, answers and thanks.

One process watches the Nostr network through four monitors (direct
replies, zap receipts, mentions, hashtag scans), generates answers with an
OpenAI-compatible chat backend and settles the backend's Lightning invoices
through Nostr Wallet Connect.

Imports flow strictly downward:

```text
              services         Monitors and the agent orchestrator
             /   |   \
          core  nips  utils    Lifecycle, protocol builders, gateways
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O, depends only on stdlib.
    core: Base service, exceptions, logging, metrics, YAML loading.
    nips: NIP-01/10 event builders, NIP-57 zap receipt parsing.
    utils: Identity keys, relay gateway, inference gateway, wallet.
    services: The four monitors and the agent.

Note:
    For lightweight usage, import directly from subpackages::

        from herme.models import NetworkEvent
        from herme.services import Agent

    Top-level imports (``from herme import Agent``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("herme")

__all__ = [
    "Agent",
    "AgentConfig",
    "BaseService",
    "ConfigT",
    "EventFilter",
    "HashtagsConfig",
    "HashtagsMonitor",
    "HermeError",
    "Logger",
    "MentionsConfig",
    "MentionsMonitor",
    "NetworkEvent",
    "RelayGateway",
    "RepliesConfig",
    "RepliesMonitor",
    "ResponseDraft",
    "ZapsConfig",
    "ZapsMonitor",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "BaseService": ("herme.core", "BaseService"),
    "ConfigT": ("herme.core", "ConfigT"),
    "HermeError": ("herme.core", "HermeError"),
    "Logger": ("herme.core", "Logger"),
    "EventFilter": ("herme.models", "EventFilter"),
    "NetworkEvent": ("herme.models", "NetworkEvent"),
    "ResponseDraft": ("herme.models", "ResponseDraft"),
    "RelayGateway": ("herme.utils.relays", "RelayGateway"),
    "Agent": ("herme.services", "Agent"),
    "AgentConfig": ("herme.services", "AgentConfig"),
    "HashtagsConfig": ("herme.services", "HashtagsConfig"),
    "HashtagsMonitor": ("herme.services", "HashtagsMonitor"),
    "MentionsConfig": ("herme.services", "MentionsConfig"),
    "MentionsMonitor": ("herme.services", "MentionsMonitor"),
    "RepliesConfig": ("herme.services", "RepliesConfig"),
    "RepliesMonitor": ("herme.services", "RepliesMonitor"),
    "ZapsConfig": ("herme.services", "ZapsConfig"),
    "ZapsMonitor": ("herme.services", "ZapsMonitor"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'herme' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
