r"""The four monitors and the agent that runs them.

Services are the top layer of the package, depending on
[herme.core][herme.core], [herme.nips][herme.nips],
[herme.utils][herme.utils] and [herme.models][herme.models]. Each monitor
extends [BaseService][herme.core.base_service.BaseService] through one of
the templates in [common][herme.services.common] and implements one cycle
of work in ``async def run()``.

```text
                 Agent
   /        /         \          \
Replies   Zaps   Mentions   Hashtags
 (stream) (stream) (stream)   (poll)
```

Attributes:
    Agent: Owns the shared relay gateway, inference gateway and payment
        queue; runs every enabled monitor concurrently.
    RepliesMonitor: Answers notes and comments addressed to the agent.
    ZapsMonitor: Thanks zap senders with a note that mentions them.
    MentionsMonitor: Answers notes that mention the agent by npub or name.
    HashtagsMonitor: Periodic topic scan that replies to the best post or
        synthesizes a new one.

Examples:
    ```python
    from herme.services import Agent

    agent = Agent.from_yaml("config/agent.yaml")
    shutdown = await agent.start()
    try:
        await agent.serve()
    finally:
        await shutdown()
    ```
"""

from .hashtags import (
    HashtagsConfig,
    HashtagsMonitor,
)
from .mentions import (
    MentionsConfig,
    MentionsMonitor,
)
from .replies import (
    RepliesConfig,
    RepliesMonitor,
)
from .zaps import (
    ZapsConfig,
    ZapsMonitor,
)
from .agent import (  # noqa: I001
    Agent,
    AgentConfig,
)


__all__ = [
    "Agent",
    "AgentConfig",
    "HashtagsConfig",
    "HashtagsMonitor",
    "MentionsConfig",
    "MentionsMonitor",
    "RepliesConfig",
    "RepliesMonitor",
    "ZapsConfig",
    "ZapsMonitor",
]
