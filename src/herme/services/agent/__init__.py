"""Agent orchestrator: shared resources, lifecycle and monitor wiring.

See Also:
    [Agent][herme.services.agent.service.Agent]: The orchestrator.
    [AgentConfig][herme.services.agent.configs.AgentConfig]: Root configuration.
"""

from .configs import AgentConfig
from .service import Agent


__all__ = ["Agent", "AgentConfig"]
