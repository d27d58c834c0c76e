"""Replies monitor: answers direct replies and comments addressed to the agent.

See Also:
    [RepliesMonitor][herme.services.replies.service.RepliesMonitor]: The service class.
    [RepliesConfig][herme.services.replies.configs.RepliesConfig]: Service configuration.
"""

from .configs import RepliesConfig
from .service import RepliesMonitor


__all__ = ["RepliesConfig", "RepliesMonitor"]
