"""Mentions monitor: answers notes that name the agent in their content.

See Also:
    [MentionsMonitor][herme.services.mentions.service.MentionsMonitor]: The service class.
    [MentionsConfig][herme.services.mentions.configs.MentionsConfig]: Service configuration.
"""

from .configs import MentionsConfig
from .service import MentionsMonitor


__all__ = ["MentionsConfig", "MentionsMonitor"]
