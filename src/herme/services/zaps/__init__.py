"""Zaps monitor: thanks every sender of a zap receipt addressed to the agent.

See Also:
    [ZapsMonitor][herme.services.zaps.service.ZapsMonitor]: The service class.
    [ZapsConfig][herme.services.zaps.configs.ZapsConfig]: Service configuration.
"""

from .configs import ZapsConfig
from .service import ZapsMonitor


__all__ = ["ZapsConfig", "ZapsMonitor"]
