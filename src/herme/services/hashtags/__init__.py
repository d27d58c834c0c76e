"""Hashtags monitor: periodic topic scan that replies to or synthesizes from posts.

See Also:
    [HashtagsMonitor][herme.services.hashtags.service.HashtagsMonitor]: The service class.
    [HashtagsConfig][herme.services.hashtags.configs.HashtagsConfig]: Service configuration.
"""

from .configs import HashtagsConfig
from .service import HashtagsMonitor


__all__ = ["HashtagsConfig", "HashtagsMonitor"]
