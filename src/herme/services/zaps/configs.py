"""Zaps monitor configuration models."""

from __future__ import annotations

from pydantic import Field

from herme.services.common.configs import StreamConfig


class ZapsConfig(StreamConfig):
    """Configuration for the zaps monitor.

    Attributes:
        include_amount: Mention the decoded amount in the thank-you prompt.
        include_comment: Pass the zapper's comment to the thank-you prompt.
    """

    include_amount: bool = Field(default=True)
    include_comment: bool = Field(default=True)
