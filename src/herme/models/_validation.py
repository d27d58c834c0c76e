"""Shared validation helpers for frozen dataclass models.

Private module, not part of the public API. Used exclusively by
``__post_init__`` methods in sibling model modules to enforce runtime
type constraints on values decoded from the network.
"""

from __future__ import annotations

from typing import Any

from .constants import EVENT_KIND_MAX


_HEX_DIGITS = frozenset("0123456789abcdef")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_timestamp(value: Any, name: str) -> None:
    """Raise if *value* is not a non-negative ``int`` (``bool`` excluded)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")


def validate_kind(value: Any, name: str = "kind") -> None:
    """Raise if *value* is not an event kind in ``[0, 65535]``."""
    validate_timestamp(value, name)
    if value > EVENT_KIND_MAX:
        raise ValueError(f"{name} must be <= {EVENT_KIND_MAX}, got {value}")


def validate_hex64(value: Any, name: str) -> None:
    """Raise if *value* is not a 64-character lowercase hex string."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if len(value) != 64 or not _HEX_DIGITS.issuperset(value):
        raise ValueError(f"{name} must be 64 lowercase hex characters")


def validate_str_list(value: Any, name: str) -> None:
    """Raise if *value* is not a non-empty sequence of strings."""
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise TypeError(f"{name} must be a list of str, got {type(value).__name__}")
    if not value:
        raise ValueError(f"{name} must not be empty")
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"{name} items must be str, got {type(item).__name__}")
