"""Random hashtag sampling from the configured vocabulary."""

from __future__ import annotations

import random
from collections.abc import Sequence


class TopicPicker:
    """Samples distinct topics from a fixed vocabulary.

    Args:
        vocabulary: Candidate topics without ``#``.
        rng: Random source, injectable for deterministic tests.
    """

    def __init__(self, vocabulary: Sequence[str], rng: random.Random | None = None) -> None:
        self._vocabulary = list(vocabulary)
        self._rng = rng or random.Random()

    @property
    def vocabulary(self) -> list[str]:
        return list(self._vocabulary)

    def pick(self, count: int, *, exclude: Sequence[str] = ()) -> list[str]:
        """Return up to *count* distinct topics, none of them in *exclude*."""
        pool = [t for t in self._vocabulary if t not in exclude]
        return self._rng.sample(pool, min(count, len(pool)))
