"""Persisted set of handled event ids, one file per stream.

Each monitor owns a [DedupStore][herme.services.common.dedup.DedupStore]
keyed by its stream name. The in-memory set is loaded once at monitor start
and rewritten in full after every mutation, so a restart never answers the
same event twice. The set only grows.

File layout: ``<data_dir>/responded-<stream>.json`` holding a JSON array of
hex event ids. Writes go to a temporary sibling file that replaces the
original atomically.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path


logger = logging.getLogger(__name__)


def dedup_path(data_dir: Path, stream: str) -> Path:
    """Return the dedup file path of *stream* inside *data_dir*."""
    return Path(data_dir) / f"responded-{stream}.json"


class DedupStore:
    """Crash-resilient set of handled event ids.

    Args:
        data_dir: Directory holding the dedup files (created on first write).
        stream: Stream name, usually the monitor's ``SERVICE_NAME``.

    Examples:
        ```python
        store = DedupStore(Path("data"), "replies")
        store.load()
        if not store.contains(event.id):
            ...  # respond and publish
            store.add(event.id)
        ```
    """

    def __init__(self, data_dir: Path, stream: str) -> None:
        self._stream = stream
        self._path = dedup_path(data_dir, stream)
        self._ids: set[str] = set()

    @property
    def stream(self) -> str:
        return self._stream

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._ids

    def load(self) -> set[str]:
        """Read the persisted ids, replacing the in-memory set.

        A missing, unreadable or malformed file yields an empty set; anything
        other than a missing file is logged as a warning.

        Returns:
            A copy of the loaded ids.
        """
        self._ids = set()
        if not self._path.exists():
            return set()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "dedup_load_failed stream=%s path=%s error=%s", self._stream, self._path, e
            )
            return set()

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            logger.warning(
                "dedup_load_invalid stream=%s path=%s reason=%s",
                self._stream,
                self._path,
                "expected a JSON array of strings",
            )
            return set()

        self._ids = set(data)
        logger.info("dedup_loaded stream=%s count=%s", self._stream, len(self._ids))
        return set(self._ids)

    def contains(self, event_id: str) -> bool:
        return event_id in self._ids

    def add(self, event_id: str) -> None:
        """Record one id and persist the set (no-op if already present)."""
        if event_id in self._ids:
            return
        self._ids.add(event_id)
        self._flush()

    def add_many(self, event_ids: Iterable[str]) -> None:
        """Record several ids with a single flush."""
        new = set(event_ids) - self._ids
        if not new:
            return
        self._ids.update(new)
        self._flush()

    def _flush(self) -> None:
        """Write the full set atomically; failures keep the in-memory state."""
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(sorted(self._ids), f)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            logger.error(
                "dedup_write_failed stream=%s path=%s error=%s", self._stream, self._path, e
            )
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
