"""
Unit tests for services.common.dedup module.

Tests:
- DedupStore load() of missing, valid, corrupt and malformed files
- add() / add_many() persistence across instances (restart)
- Write failure keeps the in-memory set
"""

import json
from pathlib import Path
from unittest.mock import patch

from herme.services.common.dedup import DedupStore, dedup_path


# ============================================================================
# Path Tests
# ============================================================================


class TestDedupPath:
    """dedup_path() layout."""

    def test_one_file_per_stream(self, tmp_path: Path) -> None:
        assert dedup_path(tmp_path, "zaps") == tmp_path / "responded-zaps.json"
        assert DedupStore(tmp_path, "replies").path == tmp_path / "responded-replies.json"


# ============================================================================
# Load Tests
# ============================================================================


class TestLoad:
    """DedupStore.load() tolerance."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = DedupStore(tmp_path, "replies")
        assert store.load() == set()
        assert len(store) == 0

    def test_valid_file(self, tmp_path: Path, hex_id) -> None:
        ids = [hex_id("a"), hex_id("b")]
        dedup_path(tmp_path, "replies").write_text(json.dumps(ids))

        store = DedupStore(tmp_path, "replies")

        assert store.load() == set(ids)
        assert store.contains(hex_id("a"))
        assert hex_id("b") in store

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        dedup_path(tmp_path, "replies").write_text("{not json")
        store = DedupStore(tmp_path, "replies")
        assert store.load() == set()

    def test_non_list_is_empty(self, tmp_path: Path) -> None:
        dedup_path(tmp_path, "replies").write_text('{"ids": []}')
        assert DedupStore(tmp_path, "replies").load() == set()

    def test_non_string_items_is_empty(self, tmp_path: Path) -> None:
        dedup_path(tmp_path, "replies").write_text("[1, 2]")
        assert DedupStore(tmp_path, "replies").load() == set()

    def test_load_replaces_memory(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path, "replies")
        store._ids.add(hex_id("stale"))
        store.load()
        assert not store.contains(hex_id("stale"))


# ============================================================================
# Persistence Tests
# ============================================================================


class TestPersistence:
    """Mutations survive a restart."""

    def test_add_persists(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path, "zaps")
        store.add(hex_id("z1"))

        restarted = DedupStore(tmp_path, "zaps")
        restarted.load()

        assert restarted.contains(hex_id("z1"))

    def test_add_many_single_file(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path, "hashtags")
        store.add_many([hex_id("a"), hex_id("b"), hex_id("a")])

        assert json.loads(store.path.read_text()) == sorted([hex_id("a"), hex_id("b")])

    def test_add_existing_is_noop(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path, "zaps")
        store.add(hex_id("z1"))
        with patch.object(store, "_flush") as flush:
            store.add(hex_id("z1"))
            store.add_many([hex_id("z1")])
        flush.assert_not_called()

    def test_streams_isolated(self, tmp_path: Path, hex_id) -> None:
        DedupStore(tmp_path, "zaps").add(hex_id("z1"))
        replies = DedupStore(tmp_path, "replies")
        replies.load()
        assert not replies.contains(hex_id("z1"))

    def test_creates_data_dir(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path / "data", "zaps")
        store.add(hex_id("z1"))
        assert store.path.exists()

    def test_no_temp_files_left(self, tmp_path: Path, hex_id) -> None:
        store = DedupStore(tmp_path, "zaps")
        store.add(hex_id("z1"))
        store.add(hex_id("z2"))
        assert [p.name for p in tmp_path.iterdir()] == ["responded-zaps.json"]

    def test_write_failure_keeps_memory(self, tmp_path: Path, hex_id) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = DedupStore(blocker / "data", "zaps")

        store.add(hex_id("z1"))

        assert store.contains(hex_id("z1"))
        assert not store.path.exists()
