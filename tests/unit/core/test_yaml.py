"""Unit tests for core.yaml module."""

from pathlib import Path

import pytest

from herme.core.exceptions import ConfigurationError
from herme.core.yaml import load_yaml


class TestLoadYaml:
    """Tests for load_yaml()."""

    def test_loads_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "agent.yaml"
        path.write_text("relays:\n  - wss://relay.example.com\nhashtags:\n  interval: 45\n")
        assert load_yaml(path) == {
            "relays": ["wss://relay.example.com"],
            "hashtags": {"interval": 45},
        }

    def test_accepts_str_path(self, tmp_path: Path) -> None:
        path = tmp_path / "agent.yaml"
        path.write_text("data_dir: data\n")
        assert load_yaml(str(path)) == {"data_dir": "data"}

    def test_empty_file_gives_empty_dict(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("relays: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_yaml(path)

    def test_safe_load_rejects_python_tags(self, tmp_path: Path) -> None:
        path = tmp_path / "unsafe.yaml"
        path.write_text("x: !!python/object/apply:os.system ['true']\n")
        with pytest.raises(ConfigurationError):
            load_yaml(path)
