"""Tests for lazy import system in herme.__init__ and package source hygiene."""

from __future__ import annotations

import importlib
import sys

import pytest


class TestLazyImports:
    """Test PEP 562 lazy loading in herme.__init__."""

    def test_lazy_import_does_not_eagerly_load(self) -> None:
        """Verify that importing herme does not eagerly load subpackages."""
        cached = {name: mod for name, mod in sys.modules.items() if name.startswith("herme")}
        for name in cached:
            del sys.modules[name]
        try:
            importlib.import_module("herme")

            assert "herme.core" not in sys.modules
            assert "herme.models" not in sys.modules
            assert "herme.services" not in sys.modules
            assert "herme.nips" not in sys.modules
            assert "herme.utils" not in sys.modules
        finally:
            for name in [n for n in sys.modules if n.startswith("herme")]:
                del sys.modules[name]
            sys.modules.update(cached)

    def test_lazy_import_resolves_on_access(self) -> None:
        """Verify that lazy attributes resolve correctly."""
        from herme import NetworkEvent
        from herme.models.event import NetworkEvent as DirectNetworkEvent

        assert NetworkEvent is DirectNetworkEvent

    def test_lazy_import_resolves_services(self) -> None:
        from herme import Agent, RepliesMonitor
        from herme.services.agent.service import Agent as DirectAgent
        from herme.services.replies.service import RepliesMonitor as DirectRepliesMonitor

        assert Agent is DirectAgent
        assert RepliesMonitor is DirectRepliesMonitor

    def test_lazy_import_caches_after_first_access(self) -> None:
        """Verify that resolved attributes are cached in globals."""
        import herme

        _ = herme.EventFilter

        assert "EventFilter" in vars(herme)

    def test_lazy_import_invalid_attribute(self) -> None:
        """Verify that invalid attributes raise AttributeError."""
        import herme

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(herme, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        """Verify that __all__ and _LAZY_IMPORTS are in sync."""
        import herme

        assert set(herme.__all__) == set(herme._LAZY_IMPORTS)

    def test_every_export_resolves(self) -> None:
        import herme

        for name in herme.__all__:
            assert getattr(herme, name) is not None

    def test_dir_returns_all(self) -> None:
        """Verify that dir(herme) returns __all__."""
        import herme

        assert dir(herme) == herme.__all__

    def test_version_is_accessible(self) -> None:
        """Verify that __version__ is set from package metadata."""
        import herme

        assert isinstance(herme.__version__, str)
        assert herme.__version__


class TestPackageSources:
    """Every module of the package compiles cleanly."""

    def test_no_compile_warnings(self) -> None:
        """Verify that no source (docstrings included) triggers an escape-sequence warning."""
        import warnings
        from pathlib import Path

        import herme

        root = Path(herme.__file__).parent
        for path in sorted(root.rglob("*.py")):
            with warnings.catch_warnings():
                warnings.simplefilter("error")
                compile(path.read_text(encoding="utf-8"), str(path), "exec")
