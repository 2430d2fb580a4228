"""Tests for the caching, fault-tolerant signature adapter."""

from __future__ import annotations

from yardgen.models import Scope
from yardgen.types.provider import Signature, SignatureAdapter


class CountingProvider:
    """Returns a fixed signature for ``A#known`` and counts lookups."""

    def __init__(self) -> None:
        self.calls = 0

    def signature_for(self, container, scope, name):
        self.calls += 1
        if (container, scope, name) == ("A", Scope.INSTANCE, "known"):
            return Signature(return_type="String")
        return None


class FailingProvider:
    """Raises on every lookup."""

    def __init__(self) -> None:
        self.calls = 0

    def signature_for(self, container, scope, name):
        self.calls += 1
        raise RuntimeError("index corrupted")


class TestSignatureAdapter:
    """Caching and error swallowing."""

    def test_without_provider(self):
        adapter = SignatureAdapter(None)
        assert adapter.provider is None
        assert adapter.signature_for("A", Scope.INSTANCE, "known") is None

    def test_lookup_and_cache(self):
        provider = CountingProvider()
        adapter = SignatureAdapter(provider)
        first = adapter.signature_for("A", Scope.INSTANCE, "known")
        second = adapter.signature_for("A", Scope.INSTANCE, "known")
        assert first == Signature(return_type="String")
        assert second is first
        assert provider.calls == 1

    def test_misses_are_cached_too(self):
        provider = CountingProvider()
        adapter = SignatureAdapter(provider)
        assert adapter.signature_for("A", Scope.CLASS, "known") is None
        assert adapter.signature_for("A", Scope.CLASS, "known") is None
        assert provider.calls == 1

    def test_failures_become_none(self, monkeypatch, capsys):
        monkeypatch.delenv("YARDGEN_RBS_DEBUG", raising=False)
        adapter = SignatureAdapter(FailingProvider())
        assert adapter.signature_for("A", Scope.INSTANCE, "x") is None
        assert capsys.readouterr().err == ""

    def test_debug_warning_printed_once(self, monkeypatch, capsys):
        monkeypatch.setenv("YARDGEN_RBS_DEBUG", "1")
        provider = FailingProvider()
        adapter = SignatureAdapter(provider)
        adapter.signature_for("A", Scope.INSTANCE, "x")
        adapter.signature_for("A", Scope.INSTANCE, "y")
        err = capsys.readouterr().err
        assert provider.calls == 2
        assert err.count("yardgen: signature lookup failed: RuntimeError: index corrupted") == 1
