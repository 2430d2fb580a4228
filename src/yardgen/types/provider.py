"""Signature data model and the fault-tolerant provider adapter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Protocol

from yardgen.models import Scope

RBS_DEBUG_ENV_VAR = "YARDGEN_RBS_DEBUG"


@dataclass(frozen=True)
class RestPositional:
    """``*args`` in a signature; ``element_type`` is the YARD type of one element."""

    element_type: str


@dataclass(frozen=True)
class RestKeywords:
    """``**kwargs`` in a signature; ``value_type`` is the YARD type of one value."""

    value_type: str


@dataclass(frozen=True)
class Signature:
    """Authoritative types for one method, already rendered as YARD types."""

    return_type: str
    param_types: dict[str, str] = field(default_factory=dict)
    rest_positional: Optional[RestPositional] = None
    rest_keywords: Optional[RestKeywords] = None


class SignatureProvider(Protocol):
    """Anything that can look up a method signature."""

    def signature_for(self, container: str, scope: Scope, name: str) -> Optional[Signature]:
        ...


class SignatureAdapter:
    """Wrap a provider so lookups are cached and never raise.

    A failing provider degrades to "no signature". When the
    ``YARDGEN_RBS_DEBUG`` environment variable is ``1`` the first failure is
    reported on stderr.

    Args:
        provider: The wrapped provider, or ``None`` for "no signatures".
    """

    def __init__(self, provider: Optional[SignatureProvider]) -> None:
        self._provider = provider
        self._cache: dict[tuple[str, Scope, str], Optional[Signature]] = {}
        self._warned = False

    @property
    def provider(self) -> Optional[SignatureProvider]:
        return self._provider

    def signature_for(self, container: str, scope: Scope, name: str) -> Optional[Signature]:
        if self._provider is None:
            return None
        key = (container, scope, name)
        if key in self._cache:
            return self._cache[key]
        try:
            result = self._provider.signature_for(container, scope, name)
        except Exception as exc:
            self._warn_once(exc)
            result = None
        self._cache[key] = result
        return result

    def _warn_once(self, exc: Exception) -> None:
        if self._warned or os.environ.get(RBS_DEBUG_ENV_VAR) != "1":
            return
        self._warned = True
        from yardgen.output import trace

        trace(f"yardgen: signature lookup failed: {type(exc).__name__}: {exc}")
