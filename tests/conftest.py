"""Shared test fixtures for yardgen.

Provides reusable fixtures for isolated config environments, output state,
CLI invocation and a small helper that runs the rewriter with a tweaked
configuration. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from yardgen.models import Mode, YardgenConfig
from yardgen.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches a Rich console bound to sys.stderr at creation
    time. When Typer's CliRunner redirects the streams during a test and
    the test finishes, the cached reference becomes stale ("I/O operation
    on closed file"). Resetting forces a fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    data. Clears the YARDGEN_* environment variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["YARDGEN_CONFIG", "YARDGEN_DEBUG", "YARDGEN_RBS_DEBUG", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Rewriter helpers
# ---------------------------------------------------------------------------


def ruby(source: str) -> str:
    """Dedent a triple-quoted Ruby snippet and drop the leading newline."""
    return textwrap.dedent(source).lstrip("\n")


def make_config(**sections: dict[str, Any]) -> YardgenConfig:
    """Build a config from partial sections, e.g. ``make_config(emit={"header": False})``."""
    return YardgenConfig.model_validate(sections)


def find_node(node: Any, types: tuple[str, ...]) -> Optional[Any]:
    """First node below *node* (pre-order) whose type is in *types*."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in types:
            return current
        stack.extend(reversed(current.named_children))
    return None


@pytest.fixture
def parse_method() -> Callable[[str], tuple[Any, Any]]:
    """Parse dedented Ruby and return ``(buffer, first method node)``."""
    from yardgen.parsing import SourceBuffer, parse_source

    def _parse(source: str) -> tuple[Any, Any]:
        buffer = SourceBuffer(ruby(source))
        tree = parse_source(buffer)
        node = find_node(tree.root_node, ("method", "singleton_method"))
        assert node is not None, "no method in source"
        return buffer, node

    return _parse


@pytest.fixture
def parse_expression() -> Callable[[str], tuple[Any, Any]]:
    """Parse ``value = <expr>`` and return ``(buffer, expression node)``."""
    from yardgen.parsing import SourceBuffer, parse_source

    def _parse(expression: str) -> tuple[Any, Any]:
        buffer = SourceBuffer(f"value = {expression}\n")
        tree = parse_source(buffer)
        assignment = find_node(tree.root_node, ("assignment",))
        assert assignment is not None, "no assignment in source"
        return buffer, assignment.child_by_field_name("right")

    return _parse


@pytest.fixture
def run_rewrite() -> Callable[..., str]:
    """Call :func:`yardgen.rewriter.rewrite` on dedented source.

    Example::

        out = run_rewrite(src, mode="merge", emit={"attributes": True})
    """
    from yardgen.rewriter import rewrite

    def _run(
        source: str,
        mode: Mode | str = Mode.INSERT,
        provider: Optional[Any] = None,
        **sections: dict[str, Any],
    ) -> str:
        return rewrite(
            ruby(source), mode=mode, config=make_config(**sections), signature_provider=provider
        )

    return _run


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
