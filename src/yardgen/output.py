"""Terminal output for the ``yardgen`` CLI.

stdout carries only what a caller may capture: rewritten source in
``--stdin`` mode, progress markers and the run summary. Everything else
(status, warnings, errors, debug traces) goes to stderr, coloured through
Rich unless ``--no-color``, ``NO_COLOR`` or ``TERM=dumb`` says otherwise.

Commands use the module-level functions (:func:`warning`, :func:`error`,
...), which delegate to the :class:`OutputManager` installed by
:func:`~yardgen.app.main_callback`.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape


class OutputManager:
    """Writes data to stdout verbatim and diagnostics to stderr.

    Ruby source is never passed through Rich, so it is not reflowed or
    highlighted.

    Args:
        no_color: Disable colour and Rich markup on stderr.
        quiet: Drop info, success and suggestion messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* and a newline to stdout."""
        print(text, file=sys.stdout, flush=True)

    def write_data(self, text: str) -> None:
        """Write *text* to stdout as is (progress markers, rewritten source)."""
        sys.stdout.write(text)
        sys.stdout.flush()

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def _diagnostic(self, prefix: str, message: str, style: Optional[str] = None) -> None:
        """Print ``prefix + message`` to stderr, styled unless colour is off.

        *style* wraps the whole line; a prefix ending in ``": "`` is styled
        on its own so the message keeps the default colour.
        """
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        if style is None:
            markup = f"{escape(prefix)}{escape(message)}"
        elif prefix.endswith(": "):
            markup = f"[{style}]{escape(prefix.rstrip())}[/{style}] {escape(message)}"
        else:
            markup = f"[{style}]{escape(prefix)}{escape(message)}[/{style}]"
        self._stderr.print(markup, soft_wrap=True)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("", message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("", message, "green")

    def warning(self, message: str) -> None:
        """Print ``Warning: <message>``; shown even with ``--quiet``."""
        self._diagnostic("Warning: ", message, "yellow")

    def error(self, message: str) -> None:
        """Print ``Error: <message>``; always shown."""
        self._diagnostic("Error: ", message, "bold red")

    def suggest(self, message: str) -> None:
        """Print a next-step hint as ``→ <message>``."""
        if not self._quiet:
            self._diagnostic("→ ", message, "dim")

    def debug(self, message: str) -> None:
        """Print ``[debug] <message>`` when ``--verbose`` is set."""
        if self._verbose:
            self._diagnostic("[debug] ", message, "dim")

    def trace(self, message: str) -> None:
        """Print *message* to stderr unconditionally and without styling.

        Used by the ``YARDGEN_DEBUG`` and ``YARDGEN_RBS_DEBUG`` toggles,
        which also apply when the rewriter is used as a library.
        """
        print(message, file=sys.stderr, flush=True)


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value) or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# --- Global instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """The installed :class:`OutputManager`, created with defaults on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager (tests reset it between runs)."""
    global _output
    _output = None


# --- Shortcuts ---


def print_data(text: str) -> None:
    get_output().print_data(text)


def write_data(text: str) -> None:
    get_output().write_data(text)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def trace(message: str) -> None:
    get_output().trace(message)
