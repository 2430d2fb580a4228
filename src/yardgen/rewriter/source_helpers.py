"""Text-level helpers: line offsets and comment-block detection.

Nothing in this module looks at the syntax tree. Offsets are indexes into
the source ``str``, and a "line" is the text between two ``\\n`` characters
with any trailing ``\\r`` removed, so CRLF files behave like LF files.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

COMMENT_MARKER = "#"

_DIRECTIVE_PATTERNS = [
    re.compile(r"^\s*#\s*rubocop\s*:\s*(disable|enable|todo)\b"),
    re.compile(r"^\s*#.*-\*-.*\bcoding\s*[:=].*-\*-"),
    re.compile(r"^\s*#\s*(en)?coding\s*[:=]\s*[\w.-]+\s*$"),
    re.compile(r"^\s*#\s*frozen_string_literal\s*:\s*\w+\s*$"),
    re.compile(r"^\s*#\s*warn_indent\s*:\s*\w+\s*$"),
    re.compile(r"^\s*#\s*shareable_constant_value\s*:\s*\w+\s*$"),
    re.compile(r"^\s*#\s*typed\s*:\s*\w+\s*$"),
    re.compile(r"^\s*#\s*:nocov:"),
    re.compile(r"^\s*#\s*simplecov\b", re.IGNORECASE),
    # :nodoc:, :stopdoc:, :startdoc:, :yields: ...
    re.compile(r"^\s*#\s*:[A-Za-z][\w-]*:"),
]

_HEADER_RE = re.compile(r"^\s*#\s*\+[^+\n]+\+\s*->")
_TAG_RE = re.compile(r"^\s*#\s*@!?[A-Za-z_]\w*")


@dataclass
class CommentRun:
    """A contiguous run of comment lines above a definition.

    Attributes:
        start: Offset of the first character of the first comment line.
        end: Offset just past the newline ending the last comment line.
        lines: The comment lines, top to bottom, without line terminators.
        line_starts: Offset of each line in :attr:`lines`.
    """

    start: int
    end: int
    lines: list[str] = field(default_factory=list)
    line_starts: list[int] = field(default_factory=list)


@dataclass
class Removal:
    """Range replaced in refresh mode plus directives that must survive it."""

    start: int
    end: int
    kept_directives: list[str] = field(default_factory=list)


def newline_for(text: str) -> str:
    """Line terminator used by *text* (``\\r\\n`` when the file has any)."""
    return "\r\n" if "\r\n" in text else "\n"


def line_start_offset(text: str, offset: int) -> int:
    """Offset of the first character of the line containing *offset*."""
    return text.rfind("\n", 0, offset) + 1


def line_indent(text: str, bol: int) -> str:
    """Leading whitespace of the line starting at *bol*, verbatim."""
    end = bol
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[bol:end]


def _previous_line(text: str, bol: int) -> Optional[tuple[int, str]]:
    if bol <= 0:
        return None
    end = bol - 1
    start = text.rfind("\n", 0, end) + 1
    line = text[start:end]
    if line.endswith("\r"):
        line = line[:-1]
    return start, line


def is_comment_line(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_MARKER)


def existing_comment_run(text: str, bol: int) -> Optional[CommentRun]:
    """Find the comment run above the line starting at *bol*.

    Blank lines directly above the line are skipped. If the nearest
    non-blank line is not a comment there is no run.
    """
    cursor = bol
    previous = _previous_line(text, cursor)
    while previous is not None and not previous[1].strip():
        cursor = previous[0]
        previous = _previous_line(text, cursor)
    if previous is None or not is_comment_line(previous[1]):
        return None

    last_start = previous[0]
    newline = text.find("\n", last_start)
    end = newline + 1 if newline >= 0 else len(text)

    lines: list[str] = []
    starts: list[int] = []
    while previous is not None and is_comment_line(previous[1]):
        starts.append(previous[0])
        lines.append(previous[1])
        previous = _previous_line(text, previous[0])
    lines.reverse()
    starts.reverse()
    return CommentRun(start=starts[0], end=end, lines=lines, line_starts=starts)


def is_preserved_directive_line(line: str) -> bool:
    """Whether *line* is tooling metadata (linter, encoding, coverage pragmas)."""
    return any(pattern.search(line) for pattern in _DIRECTIVE_PATTERNS)


def is_doc_marker_line(line: str) -> bool:
    """Whether *line* is a generated header or a YARD tag line."""
    if is_preserved_directive_line(line):
        return False
    return bool(_HEADER_RE.search(line) or _TAG_RE.search(line))


def _preserved_prefix_length(lines: list[str]) -> int:
    count = 0
    for line in lines:
        if not is_preserved_directive_line(line):
            break
        count += 1
    return count


def removable_range_for_refresh(text: str, bol: int) -> Optional[Removal]:
    """Range of the doc-like block above *bol* that refresh mode replaces.

    Leading directive lines stay where they are. Nothing is removable
    unless the rest of the run holds at least one header or tag line, so
    ordinary comments are never deleted. Directive lines found further
    down the run are returned in :attr:`Removal.kept_directives`.
    """
    run = existing_comment_run(text, bol)
    if run is None:
        return None
    prefix = _preserved_prefix_length(run.lines)
    remainder = run.lines[prefix:]
    if not any(is_doc_marker_line(line) for line in remainder):
        return None
    start = run.line_starts[prefix]
    kept = [line for line in remainder if is_preserved_directive_line(line)]
    return Removal(start=start, end=bol, kept_directives=kept)


def doc_like_block_info(text: str, bol: int) -> Optional[CommentRun]:
    """The comment run above *bol* when it is doc-like, for merge mode.

    The returned run includes any leading directive lines.
    """
    run = existing_comment_run(text, bol)
    if run is None:
        return None
    prefix = _preserved_prefix_length(run.lines)
    if not any(is_doc_marker_line(line) for line in run.lines[prefix:]):
        return None
    return run
