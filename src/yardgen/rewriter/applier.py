"""Turn insertions into text edits and apply them.

Planning happens against the untouched source: every offset in a
:class:`DocBlockPlan` refers to the original text. Plans that share an
anchor are merged into a single edit, and edits are applied from the end
of the file towards the start so earlier offsets stay valid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from yardgen.filtering import attribute_allowed, method_allowed
from yardgen.models import Mode, YardgenConfig
from yardgen.parsing import SourceBuffer
from yardgen.rewriter.collector import ATTRIBUTE, Insertion
from yardgen.rewriter.doc_builder import DocBuilder
from yardgen.rewriter.source_helpers import (
    doc_like_block_info,
    existing_comment_run,
    line_indent,
    line_start_offset,
    newline_for,
    removable_range_for_refresh,
)

_BLANK_COMMENT_RE = re.compile(r"^\s*#\s*$")


@dataclass
class DocBlockPlan:
    """One planned edit.

    Attributes:
        anchor: Offset the new lines are inserted at.
        remove_start: Start of the range replaced by the new lines; equal
            to :attr:`anchor` when nothing is removed.
        lines: New lines, without terminators, already indented.
        indent: Indentation of the documented definition's line.
        merge: Lines are a merge delta rather than a full block.
        trailer: Lines re-emitted after the block (directives that sat
            inside a replaced range).
    """

    anchor: int
    remove_start: int
    lines: list[str]
    indent: str
    merge: bool = False
    trailer: list[str] = field(default_factory=list)


def is_allowed(insertion: Insertion, config: YardgenConfig) -> bool:
    """Apply the ``emit.attributes`` toggle and the method filters."""
    if insertion.kind == ATTRIBUTE:
        if not config.emit.attributes:
            return False
        return attribute_allowed(
            config.filter,
            insertion.container,
            insertion.scope,
            insertion.visibility,
            insertion.name,
            insertion.access or "r",
        )
    return method_allowed(
        config.filter,
        insertion.container,
        insertion.scope,
        insertion.visibility,
        insertion.name,
    )


def plan_insertions(
    buffer: SourceBuffer,
    insertions: Iterable[Insertion],
    mode: Mode,
    config: YardgenConfig,
    builder: DocBuilder,
) -> list[DocBlockPlan]:
    """Compute the edits for *insertions* in source order.

    Args:
        buffer: The parsed source.
        insertions: Output of the collector.
        mode: Insert, replace or merge.
        config: Effective configuration.
        builder: Renders full blocks and merge deltas.

    Returns:
        Plans in the order they were computed.
    """
    text = buffer.text
    plans: list[DocBlockPlan] = []

    for insertion in sorted(insertions, key=lambda item: item.start_byte):
        if not is_allowed(insertion, config):
            continue

        bol = line_start_offset(text, buffer.node_start(insertion.node))
        indent = line_indent(text, bol)

        if mode is Mode.INSERT:
            if existing_comment_run(text, bol) is not None:
                continue
            lines = builder.build(insertion, indent)
            if lines:
                plans.append(DocBlockPlan(anchor=bol, remove_start=bol, lines=lines, indent=indent))

        elif mode is Mode.REPLACE:
            lines = builder.build(insertion, indent)
            if not lines:
                continue
            removal = removable_range_for_refresh(text, bol)
            if removal is None:
                plans.append(DocBlockPlan(anchor=bol, remove_start=bol, lines=lines, indent=indent))
            else:
                plans.append(
                    DocBlockPlan(
                        anchor=bol,
                        remove_start=removal.start,
                        lines=lines,
                        indent=indent,
                        trailer=removal.kept_directives,
                    )
                )

        else:
            block = doc_like_block_info(text, bol)
            if block is not None:
                additions = builder.build_merge_additions(insertion, block.lines, indent)
                if additions:
                    plans.append(
                        DocBlockPlan(
                            anchor=block.end,
                            remove_start=block.end,
                            lines=additions,
                            indent=indent,
                            merge=True,
                        )
                    )
                continue
            lines = builder.build(insertion, indent)
            if not lines:
                continue
            anchor = _above_plain_comment(text, bol)
            plans.append(DocBlockPlan(anchor=anchor, remove_start=anchor, lines=lines, indent=indent))

    return plans


def _above_plain_comment(text: str, bol: int) -> int:
    """Offset above a comment run that directly touches the line at *bol*.

    A comment separated from the definition by blank lines (for example a
    magic comment at the top of the file) does not belong to it; the
    block then goes directly above the definition.
    """
    run = existing_comment_run(text, bol)
    if run is None or run.end != bol:
        return bol
    return run.start


def _is_blank_comment(line: str) -> bool:
    return bool(_BLANK_COMMENT_RE.match(line))


def _group_lines(plans: list[DocBlockPlan]) -> list[str]:
    lines: list[str] = []
    full = [plan for plan in plans if not plan.merge]
    for index, plan in enumerate(full):
        if index:
            lines.append(f"{plan.indent}#")
        lines.extend(plan.lines)

    for plan in (plan for plan in plans if plan.merge):
        chunk = plan.lines
        if lines and chunk and _is_blank_comment(lines[-1]) and _is_blank_comment(chunk[0]):
            chunk = chunk[1:]
        lines.extend(chunk)

    for plan in plans:
        if plan.trailer:
            lines.extend(plan.trailer)
            break
    return lines


def apply_plans(text: str, plans: list[DocBlockPlan]) -> str:
    """Apply *plans* to *text*, highest offset first."""
    if not plans:
        return text

    groups: dict[tuple[int, int], list[DocBlockPlan]] = {}
    for plan in plans:
        groups.setdefault((plan.anchor, plan.remove_start), []).append(plan)

    newline = newline_for(text)
    for (anchor, remove_start), grouped in sorted(groups.items(), reverse=True):
        lines = _group_lines(grouped)
        if not lines:
            continue
        block = "".join(f"{line}{newline}" for line in lines)
        text = f"{text[:remove_start]}{block}{text[anchor:]}"
    return text
