"""Exception inference from ``raise``/``fail`` calls and ``rescue`` clauses."""

from __future__ import annotations

from typing import Callable, Optional

from tree_sitter import Node

from yardgen.infer.names import const_full_name
from yardgen.parsing import SourceBuffer, call_arguments, call_name, is_receiverless, named

DEFAULT_ERROR = "StandardError"

_RAISE_METHODS = ("raise", "fail")


def exception_names(buffer: SourceBuffer, rescue: Node) -> list[str]:
    """Exception classes named by a ``rescue`` clause.

    ``rescue`` alone means ``StandardError``; entries that are not constant
    paths (``rescue *ERRORS``) also map to ``StandardError``.
    """
    listed = named(rescue.child_by_field_name("exceptions"))
    if not listed:
        return [DEFAULT_ERROR]
    return [const_full_name(buffer, node) or DEFAULT_ERROR for node in listed]


def _raised_by_call(buffer: SourceBuffer, node: Node) -> Optional[str]:
    """Exception raised by a receiverless ``raise``/``fail``, else ``None``."""
    if call_name(buffer, node) not in _RAISE_METHODS or not is_receiverless(node):
        return None
    args = call_arguments(node)
    if not args:
        return DEFAULT_ERROR
    return const_full_name(buffer, args[0]) or DEFAULT_ERROR


def _skipped_child(node: Node) -> Optional[Node]:
    """Child holding a name rather than code: a call's method or a def's name."""
    if node.type == "call":
        return node.child_by_field_name("method")
    if node.type in ("method", "singleton_method"):
        return node.child_by_field_name("name")
    return None


def _visit(buffer: SourceBuffer, node: Node, record: Callable[[str], None]) -> None:
    kind = node.type
    if kind == "rescue":
        for name in exception_names(buffer, node):
            record(name)
    elif kind == "rescue_modifier":
        # `expr rescue fallback`: the guarded expression comes first.
        _visit_optional(buffer, node.child_by_field_name("body"), record)
        record(DEFAULT_ERROR)
        _visit_optional(buffer, node.child_by_field_name("handler"), record)
        return
    elif kind in ("call", "identifier"):
        raised = _raised_by_call(buffer, node)
        if raised is not None:
            record(raised)

    skip = _skipped_child(node)
    for child in node.named_children:
        if skip is not None and child == skip:
            continue
        _visit(buffer, child, record)


def _visit_optional(
    buffer: SourceBuffer, node: Optional[Node], record: Callable[[str], None]
) -> None:
    if node is not None:
        _visit(buffer, node, record)


def collect_raised_types(buffer: SourceBuffer, method: Node) -> list[str]:
    """Exception classes *method* may raise, in source order, de-duplicated.

    Args:
        buffer: Source the node belongs to.
        method: A ``method`` or ``singleton_method`` node.

    Returns:
        Fully qualified class names; ``::`` root prefixes are preserved.
    """
    found: list[str] = []

    def record(name: str) -> None:
        if name not in found:
            found.append(name)

    _visit(buffer, method, record)
    return found
