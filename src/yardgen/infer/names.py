"""Constant path resolution."""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from yardgen.parsing import SourceBuffer

ROOT_PREFIX = "::"


def const_full_name(buffer: SourceBuffer, node: Optional[Node]) -> Optional[str]:
    """Fully qualified name of a constant reference.

    ``Foo`` -> ``"Foo"``, ``Foo::Bar`` -> ``"Foo::Bar"``, ``::Foo`` ->
    ``"::Foo"``. Returns ``None`` when any segment is not a constant
    (``foo::Bar``, ``self.class::Error``).
    """
    if node is None:
        return None
    if node.type == "constant":
        return buffer.node_text(node)
    if node.type != "scope_resolution":
        return None

    name = node.child_by_field_name("name")
    if name is None or name.type != "constant":
        return None
    scope = node.child_by_field_name("scope")
    if scope is None:
        return f"{ROOT_PREFIX}{buffer.node_text(name)}"
    left = const_full_name(buffer, scope)
    if left is None:
        return None
    return f"{left}::{buffer.node_text(name)}"


def join_container(path: str, segment: str) -> str:
    """Append *segment* to the container *path*.

    A root-anchored segment (``::Foo``) replaces the current path, as it
    does in Ruby.
    """
    if not path or segment.startswith(ROOT_PREFIX):
        return segment
    return f"{path}::{segment}"
