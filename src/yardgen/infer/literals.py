"""Map Ruby literal nodes to YARD type names.

:func:`classify` is total: anything it does not recognise (method calls,
variables, arithmetic) maps to the caller's fallback type.
"""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from yardgen.parsing import SourceBuffer, named

_LITERAL_TYPES: dict[str, str] = {
    "integer": "Integer",
    "float": "Float",
    "string": "String",
    "chained_string": "String",
    "heredoc_beginning": "String",
    "simple_symbol": "Symbol",
    "delimited_symbol": "Symbol",
    "hash_key_symbol": "Symbol",
    "true": "Boolean",
    "false": "Boolean",
    "nil": "nil",
    "array": "Array",
    "string_array": "Array",
    "symbol_array": "Array",
    "hash": "Hash",
    "regex": "Regexp",
}

NIL_TYPE = "nil"


def last_segment(buffer: SourceBuffer, node: Node) -> Optional[str]:
    """``Foo`` for ``Foo``, ``Bar`` for ``Foo::Bar``; ``None`` for non-constants."""
    if node.type == "constant":
        return buffer.node_text(node)
    if node.type == "scope_resolution":
        name = node.child_by_field_name("name")
        if name is not None and name.type == "constant":
            return buffer.node_text(name)
    return None


def classify(buffer: SourceBuffer, node: Optional[Node], fallback: str) -> str:
    """Return the coarse type of the expression *node*.

    Args:
        buffer: Source the node belongs to.
        node: Expression node, or ``None``.
        fallback: Type returned for anything unrecognised.

    Returns:
        A YARD type name such as ``Integer``, ``Boolean`` or ``nil``, the
        class name for ``Foo`` and ``Foo.new(...)``, or *fallback*.
    """
    if node is None:
        return fallback

    kind = node.type
    literal = _LITERAL_TYPES.get(kind)
    if literal is not None:
        return literal

    if kind in ("constant", "scope_resolution"):
        return last_segment(buffer, node) or fallback

    if kind == "unary":
        # -1, +2.5
        operand = node.child_by_field_name("operand")
        operator = node.child_by_field_name("operator")
        if (
            operand is not None
            and operand.type in ("integer", "float")
            and operator is not None
            and buffer.node_text(operator) in ("-", "+")
        ):
            return _LITERAL_TYPES[operand.type]
        return fallback

    if kind == "call":
        receiver = node.child_by_field_name("receiver")
        method = node.child_by_field_name("method")
        if (
            receiver is not None
            and method is not None
            and buffer.node_text(method) == "new"
        ):
            return last_segment(buffer, receiver) or fallback
        return fallback

    if kind == "parenthesized_statements":
        inner = named(node)
        if len(inner) == 1:
            return classify(buffer, inner[0], fallback)

    return fallback
