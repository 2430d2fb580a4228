"""Return type inference, including rescue-conditional returns.

The inference looks only at the *last expression* of a method body and
walks through sequences, conditionals, ``case`` branches and explicit
``return`` statements. Two candidate types are unified conservatively:
equal types stay as they are, a type paired with ``nil`` becomes optional
(``String?`` or ``String, nil``), and anything else degrades to the
fallback type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Node

from yardgen.infer.literals import NIL_TYPE, classify
from yardgen.infer.raises import DEFAULT_ERROR, exception_names
from yardgen.parsing import SourceBuffer, body_statements, named

_SEQUENCES = ("body_statement", "then", "else", "begin", "parenthesized_statements")
_CONDITIONALS = ("if", "unless", "elsif", "conditional")
_MODIFIERS = ("if_modifier", "unless_modifier")
_CLAUSES = ("rescue", "else", "ensure")


@dataclass
class ReturnSpec:
    """Normal return type plus one ``(exceptions, type)`` pair per rescue clause."""

    normal: str
    branch_returns: list[tuple[list[str], str]] = field(default_factory=list)


def unify(a: Optional[str], b: Optional[str], fallback: str, nil_as_optional: bool) -> str:
    """Merge two branch types without ever inventing a union of concrete types."""
    a = a or fallback
    b = b or fallback
    if a == b:
        return a
    if NIL_TYPE in (a, b):
        other = b if a == NIL_TYPE else a
        return f"{other}?" if nil_as_optional else f"{other}, {NIL_TYPE}"
    return fallback


def infer(
    buffer: SourceBuffer,
    method: Node,
    fallback: str,
    nil_as_optional: bool = True,
) -> ReturnSpec:
    """Infer the return types of *method*.

    Args:
        buffer: Source the node belongs to.
        method: A ``method`` or ``singleton_method`` node.
        fallback: Type used when inference is uncertain.
        nil_as_optional: Render ``T or nil`` as ``T?``.

    Returns:
        The normal-path type and, when the body is wrapped by ``rescue``
        clauses, one conditional return per clause in source order.
    """
    children = body_statements(method)
    statements = [c for c in children if c.type not in _CLAUSES]
    clauses = [c for c in children if c.type == "rescue"]

    if clauses:
        normal = _last_type(buffer, statements, fallback, nil_as_optional)
        branches = [
            (
                exception_names(buffer, clause),
                last_expr_type(buffer, clause_body(clause), fallback, nil_as_optional)
                or fallback,
            )
            for clause in clauses
        ]
        return ReturnSpec(normal=normal or fallback, branch_returns=branches)

    if len(statements) == 1 and statements[0].type == "rescue_modifier":
        modifier = statements[0]
        normal = last_expr_type(
            buffer, modifier.child_by_field_name("body"), fallback, nil_as_optional
        )
        handler = last_expr_type(
            buffer, modifier.child_by_field_name("handler"), fallback, nil_as_optional
        )
        return ReturnSpec(
            normal=normal or fallback,
            branch_returns=[([DEFAULT_ERROR], handler or fallback)],
        )

    normal = _last_type(buffer, statements, fallback, nil_as_optional)
    return ReturnSpec(normal=normal or fallback)


def _last_type(
    buffer: SourceBuffer, statements: list[Node], fallback: str, nil_as_optional: bool
) -> Optional[str]:
    if not statements:
        return None
    return last_expr_type(buffer, statements[-1], fallback, nil_as_optional)


def last_expr_type(
    buffer: SourceBuffer,
    node: Optional[Node],
    fallback: str,
    nil_as_optional: bool = True,
) -> Optional[str]:
    """Type of the value *node* evaluates to, or ``None`` for an empty branch."""
    if node is None:
        return None
    kind = node.type

    if kind in _SEQUENCES:
        children = named(node)
        if kind == "begin" and any(c.type == "rescue" for c in children):
            return fallback
        statements = [c for c in children if c.type not in _CLAUSES]
        return _last_type(buffer, statements, fallback, nil_as_optional)

    if kind in _CONDITIONALS:
        then_type = last_expr_type(
            buffer, node.child_by_field_name("consequence"), fallback, nil_as_optional
        )
        else_type = last_expr_type(
            buffer, node.child_by_field_name("alternative"), fallback, nil_as_optional
        )
        return unify(then_type, else_type, fallback, nil_as_optional)

    if kind in _MODIFIERS:
        then_type = last_expr_type(
            buffer, node.child_by_field_name("body"), fallback, nil_as_optional
        )
        return unify(then_type, None, fallback, nil_as_optional)

    if kind in ("case", "case_match"):
        branch_types = [
            t for t in (
                _branch_type(buffer, branch, fallback, nil_as_optional)
                for branch in named(node)
                if branch.type in ("when", "in_clause", "else")
            )
            if t is not None
        ]
        if not branch_types:
            return fallback
        result = branch_types[0]
        for other in branch_types[1:]:
            result = unify(result, other, fallback, nil_as_optional)
        return result

    if kind == "return":
        values = named(node)
        if values and values[0].type == "argument_list":
            values = named(values[0])
        if len(values) > 1:
            return "Array"
        return classify(buffer, values[0] if values else None, fallback)

    return classify(buffer, node, fallback)


def _branch_type(
    buffer: SourceBuffer, branch: Node, fallback: str, nil_as_optional: bool
) -> Optional[str]:
    if branch.type == "else":
        return last_expr_type(buffer, branch, fallback, nil_as_optional)
    return last_expr_type(buffer, clause_body(branch), fallback, nil_as_optional)


def clause_body(node: Node) -> Optional[Node]:
    """The ``then`` body of a ``rescue``, ``when`` or ``in`` clause."""
    body = node.child_by_field_name("body")
    if body is not None:
        return body
    for child in node.named_children:
        if child.type == "then":
            return child
    return None
