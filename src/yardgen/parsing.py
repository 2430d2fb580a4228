"""tree-sitter front-end for Ruby source.

Parses Ruby with the ``tree-sitter-ruby`` grammar and exposes the handful
of node helpers the walker and the inference modules share. tree-sitter
reports positions as UTF-8 byte offsets while every text edit in yardgen
works on ``str``; :class:`SourceBuffer` converts between the two.

The grammar's node kinds used throughout the package:

* definitions -- ``method``, ``singleton_method``, ``class``, ``module``,
  ``singleton_class``
* bodies -- ``program``, ``body_statement``, ``then``, ``else``, ``begin``,
  ``parenthesized_statements``
* control flow -- ``if``, ``unless``, ``elsif``, ``if_modifier``,
  ``unless_modifier``, ``conditional``, ``case``, ``case_match``,
  ``when``, ``in_clause``, ``return``, ``rescue``, ``rescue_modifier``
* calls -- ``call`` (fields ``receiver``, ``method``, ``arguments``) and a
  bare ``identifier`` for argument-less calls such as ``private``
"""

from __future__ import annotations

from typing import Optional

import tree_sitter_ruby
from tree_sitter import Language, Node, Parser, Tree

from yardgen.exceptions import SourceParseError

RUBY_LANGUAGE = Language(tree_sitter_ruby.language())

# Field names that hold a definition's signature rather than its body.
_HEADER_FIELDS = ("name", "parameters", "superclass", "object", "value")


class SourceBuffer:
    """Ruby source text plus its UTF-8 encoding.

    Args:
        text: The source as read from disk (line endings untouched).
        name: Display name used in diagnostics.
    """

    def __init__(self, text: str, name: str = "(inline)") -> None:
        self.text = text
        self.name = name
        self.data = text.encode("utf-8", errors="surrogateescape")
        self._ascii = len(self.data) == len(text)

    def char_offset(self, byte_offset: int) -> int:
        """Convert a tree-sitter byte offset into an index into :attr:`text`."""
        if self._ascii:
            return byte_offset
        return len(self.data[:byte_offset].decode("utf-8", errors="surrogateescape"))

    def node_text(self, node: Node) -> str:
        """Source text covered by *node*."""
        return self.data[node.start_byte:node.end_byte].decode("utf-8", errors="surrogateescape")

    def node_start(self, node: Node) -> int:
        """Character offset of the first character of *node*."""
        return self.char_offset(node.start_byte)

    def line_of(self, node: Node) -> int:
        """1-based line number of *node*."""
        return node.start_point[0] + 1


def new_parser() -> Parser:
    """Return a tree-sitter parser configured for Ruby."""
    parser = Parser()
    parser.language = RUBY_LANGUAGE
    return parser


def parse_source(buffer: SourceBuffer) -> Tree:
    """Parse *buffer* into a syntax tree.

    Raises:
        SourceParseError: If the grammar reports any syntax error.
    """
    tree = new_parser().parse(buffer.data)
    root = tree.root_node
    if root is None or root.has_error:
        line = _first_error_line(root) if root is not None else None
        where = f"{buffer.name}:{line}" if line else buffer.name
        raise SourceParseError(f"Syntax error in {where}", file=buffer.name)
    return tree


def _first_error_line(node: Node) -> Optional[int]:
    """1-based line of the first ERROR or MISSING node below *node*."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


# --- Node helpers ---


def named(node: Optional[Node]) -> list[Node]:
    """Named children of *node*, without comments."""
    if node is None:
        return []
    return [child for child in node.named_children if child.type != "comment"]


def body_node(node: Node) -> Optional[Node]:
    """The body of a class, module, method or singleton class.

    Newer grammars wrap bodies in a ``body_statement`` node under the
    ``body`` field; an endless method (``def x = 1``) stores the expression
    itself there.
    """
    body = node.child_by_field_name("body")
    if body is not None:
        return body
    for child in node.named_children:
        if child.type == "body_statement":
            return child
    return None


def body_statements(node: Node) -> list[Node]:
    """Top-level statements of a definition body (or of ``program``)."""
    if node.type == "program":
        return named(node)
    body = body_node(node)
    if body is not None:
        if body.type == "body_statement":
            return named(body)
        return [body]
    # Grammars without body_statement put statements straight on the node.
    header = [node.child_by_field_name(f) for f in _HEADER_FIELDS]
    return [
        child for child in named(node)
        if not any(h is not None and child == h for h in header)
    ]


def call_name(buffer: SourceBuffer, node: Node) -> Optional[str]:
    """Method name of a ``call`` node, or the text of a bare ``identifier``."""
    if node.type == "identifier":
        return buffer.node_text(node)
    if node.type == "call":
        method = node.child_by_field_name("method")
        if method is not None:
            return buffer.node_text(method)
    return None


def call_arguments(node: Node) -> list[Node]:
    """Arguments of a ``call`` node (empty for bare identifiers)."""
    if node.type != "call":
        return []
    return named(node.child_by_field_name("arguments"))


def is_receiverless(node: Node) -> bool:
    """Whether a call has no explicit receiver (``raise``, ``private :x``)."""
    if node.type == "identifier":
        return True
    return node.type == "call" and node.child_by_field_name("receiver") is None


def definition_name(buffer: SourceBuffer, node: Node) -> Optional[str]:
    """Name of a ``method`` or ``singleton_method`` node (``foo``, ``foo=``, ``[]``)."""
    name = node.child_by_field_name("name")
    if name is None:
        return None
    return buffer.node_text(name)


def symbol_name(buffer: SourceBuffer, node: Node) -> Optional[str]:
    """Plain name from a symbol or string literal argument.

    Returns ``None`` for interpolated literals and anything else.
    """
    if node.type == "simple_symbol":
        return buffer.node_text(node)[1:] or None
    if node.type in ("delimited_symbol", "string"):
        parts = named(node)
        if any(p.type != "string_content" for p in parts):
            return None
        text = "".join(buffer.node_text(p) for p in parts)
        return text or None
    return None
