"""Parameter extraction and heuristic parameter typing."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node

from yardgen.infer.literals import classify
from yardgen.parsing import SourceBuffer, named

OPTIONS_NAME = "options"

# Names YARD docs use for anonymous rest/block parameters (`*`, `**`, `&`).
_ANONYMOUS_NAMES = {
    "splat_parameter": "args",
    "hash_splat_parameter": "kwargs",
    "block_parameter": "block",
}

# `...`, `**nil` and `|(a, b)|`-style parameters have no documentable name.
_SKIPPED = ("forward_parameter", "hash_splat_nil", "destructured_parameter")


class ParamKind(str, enum.Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    KEYWORD = "keyword"
    OPTIONAL_KEYWORD = "optional_keyword"
    REST = "rest"
    KEYWORD_REST = "keyword_rest"
    BLOCK = "block"


@dataclass
class ParamInfo:
    """One formal parameter with its heuristic type."""

    name: str
    kind: ParamKind
    type: str


def parameters_node(method: Node) -> Optional[Node]:
    return method.child_by_field_name("parameters")


def infer_param_type(
    buffer: SourceBuffer,
    kind: ParamKind,
    name: str,
    default: Optional[Node],
    fallback: str,
    treat_options_keyword_as_hash: bool = True,
) -> str:
    """Heuristic type of one parameter from its shape, name and default.

    Args:
        buffer: Source the default value node belongs to.
        kind: Parameter kind.
        name: Parameter name without sigils.
        default: Default value expression, if any.
        fallback: Type used when nothing better is known.
        treat_options_keyword_as_hash: Type a keyword named ``options`` as
            ``Hash``.

    Returns:
        A YARD type name.
    """
    if kind is ParamKind.REST:
        return "Array"
    if kind is ParamKind.KEYWORD_REST:
        return "Hash"
    if kind is ParamKind.BLOCK:
        return "Proc"

    is_options = treat_options_keyword_as_hash and name == OPTIONS_NAME
    if kind is ParamKind.KEYWORD:
        return "Hash" if is_options else fallback

    inferred = classify(buffer, default, fallback)
    if kind is ParamKind.OPTIONAL_KEYWORD and is_options:
        if inferred == "Hash" or (
            default is not None and buffer.node_text(default).strip() == "{}"
        ):
            return "Hash"
    return inferred


def collect_params(
    buffer: SourceBuffer,
    method: Node,
    fallback: str,
    treat_options_keyword_as_hash: bool = True,
) -> list[ParamInfo]:
    """Formal parameters of *method* in declaration order."""
    params: list[ParamInfo] = []
    for node in named(parameters_node(method)):
        info = _param_info(buffer, node, fallback, treat_options_keyword_as_hash)
        if info is not None:
            params.append(info)
    return params


def _param_info(
    buffer: SourceBuffer,
    node: Node,
    fallback: str,
    treat_options_keyword_as_hash: bool,
) -> Optional[ParamInfo]:
    kind_name = node.type
    if kind_name in _SKIPPED:
        return None

    if kind_name == "identifier":
        kind, name, default = ParamKind.REQUIRED, buffer.node_text(node), None
    elif kind_name == "optional_parameter":
        kind = ParamKind.OPTIONAL
        name, default = _name_and_value(buffer, node)
    elif kind_name == "keyword_parameter":
        name, default = _name_and_value(buffer, node)
        kind = ParamKind.KEYWORD if default is None else ParamKind.OPTIONAL_KEYWORD
    elif kind_name in _ANONYMOUS_NAMES:
        kind = {
            "splat_parameter": ParamKind.REST,
            "hash_splat_parameter": ParamKind.KEYWORD_REST,
            "block_parameter": ParamKind.BLOCK,
        }[kind_name]
        name_node = node.child_by_field_name("name")
        name = buffer.node_text(name_node) if name_node is not None else _ANONYMOUS_NAMES[kind_name]
        default = None
    else:
        return None

    if not name:
        return None
    type_name = infer_param_type(
        buffer, kind, name, default, fallback, treat_options_keyword_as_hash
    )
    return ParamInfo(name=name, kind=kind, type=type_name)


def _name_and_value(buffer: SourceBuffer, node: Node) -> tuple[str, Optional[Node]]:
    name_node = node.child_by_field_name("name")
    name = buffer.node_text(name_node) if name_node is not None else ""
    return name, node.child_by_field_name("value")
