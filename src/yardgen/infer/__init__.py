"""Heuristic type inference over tree-sitter Ruby nodes.

Every function in this package is total: when inference is uncertain it
returns the configured fallback type instead of raising.
"""

from yardgen.infer.literals import classify
from yardgen.infer.names import const_full_name
from yardgen.infer.params import ParamInfo, ParamKind, collect_params, infer_param_type
from yardgen.infer.raises import DEFAULT_ERROR, collect_raised_types
from yardgen.infer.returns import ReturnSpec, infer, unify

__all__ = [
    "DEFAULT_ERROR",
    "ParamInfo",
    "ParamKind",
    "ReturnSpec",
    "classify",
    "collect_params",
    "collect_raised_types",
    "const_full_name",
    "infer",
    "infer_param_type",
    "unify",
]
