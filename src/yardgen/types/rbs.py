"""Signature provider backed by RBS (``.rbs``) signature files.

The reader understands the subset of RBS that carries method types:

* ``class``/``module`` blocks, nested or written with ``::`` paths, closed
  by ``end`` (``interface`` blocks are skipped);
* ``def name: (...) -> T`` for instance methods, ``def self.name:`` for
  singleton methods and ``def self?.name:`` for ``module_function``-style
  methods that exist in both scopes;
* ``attr_reader``/``attr_writer``/``attr_accessor`` declarations.

Only the first overload of a method is used. Overloads continued on
following lines with a leading ``|`` are tolerated.

Types are rendered in YARD notation by :func:`to_yard`::

    to_yard("Hash[Symbol, untyped]")   # 'Hash<Symbol, Object>'
    to_yard("String | Integer | nil")  # 'String, Integer, nil'
    to_yard("bool?")                   # 'Boolean?'
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional

from yardgen.models import Scope
from yardgen.types.provider import RestKeywords, RestPositional, Signature

_BLOCK_RE = re.compile(r"^(class|module|interface)\s+((?:::)?[A-Za-z_][\w:]*)")
_DEF_RE = re.compile(r"^def\s+(?:(self\??)\.)?(\S+?)\s*:\s*(.*)$")
_ATTR_RE = re.compile(
    r"^(attr_reader|attr_writer|attr_accessor)\s+(self\.)?(\w+[?!]?)\s*(?:\([^)]*\))?\s*:\s*(.+)$"
)
_END_RE = re.compile(r"^end\b")
_INLINE_END_RE = re.compile(r"\send$")
_KEYWORD_PARAM_RE = re.compile(r"^(\?)?([A-Za-z_]\w*):(?!:)\s*(.+)$")
_PARAM_NAME_RE = re.compile(r"^[a-z_]\w*$")
_GENERIC_RE = re.compile(r"^((?:::)?[\w:]+)\[(.*)\]$", re.DOTALL)
_INTEGER_RE = re.compile(r"^-?\d+$")

_OPEN = "([{"
_CLOSE = ")]}"
_OPERATOR_SUFFIXES = ("|", "&", ",", "->", "(", "[", "{", "^")

_KEYWORD_TYPES = {
    "bool": "Boolean",
    "boolish": "Boolean",
    "true": "Boolean",
    "false": "Boolean",
    "untyped": "Object",
    "top": "Object",
    "bot": "Object",
    "void": "void",
    "nil": "nil",
    "class": "Class",
}

TOP_LEVEL_CONTAINER = "Object"


# ------------------------------------------------------------------ #
# Bracket-aware string helpers
# ------------------------------------------------------------------ #


def _split_top_level(text: str, sep: str) -> list[str]:
    """Split *text* on the single character *sep* outside brackets and quotes."""
    parts: list[str] = []
    depth = 0
    quote: Optional[str] = None
    current: list[str] = []
    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
            current.append(ch)
        elif ch in _OPEN:
            depth += 1
            current.append(ch)
        elif ch in _CLOSE:
            depth -= 1
            current.append(ch)
        elif ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts]


def _matching(text: str, start: int) -> int:
    """Index of the bracket closing the one at *start*, or -1."""
    depth = 0
    for index in range(start, len(text)):
        ch = text[index]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return index
    return -1


def _bracket_depth(text: str) -> int:
    return sum(text.count(c) for c in _OPEN) - sum(text.count(c) for c in _CLOSE)


# ------------------------------------------------------------------ #
# Type formatting
# ------------------------------------------------------------------ #


def to_yard(text: str, collapse_generics: bool = False) -> str:
    """Render the RBS type *text* as a YARD type string.

    Args:
        text: An RBS type such as ``Array[String]?``.
        collapse_generics: Drop type arguments (``Hash<K, V>`` -> ``Hash``).

    Returns:
        The YARD type. Unknown shapes are returned with the leading ``::``
        removed.
    """
    text = text.strip()
    if not text:
        return "Object"

    if text.startswith("^"):
        return "Proc"

    union = _split_top_level(text, "|")
    if len(union) > 1:
        rendered: list[str] = []
        for part in union:
            yard = to_yard(part, collapse_generics)
            if yard not in rendered:
                rendered.append(yard)
        return ", ".join(rendered)

    if len(_split_top_level(text, "&")) > 1:
        return "Object"

    if text.endswith("?") and len(text) > 1:
        return f"{to_yard(text[:-1], collapse_generics)}?"

    if text.startswith("(") and _matching(text, 0) == len(text) - 1:
        return to_yard(text[1:-1], collapse_generics)
    if text.startswith("["):
        return "Array"
    if text.startswith("{"):
        return "Hash"
    if text[0] in "\"'":
        return "String"
    if text.startswith(":") and not text.startswith("::"):
        return "Symbol"
    if _INTEGER_RE.match(text):
        return "Integer"
    if text in _KEYWORD_TYPES:
        return _KEYWORD_TYPES[text]
    if text.startswith("singleton(") and text.endswith(")"):
        return "Class"

    generic = _GENERIC_RE.match(text)
    if generic:
        name = generic.group(1).lstrip(":")
        if collapse_generics:
            return name
        args = [to_yard(a, collapse_generics) for a in _split_top_level(generic.group(2), ",")]
        return f"{name}<{', '.join(args)}>"

    return text.lstrip(":") if text.startswith("::") else text


# ------------------------------------------------------------------ #
# Method types
# ------------------------------------------------------------------ #


def first_overload(method_type: str) -> str:
    """Cut *method_type* at the ``|`` that starts a second overload."""
    depth = 0
    seen_arrow = False
    index = 0
    while index < len(method_type):
        ch = method_type[index]
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
        elif depth == 0 and method_type.startswith("->", index):
            seen_arrow = True
            index += 2
            continue
        elif ch == "|" and depth == 0:
            rest = method_type[index + 1:].lstrip()
            if not seen_arrow and not method_type[:index].strip():
                # Leading '|' of a continuation line.
                index += 1
                continue
            if seen_arrow and rest[:1] in ("(", "["):
                return method_type[:index].strip()
        index += 1
    return method_type.strip()


def parse_method_type(method_type: str, collapse_generics: bool = False) -> Signature:
    """Build a :class:`Signature` from one RBS method type.

    Example::

        parse_method_type("(Integer id, ?verbose: bool) -> User?")
        # Signature(return_type='User?', param_types={'id': 'Integer', 'verbose': 'Boolean'})
    """
    text = first_overload(method_type)

    if text.startswith("["):
        end = _matching(text, 0)
        text = text[end + 1:].strip() if end >= 0 else text

    params_text = ""
    if text.startswith("("):
        end = _matching(text, 0)
        if end >= 0:
            params_text = text[1:end]
            text = text[end + 1:].strip()

    if text.startswith("?"):
        text = text[1:].strip()
    if text.startswith("{"):
        end = _matching(text, 0)
        text = text[end + 1:].strip() if end >= 0 else ""

    return_text = text[2:].strip() if text.startswith("->") else ""
    return_type = to_yard(return_text, collapse_generics) if return_text else "Object"

    param_types: dict[str, str] = {}
    rest_positional: Optional[RestPositional] = None
    rest_keywords: Optional[RestKeywords] = None

    for raw in _split_top_level(params_text, ","):
        if not raw:
            continue
        if raw.startswith("**"):
            type_text, _ = _type_and_name(raw[2:])
            rest_keywords = RestKeywords(value_type=to_yard(type_text, collapse_generics))
            continue
        if raw.startswith("*"):
            type_text, _ = _type_and_name(raw[1:])
            rest_positional = RestPositional(element_type=to_yard(type_text, collapse_generics))
            continue

        keyword = _KEYWORD_PARAM_RE.match(raw)
        if keyword:
            param_types[keyword.group(2)] = to_yard(keyword.group(3), collapse_generics)
            continue

        positional = raw[1:] if raw.startswith("?") else raw
        type_text, name = _type_and_name(positional)
        if name:
            param_types[name] = to_yard(type_text, collapse_generics)

    return Signature(
        return_type=return_type,
        param_types=param_types,
        rest_positional=rest_positional,
        rest_keywords=rest_keywords,
    )


def _type_and_name(text: str) -> tuple[str, Optional[str]]:
    """Split ``Type name`` into its parts; the name is optional in RBS."""
    text = text.strip()
    pieces = text.rsplit(None, 1)
    if len(pieces) == 2:
        head, tail = pieces
        if _PARAM_NAME_RE.match(tail) and not head.endswith(_OPERATOR_SUFFIXES):
            return head, tail
    return text, None


# ------------------------------------------------------------------ #
# Provider
# ------------------------------------------------------------------ #


class RBSSignatureProvider:
    """Look up method signatures in ``*.rbs`` files.

    The files are read once, on the first lookup, and the resulting index
    is never modified afterwards.

    Args:
        sig_dirs: Directories searched recursively for ``*.rbs`` files.
            Missing directories are ignored.
        collapse_generics: Render ``Hash[K, V]`` as plain ``Hash``.
        root: Directory that relative *sig_dirs* are resolved against.
            Defaults to the current working directory.
    """

    def __init__(
        self,
        sig_dirs: Iterable[str],
        collapse_generics: bool = False,
        root: Optional[Path] = None,
    ) -> None:
        self.sig_dirs = [str(d) for d in sig_dirs]
        self.collapse_generics = collapse_generics
        self._root = root
        self._index: Optional[dict[tuple[str, Scope, str], Signature]] = None

    def signature_for(self, container: str, scope: Scope, name: str) -> Optional[Signature]:
        index = self._load()
        key = container[2:] if container.startswith("::") else container
        return index.get((key or TOP_LEVEL_CONTAINER, scope, name))

    # -- indexing ---------------------------------------------------------

    def _files(self) -> list[Path]:
        root = self._root or Path.cwd()
        files: list[Path] = []
        for entry in self.sig_dirs:
            directory = Path(entry)
            if not directory.is_absolute():
                directory = root / directory
            if directory.is_dir():
                files.extend(sorted(directory.rglob("*.rbs")))
        return files

    def _load(self) -> dict[tuple[str, Scope, str], Signature]:
        if self._index is None:
            from yardgen.output import debug

            index: dict[tuple[str, Scope, str], Signature] = {}
            files = self._files()
            for path in files:
                self.index_source(path.read_text(encoding="utf-8"), index)
            debug(f"Indexed {len(index)} RBS signature(s) from {len(files)} file(s)")
            self._index = index
        return self._index

    def index_source(
        self, text: str, index: dict[tuple[str, Scope, str], Signature]
    ) -> None:
        """Add every declaration in the RBS *text* to *index* (first one wins)."""
        stack: list[tuple[str, str]] = []
        lines = [_strip_comment(line) for line in text.splitlines()]
        position = 0
        while position < len(lines):
            line = lines[position].strip()
            position += 1
            if not line:
                continue

            block = _BLOCK_RE.match(line)
            if block:
                stack.append((block.group(1), block.group(2)))
                if _INLINE_END_RE.search(line):
                    stack.pop()
                continue
            if _END_RE.match(line):
                if stack:
                    stack.pop()
                continue
            if stack and stack[-1][0] == "interface":
                continue

            container = _container_name(stack)

            definition = _DEF_RE.match(line)
            if definition:
                receiver, name, method_type = definition.groups()
                # Overload and parameter lists may continue on later lines.
                while position < len(lines):
                    following = lines[position].strip()
                    if (
                        not method_type
                        or _bracket_depth(method_type) > 0
                        or following.startswith("|")
                    ):
                        method_type = f"{method_type} {following}"
                        position += 1
                    else:
                        break
                signature = parse_method_type(method_type, self.collapse_generics)
                for scope in _scopes_for(receiver):
                    index.setdefault((container, scope, name), signature)
                continue

            attribute = _ATTR_RE.match(line)
            if attribute:
                kind, receiver, name, type_text = attribute.groups()
                scope = Scope.CLASS if receiver else Scope.INSTANCE
                yard = to_yard(type_text, self.collapse_generics)
                if kind in ("attr_reader", "attr_accessor"):
                    index.setdefault((container, scope, name), Signature(return_type=yard))
                if kind in ("attr_writer", "attr_accessor"):
                    index.setdefault(
                        (container, scope, f"{name}="),
                        Signature(return_type=yard, param_types={"value": yard}),
                    )


def _strip_comment(line: str) -> str:
    """Drop a ``#`` comment that is not inside a string literal."""
    quote: Optional[str] = None
    for index, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "#":
            return line[:index]
    return line


def _container_name(stack: list[tuple[str, str]]) -> str:
    path = ""
    for _kind, name in stack:
        if name.startswith("::"):
            path = name[2:]
        else:
            path = f"{path}::{name}" if path else name
    return path or TOP_LEVEL_CONTAINER


def _scopes_for(receiver: Optional[str]) -> tuple[Scope, ...]:
    if receiver == "self":
        return (Scope.CLASS,)
    if receiver == "self?":
        return (Scope.CLASS, Scope.INSTANCE)
    return (Scope.INSTANCE,)
