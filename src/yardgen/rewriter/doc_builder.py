"""Build YARD doc blocks for collected insertions.

A full method block looks like::

    # +Billing::Invoice#total+ -> Integer
    #
    # Method documentation.
    #
    # @private
    # @param [Integer] amount Param documentation.
    # @raise [ArgumentError]
    # @return [Integer]
    # @return [nil] if ArgumentError

Each part is switched on and off through :class:`~yardgen.models.EmitConfig`.
In merge mode :meth:`DocBuilder.build_merge_additions` appends only the
lines an existing block lacks.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Optional

from yardgen.infer.params import ParamKind, collect_params
from yardgen.infer.raises import collect_raised_types
from yardgen.infer.returns import ReturnSpec, infer
from yardgen.models import Visibility, YardgenConfig
from yardgen.parsing import SourceBuffer
from yardgen.rewriter.collector import ATTRIBUTE, Insertion
from yardgen.types.provider import Signature, SignatureAdapter

DEBUG_ENV_VAR = "YARDGEN_DEBUG"

PARAM_DESCRIPTION = "Param documentation."
MODULE_FUNCTION_NOTE = "@note module_function:"

_PARAM_RE = re.compile(r"@param\s+(?:\[[^\]]*\]\s+)?([A-Za-z_]\w*[?!]?)")
_RETURN_RE = re.compile(r"@return\b")
_VISIBILITY_RE = re.compile(r"@(private|protected)\b")
_RAISE_RE = re.compile(r"@raise\s+(?:\[([^\]]*)\]|([A-Za-z_:][\w:]*))")
_ATTRIBUTE_RE = re.compile(r"@!attribute\s+(?:\[[^\]]*\]\s+)?([A-Za-z_]\w*[?!]?)")
_BLANK_COMMENT_RE = re.compile(r"^\s*#\s*$")


@dataclass
class ExistingDoc:
    """What an existing comment block already documents."""

    params: set[str] = field(default_factory=set)
    raises: set[str] = field(default_factory=set)
    attributes: set[str] = field(default_factory=set)
    has_return: bool = False
    has_visibility: bool = False
    has_module_function_note: bool = False
    ends_with_blank: bool = False


def parse_existing(lines: list[str]) -> ExistingDoc:
    """Extract documented names and tags from comment *lines*."""
    doc = ExistingDoc()
    for line in lines:
        param = _PARAM_RE.search(line)
        if param:
            doc.params.add(param.group(1))
        if _RETURN_RE.search(line):
            doc.has_return = True
        if _VISIBILITY_RE.search(line):
            doc.has_visibility = True
        if MODULE_FUNCTION_NOTE in line:
            doc.has_module_function_note = True
        raised = _RAISE_RE.search(line)
        if raised:
            listed = raised.group(1) if raised.group(1) is not None else raised.group(2)
            for name in listed.split(","):
                if name.strip():
                    doc.raises.add(name.strip())
        attribute = _ATTRIBUTE_RE.search(line)
        if attribute:
            doc.attributes.add(attribute.group(1))
    doc.ends_with_blank = bool(lines) and bool(_BLANK_COMMENT_RE.match(lines[-1]))
    return doc


def debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes", "on")


class DocBuilder:
    """Render doc lines for one file's insertions.

    Returned lines carry no line terminator; each starts with the
    indentation passed in.

    Args:
        buffer: The parsed source.
        config: Effective configuration.
        signatures: Adapter used for RBS lookups.
        file: Display name used in debug diagnostics.
    """

    def __init__(
        self,
        buffer: SourceBuffer,
        config: YardgenConfig,
        signatures: SignatureAdapter,
        file: Optional[str] = None,
    ) -> None:
        self.buffer = buffer
        self.config = config
        self.signatures = signatures
        self.file = file or buffer.name

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build(self, insertion: Insertion, indent: str = "") -> Optional[list[str]]:
        """Full doc block for *insertion*, or ``None`` when nothing is emitted.

        Errors raised while inferring types are caught; the insertion is
        then skipped.
        """
        try:
            if insertion.kind == ATTRIBUTE:
                body = self._attribute_lines(insertion)
            else:
                body = self._method_lines(insertion)
        except Exception as exc:
            self._report(insertion, exc)
            return None
        body = _strip_trailing_blanks(body)
        if not body:
            return None
        return [_prefix(indent, line) for line in body]

    def build_merge_additions(
        self, insertion: Insertion, existing: list[str], indent: str = ""
    ) -> list[str]:
        """Lines to append to the doc-like block *existing*.

        Returns an empty list when the block already covers everything.
        """
        try:
            if insertion.kind == ATTRIBUTE:
                body = self._attribute_additions(insertion, existing)
            else:
                body = self._method_additions(insertion, existing)
        except Exception as exc:
            self._report(insertion, exc)
            return []
        return [_prefix(indent, line) for line in body]

    # ------------------------------------------------------------------ #
    # Method blocks
    # ------------------------------------------------------------------ #

    def _signature(self, insertion: Insertion) -> Optional[Signature]:
        return self.signatures.signature_for(
            insertion.container, insertion.scope, insertion.name
        )

    def _returns(self, insertion: Insertion) -> ReturnSpec:
        inference = self.config.inference
        return infer(
            self.buffer, insertion.node, inference.fallback_type, inference.nil_as_optional
        )

    def _visibility_line(self, insertion: Insertion) -> Optional[str]:
        if not self.config.emit.visibility_tags:
            return None
        if insertion.visibility is Visibility.PUBLIC:
            return None
        return f"# @{insertion.visibility.value}"

    def _module_function_line(self, insertion: Insertion) -> Optional[str]:
        if not insertion.module_function:
            return None
        included = (insertion.included_visibility or Visibility.PRIVATE).value
        return (
            f"# {MODULE_FUNCTION_NOTE} when included, also defines "
            f"#{insertion.name} (instance visibility: {included})"
        )

    def _param_lines(self, insertion: Insertion, signature: Optional[Signature]) -> list[str]:
        inference = self.config.inference
        collapse = self.config.signatures.collapse_generics
        lines = []
        for param in collect_params(
            self.buffer,
            insertion.node,
            inference.fallback_type,
            inference.treat_options_keyword_as_hash,
        ):
            type_name = param.type
            if signature is not None:
                if param.kind is ParamKind.REST and signature.rest_positional is not None:
                    element = signature.rest_positional.element_type
                    type_name = "Array" if collapse else f"Array<{element}>"
                elif param.kind is ParamKind.KEYWORD_REST and signature.rest_keywords is not None:
                    value = signature.rest_keywords.value_type
                    type_name = "Hash" if collapse else f"Hash<Symbol, {value}>"
                elif param.name in signature.param_types:
                    type_name = signature.param_types[param.name]
            lines.append((param.name, f"# @param [{type_name}] {param.name} {PARAM_DESCRIPTION}"))
        return lines

    def _raise_types(self, insertion: Insertion) -> list[str]:
        if not self.config.emit.raise_tags:
            return []
        return collect_raised_types(self.buffer, insertion.node)

    def _return_lines(
        self, insertion: Insertion, spec: ReturnSpec, return_type: str
    ) -> list[str]:
        lines = []
        if self.config.return_tag_for(insertion.scope, insertion.visibility):
            lines.append(f"# @return [{return_type}]")
        if self.config.emit.rescue_conditional_returns:
            for exceptions, branch_type in spec.branch_returns:
                lines.append(f"# @return [{branch_type}] if {', '.join(exceptions)}")
        return lines

    def _method_lines(self, insertion: Insertion) -> list[str]:
        emit = self.config.emit
        signature = self._signature(insertion)
        spec = self._returns(insertion)
        return_type = signature.return_type if signature is not None else spec.normal

        lines: list[str] = []
        if emit.header:
            lines.append(
                f"# +{insertion.container}{insertion.scope.separator}{insertion.name}+"
                f" -> {return_type}"
            )
            lines.append("#")
        if emit.description:
            lines.append(f"# {self.config.message_for(insertion.scope, insertion.visibility)}")
            lines.append("#")

        visibility = self._visibility_line(insertion)
        if visibility:
            lines.append(visibility)
        note = self._module_function_line(insertion)
        if note:
            lines.append(note)
        if emit.param_tags:
            lines.extend(line for _, line in self._param_lines(insertion, signature))
        lines.extend(f"# @raise [{name}]" for name in self._raise_types(insertion))
        lines.extend(self._return_lines(insertion, spec, return_type))
        return lines

    def _method_additions(self, insertion: Insertion, existing: list[str]) -> list[str]:
        doc = parse_existing(existing)
        signature = self._signature(insertion)

        additions: list[str] = []
        visibility = self._visibility_line(insertion)
        if visibility and not doc.has_visibility:
            additions.append(visibility)
        note = self._module_function_line(insertion)
        if note and not doc.has_module_function_note:
            additions.append(note)
        if self.config.emit.param_tags:
            additions.extend(
                line for name, line in self._param_lines(insertion, signature)
                if name not in doc.params
            )
        additions.extend(
            f"# @raise [{name}]"
            for name in self._raise_types(insertion)
            if name not in doc.raises
        )
        if not doc.has_return:
            spec = self._returns(insertion)
            return_type = signature.return_type if signature is not None else spec.normal
            additions.extend(self._return_lines(insertion, spec, return_type))

        if not additions:
            return []
        if not doc.ends_with_blank:
            additions.insert(0, "#")
        return additions

    # ------------------------------------------------------------------ #
    # Attribute blocks
    # ------------------------------------------------------------------ #

    def _attribute_types(self, insertion: Insertion) -> tuple[str, str]:
        """Reader and writer types, from signatures when available."""
        fallback = self.config.inference.fallback_type
        reader_type = writer_type = fallback
        if "r" in (insertion.access or ""):
            reader = self.signatures.signature_for(
                insertion.container, insertion.scope, insertion.name
            )
            if reader is not None:
                reader_type = reader.return_type
        if "w" in (insertion.access or ""):
            writer = self.signatures.signature_for(
                insertion.container, insertion.scope, f"{insertion.name}="
            )
            if writer is not None:
                writer_type = writer.param_types.get("value", writer.return_type)
        return reader_type, writer_type

    def _attribute_lines(self, insertion: Insertion) -> list[str]:
        access = insertion.access or "r"
        reader_type, writer_type = self._attribute_types(insertion)
        lines = [f"# @!attribute [{access}] {insertion.name}"]
        if self.config.emit.visibility_tags and insertion.visibility is not Visibility.PUBLIC:
            lines.append(f"#   @{insertion.visibility.value}")
        if "r" in access:
            lines.append(f"#   @return [{reader_type}]")
        if "w" in access:
            lines.append(f"#   @param value [{writer_type}]")
        return lines

    def _attribute_additions(self, insertion: Insertion, existing: list[str]) -> list[str]:
        doc = parse_existing(existing)
        if insertion.name in doc.attributes:
            return []
        lines = self._attribute_lines(insertion)
        if not doc.ends_with_blank:
            lines.insert(0, "#")
        return lines

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #

    def _report(self, insertion: Insertion, exc: Exception) -> None:
        if not debug_enabled():
            return
        from yardgen.output import trace

        line = self.buffer.line_of(insertion.node)
        trace(
            f"yardgen DEBUG: DocBuilder.build failed at {self.file}:{line} "
            f"({insertion.method_id}): {type(exc).__name__}: {exc}"
        )


def _prefix(indent: str, line: str) -> str:
    return f"{indent}{line}"


def _strip_trailing_blanks(lines: list[str]) -> list[str]:
    while lines and lines[-1] == "#":
        lines.pop()
    return lines
