"""Visibility-aware walk that records where doc blocks go.

The :class:`Collector` walks class and module bodies statement by
statement, in source order, modelling how Ruby itself resolves method
visibility and scope:

* bare ``private`` / ``protected`` / ``public`` change the default for the
  definitions that follow; with names they set a per-name override;
* ``class << self`` opens a nested context for class-scope definitions;
* ``module_function`` turns following (or named, earlier) instance methods
  into class-scope methods;
* ``private_class_method`` / ``public_class_method`` change the visibility
  of class methods that were already defined.

Every documented definition becomes one :class:`Insertion`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from tree_sitter import Node

from yardgen.filtering import method_id
from yardgen.infer.names import const_full_name, join_container
from yardgen.models import Scope, Visibility
from yardgen.parsing import (
    SourceBuffer,
    body_statements,
    call_arguments,
    call_name,
    definition_name,
    is_receiverless,
    named,
    symbol_name,
)

TOP_LEVEL_CONTAINER = "Object"

VISIBILITY_KEYWORDS = {
    "public": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "private": Visibility.PRIVATE,
}

CLASS_METHOD_VISIBILITY = {
    "public_class_method": Visibility.PUBLIC,
    "private_class_method": Visibility.PRIVATE,
}

ATTRIBUTE_MACROS = {
    "attr_reader": "r",
    "attr": "r",
    "attr_writer": "w",
    "attr_accessor": "rw",
}

MODULE_FUNCTION = "module_function"

METHOD = "method"
ATTRIBUTE = "attribute"

_DEFINITIONS = ("method", "singleton_method")
_CONTAINERS = ("class", "module")


@dataclass
class VisibilityContext:
    """Visibility state of one class or module body."""

    default_instance: Visibility = Visibility.PUBLIC
    default_class: Visibility = Visibility.PUBLIC
    inside_singleton: bool = False
    explicit_instance: dict[str, Visibility] = field(default_factory=dict)
    explicit_class: dict[str, Visibility] = field(default_factory=dict)
    module_function_default: bool = False
    explicit_module_function: dict[str, bool] = field(default_factory=dict)

    def copy(self) -> VisibilityContext:
        """Independent copy; changes to the copy never reach this context."""
        return replace(
            self,
            explicit_instance=dict(self.explicit_instance),
            explicit_class=dict(self.explicit_class),
            explicit_module_function=dict(self.explicit_module_function),
        )


@dataclass
class Insertion:
    """One definition that should get a doc block.

    Attributes:
        node: The ``method``/``singleton_method`` node, or the ``attr_*``
            call for attributes.
        kind: ``"method"`` or ``"attribute"``.
        name: Method or attribute name.
        scope: Instance or class scope.
        visibility: Resolved visibility.
        container: Namespace path such as ``Billing::Invoice``.
        module_function: Promoted by ``module_function``.
        included_visibility: Visibility of the instance copy a
            ``module_function`` method leaves in including classes.
        access: ``r``, ``w`` or ``rw`` (attributes only).
    """

    node: Node
    kind: str
    name: str
    scope: Scope
    visibility: Visibility
    container: str
    module_function: bool = False
    included_visibility: Optional[Visibility] = None
    access: Optional[str] = None

    @property
    def method_id(self) -> str:
        return method_id(self.container, self.scope, self.name)

    @property
    def start_byte(self) -> int:
        return self.node.start_byte


class Collector:
    """Collect :class:`Insertion` records from a parsed Ruby file.

    Args:
        buffer: Source the tree was parsed from.

    Example::

        insertions = Collector(buffer).collect(tree.root_node)
    """

    def __init__(self, buffer: SourceBuffer) -> None:
        self.buffer = buffer
        self.insertions: list[Insertion] = []
        self._paths: list[str] = []

    @property
    def container(self) -> str:
        return self._paths[-1] if self._paths else TOP_LEVEL_CONTAINER

    def collect(self, root: Node) -> list[Insertion]:
        """Walk the whole file; top-level definitions belong to ``Object``."""
        self._walk_body(body_statements(root), VisibilityContext())
        return self.insertions

    # ------------------------------------------------------------------ #
    # Statement dispatch
    # ------------------------------------------------------------------ #

    def _walk_body(self, statements: list[Node], ctx: VisibilityContext) -> None:
        for statement in statements:
            self._statement(statement, ctx)

    def _statement(self, node: Node, ctx: VisibilityContext) -> None:
        kind = node.type
        if kind == "method":
            self._add_method(node, ctx)
        elif kind == "singleton_method":
            self._add_singleton_method(node, ctx)
        elif kind == "singleton_class":
            self._enter_singleton(node, ctx)
        elif kind in _CONTAINERS:
            self._enter_container(node)
        elif kind in ("call", "identifier") and is_receiverless(node):
            if not self._macro_call(node, ctx):
                self._descend(node)
        else:
            self._descend(node)

    def _macro_call(self, node: Node, ctx: VisibilityContext) -> bool:
        """Handle visibility, ``module_function`` and ``attr_*`` calls.

        Returns ``False`` for any other call.
        """
        name = call_name(self.buffer, node)
        if name in VISIBILITY_KEYWORDS:
            self._visibility_call(VISIBILITY_KEYWORDS[name], node, ctx)
        elif name == MODULE_FUNCTION:
            self._module_function_call(node, ctx)
        elif name in CLASS_METHOD_VISIBILITY:
            self._class_method_visibility_call(CLASS_METHOD_VISIBILITY[name], node, ctx)
        elif name in ATTRIBUTE_MACROS and node.type == "call":
            self._attribute_call(ATTRIBUTE_MACROS[name], node, ctx)
        else:
            return False
        return True

    def _descend(self, node: Node) -> None:
        """Generic descent: only nested classes and modules are of interest."""
        for child in named(node):
            if child.type in _CONTAINERS:
                self._enter_container(child)
            else:
                self._descend(child)

    # ------------------------------------------------------------------ #
    # Containers
    # ------------------------------------------------------------------ #

    def _enter_container(self, node: Node) -> None:
        name_node = node.child_by_field_name("name")
        segment = TOP_LEVEL_CONTAINER
        if name_node is not None:
            segment = const_full_name(self.buffer, name_node) or self.buffer.node_text(name_node)
        parent = self._paths[-1] if self._paths else ""
        self._paths.append(join_container(parent, segment))
        try:
            self._walk_body(body_statements(node), VisibilityContext())
        finally:
            self._paths.pop()

    def _enter_singleton(self, node: Node, ctx: VisibilityContext) -> None:
        value = node.child_by_field_name("value")
        inner = ctx.copy()
        inner.inside_singleton = value is not None and value.type == "self"
        inner.default_class = Visibility.PUBLIC
        self._walk_body(body_statements(node), inner)

    # ------------------------------------------------------------------ #
    # Definitions
    # ------------------------------------------------------------------ #

    def _add_method(self, node: Node, ctx: VisibilityContext) -> None:
        name = definition_name(self.buffer, node)
        if not name:
            return

        module_function = False
        included: Optional[Visibility] = None
        if ctx.inside_singleton:
            scope = Scope.CLASS
            visibility = ctx.explicit_class.get(name, ctx.default_class)
        elif ctx.module_function_default or ctx.explicit_module_function.get(name):
            scope = Scope.CLASS
            visibility = Visibility.PUBLIC
            module_function = True
            included = self._included_visibility(ctx, name)
        else:
            scope = Scope.INSTANCE
            visibility = ctx.explicit_instance.get(name, ctx.default_instance)

        self.insertions.append(
            Insertion(
                node=node,
                kind=METHOD,
                name=name,
                scope=scope,
                visibility=visibility,
                container=self.container,
                module_function=module_function,
                included_visibility=included,
            )
        )

    def _add_singleton_method(self, node: Node, ctx: VisibilityContext) -> None:
        name = definition_name(self.buffer, node)
        if not name:
            return
        self.insertions.append(
            Insertion(
                node=node,
                kind=METHOD,
                name=name,
                scope=Scope.CLASS,
                visibility=ctx.explicit_class.get(name, ctx.default_class),
                container=self.container,
            )
        )

    @staticmethod
    def _included_visibility(ctx: VisibilityContext, name: str) -> Visibility:
        # The instance copy left by module_function is private unless the
        # name was declared public beforehand.
        if ctx.explicit_instance.get(name) is Visibility.PUBLIC:
            return Visibility.PUBLIC
        return Visibility.PRIVATE

    # ------------------------------------------------------------------ #
    # Macros
    # ------------------------------------------------------------------ #

    def _explicit_map(self, ctx: VisibilityContext) -> dict[str, Visibility]:
        return ctx.explicit_class if ctx.inside_singleton else ctx.explicit_instance

    def _visibility_call(self, visibility: Visibility, node: Node, ctx: VisibilityContext) -> None:
        args = call_arguments(node)
        if not args:
            if ctx.inside_singleton:
                ctx.default_class = visibility
            else:
                ctx.default_instance = visibility
                ctx.module_function_default = False
            return

        explicit = self._explicit_map(ctx)
        for arg in args:
            if arg.type in _DEFINITIONS:
                name = definition_name(self.buffer, arg)
                if name:
                    explicit[name] = visibility
                self._statement(arg, ctx)
            elif self._is_attribute_call(arg):
                for attr_name in self._attribute_names(arg):
                    explicit[attr_name] = visibility
                self._statement(arg, ctx)
            else:
                name = symbol_name(self.buffer, arg)
                if name:
                    explicit[name] = visibility

    def _module_function_call(self, node: Node, ctx: VisibilityContext) -> None:
        args = call_arguments(node)
        if not args:
            ctx.module_function_default = True
            return

        for arg in args:
            if arg.type == "method":
                name = definition_name(self.buffer, arg)
                if name:
                    ctx.explicit_module_function[name] = True
                self._statement(arg, ctx)
                continue
            name = symbol_name(self.buffer, arg)
            if not name:
                continue
            ctx.explicit_module_function[name] = True
            self._promote_existing(name, ctx)

    def _promote_existing(self, name: str, ctx: VisibilityContext) -> None:
        for insertion in reversed(self.insertions):
            if (
                insertion.kind == METHOD
                and insertion.container == self.container
                and insertion.scope is Scope.INSTANCE
                and insertion.name == name
                and insertion.node.type == "method"
            ):
                insertion.scope = Scope.CLASS
                if insertion.visibility is Visibility.PRIVATE:
                    insertion.visibility = Visibility.PUBLIC
                insertion.module_function = True
                insertion.included_visibility = self._included_visibility(ctx, name)
                return

    def _class_method_visibility_call(
        self, visibility: Visibility, node: Node, ctx: VisibilityContext
    ) -> None:
        for arg in call_arguments(node):
            if arg.type == "singleton_method":
                self._statement(arg, ctx)
                name = definition_name(self.buffer, arg)
            else:
                name = symbol_name(self.buffer, arg)
            if name:
                self._set_class_method_visibility(name, visibility)

    def _set_class_method_visibility(self, name: str, visibility: Visibility) -> None:
        for insertion in reversed(self.insertions):
            if (
                insertion.kind == METHOD
                and insertion.container == self.container
                and insertion.scope is Scope.CLASS
                and insertion.name == name
            ):
                insertion.visibility = visibility
                return

    def _is_attribute_call(self, node: Node) -> bool:
        return (
            node.type == "call"
            and is_receiverless(node)
            and call_name(self.buffer, node) in ATTRIBUTE_MACROS
        )

    def _attribute_names(self, node: Node) -> list[str]:
        names = []
        for arg in call_arguments(node):
            name = symbol_name(self.buffer, arg)
            if name:
                names.append(name)
        return names

    def _attribute_call(self, access: str, node: Node, ctx: VisibilityContext) -> None:
        if ctx.inside_singleton:
            scope = Scope.CLASS
            explicit, default = ctx.explicit_class, ctx.default_class
        else:
            scope = Scope.INSTANCE
            explicit, default = ctx.explicit_instance, ctx.default_instance

        for name in self._attribute_names(node):
            visibility = explicit.get(name)
            if visibility is None and "w" in access:
                visibility = explicit.get(f"{name}=")
            self.insertions.append(
                Insertion(
                    node=node,
                    kind=ATTRIBUTE,
                    name=name,
                    scope=scope,
                    visibility=visibility or default,
                    container=self.container,
                    access=access,
                )
            )
