"""Tests for the visibility-aware collector.

Covers:
- containers (nested, compact ``A::B``, root-anchored ``::C``, top level)
- bare and named visibility keywords, ``private def``
- ``class << self`` and ``def self.x``
- ``module_function`` (bare, named, retroactive)
- ``private_class_method`` / ``public_class_method``
- ``attr_*`` macros
"""

from __future__ import annotations

import textwrap

from yardgen.models import Scope, Visibility
from yardgen.parsing import SourceBuffer, parse_source
from yardgen.rewriter.collector import ATTRIBUTE, METHOD, Collector, VisibilityContext


def collect(source: str):
    buffer = SourceBuffer(textwrap.dedent(source).lstrip("\n"))
    tree = parse_source(buffer)
    return Collector(buffer).collect(tree.root_node)


def summary(source: str) -> list[tuple[str, str]]:
    """``(method_id, visibility)`` for every insertion, in collection order."""
    return [(item.method_id, item.visibility.value) for item in collect(source)]


# ------------------------------------------------------------------ #
# Containers
# ------------------------------------------------------------------ #


class TestContainers:
    """Namespace paths."""

    def test_top_level_def(self):
        assert summary("def helper; end\n") == [("Object#helper", "public")]

    def test_nested_modules(self):
        source = """
            module Billing
              class Invoice
                def total; end
              end

              def self.configure; end
            end
        """
        assert summary(source) == [
            ("Billing::Invoice#total", "public"),
            ("Billing.configure", "public"),
        ]

    def test_compact_and_root_anchored_names(self):
        source = """
            module Outer
              class Inner::Deep
                def a; end
              end

              class ::Root
                def b; end
              end
            end
        """
        assert summary(source) == [("Outer::Inner::Deep#a", "public"), ("::Root#b", "public")]

    def test_class_nested_in_expression(self):
        source = """
            if defined?(Foo)
              class Foo
                def bar; end
              end
            end
        """
        assert summary(source) == [("Foo#bar", "public")]

    def test_visibility_does_not_leak_between_containers(self):
        source = """
            class A
              private

              class B
                def inner; end
              end

              def hidden; end
            end
        """
        assert summary(source) == [("A::B#inner", "public"), ("A#hidden", "private")]


# ------------------------------------------------------------------ #
# Visibility keywords
# ------------------------------------------------------------------ #


class TestVisibilityKeywords:
    """Bare, named and inline forms."""

    def test_bare_keywords_change_default(self):
        source = """
            class A
              def a; end
              protected
              def b; end
              private
              def c; end
              public
              def d; end
            end
        """
        assert summary(source) == [
            ("A#a", "public"),
            ("A#b", "protected"),
            ("A#c", "private"),
            ("A#d", "public"),
        ]

    def test_named_keyword_before_definition(self):
        source = """
            class A
              private :later
              def later; end
              def other; end
            end
        """
        assert summary(source) == [("A#later", "private"), ("A#other", "public")]

    def test_named_keyword_after_definition_is_not_retroactive(self):
        source = """
            class A
              def early; end
              private :early
            end
        """
        assert summary(source) == [("A#early", "public")]

    def test_inline_private_def(self):
        source = """
            class A
              private def secret; end
              def open; end
            end
        """
        assert summary(source) == [("A#secret", "private"), ("A#open", "public")]

    def test_string_names(self):
        source = """
            class A
              protected "guarded"
              def guarded; end
            end
        """
        assert summary(source) == [("A#guarded", "protected")]


# ------------------------------------------------------------------ #
# Class scope
# ------------------------------------------------------------------ #


class TestClassScope:
    """``def self.x`` and ``class << self``."""

    def test_singleton_block(self):
        source = """
            class A
              class << self
                def make; end
                private
                def hidden; end
              end

              def inst; end
            end
        """
        assert summary(source) == [
            ("A.make", "public"),
            ("A.hidden", "private"),
            ("A#inst", "public"),
        ]

    def test_singleton_block_does_not_leak(self):
        source = """
            class A
              class << self
                private :make
                def make; end
              end

              def make; end
            end
        """
        assert summary(source) == [("A.make", "private"), ("A#make", "public")]

    def test_private_keyword_does_not_affect_def_self(self):
        source = """
            class A
              private
              def self.build; end
            end
        """
        assert summary(source) == [("A.build", "public")]

    def test_private_class_method_is_retroactive(self):
        source = """
            class A
              def self.build; end
              def self.other; end
              private_class_method :build
            end
        """
        assert summary(source) == [("A.build", "private"), ("A.other", "public")]

    def test_public_class_method_reopens(self):
        source = """
            class A
              class << self
                private
                def make; end
              end
              public_class_method :make
            end
        """
        assert summary(source) == [("A.make", "public")]

    def test_private_class_method_with_inline_def(self):
        source = """
            class A
              private_class_method def self.build; end
            end
        """
        assert summary(source) == [("A.build", "private")]

    def test_class_method_visibility_stays_in_container(self):
        source = """
            class A
              def self.build; end
            end

            class B
              private_class_method :build
            end
        """
        assert summary(source) == [("A.build", "public")]


# ------------------------------------------------------------------ #
# module_function
# ------------------------------------------------------------------ #


class TestModuleFunction:
    """Promotion of instance methods to class scope."""

    def test_bare_module_function(self):
        items = collect(
            """
            module Util
              def before; end
              module_function
              def helper; end
            end
            """
        )
        assert [(i.method_id, i.module_function) for i in items] == [
            ("Util#before", False),
            ("Util.helper", True),
        ]
        assert items[1].visibility is Visibility.PUBLIC
        assert items[1].included_visibility is Visibility.PRIVATE

    def test_bare_visibility_ends_module_function(self):
        source = """
            module Util
              module_function
              def a; end
              public
              def b; end
            end
        """
        assert summary(source) == [("Util.a", "public"), ("Util#b", "public")]

    def test_retroactive_named_module_function(self):
        items = collect(
            """
            module Util
              private

              def helper; end
              def other; end
              module_function :helper
            end
            """
        )
        helper, other = items
        assert helper.method_id == "Util.helper"
        assert helper.scope is Scope.CLASS
        assert helper.visibility is Visibility.PUBLIC
        assert helper.module_function is True
        assert helper.included_visibility is Visibility.PRIVATE
        assert (other.method_id, other.visibility) == ("Util#other", Visibility.PRIVATE)

    def test_explicitly_public_name_keeps_public_instance_copy(self):
        items = collect(
            """
            module Util
              public :helper
              def helper; end
              module_function :helper
            end
            """
        )
        assert items[0].included_visibility is Visibility.PUBLIC

    def test_module_function_with_inline_def(self):
        items = collect(
            """
            module Util
              module_function def helper; end
              def other; end
            end
            """
        )
        assert [(i.method_id, i.module_function) for i in items] == [
            ("Util.helper", True),
            ("Util#other", False),
        ]

    def test_named_before_definition(self):
        source = """
            module Util
              module_function :later
              def later; end
            end
        """
        assert summary(source) == [("Util.later", "public")]


# ------------------------------------------------------------------ #
# Attributes
# ------------------------------------------------------------------ #


class TestAttributes:
    """attr_reader / attr_writer / attr_accessor."""

    def test_one_insertion_per_name(self):
        items = collect(
            """
            class A
              attr_reader :a, :b
              attr_writer :c
              attr_accessor "d"
            end
            """
        )
        assert [(i.kind, i.name, i.access) for i in items] == [
            (ATTRIBUTE, "a", "r"),
            (ATTRIBUTE, "b", "r"),
            (ATTRIBUTE, "c", "w"),
            (ATTRIBUTE, "d", "rw"),
        ]
        assert items[0].node == items[1].node

    def test_attribute_visibility(self):
        source = """
            class A
              attr_reader :open
              private
              attr_reader :secret
              public
              protected :guarded=
              attr_writer :guarded
            end
        """
        assert summary(source) == [
            ("A#open", "public"),
            ("A#secret", "private"),
            ("A#guarded", "protected"),
        ]

    def test_attributes_in_singleton_block(self):
        items = collect(
            """
            class A
              class << self
                attr_accessor :registry
              end
            end
            """
        )
        assert items[0].method_id == "A.registry"

    def test_receiver_calls_are_ignored(self):
        source = """
            class A
              self.class.attr_reader :nope
              config.private
              def still_public; end
            end
        """
        assert summary(source) == [("A#still_public", "public")]

    def test_methods_and_attributes_in_order(self):
        items = collect(
            """
            class A
              attr_reader :x
              def y; end
            end
            """
        )
        assert [i.kind for i in items] == [ATTRIBUTE, METHOD]


class TestVisibilityContext:
    """Copies are independent."""

    def test_copy_is_independent(self):
        ctx = VisibilityContext()
        ctx.explicit_instance["a"] = Visibility.PRIVATE
        clone = ctx.copy()
        clone.explicit_instance["b"] = Visibility.PROTECTED
        clone.explicit_module_function["c"] = True
        clone.default_instance = Visibility.PRIVATE
        assert ctx.explicit_instance == {"a": Visibility.PRIVATE}
        assert ctx.explicit_module_function == {}
        assert ctx.default_instance is Visibility.PUBLIC
