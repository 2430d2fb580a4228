"""Tests for exception inference."""

from __future__ import annotations

from yardgen.infer.raises import collect_raised_types


def _raised(parse_method, source):
    buffer, node = parse_method(source)
    return collect_raised_types(buffer, node)


class TestCollectRaisedTypes:
    """Source-ordered, de-duplicated exception names."""

    def test_no_raise_no_rescue(self, parse_method):
        source = """
            def total(items)
              items.sum
            end
        """
        assert _raised(parse_method, source) == []

    def test_raise_forms_and_rescue_clauses(self, parse_method):
        source = """
            def m(x)
              raise ArgumentError, "bad" if x
              fail ::Foo::Bar
              raise
              raise "message"
              raise Foo.new("x")
              raise ArgumentError
            rescue KeyError, IOError => e
              nil
            rescue
              nil
            end
        """
        assert _raised(parse_method, source) == [
            "ArgumentError",
            "::Foo::Bar",
            "StandardError",
            "KeyError",
            "IOError",
        ]

    def test_bare_rescue_is_standard_error(self, parse_method):
        source = """
            def foo
              1
            rescue
              "n"
            end
        """
        assert _raised(parse_method, source) == ["StandardError"]

    def test_splat_rescue_list(self, parse_method):
        source = """
            def m
              work
            rescue *ERRORS
              nil
            end
        """
        assert _raised(parse_method, source) == ["StandardError"]

    def test_rescue_modifier_records_body_then_default_then_handler(self, parse_method):
        source = """
            def m
              compute rescue raise(KeyError)
            end
        """
        assert _raised(parse_method, source) == ["StandardError", "KeyError"]

    def test_raise_with_receiver_is_ignored(self, parse_method):
        source = """
            def m
              thread.raise Interrupt
            end
        """
        assert _raised(parse_method, source) == []

    def test_method_named_raise_is_not_a_raise(self, parse_method):
        source = """
            def raise_error
              1
            end
        """
        assert _raised(parse_method, source) == []

    def test_nested_begin_rescue(self, parse_method):
        source = """
            def m
              begin
                load!
              rescue Errno::ENOENT
                nil
              end
              raise Timeout::Error
            end
        """
        assert _raised(parse_method, source) == ["Errno::ENOENT", "Timeout::Error"]
