"""Tests for parameter extraction and heuristic parameter typing."""

from __future__ import annotations

from yardgen.infer.params import ParamInfo, ParamKind, collect_params


def _params(parse_method, source, fallback="Object", treat_options=True):
    buffer, node = parse_method(source)
    return collect_params(buffer, node, fallback, treat_options)


class TestCollectParams:
    """Declaration order, kinds and types."""

    def test_every_kind(self, parse_method):
        params = _params(
            parse_method,
            'def m(a, b = 1, *rest, c:, d: "x", options: {}, **kw, &blk); end',
        )
        assert params == [
            ParamInfo("a", ParamKind.REQUIRED, "Object"),
            ParamInfo("b", ParamKind.OPTIONAL, "Integer"),
            ParamInfo("rest", ParamKind.REST, "Array"),
            ParamInfo("c", ParamKind.KEYWORD, "Object"),
            ParamInfo("d", ParamKind.OPTIONAL_KEYWORD, "String"),
            ParamInfo("options", ParamKind.OPTIONAL_KEYWORD, "Hash"),
            ParamInfo("kw", ParamKind.KEYWORD_REST, "Hash"),
            ParamInfo("blk", ParamKind.BLOCK, "Proc"),
        ]

    def test_no_parameters(self, parse_method):
        assert _params(parse_method, "def m; end") == []

    def test_boolean_and_hash_defaults(self, parse_method):
        params = _params(parse_method, "def foo(verbose: true, options: {}); end")
        assert [(p.name, p.type) for p in params] == [("verbose", "Boolean"), ("options", "Hash")]

    def test_anonymous_rest_parameters(self, parse_method):
        params = _params(parse_method, "def m(*, **); end")
        assert [(p.name, p.type) for p in params] == [("args", "Array"), ("kwargs", "Hash")]

    def test_forwarding_is_skipped(self, parse_method):
        assert _params(parse_method, "def m(...); end") == []

    def test_custom_fallback(self, parse_method):
        params = _params(parse_method, "def m(a, b = compute); end", fallback="untyped")
        assert [p.type for p in params] == ["untyped", "untyped"]

    def test_singleton_method(self, parse_method):
        params = _params(parse_method, "def self.build(id, name = nil); end")
        assert [(p.name, p.type) for p in params] == [("id", "Object"), ("name", "nil")]


class TestOptionsKeyword:
    """A keyword named ``options`` is a Hash when the flag is on."""

    def test_required_options_keyword(self, parse_method):
        params = _params(parse_method, "def m(options:); end")
        assert params[0].type == "Hash"

    def test_required_options_keyword_flag_off(self, parse_method):
        params = _params(parse_method, "def m(options:); end", treat_options=False)
        assert params[0].type == "Object"

    def test_other_required_keyword(self, parse_method):
        params = _params(parse_method, "def m(settings:); end")
        assert params[0].type == "Object"

    def test_options_with_non_hash_default(self, parse_method):
        params = _params(parse_method, "def m(options: 1); end")
        assert params[0].type == "Integer"

    def test_positional_options_uses_default(self, parse_method):
        params = _params(parse_method, "def m(options = {}); end")
        assert params[0].type == "Hash"
