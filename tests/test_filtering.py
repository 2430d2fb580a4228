"""Tests for method-id and file-path filters."""

from __future__ import annotations

from pathlib import Path

import pytest

from yardgen.exceptions import ConfigError
from yardgen.filtering import (
    FileFilter,
    attribute_allowed,
    match_method_pattern,
    method_allowed,
    method_id,
)
from yardgen.models import FileFilterConfig, FilterConfig, Scope, Visibility


class TestMethodId:
    """Canonical ids use '#' for instance and '.' for class scope."""

    def test_instance(self):
        assert method_id("A::B", Scope.INSTANCE, "foo") == "A::B#foo"

    def test_class(self):
        assert method_id("A::B", Scope.CLASS, "build") == "A::B.build"


class TestMethodPatterns:
    """Glob and /regex/ matching."""

    @pytest.mark.parametrize(
        "pattern,candidate,expected",
        [
            ("*#initialize", "A::B#initialize", True),
            ("*#initialize", "A::B.initialize", False),
            ("A::*", "A::B#foo", True),
            ("a::*", "A::B#foo", False),
            ("/^A::.*#(foo|bar)$/", "A::B#bar", True),
            ("/^A::.*#(foo|bar)$/", "A::B#baz", False),
            ("/#foo/", "X#foo_bar", True),
        ],
    )
    def test_match(self, pattern, candidate, expected):
        assert match_method_pattern(pattern, candidate) is expected

    def test_invalid_regex_raises_config_error(self):
        with pytest.raises(ConfigError, match="Invalid filter regex"):
            match_method_pattern("/(unclosed/", "A#b")


class TestMethodAllowed:
    """Allow-lists, exclude-wins, empty include."""

    def test_defaults_allow_everything(self):
        assert method_allowed(FilterConfig(), "A", Scope.INSTANCE, Visibility.PRIVATE, "x")

    def test_visibility_allow_list(self):
        config = FilterConfig(visibilities=[Visibility.PUBLIC])
        assert method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "x")
        assert not method_allowed(config, "A", Scope.INSTANCE, Visibility.PROTECTED, "x")

    def test_scope_allow_list(self):
        config = FilterConfig(scopes=[Scope.CLASS])
        assert not method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "x")
        assert method_allowed(config, "A", Scope.CLASS, Visibility.PUBLIC, "x")

    def test_exclude_wins_over_include(self):
        config = FilterConfig(include=["A#*"], exclude=["A#secret"])
        assert method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "open")
        assert not method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "secret")

    def test_include_restricts(self):
        config = FilterConfig(include=["A.*"])
        assert method_allowed(config, "A", Scope.CLASS, Visibility.PUBLIC, "build")
        assert not method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "build")

    def test_blank_include_entries_ignored(self):
        config = FilterConfig(include=[""])
        assert method_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "x")


class TestAttributeAllowed:
    """An accessor passes when any implied method passes."""

    def test_writer_name_is_checked(self):
        config = FilterConfig(include=["A#name="])
        assert attribute_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "name", "rw")
        assert not attribute_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "name", "r")

    def test_reader_excluded(self):
        config = FilterConfig(exclude=["A#name"])
        assert not attribute_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "name", "r")
        assert attribute_allowed(config, "A", Scope.INSTANCE, Visibility.PUBLIC, "name", "rw")


class TestFileFilter:
    """gitignore-style globs and regexes on relative paths."""

    def test_no_patterns_allows_everything(self, tmp_path):
        assert FileFilter(FileFilterConfig(), root=tmp_path).allows(tmp_path / "lib" / "a.rb")

    def test_bare_directory_excludes_tree(self, tmp_path):
        file_filter = FileFilter(FileFilterConfig(exclude=["spec"]), root=tmp_path)
        assert not file_filter.allows(tmp_path / "spec" / "models" / "a_spec.rb")
        assert file_filter.allows(tmp_path / "lib" / "a.rb")

    def test_include_glob(self, tmp_path):
        file_filter = FileFilter(FileFilterConfig(include=["lib/**/*.rb"]), root=tmp_path)
        assert file_filter.allows(tmp_path / "lib" / "deep" / "a.rb")
        assert not file_filter.allows(tmp_path / "app" / "a.rb")

    def test_regex_pattern(self, tmp_path):
        file_filter = FileFilter(FileFilterConfig(exclude=[r"/_spec\.rb$/"]), root=tmp_path)
        assert not file_filter.allows(tmp_path / "lib" / "a_spec.rb")
        assert file_filter.allows(tmp_path / "lib" / "a.rb")

    def test_exclude_wins(self, tmp_path):
        file_filter = FileFilter(
            FileFilterConfig(include=["lib"], exclude=["lib/vendor"]), root=tmp_path
        )
        assert file_filter.allows(tmp_path / "lib" / "a.rb")
        assert not file_filter.allows(tmp_path / "lib" / "vendor" / "b.rb")

    def test_relative_path(self, tmp_path):
        file_filter = FileFilter(FileFilterConfig(), root=tmp_path)
        assert file_filter.relative(tmp_path / "lib" / "a.rb") == "lib/a.rb"
        assert file_filter.relative(Path("/elsewhere/x.rb")) == "/elsewhere/x.rb"
