"""Method-id and file-path filters.

Two independent filters decide what yardgen touches:

* **Method filter** -- :func:`method_allowed` checks a definition's scope and
  visibility against the allow-lists in :class:`~yardgen.models.FilterConfig`,
  then matches its canonical id (``Container#name`` or ``Container.name``)
  against the include/exclude patterns. Patterns are shell-style globs
  (``*#initialize``) or regular expressions wrapped in slashes
  (``/^Billing::.*#(total|tax)$/``).
* **File filter** -- :class:`FileFilter` matches paths relative to the
  working directory with gitignore-compatible patterns (via
  :mod:`pathspec`), so a bare directory name such as ``spec`` excludes the
  whole tree. Slash-wrapped regexes are searched against the relative path.

In both filters exclude wins, and an empty include list means "include
everything".
"""

from __future__ import annotations

import fnmatch
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

import pathspec

from yardgen.exceptions import ConfigError
from yardgen.models import FileFilterConfig, FilterConfig, Scope, Visibility


def _is_regex(pattern: str) -> bool:
    return len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/")


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    """Compile a slash-wrapped regex pattern.

    Raises:
        ConfigError: If the expression is not a valid regular expression.
    """
    try:
        return re.compile(pattern[1:-1])
    except re.error as exc:
        raise ConfigError(f"Invalid filter regex {pattern!r}: {exc}") from exc


def method_id(container: str, scope: Scope, name: str) -> str:
    """Canonical YARD-style id, e.g. ``A::B#foo`` or ``A::B.build``."""
    return f"{container}{scope.separator}{name}"


def match_method_pattern(pattern: str, candidate: str) -> bool:
    """Match one include/exclude pattern against a method id."""
    if _is_regex(pattern):
        return _compile(pattern).search(candidate) is not None
    return fnmatch.fnmatchcase(candidate, pattern)


def _matches_any(patterns: Iterable[str], candidate: str) -> bool:
    return any(match_method_pattern(p, candidate) for p in patterns if p)


def method_allowed(
    filter_config: FilterConfig,
    container: str,
    scope: Scope,
    visibility: Visibility,
    name: str,
) -> bool:
    """Decide whether the method ``container`` + ``scope`` + ``name`` is documented.

    Args:
        filter_config: The ``filter`` section of the configuration.
        container: Namespace path, e.g. ``Billing::Invoice``.
        scope: Instance or class scope.
        visibility: Resolved visibility.
        name: Method name.

    Returns:
        ``True`` when the scope and visibility are allowed, no exclude
        pattern matches, and the include list is empty or matches.
    """
    if scope not in filter_config.scopes:
        return False
    if visibility not in filter_config.visibilities:
        return False

    candidate = method_id(container, scope, name)
    if _matches_any(filter_config.exclude, candidate):
        return False
    include = [p for p in filter_config.include if p]
    if not include:
        return True
    return _matches_any(include, candidate)


def attribute_allowed(
    filter_config: FilterConfig,
    container: str,
    scope: Scope,
    visibility: Visibility,
    name: str,
    access: str,
) -> bool:
    """Decide whether an attribute accessor is documented.

    The accessor passes when any of the methods it defines passes
    :func:`method_allowed`: the reader ``name`` for ``r``, the writer
    ``name=`` for ``w``, either for ``rw``.
    """
    implied: list[str] = []
    if "r" in access:
        implied.append(name)
    if "w" in access:
        implied.append(f"{name}=")
    return any(
        method_allowed(filter_config, container, scope, visibility, method_name)
        for method_name in implied
    )


class FileFilter:
    """Match file paths against the ``filter.files`` include/exclude lists.

    Glob patterns are compiled once into :class:`pathspec.PathSpec`
    matchers; regex patterns are kept aside and searched.

    Args:
        config: The ``filter.files`` section of the configuration.
        root: Directory that relative paths are computed from. Defaults to
            the current working directory.
    """

    def __init__(self, config: FileFilterConfig, root: Optional[Path] = None) -> None:
        self._root = root or Path.cwd()
        self._include_spec, self._include_regexes = _split_patterns(config.include)
        self._exclude_spec, self._exclude_regexes = _split_patterns(config.exclude)
        self._has_include = bool(self._include_spec or self._include_regexes)

    def relative(self, path: Path) -> str:
        """Return *path* relative to the filter root, in POSIX form when possible."""
        try:
            rel = os.path.relpath(path, self._root)
        except ValueError:
            # Different drive on Windows.
            return path.as_posix()
        if rel.startswith(".."):
            return path.as_posix()
        return Path(rel).as_posix()

    def allows(self, path: Path) -> bool:
        """Whether *path* should be processed."""
        rel = self.relative(path)
        if self._matches(rel, self._exclude_spec, self._exclude_regexes):
            return False
        if not self._has_include:
            return True
        return self._matches(rel, self._include_spec, self._include_regexes)

    @staticmethod
    def _matches(
        rel: str,
        spec: Optional[pathspec.PathSpec],
        regexes: list[re.Pattern[str]],
    ) -> bool:
        if spec is not None and spec.match_file(rel):
            return True
        return any(rx.search(rel) for rx in regexes)


def _split_patterns(
    patterns: list[str],
) -> tuple[Optional[pathspec.PathSpec], list[re.Pattern[str]]]:
    """Split patterns into a gitignore-style PathSpec and a list of regexes."""
    globs: list[str] = []
    regexes: list[re.Pattern[str]] = []
    for pattern in patterns:
        if not pattern:
            continue
        if _is_regex(pattern):
            regexes.append(_compile(pattern))
        else:
            globs.append(pattern)
    spec = pathspec.PathSpec.from_lines("gitwildmatch", globs) if globs else None
    return spec, regexes
