"""Run command -- document Ruby files in check, write or stdin mode.

Implements ``yardgen run``. Files are collected from the given paths
(directories are searched recursively for ``*.rb``), narrowed by the file
filters, and passed one by one through :func:`yardgen.rewriter.rewrite`.

Progress is reported on stdout with one marker per file:

* check mode (``--dry``/``--check``): ``.`` unchanged, ``F`` would change,
  ``E`` could not be read or parsed;
* write mode (``--write``): ``.`` unchanged, ``C`` rewritten, ``E`` error.

With the global ``--verbose`` flag each file gets a full line instead.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from yardgen.exceptions import InvalidUsageError, SourceParseError, YardgenError
from yardgen.exit_codes import EXIT_CHECK_FAILED, EXIT_PARSE_ERROR, EXIT_SUCCESS
from yardgen.models import Mode, YardgenConfig
from yardgen.output import debug, error, get_output, print_data, warning, write_data
from yardgen.types.provider import SignatureAdapter

RUBY_GLOB = "*.rb"


def select_mode(refresh: bool, merge: bool) -> Mode:
    """Map the ``--refresh``/``--merge`` flags to a :class:`Mode`.

    Raises:
        InvalidUsageError: If both flags are given.
    """
    if refresh and merge:
        raise InvalidUsageError("cannot combine --refresh and --merge")
    if refresh:
        return Mode.REPLACE
    if merge:
        return Mode.MERGE
    return Mode.INSERT


def split_patterns(patterns: Optional[list[str]]) -> tuple[list[str], list[str]]:
    """Split ``--include``/``--exclude`` values into (method, file) patterns."""
    from yardgen.config import looks_like_file_pattern

    method_patterns: list[str] = []
    file_patterns: list[str] = []
    for pattern in patterns or []:
        if looks_like_file_pattern(pattern):
            file_patterns.append(pattern)
        else:
            method_patterns.append(pattern)
    return method_patterns, file_patterns


def expand_paths(paths: list[str]) -> list[Path]:
    """Resolve files and directories into a sorted, de-duplicated file list."""
    files: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.update(p for p in path.rglob(RUBY_GLOB) if p.is_file())
        elif path.is_file():
            files.add(path)
        else:
            warning(f"Skipping missing path: {raw}")
    return sorted(files)


def run_command(
    ctx: typer.Context,
    paths: Optional[list[str]] = typer.Argument(
        None, help="Ruby files or directories to process."
    ),
    check: bool = typer.Option(
        False, "--dry", "--check", "-d", "-c",
        help="Report files that would change; do not write.",
    ),
    write: bool = typer.Option(
        False, "--write", "-w", help="Rewrite files in place."
    ),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Regenerate existing doc blocks."
    ),
    merge: bool = typer.Option(
        False, "--merge", "-m", help="Add missing tags to existing doc blocks."
    ),
    stdin: bool = typer.Option(
        False, "--stdin", help="Read source from stdin and write the result to stdout."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-C", help="Path to yardgen.yml."
    ),
    rbs: bool = typer.Option(
        False, "--rbs", help="Use RBS signatures when available."
    ),
    sig_dirs: Optional[list[str]] = typer.Option(
        None, "--sig-dir", help="RBS signature directory (repeatable, implies --rbs)."
    ),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Include methods (A::B#m, glob or /regex/) or files."
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", help="Exclude methods (A::B#m, glob or /regex/) or files."
    ),
    include_file: Optional[list[str]] = typer.Option(
        None, "--include-file", help="Include files (gitignore glob or /regex/)."
    ),
    exclude_file: Optional[list[str]] = typer.Option(
        None, "--exclude-file", help="Exclude files (gitignore glob or /regex/)."
    ),
) -> None:
    """Insert YARD doc comments above Ruby methods.

    Args:
        ctx: Typer invocation context (carries the global ``--verbose``).
        paths: Files or directories; directories are searched for ``*.rb``.
        check: Report files that would change (exit 3 when any would).
        write: Rewrite changed files atomically.
        refresh: Replace existing doc-like blocks.
        merge: Append missing tags to existing doc-like blocks.
        stdin: Filter mode: stdin to stdout.
        config_path: Explicit configuration file.
        rbs: Enable RBS signature lookup.
        sig_dirs: Extra signature directories.
        include: Method-id or file include patterns.
        exclude: Method-id or file exclude patterns.
        include_file: File include patterns.
        exclude_file: File exclude patterns.

    Raises:
        InvalidUsageError: On conflicting or missing mode flags.
        typer.Exit: With the run's exit code.

    Example::

        yardgen run --dry lib
        yardgen run --write --merge --rbs lib app/models
        cat foo.rb | yardgen run --stdin
    """
    from yardgen.config import apply_cli_overrides, config_summary, resolve_config
    from yardgen.filtering import FileFilter
    from yardgen.rewriter import process, signature_adapter

    mode = select_mode(refresh, merge)

    method_include, file_include = split_patterns(include)
    method_exclude, file_exclude = split_patterns(exclude)
    config = apply_cli_overrides(
        resolve_config(config_path),
        include=method_include,
        exclude=method_exclude,
        include_file=file_include + list(include_file or []),
        exclude_file=file_exclude + list(exclude_file or []),
        rbs=rbs,
        sig_dirs=list(sig_dirs or []),
    )
    debug(f"Mode: {mode.value}")
    debug(f"Effective config: {json.dumps(config_summary(config), sort_keys=True)}")

    adapter = signature_adapter(config)

    if stdin:
        source = sys.stdin.read()
        write_data(process(source, mode=mode, config=config, signature_provider=adapter, file="(stdin)"))
        return

    if not paths:
        raise InvalidUsageError("No input. Use --stdin or pass file paths. See --help.")
    if not check and not write:
        raise InvalidUsageError("No mode selected. Use --dry, --write, or --stdin. See --help.")

    file_filter = FileFilter(config.filter.files)
    files = [path for path in expand_paths(paths) if file_filter.allows(path)]
    if not files:
        raise YardgenError("No files found. Pass files or directories (e.g. `yardgen run --dry lib`).")

    verbose = bool((ctx.obj or {}).get("verbose")) or get_output().is_verbose
    code = _run_files(files, mode, config, adapter, check=check, verbose=verbose)
    if code != EXIT_SUCCESS:
        raise typer.Exit(code=code)


def _run_files(
    files: list[Path],
    mode: Mode,
    config: YardgenConfig,
    adapter: SignatureAdapter,
    check: bool,
    verbose: bool,
) -> int:
    """Process *files* and print markers and the summary; return the exit code."""
    from yardgen.config import read_source, write_source
    from yardgen.rewriter import rewrite

    ok = failing = updated = errors = 0
    failing_paths: list[Path] = []

    def report(marker: str, label: str, path: Path) -> None:
        if verbose:
            print_data(f"{label} {path}")
        else:
            write_data(marker)

    for path in files:
        try:
            source = read_source(path)
            result = rewrite(
                source, mode=mode, config=config, signature_provider=adapter, file=str(path)
            )
        except (OSError, UnicodeDecodeError, SourceParseError) as exc:
            errors += 1
            report("E", "ERROR", path)
            error(f"Failed to process {path}: {exc}")
            continue

        if result == source:
            ok += 1
            report(".", "OK", path)
        elif check:
            failing += 1
            failing_paths.append(path)
            report("F", "FAIL", path)
        else:
            write_source(path, result)
            updated += 1
            report("C", "UPDATED", path)

    if not verbose:
        print_data("")

    if check:
        if failing:
            print_data(f"yardgen: FAILED ({failing} failing, {ok} ok)")
            for path in failing_paths:
                warning(f"Missing docs: {path}")
        else:
            print_data(f"yardgen: OK ({ok} files checked)")
    else:
        print_data(f"yardgen: updated {updated} file(s)")

    if errors:
        return EXIT_PARSE_ERROR
    if failing:
        return EXIT_CHECK_FAILED
    return EXIT_SUCCESS
