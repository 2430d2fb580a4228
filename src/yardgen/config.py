"""Configuration management with YAML loading, atomic writes, and precedence resolution.

This module handles all persistent configuration for yardgen:

* **Project config** -- A single ``yardgen.yml`` file deserialised into a
  :class:`~yardgen.models.YardgenConfig`. Missing keys fall back to the
  model defaults, which is how partial files are deep-merged with the
  built-in configuration. See :func:`load_config`.
* **Precedence resolution** -- :func:`resolve_config` picks the file to load
  from the ``--config`` flag, the ``YARDGEN_CONFIG`` environment variable,
  or ``./yardgen.yml``, in that order.
* **CLI overrides** -- :func:`apply_cli_overrides` layers repeatable
  ``--include``/``--exclude``/``--sig-dir`` style flags on top of the
  loaded configuration without mutating it.
* **Template** -- :func:`default_config_yaml` returns the commented file
  written by ``yardgen init``.
* **Directory layout** -- :func:`get_data_dir` is XDG compliant on
  Linux/BSD and ``~/.yardgen/`` elsewhere; crash logs live there.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so that a crash mid-write never truncates a Ruby
source file.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from yardgen.exceptions import ConfigError
from yardgen.models import YardgenConfig

_APP_NAME = "yardgen"
_PROJECT_CONFIG_FILENAME = "yardgen.yml"
_CONFIG_ENV_VAR = "YARDGEN_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/yardgen/`` (default ``~/.local/share/yardgen/``).
    On macOS/Windows: ``~/.yardgen/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    Newlines are written exactly as they appear in *data* so CRLF sources
    keep their line endings. On success the temp file is renamed over
    *path*; on any failure the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def read_source(path: Path) -> str:
    """Read a Ruby source file as UTF-8 without translating line endings."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_source(path: Path, text: str) -> None:
    """Atomically replace a Ruby source file, preserving its permissions."""
    _atomic_write(path, text)


# --- Loading ---


def parse_config(text: str, origin: str = "<string>") -> YardgenConfig:
    """Parse YAML *text* into a validated :class:`~yardgen.models.YardgenConfig`.

    An empty document yields the default configuration.

    Args:
        text: YAML source.
        origin: Name used in error messages (usually the file path).

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the YAML is malformed, is not a mapping, or fails
            Pydantic validation.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {origin}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid config at {origin}: expected a mapping at the top level, "
            f"got {type(data).__name__}"
        )
    try:
        return YardgenConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {origin}: {exc}") from exc


def load_config(path: Optional[Path | str] = None) -> YardgenConfig:
    """Load configuration from *path*, or return defaults when *path* is ``None``.

    Args:
        path: Location of a ``yardgen.yml`` file.

    Returns:
        The deserialised :class:`~yardgen.models.YardgenConfig`.

    Raises:
        ConfigError: If the file does not exist, cannot be read, or is
            invalid.
    """
    if path is None:
        return YardgenConfig()
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    return parse_config(text, origin=str(path))


# --- Precedence resolution ---


def resolve_config_path(cli_config: Optional[str] = None) -> Optional[Path]:
    """Pick the config file to load.

    Precedence (high to low):
        1. ``--config`` CLI flag
        2. ``YARDGEN_CONFIG`` environment variable
        3. ``./yardgen.yml`` if it exists
        4. None (built-in defaults)
    """
    if cli_config:
        return Path(cli_config)
    env_config = os.environ.get(_CONFIG_ENV_VAR)
    if env_config:
        return Path(env_config)
    project = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if project.is_file():
        return project
    return None


def resolve_config(cli_config: Optional[str] = None) -> YardgenConfig:
    """Resolve and load the effective configuration.

    See :func:`resolve_config_path` for the precedence chain. An explicitly
    named file (flag or env var) must exist.

    Returns:
        The effective :class:`~yardgen.models.YardgenConfig`.

    Raises:
        ConfigError: If an explicitly named file is missing or invalid.
    """
    return load_config(resolve_config_path(cli_config))


def apply_cli_overrides(
    config: YardgenConfig,
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None,
    include_file: Optional[list[str]] = None,
    exclude_file: Optional[list[str]] = None,
    rbs: bool = False,
    sig_dirs: Optional[list[str]] = None,
) -> YardgenConfig:
    """Return a copy of *config* with CLI filter and signature flags layered on.

    Pattern lists are appended to the configured ones. ``rbs`` (or any
    ``sig_dirs``) enables signature lookup; extra directories are appended
    to ``signatures.sig_dirs``.

    Args:
        config: The loaded configuration (not mutated).
        include: Extra method-id include patterns.
        exclude: Extra method-id exclude patterns.
        include_file: Extra file include patterns.
        exclude_file: Extra file exclude patterns.
        rbs: Enable RBS signature lookup.
        sig_dirs: Extra signature directories (implies ``rbs``).

    Returns:
        A new :class:`~yardgen.models.YardgenConfig`.
    """
    include = include or []
    exclude = exclude or []
    include_file = include_file or []
    exclude_file = exclude_file or []
    sig_dirs = sig_dirs or []

    if not (include or exclude or include_file or exclude_file or rbs or sig_dirs):
        return config

    updated = config.model_copy(deep=True)
    updated.filter.include.extend(include)
    updated.filter.exclude.extend(exclude)
    updated.filter.files.include.extend(include_file)
    updated.filter.files.exclude.extend(exclude_file)

    if rbs or sig_dirs:
        updated.signatures.enabled = True
        for sig_dir in sig_dirs:
            if sig_dir not in updated.signatures.sig_dirs:
                updated.signatures.sig_dirs.append(sig_dir)
    return updated


def looks_like_file_pattern(pattern: str) -> bool:
    """Guess whether a ``--include``/``--exclude`` value targets files.

    Slash-wrapped regexes are always method-id patterns; anything containing
    a path separator or ``**``, or ending in ``.rb``, is a file pattern.
    """
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        return False
    return "/" in pattern or "**" in pattern or pattern.endswith(".rb")


# --- Template ---


_DEFAULT_CONFIG_YAML = """\
# yardgen configuration file (yardgen.yml)
#
# Common workflows:
#   # CI check (fails if any file would change):
#   yardgen run --check lib
#
#   # Auto-fix (rewrites files):
#   yardgen run --write lib
#
#   # Refresh (regenerates existing doc blocks):
#   yardgen run --write --refresh lib
#
#   # Merge (adds only missing tags to existing doc blocks):
#   yardgen run --write --merge lib

emit:
  # Emit the header line:
  #   # +MyClass#my_method+ -> ReturnType
  header: true

  # Emit the default description line (see doc.default_message).
  description: true

  # Emit @param tags.
  param_tags: true

  # Emit @return tag (can be overridden per scope/visibility under methods:).
  return_tag: true

  # Emit @private / @protected tags based on Ruby visibility context.
  visibility_tags: true

  # Emit @raise tags inferred from rescue clauses / raise/fail calls.
  raise_tags: true

  # Emit conditional rescue return tags:
  #   # @return [String] if FooError, BarError
  rescue_conditional_returns: true

  # Emit @!attribute blocks for attr_reader / attr_writer / attr_accessor.
  attributes: false

doc:
  # Default text inserted into each generated doc block.
  default_message: "Method documentation."

methods:
  # Per-scope/per-visibility overrides.
  #
  # Example:
  #   methods:
  #     instance:
  #       public:
  #         default_message: "Public API."
  #         return_tag: true
  instance:
    public: {}
    protected: {}
    private: {}
  class:
    public: {}
    protected: {}
    private: {}

inference:
  # Type used when inference is uncertain.
  fallback_type: "Object"

  # Whether nil unions become optional types (String + nil => String?).
  nil_as_optional: true

  # Special case: treat a keyword argument named options: as a Hash.
  treat_options_keyword_as_hash: true

filter:
  # Filter which methods yardgen touches.
  #
  # Method id format:
  #   instance: "MyModule::MyClass#instance_method"
  #   class:    "MyModule::MyClass.class_method"
  #
  # Patterns:
  # - glob: "*#initialize", "MyApp::*#*"
  # - regex: "/^MyApp::.*#(foo|bar)$/"
  #
  # Semantics:
  # - scopes/visibilities act as allow-lists
  # - exclude wins
  # - if include is empty => include everything (subject to allow-lists)
  visibilities: ["public", "protected", "private"]
  scopes: ["instance", "class"]
  include: []
  exclude: []

  files:
    # Filter which files yardgen processes (paths relative to the working directory).
    #
    # Patterns use .gitignore syntax, so a bare directory name excludes the
    # whole directory:
    #     exclude: ["spec"]
    # Regexes wrapped in slashes are also accepted:
    #     exclude: ["/_spec\\\\.rb$/"]
    include: []
    exclude: ["spec"]

signatures:
  # Use RBS signatures to improve @param/@return types.
  #
  # CLI equivalent:
  #   yardgen run --rbs --sig-dir sig --write lib
  enabled: false

  # Signature directories (repeatable via --sig-dir).
  sig_dirs: ["sig"]

  # If true, simplify generic types:
  #   Hash<Symbol, Object> => Hash
  #   Array<String>        => Array
  collapse_generics: false
"""


def default_config_yaml() -> str:
    """Return the commented default ``yardgen.yml`` written by ``yardgen init``."""
    return _DEFAULT_CONFIG_YAML


def write_default_config(path: Path, force: bool = False) -> None:
    """Write the default template to *path*.

    Args:
        path: Destination file.
        force: Overwrite an existing file.

    Raises:
        ConfigError: If *path* exists and *force* is not set.
    """
    if path.exists() and not force:
        raise ConfigError(f"Config already exists: {path} (use --force to overwrite)")
    _atomic_write(path, default_config_yaml())


def config_summary(config: YardgenConfig) -> dict[str, Any]:
    """Return the effective configuration as plain data (for ``--verbose`` traces)."""
    return config.model_dump(mode="json", by_alias=True)
