"""Exception hierarchy for yardgen.

All exceptions inherit from :class:`YardgenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`yardgen.exit_codes`.
The top-level error handler in :func:`yardgen.app.main` catches
``YardgenError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Inference problems are never surfaced through this hierarchy: the doc
builder and the signature adapter swallow them and skip the affected
definition instead.

Subclass hierarchy::

    YardgenError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- SourceParseError    (exit 4)
"""

from yardgen.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
)


class YardgenError(Exception):
    """Base exception for all yardgen errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`yardgen.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(YardgenError):
    """Raised for invalid or conflicting CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(YardgenError):
    """Raised for configuration problems (unreadable file, invalid YAML, schema violations)."""

    exit_code = EXIT_GENERIC_FAILURE


class SourceParseError(YardgenError):
    """Raised when Ruby source cannot be parsed into a syntax tree.

    Args:
        message: Description of the failure.
        file: Path of the offending file, when known.
    """

    exit_code = EXIT_PARSE_ERROR

    def __init__(self, message: str, file: str | None = None):
        super().__init__(message)
        self.file = file
