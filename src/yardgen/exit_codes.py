"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific outcome category and is referenced by the
corresponding :class:`~yardgen.exceptions.YardgenError` subclass or by the
``run`` command when it summarises a batch of files.
CI scripts can inspect the exit code to tell "docs are missing" apart from
"a file could not be parsed" without scraping stderr.

Example::

    $ yardgen run --check lib
    $ echo $?
    3   # EXIT_CHECK_FAILED -- at least one file would change
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid or conflicting arguments."""

EXIT_CHECK_FAILED = 3
"""``--check`` found one or more files that would receive documentation."""

EXIT_PARSE_ERROR = 4
"""One or more Ruby source files could not be parsed."""
