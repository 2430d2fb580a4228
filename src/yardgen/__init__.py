"""yardgen -- Insert YARD documentation comments into Ruby source.

This package parses Ruby files with tree-sitter, works out the scope and
visibility of every method definition and attribute accessor, infers
parameter, return and exception types from the syntax, and writes YARD
comment blocks above each definition. Existing documentation can be left
alone (insert mode), regenerated (replace mode), or topped up with only the
missing tags (merge mode).

Typical workflow::

    yardgen init                  # write a commented yardgen.yml
    yardgen run --check lib       # CI: fail if any file lacks docs
    yardgen run --write lib       # insert the missing docs in place

Library use::

    from yardgen import Mode, process

    documented = process(source, mode=Mode.MERGE)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic configuration models and shared enums.
    config: YAML configuration loading and precedence resolution.
    filtering: Method-id and file-path filters.
    parsing: tree-sitter front-end and source buffer.
    infer: Heuristic type inference (literals, params, raises, returns).
    types: Signature providers (RBS files).
    rewriter: Walker, comment-block analysis, doc builder and applier.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"

from yardgen.models import Mode, YardgenConfig  # noqa: E402
from yardgen.rewriter import process, rewrite  # noqa: E402

__all__ = ["Mode", "YardgenConfig", "process", "rewrite", "__version__"]
