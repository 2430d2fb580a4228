"""Insert YARD doc comments into Ruby source.

Pipeline for one file:

1. **Parse** (:mod:`~yardgen.parsing`) -- tree-sitter syntax tree.
2. **Collect** (:mod:`~yardgen.rewriter.collector`) -- walk class and
   module bodies, resolving scope and visibility for every ``def`` and
   ``attr_*`` declaration.
3. **Build** (:mod:`~yardgen.rewriter.doc_builder`) -- render a full block
   or a merge delta, using the heuristics in :mod:`yardgen.infer` and,
   when configured, RBS signatures from :mod:`yardgen.types`.
4. **Apply** (:mod:`~yardgen.rewriter.applier`) -- splice the blocks into
   the text without touching anything else.

Typical usage::

    from yardgen.rewriter import process
    from yardgen.models import Mode

    documented = process(source, mode=Mode.MERGE)
"""

from __future__ import annotations

from typing import Optional, Union

from yardgen.exceptions import SourceParseError
from yardgen.models import Mode, YardgenConfig
from yardgen.parsing import SourceBuffer, parse_source
from yardgen.rewriter.applier import apply_plans, plan_insertions
from yardgen.rewriter.collector import Collector
from yardgen.rewriter.doc_builder import DocBuilder
from yardgen.types.provider import SignatureAdapter, SignatureProvider


def signature_adapter(
    config: YardgenConfig,
    provider: Optional[SignatureProvider] = None,
) -> SignatureAdapter:
    """Return the adapter used for lookups.

    An existing :class:`SignatureAdapter` is reused so its cache spans
    several files. Without an explicit provider, an RBS provider is
    created when ``signatures.enabled`` is set.
    """
    if isinstance(provider, SignatureAdapter):
        return provider
    if provider is None and config.signatures.enabled:
        from yardgen.types.rbs import RBSSignatureProvider

        provider = RBSSignatureProvider(
            config.signatures.sig_dirs,
            collapse_generics=config.signatures.collapse_generics,
        )
    return SignatureAdapter(provider)


def rewrite(
    source: str,
    mode: Union[Mode, str] = Mode.INSERT,
    config: Optional[YardgenConfig] = None,
    signature_provider: Optional[SignatureProvider] = None,
    file: Optional[str] = None,
) -> str:
    """Return *source* with doc blocks inserted, replaced or merged.

    Args:
        source: Ruby source text.
        mode: How existing comment blocks are treated.
        config: Effective configuration. Defaults to :class:`YardgenConfig`.
        signature_provider: Optional source of authoritative signatures.
        file: Display name used in diagnostics.

    Returns:
        The rewritten text; identical to *source* when nothing changes.

    Raises:
        SourceParseError: If *source* is not valid Ruby.
    """
    config = config or YardgenConfig()
    mode = Mode(mode)
    buffer = SourceBuffer(source, name=file or "(inline)")
    tree = parse_source(buffer)

    insertions = Collector(buffer).collect(tree.root_node)
    if not insertions:
        return source

    builder = DocBuilder(buffer, config, signature_adapter(config, signature_provider), file=file)
    plans = plan_insertions(buffer, insertions, mode, config, builder)
    return apply_plans(source, plans)


def process(
    source: str,
    mode: Union[Mode, str] = Mode.INSERT,
    config: Optional[YardgenConfig] = None,
    signature_provider: Optional[SignatureProvider] = None,
    file: Optional[str] = None,
) -> str:
    """Like :func:`rewrite`, but returns *source* unchanged when it does not parse."""
    try:
        return rewrite(source, mode, config, signature_provider, file)
    except SourceParseError:
        return source


__all__ = ["process", "rewrite", "signature_adapter"]
