"""Canonical Pydantic models and enums shared across all yardgen modules.

This is the single source of truth for configuration shapes in the project.
Every other module imports from here rather than defining its own models.

**Enums** -- :class:`Scope`, :class:`Visibility` and :class:`Mode` are
``str`` enums so that they compare equal to the plain strings found in
``yardgen.yml`` and can be passed straight to Typer options.

**Configuration models** -- deserialised from ``yardgen.yml``:
    :class:`EmitConfig`, :class:`DocConfig`, :class:`MethodOverride`,
    :class:`VisibilityOverrides`, :class:`MethodsConfig`,
    :class:`InferenceConfig`, :class:`FileFilterConfig`,
    :class:`FilterConfig`, :class:`SignaturesConfig` and the root
    :class:`YardgenConfig`.

Every field carries a default, so a partial YAML document is deep-merged
with the built-in defaults simply by validating it. Unknown keys are
ignored to keep older config files loadable.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# --- Enums ---


class Scope(str, enum.Enum):
    """Whether a member belongs to instances or to the class/module itself."""

    INSTANCE = "instance"
    CLASS = "class"

    @property
    def separator(self) -> str:
        """YARD path separator: ``#`` for instance members, ``.`` for class members."""
        return "#" if self is Scope.INSTANCE else "."


class Visibility(str, enum.Enum):
    """Ruby method visibility."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


class Mode(str, enum.Enum):
    """How existing comment blocks above a definition are treated.

    * ``INSERT`` -- leave any commented definition alone.
    * ``REPLACE`` -- regenerate doc-like blocks, keeping tool directives.
    * ``MERGE`` -- append only the tags an existing doc-like block lacks.
    """

    INSERT = "insert"
    REPLACE = "replace"
    MERGE = "merge"


# --- Emit / doc ---


class EmitConfig(BaseModel):
    """Toggles for each part of a generated doc block."""

    header: bool = Field(default=True, description="Emit the '+A#foo+ -> Type' header line")
    description: bool = Field(default=True, description="Emit the default description line")
    param_tags: bool = True
    return_tag: bool = True
    visibility_tags: bool = Field(
        default=True, description="Emit @private / @protected for non-public members"
    )
    raise_tags: bool = True
    rescue_conditional_returns: bool = Field(
        default=True, description="Emit '@return [T] if ErrorA, ErrorB' for rescue branches"
    )
    attributes: bool = Field(
        default=False, description="Emit @!attribute blocks for attr_reader/writer/accessor"
    )


class DocConfig(BaseModel):
    """Free-text defaults used in generated blocks."""

    default_message: str = "Method documentation."


class MethodOverride(BaseModel):
    """Per scope/visibility overrides. ``None`` means "use the global setting"."""

    return_tag: Optional[bool] = None
    default_message: Optional[str] = None


class VisibilityOverrides(BaseModel):
    """One :class:`MethodOverride` bucket per visibility."""

    public: MethodOverride = Field(default_factory=MethodOverride)
    protected: MethodOverride = Field(default_factory=MethodOverride)
    private: MethodOverride = Field(default_factory=MethodOverride)


class MethodsConfig(BaseModel):
    """Override buckets keyed by scope, then visibility.

    The YAML key for class scope is ``class``, which is a Python keyword,
    so the field is named ``class_`` and aliased.

    Example::

        methods:
          instance:
            private:
              return_tag: false
          class:
            public:
              default_message: "Factory method."
    """

    model_config = ConfigDict(populate_by_name=True)

    instance: VisibilityOverrides = Field(default_factory=VisibilityOverrides)
    class_: VisibilityOverrides = Field(default_factory=VisibilityOverrides, alias="class")

    def bucket(self, scope: Scope, visibility: Visibility) -> MethodOverride:
        """Return the override bucket for *scope* and *visibility*."""
        by_scope = self.instance if scope is Scope.INSTANCE else self.class_
        return getattr(by_scope, visibility.value)


# --- Inference ---


class InferenceConfig(BaseModel):
    """Knobs for the heuristic type inference."""

    fallback_type: str = Field(
        default="Object", min_length=1, description="Type used when inference is uncertain"
    )
    nil_as_optional: bool = Field(
        default=True, description="Render 'T or nil' as 'T?' instead of 'T, nil'"
    )
    treat_options_keyword_as_hash: bool = Field(
        default=True, description="Type a keyword argument named 'options' as Hash"
    )


# --- Filters ---


class FileFilterConfig(BaseModel):
    """File path filters, relative to the working directory.

    Patterns are gitignore-style globs (``spec``, ``vendor/**/*.rb``) or
    regular expressions wrapped in slashes (``/^spec\\//``).
    """

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)


class FilterConfig(BaseModel):
    """Which definitions are documented.

    ``scopes`` and ``visibilities`` are allow-lists. ``include`` and
    ``exclude`` match method ids such as ``Billing::Invoice#total`` or
    ``Billing::Invoice.build``; exclude always wins and an empty include
    list means "everything".
    """

    visibilities: list[Visibility] = Field(
        default_factory=lambda: [Visibility.PUBLIC, Visibility.PROTECTED, Visibility.PRIVATE]
    )
    scopes: list[Scope] = Field(default_factory=lambda: [Scope.INSTANCE, Scope.CLASS])
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    files: FileFilterConfig = Field(default_factory=FileFilterConfig)


# --- Signatures ---


class SignaturesConfig(BaseModel):
    """RBS signature lookup.

    Example::

        signatures:
          enabled: true
          sig_dirs: ["sig", "vendor/sig"]
          collapse_generics: true
    """

    enabled: bool = False
    sig_dirs: list[str] = Field(default_factory=lambda: ["sig"])
    collapse_generics: bool = Field(
        default=False, description="Render Hash<Symbol, Object> as plain Hash"
    )


# --- Root ---


class YardgenConfig(BaseModel):
    """Root configuration object, deserialised from ``yardgen.yml``.

    The ``signatures`` section may also be spelled ``rbs``.

    Example::

        YardgenConfig.model_validate({"emit": {"attributes": True}})
    """

    model_config = ConfigDict(populate_by_name=True)

    emit: EmitConfig = Field(default_factory=EmitConfig)
    doc: DocConfig = Field(default_factory=DocConfig)
    methods: MethodsConfig = Field(default_factory=MethodsConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    signatures: SignaturesConfig = Field(
        default_factory=SignaturesConfig,
        validation_alias=AliasChoices("signatures", "rbs"),
    )

    def return_tag_for(self, scope: Scope, visibility: Visibility) -> bool:
        """Whether to emit ``@return`` lines for members in this bucket."""
        override = self.methods.bucket(scope, visibility).return_tag
        return self.emit.return_tag if override is None else override

    def message_for(self, scope: Scope, visibility: Visibility) -> str:
        """Description text for members in this bucket."""
        override = self.methods.bucket(scope, visibility).default_message
        return self.doc.default_message if override is None else override
