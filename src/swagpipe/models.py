"""Canonical Pydantic models shared across all swagpipe modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- what the caller asks for, as loaded from CLI flags,
environment variables or a ``swagpipe.json`` project file:
    :class:`CodegenMode`, :class:`TemplatePaths`, :class:`CodegenOptions`,
    :class:`PipelineOptions`.

**Normalized run configuration** -- built once by
:func:`~swagpipe.config.configure` and never mutated afterwards:
    :class:`TemplateSet`, :class:`CodegenSettings`, :class:`PipelineConfig`,
    :class:`EmitterSettings`.

**Pipeline values** -- produced while a document flows through the pipeline:
    :class:`ResolvePolicy`, :class:`Finding`, :class:`ValidationResult`,
    :class:`OperationSchemas`, :class:`Artifact`.

The run-configuration models are frozen; every stage that needs a different
shape builds a new instance instead of editing a shared one.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional, TypedDict, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration Models ---


class CodegenMode(str, enum.Enum):
    """Generation modes, one per emission entry point.

    ``NODE`` and ``ANGULAR`` ship with built-in templates; ``CUSTOM`` renders
    only the templates supplied by the caller.
    """

    NODE = "node"
    ANGULAR = "angular"
    CUSTOM = "custom"


class TemplatePaths(BaseModel):
    """Paths to the three template fragments of a custom template set.

    Any fragment may be omitted; a missing fragment renders as an empty
    string (a trivial ``request`` helper rarely needs its own file).
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    class_: Optional[str] = Field(default=None, alias="class")
    method: Optional[str] = None
    request: Optional[str] = None


class CodegenOptions(BaseModel):
    """Code generation options as supplied by the caller.

    ``template`` accepts either a single path (used as the ``class``
    template) or a :class:`TemplatePaths` object.

    Example::

        CodegenOptions(type="node", module_name="PetStore")
        CodegenOptions(template="templates/client.j2")
    """

    model_config = ConfigDict(extra="forbid")

    type: Optional[CodegenMode] = Field(
        default=None, description="Generation mode: node, angular or custom"
    )
    module_name: Optional[str] = None
    class_name: Optional[str] = None
    template: Optional[Union[str, TemplatePaths]] = None
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra variables made available to the templates",
    )


class PipelineOptions(BaseModel):
    """Top-level options of one swagpipe invocation.

    When ``codegen`` is ``None`` the fully resolved document itself is the
    output; otherwise it is fed to the code generator.
    """

    model_config = ConfigDict(extra="forbid")

    filename: Optional[str] = Field(
        default=None, description="Name of the output artifact"
    )
    codegen: Optional[CodegenOptions] = None


# --- Normalized Run Configuration ---


class TemplateSet(BaseModel):
    """Loaded template text for the ``class``, ``method`` and ``request`` fragments."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    class_: str = Field(default="", alias="class")
    method: str = ""
    request: str = ""

    def is_empty(self) -> bool:
        """Return True when no fragment carries any text."""
        return not (self.class_ or self.method or self.request)


class CodegenSettings(BaseModel):
    """Code generation settings with every default applied.

    Built at configuration time by :func:`~swagpipe.config.configure`. The
    ``mode`` field selects the emission entry point and is
    absent from :class:`EmitterSettings`.
    """

    model_config = ConfigDict(frozen=True)

    mode: CodegenMode = CodegenMode.CUSTOM
    module_name: str = "API"
    class_name: str = "API"
    template: TemplateSet = Field(default_factory=TemplateSet)
    context: dict[str, Any] = Field(default_factory=dict)


class PipelineConfig(BaseModel):
    """Validated configuration for running the pipeline over any number of documents."""

    model_config = ConfigDict(frozen=True)

    filename: str
    codegen: Optional[CodegenSettings] = None

    @property
    def use_codegen(self) -> bool:
        """Whether the output is generated source rather than the resolved document."""
        return self.codegen is not None


class EmitterSettings(BaseModel):
    """Input of an emission entry point.

    Built fresh for every pipeline run by
    :func:`~swagpipe.codegen.settings.build_emitter_settings`.
    """

    model_config = ConfigDict(frozen=True)

    module_name: str
    class_name: str
    template: TemplateSet
    esnext: bool = True
    swagger: dict[str, Any]
    context: dict[str, Any] = Field(default_factory=dict)


# --- Pipeline Values ---


HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")
"""Operation keys of a Swagger 2.0 path item, in specification order."""


class ResolvePolicy(BaseModel):
    """Reference-following policy for :func:`~swagpipe.parser.resolver.resolve_refs`.

    ``internal=False`` replaces only references into other documents;
    ``internal=True`` replaces every reference.
    """

    model_config = ConfigDict(frozen=True)

    internal: bool = True


PARTIAL = ResolvePolicy(internal=False)
FULL = ResolvePolicy(internal=True)


class Finding(BaseModel):
    """A single validation error or warning.

    ``path`` is the sequence of keys/indices leading to the offending node,
    so ``["paths", "/pets", "get"]`` is reported as ``#/paths//pets/get``.
    """

    path: list[Union[str, int]] = Field(default_factory=list)
    message: str
    code: Optional[str] = None

    @property
    def pointer(self) -> str:
        return "#/" + "/".join(str(segment) for segment in self.path)


class ValidationResult(BaseModel):
    """Errors and warnings returned by one conformance check."""

    errors: list[Finding] = Field(default_factory=list)
    warnings: list[Finding] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_findings(self) -> bool:
        return bool(self.errors or self.warnings)


class OperationSchemas(TypedDict):
    """Request and response schemas of one operation in the schema index."""

    request: Optional[dict[str, Any]]
    responses: dict[str, dict[str, Any]]


SchemaIndex = dict[str, dict[str, OperationSchemas]]
"""Mapping of path -> method -> :class:`OperationSchemas`."""


class Artifact(BaseModel):
    """Output of one pipeline run, ready to be handed to a sink."""

    model_config = ConfigDict(frozen=True)

    path: Path
    content: bytes
