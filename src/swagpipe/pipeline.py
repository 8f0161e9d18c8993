"""Pipeline orchestrator: one Swagger document in, one artifact out.

Each run walks a fixed sequence of states, one transition per stage::

    UNRESOLVED --partial resolution--> PARTIALLY_RESOLVED
               --validation gate-----> VALIDATED
               --full resolution-----> FULLY_RESOLVED
               --serialize | codegen--> EMITTED   (artifact handed to the sink)

Any failure moves the run to ``FAILED`` and is raised as a single
:class:`~swagpipe.exceptions.PipelineError` wrapping the original error.
Nothing is retried and no partial artifact is ever delivered.

Validation runs *between* the two resolution passes: the checker sees the
document with its internal ``$ref`` pointers still in place, and only
cross-document references inlined.

Runs share no mutable state. A :class:`SwaggerPipeline` holds the immutable
configuration and collaborators; every call to :meth:`SwaggerPipeline.run`
creates a fresh :class:`PipelineRun`, so separate documents may be processed
from separate threads.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Callable, Optional

from swagpipe.codegen.emitter import EntryPoint, get_entry_point
from swagpipe.codegen.schemas import build_schema_index
from swagpipe.codegen.settings import build_emitter_settings, to_json
from swagpipe.exceptions import CodegenError, PipelineError, SchemaInvalidError
from swagpipe.models import (
    FULL,
    PARTIAL,
    Artifact,
    CodegenMode,
    PipelineConfig,
    ResolvePolicy,
    SchemaIndex,
)
from swagpipe.output import debug
from swagpipe.parser.loader import base_uri_for
from swagpipe.parser.resolver import dereference, resolve_refs
from swagpipe.sinks import MemorySink, Sink
from swagpipe.validation.checker import check_document
from swagpipe.validation.gate import INVALID_SCHEMA_MESSAGE, Checker, GateOutcome, run_gate

Loader = Callable[[str, ResolvePolicy], dict[str, Any]]
Resolver = Callable[[dict[str, Any], ResolvePolicy, Optional[str]], dict[str, Any]]
Completion = Callable[[Optional[PipelineError]], None]


class PipelineState(str, enum.Enum):
    """States of a single pipeline run."""

    UNRESOLVED = "unresolved"
    PARTIALLY_RESOLVED = "partially_resolved"
    VALIDATED = "validated"
    FULLY_RESOLVED = "fully_resolved"
    EMITTED = "emitted"
    FAILED = "failed"


class SwaggerPipeline:
    """Configured pipeline, reusable for any number of documents.

    The emission entry point is looked up here, once, so an unknown
    generation mode fails before the first document is read.

    Args:
        config: Result of :func:`~swagpipe.config.configure`.
        sink: Receives every artifact. Defaults to a
            :class:`~swagpipe.sinks.MemorySink`.
        loader: Loads a source and applies a resolution policy
            (stage 1).
        resolver: Applies a resolution policy to an in-memory document
            (stage 3).
        checker: Conformance checker used by the validation gate.
        entry_points: Mode -> entry point table; defaults to the built-in
            code generator.

    Raises:
        CodegenError: If the configured generation mode has no entry point.
    """

    def __init__(
        self,
        config: PipelineConfig,
        sink: Optional[Sink] = None,
        loader: Loader = dereference,
        resolver: Resolver = resolve_refs,
        checker: Checker = check_document,
        entry_points: Optional[dict[CodegenMode, EntryPoint]] = None,
    ) -> None:
        self.config = config
        self.sink: Sink = sink if sink is not None else MemorySink()
        self.loader = loader
        self.resolver = resolver
        self.checker = checker
        self.entry_point: Optional[EntryPoint] = None
        if config.codegen is not None:
            self.entry_point = get_entry_point(config.codegen.mode, entry_points)

    def start(self, source: str) -> PipelineRun:
        """Create a run for *source* without executing it."""
        return PipelineRun(self, source)

    def run(self, source: str) -> Artifact:
        """Process *source* and deliver its artifact to the sink.

        Raises:
            PipelineError: If any stage fails.
        """
        return self.start(source).execute()

    def process(self, source: str, callback: Completion) -> None:
        """Process *source* and report completion through *callback*.

        *callback* is called exactly once: with ``None`` once the artifact has
        been delivered, or with the :class:`~swagpipe.exceptions.PipelineError`
        that stopped the run.
        """
        try:
            self.run(source)
        except PipelineError as exc:
            callback(exc)
            return
        callback(None)


class PipelineRun:
    """One pass of one document through the pipeline.

    Each transition method checks that the run is in the state it starts
    from, does its work, and records the new state. Use :meth:`execute` for
    the whole sequence; :meth:`validate` and :meth:`resolve` stop early.
    """

    def __init__(self, pipeline: SwaggerPipeline, source: str) -> None:
        self.pipeline = pipeline
        self.source = source
        self.state = PipelineState.UNRESOLVED
        self.document: Optional[dict[str, Any]] = None
        self.outcome: Optional[GateOutcome] = None
        self.artifact: Optional[Artifact] = None

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def validate(self) -> GateOutcome:
        """Run up to the validation gate and return its outcome."""
        return self._guarded(self._validate_steps)

    def resolve(self) -> dict[str, Any]:
        """Run up to full resolution and return the resolved document."""
        return self._guarded(self._resolve_steps)

    def execute(self) -> Artifact:
        """Run every stage and return the delivered artifact."""
        return self._guarded(self._execute_steps)

    def _validate_steps(self) -> GateOutcome:
        self.resolve_partially()
        return self.check()

    def _resolve_steps(self) -> dict[str, Any]:
        self._validate_steps()
        return self.resolve_fully()

    def _execute_steps(self) -> Artifact:
        self._resolve_steps()
        self.emit()
        return self.deliver()

    def _guarded(self, steps: Callable[[], Any]) -> Any:
        try:
            return steps()
        except Exception as exc:
            stage = self.state.value
            self.state = PipelineState.FAILED
            self.document = None
            if isinstance(exc, PipelineError):
                raise
            raise PipelineError(str(exc), stage=stage, cause=exc) from exc

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def resolve_partially(self) -> None:
        """UNRESOLVED -> PARTIALLY_RESOLVED: inline cross-document references only."""
        self._expect(PipelineState.UNRESOLVED)
        debug(f"Resolving external references of {self.source}")
        self.document = self.pipeline.loader(self.source, PARTIAL)
        self.state = PipelineState.PARTIALLY_RESOLVED

    def check(self) -> GateOutcome:
        """PARTIALLY_RESOLVED -> VALIDATED: run the validation gate.

        Raises:
            SchemaInvalidError: If the checker reported any error.
        """
        self._expect(PipelineState.PARTIALLY_RESOLVED)
        debug(f"Validating {self.source}")
        self.outcome = run_gate(self._require_document(), self.pipeline.checker)
        if self.outcome.should_abort:
            raise SchemaInvalidError(INVALID_SCHEMA_MESSAGE)
        self.state = PipelineState.VALIDATED
        return self.outcome

    def resolve_fully(self) -> dict[str, Any]:
        """VALIDATED -> FULLY_RESOLVED: inline the remaining internal references."""
        self._expect(PipelineState.VALIDATED)
        debug(f"Resolving internal references of {self.source}")
        self.document = self.pipeline.resolver(
            self._require_document(), FULL, base_uri_for(self.source)
        )
        self.state = PipelineState.FULLY_RESOLVED
        return self.document

    def schema_index(self) -> SchemaIndex:
        """Schema index of the fully resolved document (no state change)."""
        self._expect(PipelineState.FULLY_RESOLVED)
        return build_schema_index(self._require_document())

    def emit(self) -> Artifact:
        """FULLY_RESOLVED -> EMITTED: serialize the document or generate code."""
        self._expect(PipelineState.FULLY_RESOLVED)
        document = self._require_document()
        config = self.pipeline.config
        entry_point = self.pipeline.entry_point

        if config.codegen is None:
            content = to_json(document)
        elif entry_point is None:
            raise CodegenError(f"No entry point for {config.codegen.mode.value} code")
        else:
            debug(f"Generating {config.codegen.mode.value} code for {self.source}")
            settings = build_emitter_settings(
                document, self.schema_index(), config.codegen
            )
            content = entry_point(settings)
            if not isinstance(content, str):
                raise CodegenError(
                    f"Code generator returned {type(content).__name__}, expected text"
                )

        self.artifact = Artifact(path=Path(config.filename), content=content.encode("utf-8"))
        self.state = PipelineState.EMITTED
        return self.artifact

    def deliver(self) -> Artifact:
        """Hand the artifact to the sink; the run stays EMITTED."""
        self._expect(PipelineState.EMITTED)
        if self.artifact is None:
            raise RuntimeError("Pipeline run has no artifact to deliver")
        self.pipeline.sink(self.artifact)
        return self.artifact

    def _require_document(self) -> dict[str, Any]:
        if self.document is None:
            raise RuntimeError(f"Pipeline run is {self.state.value} but holds no document")
        return self.document

    def _expect(self, state: PipelineState) -> None:
        if self.state is not state:
            raise RuntimeError(
                f"Pipeline run is {self.state.value}, expected {state.value}"
            )
