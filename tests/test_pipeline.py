"""Tests for swagpipe.pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from swagpipe.codegen.settings import to_json
from swagpipe.exceptions import (
    CheckerError,
    CodegenError,
    PipelineError,
    ResolutionError,
    SchemaInvalidError,
)
from swagpipe.exit_codes import EXIT_CODEGEN_ERROR, EXIT_RESOLUTION_ERROR, EXIT_SCHEMA_INVALID
from swagpipe.models import (
    FULL,
    PARTIAL,
    Artifact,
    CodegenMode,
    CodegenSettings,
    EmitterSettings,
    Finding,
    PipelineConfig,
    ValidationResult,
)
from swagpipe.output import OutputManager
from swagpipe.parser.resolver import resolve_refs
from swagpipe.pipeline import PipelineState, SwaggerPipeline
from swagpipe.sinks import MemorySink
from swagpipe.validation.gate import GateOutcome


def _checker(errors: int = 0, warnings: int = 0) -> MagicMock:
    return MagicMock(
        return_value=ValidationResult(
            errors=[Finding(path=["paths"], message="bad", code="SCHEMA")] * errors,
            warnings=[Finding(path=["definitions", "X"], message="unused",
                              code="UNUSED_DEFINITION")] * warnings,
        )
    )


# ---------------------------------------------------------------------------
# Raw JSON mode
# ---------------------------------------------------------------------------


class TestRawMode:
    """Without codegen the artifact is the resolved document as compact JSON."""

    def test_document_without_refs_is_unchanged(
        self, plain_output: OutputManager, items_path: Path, items_raw: dict[str, Any],
        raw_config: PipelineConfig,
    ) -> None:
        sink = MemorySink()
        artifact = SwaggerPipeline(raw_config, sink=sink).run(str(items_path))

        assert artifact.content == to_json(items_raw).encode("utf-8")
        assert artifact.path == Path("swagger.json")
        assert sink.artifacts == [artifact]

    def test_artifact_is_fully_resolved(
        self, plain_output: OutputManager, petstore_path: Path,
        petstore_raw: dict[str, Any], raw_config: PipelineConfig,
    ) -> None:
        artifact = SwaggerPipeline(raw_config).run(str(petstore_path))

        assert json.loads(artifact.content) == resolve_refs(petstore_raw, FULL)
        assert b"$ref" not in artifact.content
        assert b"\n" not in artifact.content

    def test_split_document(
        self, plain_output: OutputManager, split_path: Path, raw_config: PipelineConfig
    ) -> None:
        document = json.loads(SwaggerPipeline(raw_config).run(str(split_path)).content)
        responses = document["paths"]["/pets"]["get"]["responses"]
        assert responses["200"]["schema"]["items"]["properties"]["name"] == {"type": "string"}
        assert responses["default"]["schema"]["type"] == "object"

    def test_warnings_only_still_produces_artifact(
        self, plain_output: OutputManager, warnings_only_path: Path,
        raw_config: PipelineConfig, capfd: pytest.CaptureFixture,
    ) -> None:
        resolver = MagicMock(side_effect=resolve_refs)
        sink = MemorySink()
        pipeline = SwaggerPipeline(raw_config, sink=sink, resolver=resolver)

        run = pipeline.start(str(warnings_only_path))
        run.execute()

        assert run.outcome is GateOutcome.WARNINGS
        assert run.state is PipelineState.EMITTED
        resolver.assert_called_once()
        assert len(sink.artifacts) == 1
        assert "Swagger Schema Warnings (2)" in capfd.readouterr().err

    def test_yaml_date_examples_are_serialized(
        self, plain_output: OutputManager, dated_path: Path, raw_config: PipelineConfig
    ) -> None:
        document = json.loads(SwaggerPipeline(raw_config).run(str(dated_path)).content)
        release = document["paths"]["/releases"]["get"]["responses"]["200"]["schema"]["items"]
        assert release["properties"]["date"]["example"] == "2017-07-21"
        assert release["properties"]["publishedAt"]["example"] == "2017-07-21T17:32:28Z"


# ---------------------------------------------------------------------------
# Validation gating
# ---------------------------------------------------------------------------


class TestValidationGate:
    """Conformance errors stop the run before full resolution."""

    def test_errors_abort_before_full_resolution(
        self, plain_output: OutputManager, invalid_path: Path, raw_config: PipelineConfig,
        capfd: pytest.CaptureFixture,
    ) -> None:
        resolver = MagicMock(side_effect=resolve_refs)
        sink = MagicMock()
        run = SwaggerPipeline(raw_config, sink=sink, resolver=resolver).start(str(invalid_path))

        with pytest.raises(PipelineError) as exc_info:
            run.execute()

        resolver.assert_not_called()
        sink.assert_not_called()
        assert run.state is PipelineState.FAILED
        assert run.artifact is None
        assert run.document is None
        assert str(exc_info.value) == "[swagpipe] The Swagger schema is invalid"
        assert isinstance(exc_info.value.cause, SchemaInvalidError)
        assert exc_info.value.exit_code == EXIT_SCHEMA_INVALID
        assert exc_info.value.stage == "partially_resolved"
        assert "Swagger Schema Errors (1)" in capfd.readouterr().err

    def test_injected_checker_errors(
        self, plain_output: OutputManager, petstore_path: Path, raw_config: PipelineConfig
    ) -> None:
        resolver = MagicMock()
        pipeline = SwaggerPipeline(raw_config, checker=_checker(errors=1, warnings=1),
                                   resolver=resolver)
        with pytest.raises(PipelineError, match="The Swagger schema is invalid"):
            pipeline.run(str(petstore_path))
        resolver.assert_not_called()

    def test_checker_failure_is_surfaced(
        self, plain_output: OutputManager, petstore_path: Path, raw_config: PipelineConfig
    ) -> None:
        checker = MagicMock(side_effect=CheckerError("validator exploded"))
        with pytest.raises(PipelineError) as exc_info:
            SwaggerPipeline(raw_config, checker=checker).run(str(petstore_path))
        assert str(exc_info.value) == "[swagpipe] validator exploded"
        assert isinstance(exc_info.value.__cause__, CheckerError)

    def test_checker_sees_partially_resolved_document(
        self, plain_output: OutputManager, split_path: Path, raw_config: PipelineConfig
    ) -> None:
        checker = _checker()
        SwaggerPipeline(raw_config, checker=checker).run(str(split_path))

        document = checker.call_args.args[0]
        responses = document["paths"]["/pets"]["get"]["responses"]
        assert responses["default"]["schema"] == {"$ref": "#/definitions/Error"}
        assert "$ref" not in json.dumps(responses["200"])


# ---------------------------------------------------------------------------
# Stage order and failures
# ---------------------------------------------------------------------------


class TestStages:
    """Collaborators are called once each, in a fixed order."""

    def test_stage_order(self, plain_output: OutputManager, raw_config: PipelineConfig) -> None:
        calls: list[str] = []
        document = {"swagger": "2.0", "paths": {}}

        def loader(source: str, policy: Any) -> dict[str, Any]:
            calls.append(f"load:{policy.internal}")
            return dict(document)

        def checker(doc: dict[str, Any]) -> ValidationResult:
            calls.append("check")
            return ValidationResult()

        def resolver(doc: dict[str, Any], policy: Any, base_uri: Any) -> dict[str, Any]:
            calls.append(f"resolve:{policy.internal}")
            return doc

        def sink(artifact: Artifact) -> None:
            calls.append("sink")

        SwaggerPipeline(raw_config, sink=sink, loader=loader, resolver=resolver,
                        checker=checker).run("memory.json")

        assert calls == ["load:False", "check", "resolve:True", "sink"]

    def test_loader_receives_partial_policy(
        self, plain_output: OutputManager, raw_config: PipelineConfig
    ) -> None:
        loader = MagicMock(return_value={"swagger": "2.0"})
        SwaggerPipeline(raw_config, loader=loader, checker=_checker()).run("x.json")
        loader.assert_called_once_with("x.json", PARTIAL)

    def test_resolution_failure(
        self, plain_output: OutputManager, tmp_path: Path, raw_config: PipelineConfig
    ) -> None:
        run = SwaggerPipeline(raw_config).start(str(tmp_path / "missing.json"))
        with pytest.raises(PipelineError, match="Document not found") as exc_info:
            run.execute()
        assert run.state is PipelineState.FAILED
        assert exc_info.value.stage == "unresolved"
        assert exc_info.value.exit_code == EXIT_RESOLUTION_ERROR

    def test_cycle_fails_full_resolution(
        self, plain_output: OutputManager, raw_config: PipelineConfig
    ) -> None:
        document = {
            "swagger": "2.0",
            "definitions": {"Node": {"properties": {"next": {"$ref": "#/definitions/Node"}}}},
        }
        loader = MagicMock(return_value=document)
        run = SwaggerPipeline(raw_config, loader=loader, checker=_checker()).start("tree.json")

        with pytest.raises(PipelineError, match="Circular") as exc_info:
            run.execute()
        assert exc_info.value.stage == "validated"
        assert isinstance(exc_info.value.cause, ResolutionError)

    def test_transition_out_of_order(
        self, plain_output: OutputManager, raw_config: PipelineConfig
    ) -> None:
        run = SwaggerPipeline(raw_config).start("x.json")
        with pytest.raises(RuntimeError, match="expected validated"):
            run.resolve_fully()

    def test_transition_without_document(
        self, plain_output: OutputManager, raw_config: PipelineConfig
    ) -> None:
        run = SwaggerPipeline(raw_config, checker=_checker()).start("x.json")
        run.state = PipelineState.PARTIALLY_RESOLVED

        with pytest.raises(RuntimeError, match="holds no document"):
            run.check()

    def test_deliver_without_artifact(
        self, plain_output: OutputManager, raw_config: PipelineConfig
    ) -> None:
        sink = MemorySink()
        run = SwaggerPipeline(raw_config, sink=sink).start("x.json")
        run.state = PipelineState.EMITTED

        with pytest.raises(RuntimeError, match="no artifact"):
            run.deliver()
        assert sink.artifacts == []

    def test_runs_are_independent(
        self, plain_output: OutputManager, items_path: Path, petstore_path: Path,
        raw_config: PipelineConfig,
    ) -> None:
        sink = MemorySink()
        pipeline = SwaggerPipeline(raw_config, sink=sink)
        first = pipeline.run(str(items_path))
        second = pipeline.run(str(petstore_path))

        assert first.content != second.content
        assert sink.artifacts == [first, second]

    def test_validate_and_resolve_stop_early(
        self, plain_output: OutputManager, petstore_path: Path, raw_config: PipelineConfig
    ) -> None:
        pipeline = SwaggerPipeline(raw_config)

        run = pipeline.start(str(petstore_path))
        assert run.validate() is GateOutcome.CLEAN
        assert run.state is PipelineState.VALIDATED

        run = pipeline.start(str(petstore_path))
        run.resolve()
        assert run.state is PipelineState.FULLY_RESOLVED
        assert set(run.schema_index()) == {"/pets", "/pets/{petId}"}


# ---------------------------------------------------------------------------
# Code generation
# ---------------------------------------------------------------------------


class TestCodegenMode:
    """Generation mode dispatches to the mode's entry point."""

    def test_node_client(
        self, plain_output: OutputManager, petstore_path: Path, node_config: PipelineConfig
    ) -> None:
        artifact = SwaggerPipeline(node_config).run(str(petstore_path))
        code = artifact.content.decode("utf-8")

        assert artifact.path == Path("client.js")
        assert "class PetClient {" in code
        assert "module.exports = PetClient;" in code

    def test_node_client_from_yaml_with_dates(
        self, plain_output: OutputManager, dated_path: Path, node_config: PipelineConfig
    ) -> None:
        code = SwaggerPipeline(node_config).run(str(dated_path)).content.decode("utf-8")
        assert "listReleases" in code

    @pytest.mark.parametrize("mode", [CodegenMode.NODE, CodegenMode.ANGULAR])
    def test_mode_dispatch(
        self, plain_output: OutputManager, items_path: Path, mode: CodegenMode
    ) -> None:
        node, angular = MagicMock(return_value="node"), MagicMock(return_value="angular")
        table = {CodegenMode.NODE: node, CodegenMode.ANGULAR: angular}
        config = PipelineConfig(filename="out", codegen=CodegenSettings(mode=mode))

        artifact = SwaggerPipeline(config, entry_points=table).run(str(items_path))

        assert artifact.content == mode.value.encode("utf-8")
        called, idle = (node, angular) if mode is CodegenMode.NODE else (angular, node)
        called.assert_called_once()
        idle.assert_not_called()
        settings = called.call_args.args[0]
        assert isinstance(settings, EmitterSettings)
        assert settings.context["json_schemas"] == (
            '{"/items":{"get":{"request":null,"responses":{"200":{"type":"array"}}}}}'
        )

    def test_custom_template(
        self, plain_output: OutputManager, petstore_path: Path, custom_config: PipelineConfig
    ) -> None:
        content = SwaggerPipeline(custom_config).run(str(petstore_path)).content
        assert content.decode("utf-8") == (
            "// Custom\n"
            "GET /pets -> listPets\n"
            "POST /pets -> createPet\n"
            "GET /pets/{petId} -> getPetsByPetId\n"
        )

    def test_missing_entry_point_fails_before_reading(self) -> None:
        config = PipelineConfig(filename="out", codegen=CodegenSettings(mode=CodegenMode.ANGULAR))
        with pytest.raises(CodegenError, match="angular"):
            SwaggerPipeline(config, entry_points={CodegenMode.NODE: MagicMock()})

    def test_emitter_failure(
        self, plain_output: OutputManager, items_path: Path
    ) -> None:
        entry_point = MagicMock(side_effect=CodegenError("Template rendering failed: boom"))
        config = PipelineConfig(filename="out", codegen=CodegenSettings(mode=CodegenMode.NODE))
        sink = MemorySink()
        run = SwaggerPipeline(
            config, sink=sink, entry_points={CodegenMode.NODE: entry_point}
        ).start(str(items_path))

        with pytest.raises(PipelineError, match="boom") as exc_info:
            run.execute()
        assert exc_info.value.exit_code == EXIT_CODEGEN_ERROR
        assert exc_info.value.stage == "fully_resolved"
        assert sink.artifacts == []

    def test_non_text_output_is_rejected(
        self, plain_output: OutputManager, items_path: Path
    ) -> None:
        config = PipelineConfig(filename="out", codegen=CodegenSettings(mode=CodegenMode.NODE))
        pipeline = SwaggerPipeline(
            config, entry_points={CodegenMode.NODE: MagicMock(return_value=None)}
        )
        with pytest.raises(PipelineError, match="expected text"):
            pipeline.run(str(items_path))


# ---------------------------------------------------------------------------
# Completion channel
# ---------------------------------------------------------------------------


class TestProcess:
    """process() reports success and failure through one callback."""

    def test_success(
        self, plain_output: OutputManager, items_path: Path, raw_config: PipelineConfig
    ) -> None:
        callback = MagicMock()
        sink = MemorySink()
        SwaggerPipeline(raw_config, sink=sink).process(str(items_path), callback)

        callback.assert_called_once_with(None)
        assert len(sink.artifacts) == 1

    def test_failure(
        self, plain_output: OutputManager, invalid_path: Path, raw_config: PipelineConfig
    ) -> None:
        callback = MagicMock()
        SwaggerPipeline(raw_config).process(str(invalid_path), callback)

        callback.assert_called_once()
        (error,) = callback.call_args.args
        assert isinstance(error, PipelineError)
        assert error.tag == "swagpipe"
