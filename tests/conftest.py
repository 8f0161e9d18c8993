"""Shared test fixtures for swagpipe.

Provides reusable fixtures for loading Swagger documents, building run
configurations, managing output state, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from swagpipe.models import CodegenMode, CodegenSettings, PipelineConfig, TemplateSet
from swagpipe.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a plain, colourless OutputManager and return it."""
    manager = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(manager)
    return manager


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def petstore_path() -> Path:
    """Path of the clean petstore document (internal refs only)."""
    return FIXTURES_DIR / "petstore.json"


@pytest.fixture
def petstore_raw(petstore_path: Path) -> dict[str, Any]:
    """Load raw petstore document dict."""
    with open(petstore_path) as f:
        return json.load(f)


@pytest.fixture
def items_path() -> Path:
    """Path of a single-operation document without any ``$ref``."""
    return FIXTURES_DIR / "items.json"


@pytest.fixture
def items_raw(items_path: Path) -> dict[str, Any]:
    with open(items_path) as f:
        return json.load(f)


@pytest.fixture
def warnings_only_path() -> Path:
    """Path of a document with unused components but no errors."""
    return FIXTURES_DIR / "warnings_only.json"


@pytest.fixture
def invalid_path() -> Path:
    """Path of a document with a dangling internal reference."""
    return FIXTURES_DIR / "invalid.json"


@pytest.fixture
def split_path() -> Path:
    """Path of a YAML document referencing a sibling file."""
    return FIXTURES_DIR / "split" / "main.yaml"


@pytest.fixture
def dated_path() -> Path:
    """Path of a YAML document with unquoted date and timestamp examples."""
    return FIXTURES_DIR / "dated.yaml"


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_config() -> PipelineConfig:
    """Configuration writing the resolved document as JSON."""
    return PipelineConfig(filename="swagger.json")


@pytest.fixture
def node_config() -> PipelineConfig:
    """Configuration generating a Node.js client with built-in templates."""
    return PipelineConfig(
        filename="client.js",
        codegen=CodegenSettings(mode=CodegenMode.NODE, module_name="Pets", class_name="PetClient"),
    )


@pytest.fixture
def custom_config() -> PipelineConfig:
    """Configuration rendering a tiny caller-supplied template."""
    template = TemplateSet(
        class_=(
            "// {{ class_name }}\n"
            "{% for method in methods %}{% include 'method' %}{% endfor %}"
        ),
        method="{{ method.method }} {{ method.path }} -> {{ method.method_name }}\n",
    )
    return PipelineConfig(
        filename="out.txt",
        codegen=CodegenSettings(mode=CodegenMode.CUSTOM, class_name="Custom", template=template),
    )


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty working directory with no swagpipe environment variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in (
        "SWAGPIPE_OUTPUT",
        "SWAGPIPE_CODEGEN",
        "SWAGPIPE_MODULE_NAME",
        "SWAGPIPE_CLASS_NAME",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path
