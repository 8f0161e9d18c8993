"""Run configuration: precedence resolution and configuration-time checks.

This module turns what the user asked for into a frozen
:class:`~swagpipe.models.PipelineConfig`:

* **Precedence resolution** -- :func:`resolve_options` merges CLI flags,
  environment variables and a project file (``./swagpipe.json`` or
  ``--config PATH``, JSON or YAML) into one
  :class:`~swagpipe.models.PipelineOptions`.
* **Configuration checks** -- :func:`configure` applies defaults, rejects
  a missing output filename or a custom codegen without templates, and
  loads template files. All of this happens before any document is read.
* **Directory layout** -- :func:`get_data_dir` is where crash logs go,
  XDG Base Directory compliant on Linux/BSD, ``~/.swagpipe/`` elsewhere.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from swagpipe.codegen.templates import normalize_template
from swagpipe.exceptions import ConfigError
from swagpipe.models import (
    CodegenMode,
    CodegenOptions,
    CodegenSettings,
    PipelineConfig,
    PipelineOptions,
)

_APP_NAME = "swagpipe"
_PROJECT_CONFIG_FILENAME = "swagpipe.json"

DEFAULT_NAME = "API"
"""Module and class name used when none is configured."""

_ENV_OUTPUT = "SWAGPIPE_OUTPUT"
_ENV_CODEGEN = "SWAGPIPE_CODEGEN"
_ENV_MODULE_NAME = "SWAGPIPE_MODULE_NAME"
_ENV_CLASS_NAME = "SWAGPIPE_CLASS_NAME"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/swagpipe/`` (default ``~/.local/share/swagpipe/``).
    On macOS/Windows: ``~/.swagpipe/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project config ---


def load_project_config(path: Optional[str] = None) -> Optional[dict[str, Any]]:
    """Load the project configuration file.

    Args:
        path: Explicit config file. When ``None``, ``./swagpipe.json`` is
            used if it exists.

    Returns:
        The parsed mapping, or ``None`` when no file applies.

    Raises:
        ConfigError: If an explicit *path* does not exist, or the file is not
            a valid JSON/YAML mapping.
    """
    if path is None:
        config_path = Path.cwd() / _PROJECT_CONFIG_FILENAME
        if not config_path.is_file():
            return None
    else:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid project config at {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {config_path}: expected a mapping, "
            f"got {type(data).__name__}"
        )
    return data


# --- Precedence resolution ---


def resolve_options(
    cli_filename: Optional[str] = None,
    cli_codegen: Optional[dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> PipelineOptions:
    """Resolve options with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_filename``, ``cli_codegen``)
        2. Environment variables (``SWAGPIPE_OUTPUT``, ``SWAGPIPE_CODEGEN``,
           ``SWAGPIPE_MODULE_NAME``, ``SWAGPIPE_CLASS_NAME``)
        3. Project config (``./swagpipe.json`` or *config_path*)
        4. Defaults (applied later by :func:`configure`)

    Code generation is enabled as soon as any layer mentions it.

    Args:
        cli_filename: Output filename from the command line.
        cli_codegen: Codegen fields given on the command line; ``None``
            values are treated as not given.
        config_path: Explicit project config file.

    Raises:
        ConfigError: If the project config is unreadable or does not match
            the options schema.
    """
    data = dict(load_project_config(config_path) or {})
    codegen: Optional[dict[str, Any]] = None
    if data.get("codegen") is not None:
        codegen = dict(data["codegen"])

    env_codegen = {
        "type": os.environ.get(_ENV_CODEGEN),
        "module_name": os.environ.get(_ENV_MODULE_NAME),
        "class_name": os.environ.get(_ENV_CLASS_NAME),
    }
    for layer in (env_codegen, cli_codegen or {}):
        given = {key: value for key, value in layer.items() if value}
        if given:
            codegen = {**(codegen or {}), **given}

    env_output = os.environ.get(_ENV_OUTPUT)
    if env_output:
        data["filename"] = env_output
    if cli_filename:
        data["filename"] = cli_filename
    data["codegen"] = codegen

    try:
        return PipelineOptions.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Configuration checks ---


def configure(
    filename: Union[str, PipelineOptions, dict[str, Any], None] = None,
    options: Union[PipelineOptions, dict[str, Any], None] = None,
) -> PipelineConfig:
    """Validate options and build the :class:`~swagpipe.models.PipelineConfig`.

    The options may be passed in place of *filename*, in which case the
    filename is read from ``options.filename``.

    Defaults: a codegen without ``type`` is ``custom``; ``module_name`` and
    ``class_name`` default to ``"API"``.

    Raises:
        ConfigError: If no filename is given, if a custom codegen has no
            template, if a template file cannot be loaded, or if *options*
            does not match the options schema.

    Example::

        config = configure("api.js", {"codegen": {"type": "node"}})
        config = configure({"filename": "api.json"})
    """
    if isinstance(filename, (dict, PipelineOptions)):
        options = filename
        filename = None

    try:
        parsed = PipelineOptions.model_validate(options or {})
    except ValidationError as exc:
        raise ConfigError(f"Invalid options: {exc}") from exc

    filename = filename or parsed.filename
    if not filename:
        raise ConfigError("A file name is required")

    codegen = _configure_codegen(parsed.codegen) if parsed.codegen is not None else None
    return PipelineConfig(filename=filename, codegen=codegen)


def _configure_codegen(options: CodegenOptions) -> CodegenSettings:
    mode = options.type or CodegenMode.CUSTOM
    if mode is CodegenMode.CUSTOM and not options.template:
        raise ConfigError("Templates are mandatory for a custom codegen")

    template = normalize_template(options.template)
    # A template object whose fragments are all omitted carries no text either
    if mode is CodegenMode.CUSTOM and template.is_empty():
        raise ConfigError("Templates are mandatory for a custom codegen")

    return CodegenSettings(
        mode=mode,
        module_name=options.module_name or DEFAULT_NAME,
        class_name=options.class_name or DEFAULT_NAME,
        template=template,
        context=dict(options.context),
    )
