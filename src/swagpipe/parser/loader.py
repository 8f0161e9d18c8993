"""Load Swagger documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw Swagger 2.0 documents and
converting them into Python dictionaries. It supports both JSON and YAML
formats with automatic format detection, and validates that the document
declares the supported Swagger version.

The public functions are:

* :func:`load_spec` -- Load and parse a document from any supported source.
* :func:`base_uri_for` -- Compute the URI against which a document's
  relative ``$ref`` pointers are resolved.
* :func:`validate_swagger_version` -- Check and return the ``swagger``
  version string, rejecting OpenAPI 3.x and unsupported versions.

The resolver in :mod:`swagpipe.parser.resolver` calls :func:`load_spec` for
every external document a ``$ref`` points into.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import httpx
import yaml

from swagpipe.exceptions import ResolutionError

SUPPORTED_SWAGGER_VERSION = "2.0"

_YAML_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _SwaggerYamlLoader(yaml.SafeLoader):
    """Safe loader that keeps unquoted dates and timestamps as strings."""


_SwaggerYamlLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _YAML_TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_spec(source: str) -> dict[str, Any]:
    """Load a Swagger document from URL, file path, or stdin ('-').

    Supports JSON and YAML formats.
    Auto-detects format from content/extension.

    Args:
        source: A URL (http/https/file), file path, or '-' for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        ResolutionError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    elif source.startswith("file://"):
        return _load_from_file(unquote(urlparse(source).path))
    else:
        return _load_from_file(source)


def base_uri_for(source: str) -> str:
    """Return the base URI used to resolve relative references of *source*.

    URLs are returned unchanged, stdin resolves against the current
    directory, and file paths are made absolute.
    """
    if source.startswith(("http://", "https://", "file://")):
        return source
    if source == "-":
        return (Path.cwd() / "stdin").as_uri()
    return Path(source).resolve().as_uri()


def _load_from_stdin() -> dict[str, Any]:
    """Read a document from stdin.

    Raises:
        ResolutionError: If stdin is empty or content cannot be parsed.
    """
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ResolutionError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ResolutionError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document from URL. Supports JSON and YAML responses.

    Raises:
        ResolutionError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ResolutionError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ResolutionError(f"Failed to fetch document from {url}: {exc}") from exc

    content = response.text
    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a document from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        ResolutionError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ResolutionError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResolutionError(f"Failed to read document {path}: {exc}") from exc

    if not content.strip():
        raise ResolutionError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    YAML dates such as ``2017-07-21`` are kept as strings so the document
    stays JSON-serializable.
    Valid JSON is also valid YAML, but JSON parsing is stricter and faster.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Raises:
        ResolutionError: If the content cannot be parsed as either format.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ResolutionError(f"Invalid JSON: {exc}") from exc
        else:
            if not isinstance(result, dict):
                raise ResolutionError(
                    f"Document must be a JSON/YAML object (got {type(result).__name__})"
                )
            return result

    try:
        result = yaml.load(content, Loader=_SwaggerYamlLoader)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        if not isinstance(result, dict):
            raise ResolutionError(
                "Document must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise ResolutionError(msg)


def validate_swagger_version(spec: dict[str, Any]) -> str:
    """Validate and return the Swagger version string.

    Only Swagger 2.0 documents are processed: the schema index relies on
    ``in: body`` parameters, which OpenAPI 3.x replaced with ``requestBody``.

    Raises:
        ResolutionError: If the version is missing, unsupported, or indicates
            OpenAPI 3.x.
    """
    if "openapi" in spec:
        raise ResolutionError(
            f"OpenAPI {spec['openapi']} is not supported. "
            "Only Swagger 2.0 documents are supported."
        )

    version = spec.get("swagger")
    if version is None:
        raise ResolutionError(
            "Missing 'swagger' field. Is this a Swagger 2.0 document?"
        )

    version_str = str(version)
    if version_str != SUPPORTED_SWAGGER_VERSION:
        raise ResolutionError(
            f"Unsupported Swagger version: {version_str}. "
            "Only Swagger 2.0 is supported."
        )
    return version_str
