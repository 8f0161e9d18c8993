"""Build the per-operation schema index consumed by code templates.

Templates often need the JSON schema of a request body or of a response to
generate client-side validation. Rather than making every template walk the
document, :func:`build_schema_index` flattens a fully resolved document into::

    {
        "/pets": {
            "post": {
                "request": {...body parameter schema...},
                "responses": {"201": {...}, "default": {}},
            },
        },
    }

The function is total: missing ``paths``, ``parameters``, ``responses`` or
``schema`` keys degrade to empty values and never raise.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from swagpipe.models import HTTP_METHODS, OperationSchemas, SchemaIndex


def build_schema_index(document: dict[str, Any]) -> SchemaIndex:
    """Return the schema index of a fully resolved *document*.

    Every path of the document gets an entry, and within it every HTTP
    method the path item declares. Path-level ``parameters`` and ``x-``
    extensions are not operations and are skipped. Schemas are
    deep-copied so the index shares no mutable state with *document*.

    Args:
        document: A Swagger 2.0 document with all ``$ref`` pointers resolved.

    Returns:
        Mapping of path -> method -> :class:`~swagpipe.models.OperationSchemas`.
    """
    index: SchemaIndex = {}
    for path, path_item in (document.get("paths") or {}).items():
        index[path] = {
            method: _operation_schemas(operation)
            for method, operation in (path_item or {}).items()
            if method in HTTP_METHODS and isinstance(operation, dict)
        }
    return index


def _operation_schemas(operation: dict[str, Any]) -> OperationSchemas:
    responses = operation.get("responses") or {}
    return {
        "request": _request_schema(operation.get("parameters") or []),
        "responses": {
            str(status): copy.deepcopy((response or {}).get("schema") or {})
            for status, response in responses.items()
        },
    }


def _request_schema(parameters: list[Any]) -> Optional[dict[str, Any]]:
    """Schema of the first ``in: body`` parameter, or None without one."""
    for parameter in parameters:
        if isinstance(parameter, dict) and parameter.get("in") == "body":
            return copy.deepcopy(parameter.get("schema"))
    return None
