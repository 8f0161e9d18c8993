"""Conformance checker for Swagger 2.0 documents.

:func:`check_document` runs three passes over a document whose internal
``$ref`` pointers are still in place:

1. **Reference pass** -- every ``#/...`` pointer must lead somewhere. A
   dangling pointer is reported as an error and stops the check, since the
   structural validator cannot follow it either.
2. **Structural pass** -- the Swagger 2.0 JSON schema plus the semantic
   rules of `openapi-spec-validator`_ (duplicate ``operationId``, undeclared
   path parameters, duplicate parameters).
3. **Usage pass** -- only when the structural pass is clean: more than one
   body parameter on an operation is an error; ``definitions``,
   ``parameters`` and ``responses`` entries that nothing references are
   warnings.

Findings are returned, never raised. Only a failure of the checker itself
raises :class:`~swagpipe.exceptions.CheckerError`.

.. _openapi-spec-validator: https://github.com/python-openapi/openapi-spec-validator
"""

from __future__ import annotations

from typing import Any, Iterator
from urllib.parse import unquote

from openapi_spec_validator import OpenAPIV2SpecValidator

from swagpipe.exceptions import CheckerError, ResolutionError
from swagpipe.models import HTTP_METHODS, Finding, ValidationResult
from swagpipe.parser.resolver import resolve_pointer


_LIBRARY_CODES = {
    "DuplicateOperationIDError": "DUPLICATE_OPERATIONID",
    "UnresolvableParameterError": "MISSING_PATH_PARAMETER_DEFINITION",
    "ParameterDuplicateError": "DUPLICATE_PARAMETER",
}

# Reusable component sections and the warning code for an unused entry
_COMPONENT_SECTIONS = {
    "definitions": ("UNUSED_DEFINITION", "Definition"),
    "parameters": ("UNUSED_PARAMETER", "Parameter"),
    "responses": ("UNUSED_RESPONSE", "Response"),
}


def check_document(document: dict[str, Any]) -> ValidationResult:
    """Check *document* against the Swagger 2.0 specification.

    Args:
        document: A Swagger 2.0 document, possibly still containing
            internal ``$ref`` pointers.

    Returns:
        A :class:`~swagpipe.models.ValidationResult` listing errors and
        warnings in document order.

    Raises:
        CheckerError: If the validator itself crashes.
    """
    refs = list(_iter_refs(document, []))

    errors = [
        Finding(path=path, message=f"Reference could not be resolved: {ref}",
                code="UNRESOLVABLE_REFERENCE")
        for path, ref in refs
        if ref.startswith("#") and not _pointer_exists(document, ref[1:])
    ]
    if errors:
        return ValidationResult(errors=errors)

    try:
        errors = [_to_finding(err) for err in OpenAPIV2SpecValidator(document).iter_errors()]
    except Exception as exc:
        raise CheckerError(f"Swagger validator failed: {exc}") from exc
    if errors:
        return ValidationResult(errors=errors)

    return ValidationResult(
        errors=list(_check_body_parameters(document)),
        warnings=list(_check_unused_components(document, [unquote(ref) for _, ref in refs])),
    )


def _to_finding(err: Any) -> Finding:
    path = list(getattr(err, "absolute_path", []))
    code = _LIBRARY_CODES.get(type(err).__name__, "SCHEMA")
    return Finding(path=path, message=err.message, code=code)


def _iter_refs(obj: Any, path: list[Any]) -> Iterator[tuple[list[Any], str]]:
    """Yield ``(path, ref)`` for every ``$ref`` string in *obj*, depth-first."""
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str):
            yield path, ref
            return
        for key, value in obj.items():
            yield from _iter_refs(value, path + [key])
    elif isinstance(obj, list):
        for index, item in enumerate(obj):
            yield from _iter_refs(item, path + [index])


def _pointer_exists(document: Any, pointer: str) -> bool:
    try:
        resolve_pointer(pointer, document, "#" + pointer)
    except ResolutionError:
        return False
    return True


def _lookup(document: dict[str, Any], node: Any) -> Any:
    """Return *node*, or the object its chain of internal ``$ref`` pointers ends at."""
    seen: set[str] = set()
    while isinstance(node, dict) and isinstance(node.get("$ref"), str):
        ref = node["$ref"]
        if not ref.startswith("#") or ref in seen:
            break
        seen.add(ref)
        node = resolve_pointer(ref[1:], document, ref)
    return node


def _check_body_parameters(document: dict[str, Any]) -> Iterator[Finding]:
    for path, path_item in (document.get("paths") or {}).items():
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            parameters = [_lookup(document, p) for p in operation.get("parameters", [])]
            body_count = sum(
                1 for p in parameters if isinstance(p, dict) and p.get("in") == "body"
            )
            if body_count > 1:
                yield Finding(
                    path=["paths", path, method, "parameters"],
                    message=f"Operation cannot have multiple body parameters ({body_count} found)",
                    code="MULTIPLE_BODY_PARAMETERS",
                )


def _check_unused_components(document: dict[str, Any], refs: list[str]) -> Iterator[Finding]:
    for section, (code, label) in _COMPONENT_SECTIONS.items():
        for name in document.get(section) or {}:
            pointer = f"#/{section}/" + name.replace("~", "~0").replace("/", "~1")
            if not any(ref == pointer or ref.startswith(pointer + "/") for ref in refs):
                yield Finding(
                    path=[section, name],
                    message=f"{label} is not used: {pointer}",
                    code=code,
                )
