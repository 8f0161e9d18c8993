"""Resolve ``$ref`` JSON Reference pointers in Swagger documents.

Swagger documents use ``$ref`` pointers (e.g.,
``{"$ref": "#/definitions/Pet"}`` or ``{"$ref": "common.yaml#/Error"}``) to
avoid repetition and to split large descriptions across files. This module
performs a recursive deep-copy traversal of the document, replacing ``$ref``
dicts with the objects they point to.

What gets replaced is controlled by a :class:`~swagpipe.models.ResolvePolicy`:

* ``PARTIAL`` (``internal=False``) -- only references whose target lives in
  another document (relative file, absolute file, ``file://`` or
  ``http(s)://``) are inlined. ``#/...`` pointers into the host document stay
  in place, so the conformance checker still sees the document's own
  structure.
* ``FULL`` (``internal=True``) -- every reference is inlined.

Internal references found *inside* an external document always point into
that external document, so they are inlined even under ``PARTIAL``;
references from an external document back into the host document are
rewritten to plain ``#/...`` pointers.

Circular references cannot be inlined and raise
:class:`~swagpipe.exceptions.ResolutionError`.

The public functions are :func:`resolve_refs`, :func:`dereference` and
:func:`resolve_pointer`.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urldefrag, urljoin

from swagpipe.exceptions import ResolutionError
from swagpipe.models import FULL, ResolvePolicy
from swagpipe.parser.loader import base_uri_for, load_spec, validate_swagger_version


def dereference(source: str, policy: ResolvePolicy = FULL) -> dict[str, Any]:
    """Load the document at *source* and resolve its references under *policy*.

    Args:
        source: A URL, file path, or '-' for stdin.
        policy: Which references to follow.

    Returns:
        A new dictionary with the selected references replaced.

    Raises:
        ResolutionError: If the document cannot be loaded, is not Swagger 2.0,
            or one of its references cannot be resolved.
    """
    raw = load_spec(source)
    validate_swagger_version(raw)
    return resolve_refs(raw, policy, base_uri=base_uri_for(source))


def resolve_refs(
    spec: dict[str, Any],
    policy: ResolvePolicy = FULL,
    base_uri: Optional[str] = None,
) -> dict[str, Any]:
    """Resolve ``$ref`` JSON Reference pointers in *spec* according to *policy*.

    Creates a deep copy of the input; the caller's dict is never modified.
    External documents are loaded at most once per call.

    Args:
        spec: The document to resolve.
        policy: Which references to follow.
        base_uri: URI of *spec*, used to resolve relative file references.
            Defaults to the current working directory.

    Returns:
        A **new** dictionary with the selected references replaced.

    Raises:
        ResolutionError: If a ``$ref`` points to a missing location or an
            unreachable document, or if references form a cycle.

    Example::

        raw = load_spec("petstore.yaml")
        partial = resolve_refs(raw, PARTIAL, base_uri_for("petstore.yaml"))
        # partial["paths"]["/pets"]["get"]["responses"]["200"]["schema"]
        # still reads {"$ref": "#/definitions/Pets"}.
    """
    if base_uri is None:
        base_uri = Path.cwd().as_uri() + "/"
    root = copy.deepcopy(spec)
    return _Resolver(root, base_uri, policy).resolve()


class _Resolver:
    """State of one :func:`resolve_refs` call."""

    def __init__(self, root: dict[str, Any], base_uri: str, policy: ResolvePolicy) -> None:
        self._root = root
        self._base_uri = urldefrag(base_uri)[0]
        self._policy = policy
        self._documents: dict[str, Any] = {self._base_uri: root}

    def resolve(self) -> dict[str, Any]:
        return self._walk(self._root, self._base_uri, frozenset())

    def _walk(self, obj: Any, doc_uri: str, seen: frozenset[str]) -> Any:
        if isinstance(obj, dict):
            ref = obj.get("$ref")
            if isinstance(ref, str):
                return self._follow(ref, doc_uri, seen)
            return {key: self._walk(value, doc_uri, seen) for key, value in obj.items()}

        if isinstance(obj, list):
            return [self._walk(item, doc_uri, seen) for item in obj]

        return obj

    def _follow(self, ref: str, doc_uri: str, seen: frozenset[str]) -> Any:
        target_uri, fragment = urldefrag(urljoin(doc_uri, ref))
        target_uri = target_uri or doc_uri

        if target_uri == self._base_uri and not self._policy.internal:
            # Pointer into the host document: kept, but always in its local form
            return {"$ref": "#" + fragment}

        key = f"{target_uri}#{fragment}"
        if key in seen:
            raise ResolutionError(f"Circular $ref cannot be expanded: {ref}")

        document = self._load(target_uri, ref)
        target = resolve_pointer(fragment, document, ref)
        return self._walk(target, target_uri, seen | {key})

    def _load(self, uri: str, ref: str) -> Any:
        if uri not in self._documents:
            try:
                self._documents[uri] = load_spec(uri)
            except ResolutionError as exc:
                raise ResolutionError(f"Cannot resolve $ref '{ref}': {exc}") from exc
        return self._documents[uri]


def resolve_pointer(fragment: str, document: Any, ref: str) -> Any:
    """Resolve a JSON Pointer *fragment* (without ``#``) against *document*.

    The fragment is percent-decoded first (``My%20Type`` names ``My Type``),
    then RFC 6901 escaping is applied (``~0`` for ``~``, ``~1`` for ``/``).
    An empty fragment designates the whole document.

    Raises:
        ResolutionError: If any segment in the pointer path does not exist.
    """
    fragment = unquote(fragment)
    if not fragment:
        return document
    if not fragment.startswith("/"):
        raise ResolutionError(
            f"Cannot resolve $ref '{ref}': fragment must be a JSON pointer"
        )

    current: Any = document
    for segment in fragment[1:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit() or int(segment) >= len(current):
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                )
            current = current[int(segment)]
        else:
            raise ResolutionError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current
