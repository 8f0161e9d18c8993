"""Swagger document parser -- load documents and resolve ``$ref`` pointers.

This sub-package is responsible for the first stages of the swagpipe
pipeline: turning a raw Swagger 2.0 document (JSON or YAML, local file or
remote URL, possibly split over several files) into a dict whose references
have been replaced according to a :class:`~swagpipe.models.ResolvePolicy`.

Typical usage::

    from swagpipe.models import PARTIAL, FULL
    from swagpipe.parser import dereference, resolve_refs

    partial = dereference("api/swagger.yaml", PARTIAL)
    resolved = resolve_refs(partial, FULL)

Sub-modules:

* :mod:`~swagpipe.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection and Swagger version validation.
* :mod:`~swagpipe.parser.resolver` -- Recursive ``$ref`` resolution with
  a partial (cross-document only) and a full policy.
"""

from swagpipe.parser.loader import base_uri_for, load_spec, validate_swagger_version
from swagpipe.parser.resolver import dereference, resolve_refs

__all__ = [
    "base_uri_for",
    "dereference",
    "load_spec",
    "resolve_refs",
    "validate_swagger_version",
]
