"""Code generation from a fully resolved Swagger document.

The stages run in this order for every document:

1. :func:`~swagpipe.codegen.schemas.build_schema_index` flattens the
   request/response schemas of every operation.
2. :func:`~swagpipe.codegen.settings.build_emitter_settings` assembles the
   template input from the document, the schema index and the run's
   :class:`~swagpipe.models.CodegenSettings`.
3. :func:`~swagpipe.codegen.emitter.get_entry_point` picks the emission
   entry point of the generation mode, which renders the Jinja2 templates.

Template files given by the user are loaded earlier, at configuration time,
by :mod:`~swagpipe.codegen.templates`.
"""

from swagpipe.codegen.emitter import CodeGen, entry_point_name, get_entry_point
from swagpipe.codegen.schemas import build_schema_index
from swagpipe.codegen.settings import build_emitter_settings, to_json
from swagpipe.codegen.templates import load_template_file, normalize_template

__all__ = [
    "CodeGen",
    "build_emitter_settings",
    "build_schema_index",
    "entry_point_name",
    "get_entry_point",
    "load_template_file",
    "normalize_template",
    "to_json",
]
