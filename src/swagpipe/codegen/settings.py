"""Assemble the settings handed to an emission entry point."""

from __future__ import annotations

import json
from typing import Any

from swagpipe.models import CodegenSettings, EmitterSettings, SchemaIndex


def to_json(value: Any) -> str:
    """Serialize *value* compactly, the way artifacts and template context are written."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def build_emitter_settings(
    document: dict[str, Any],
    schema_index: SchemaIndex,
    codegen: CodegenSettings,
) -> EmitterSettings:
    """Build the :class:`~swagpipe.models.EmitterSettings` for one run.

    The caller's template context is extended with the resolved document
    (``swagger_object``), its JSON form (``swagger_json``) and the JSON form
    of the schema index (``json_schemas``). The generation mode is not
    carried over; it only selects the entry point.

    Args:
        document: The fully resolved document.
        schema_index: Result of
            :func:`~swagpipe.codegen.schemas.build_schema_index` for *document*.
        codegen: Normalized code generation settings.
    """
    context = {
        **codegen.context,
        "swagger_object": document,
        "swagger_json": to_json(document),
        "json_schemas": to_json(schema_index),
    }
    return EmitterSettings(
        module_name=codegen.module_name,
        class_name=codegen.class_name,
        template=codegen.template,
        esnext=True,
        swagger=document,
        context=context,
    )
