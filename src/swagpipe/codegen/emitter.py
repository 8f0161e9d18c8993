"""Render source code from a resolved document and a Jinja2 template set.

The emitter exposes one entry point per :class:`~swagpipe.models.CodegenMode`,
named by the fixed convention ``get_<mode>_code``:

* ``get_node_code`` -- ES2015 JavaScript client for Node.js (``superagent``).
* ``get_angular_code`` -- TypeScript ``@Injectable`` service using Angular's
  ``HttpClient``.
* ``get_custom_code`` -- only the caller's templates.

A template set has three fragments. ``class`` renders the whole module and
pulls in the other two with ``{% include "request" %}`` (once) and
``{% include "method" %}`` (inside ``{% for method in methods %}``). For the
built-in modes, any fragment the caller supplies replaces the built-in one.

The mode -> entry point table is built eagerly by
:func:`resolve_entry_points` when this module is imported, so a missing entry
point is reported at startup rather than in the middle of a build.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, Optional, Union

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError

from swagpipe.exceptions import CodegenError
from swagpipe.models import HTTP_METHODS, CodegenMode, EmitterSettings, TemplateSet

TEMPLATE_DIR = Path(__file__).parent / "builtin_templates"
"""Directory holding one sub-directory of built-in fragments per mode."""

FRAGMENTS = ("class", "method", "request")

EntryPoint = Callable[[EmitterSettings], str]

_BODY_METHODS = frozenset({"post", "put", "patch"})


def entry_point_name(mode: CodegenMode) -> str:
    """Return the name of the entry point serving *mode* (``node`` -> ``get_node_code``)."""
    return f"get_{mode.value}_code"


class CodeGen:
    """Template-driven source generator."""

    def get_node_code(self, settings: EmitterSettings) -> str:
        return self._render(settings, _builtin_templates(CodegenMode.NODE))

    def get_angular_code(self, settings: EmitterSettings) -> str:
        return self._render(settings, _builtin_templates(CodegenMode.ANGULAR))

    def get_custom_code(self, settings: EmitterSettings) -> str:
        return self._render(settings, TemplateSet())

    def _render(self, settings: EmitterSettings, defaults: TemplateSet) -> str:
        fragments = {
            "class": settings.template.class_ or defaults.class_,
            "method": settings.template.method or defaults.method,
            "request": settings.template.request or defaults.request,
        }
        env = Environment(
            loader=DictLoader(fragments),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        try:
            return env.get_template("class").render(build_view(settings))
        except TemplateError as exc:
            raise CodegenError(f"Template rendering failed: {exc}") from exc


def resolve_entry_points(codegen: Optional[Any] = None) -> dict[CodegenMode, EntryPoint]:
    """Map every :class:`~swagpipe.models.CodegenMode` to its bound entry point.

    Args:
        codegen: Object providing the entry points. Defaults to a new
            :class:`CodeGen`.

    Raises:
        CodegenError: If *codegen* lacks the entry point of any mode.
    """
    codegen = codegen if codegen is not None else CodeGen()
    entry_points: dict[CodegenMode, EntryPoint] = {}
    for mode in CodegenMode:
        name = entry_point_name(mode)
        entry_point = getattr(codegen, name, None)
        if not callable(entry_point):
            raise CodegenError(f"Code generator has no entry point '{name}' for mode '{mode.value}'")
        entry_points[mode] = entry_point
    return entry_points


ENTRY_POINTS = resolve_entry_points()


def get_entry_point(
    mode: Union[CodegenMode, str],
    entry_points: Optional[dict[CodegenMode, EntryPoint]] = None,
) -> EntryPoint:
    """Return the entry point for *mode*.

    Raises:
        CodegenError: If *mode* is not a known generation mode.
    """
    try:
        mode = CodegenMode(mode)
    except ValueError:
        raise CodegenError(f"Unknown codegen type: {mode}") from None
    table = entry_points if entry_points is not None else ENTRY_POINTS
    if mode not in table:
        raise CodegenError(f"No entry point registered for codegen type: {mode.value}")
    return table[mode]


# ------------------------------------------------------------------ #
# Template view
# ------------------------------------------------------------------ #


def build_view(settings: EmitterSettings) -> dict[str, Any]:
    """Build the variables available to every template fragment.

    Keys of ``settings.context`` are added last and win over the computed
    ones.
    """
    swagger = settings.swagger
    info = swagger.get("info") or {}
    global_security = swagger.get("security") or []

    methods = []
    for path, path_item in (swagger.get("paths") or {}).items():
        path_item = path_item or {}
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                methods.append(
                    _method_view(path, method, operation, path_item, global_security)
                )

    view: dict[str, Any] = {
        "module_name": settings.module_name,
        "class_name": settings.class_name,
        "title": info.get("title", ""),
        "description": info.get("description", ""),
        "version": info.get("version", ""),
        "domain": _domain(swagger),
        "is_secure": bool(swagger.get("securityDefinitions")),
        "esnext": settings.esnext,
        "methods": methods,
        "definitions": [
            {"name": name, "schema": schema}
            for name, schema in (swagger.get("definitions") or {}).items()
        ],
    }
    view.update(settings.context)
    return view


def _domain(swagger: dict[str, Any]) -> str:
    host = swagger.get("host")
    if not host:
        return ""
    schemes = swagger.get("schemes") or ["http"]
    scheme = "https" if "https" in schemes else schemes[0]
    return f"{scheme}://{host}{swagger.get('basePath', '')}".rstrip("/")


def _method_view(
    path: str,
    method: str,
    operation: dict[str, Any],
    path_item: dict[str, Any],
    global_security: list[Any],
) -> dict[str, Any]:
    parameters = [
        _parameter_view(p)
        for p in _merge_parameters(path_item.get("parameters", []), operation.get("parameters", []))
    ]
    body = [p for p in parameters if p["in"] == "body"]
    security = operation.get("security", global_security)
    return {
        "path": path,
        "method": method.upper(),
        "method_name": method_name(path, method, operation.get("operationId")),
        "summary": operation.get("summary") or operation.get("description") or "",
        "deprecated": bool(operation.get("deprecated")),
        "is_get": method == "get",
        "is_body_method": method in _BODY_METHODS,
        "is_secure": bool(security),
        "parameters": parameters,
        "path_parameters": [p for p in parameters if p["in"] == "path"],
        "query_parameters": [p for p in parameters if p["in"] == "query"],
        "header_parameters": [p for p in parameters if p["in"] == "header"],
        "form_parameters": [p for p in parameters if p["in"] == "formData"],
        "body_parameter": body[0] if body else None,
        "has_body": bool(body),
    }


def _merge_parameters(path_params: list[Any], op_params: list[Any]) -> list[dict[str, Any]]:
    """Operation-level parameters override path-level ones with the same ``name`` and ``in``."""
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for param in list(path_params) + list(op_params):
        if isinstance(param, dict):
            merged[(param.get("name", ""), param.get("in", ""))] = param
    return list(merged.values())


def _parameter_view(param: dict[str, Any]) -> dict[str, Any]:
    name = param.get("name", "")
    return {
        "name": name,
        "var_name": camel_case(name) or "param",
        "in": param.get("in", ""),
        "required": bool(param.get("required")),
        "type": param.get("type") or (param.get("schema") or {}).get("type", "object"),
        "description": param.get("description", ""),
        "schema": param.get("schema"),
    }


def camel_case(text: str) -> str:
    """Convert *text* to lowerCamelCase, dropping characters invalid in identifiers."""
    words = [w for w in re.split(r"[^0-9A-Za-z]+", text) if w]
    if not words:
        return ""
    head, tail = words[0], words[1:]
    result = head[0].lower() + head[1:] + "".join(w[0].upper() + w[1:] for w in tail)
    if result[0].isdigit():
        result = "_" + result
    return result


def method_name(path: str, method: str, operation_id: Optional[str] = None) -> str:
    """Name of the generated method for an operation.

    The ``operationId`` wins when present; otherwise the name is built from
    the HTTP method and the path, with ``{param}`` segments read as
    ``By<Param>`` (``GET /pets/{petId}`` -> ``getPetsByPetId``).
    """
    if operation_id:
        name = camel_case(operation_id)
        if name:
            return name

    segments = []
    for segment in path.strip("/").split("/"):
        if segment.startswith("{") and segment.endswith("}") and len(segment) > 2:
            inner = camel_case(segment[1:-1])
            segment = "by-" + inner
        segments.append(segment)
    rest = camel_case("-".join(segments))
    if not rest:
        return method.lower()
    return method.lower() + rest[0].upper() + rest[1:]


def _builtin_templates(mode: CodegenMode) -> TemplateSet:
    directory = TEMPLATE_DIR / mode.value
    texts = {
        fragment: (directory / f"{fragment}.j2").read_text(encoding="utf-8")
        for fragment in FRAGMENTS
    }
    return TemplateSet(class_=texts["class"], method=texts["method"], request=texts["request"])
