"""Route/handler normalizer.

The host framework hands routes over in one of two historical shapes:

* legacy: ``meta.resolvedHandler`` carries ``namespace`` and ``method``
  and middleware is a list of plain strings;
* modern: ``handler`` is a ``"Controller.method"`` string or a
  ``(reference, method)`` tuple whose reference performs a dynamic import,
  and middleware is an iterable of named functions or closures.

Route entries can be mappings (a JSON/YAML route dump) or plain objects.
"""

import inspect
import logging
import re
from collections.abc import Mapping
from typing import Any

from api_autodoc.parser.base import ParamDescriptor
from api_autodoc.routes.base import ClosureRef, ControllerRef, HandlerRef, LegacyHandler, ModernHandler, RouteDescriptor

logger = logging.getLogger(__name__)

DYNAMIC_IMPORT_RE = re.compile(r"\b(?:import|import_module)\(\s*['\"]([^'\"]+)['\"]")
DEFAULT_METHOD = "handle"
CLOSURE = "closure"


def _field(entry: Any, name: str, default: Any = None) -> Any:
    if entry is None:
        return default
    if isinstance(entry, Mapping):
        return entry.get(name, default)
    return getattr(entry, name, default)


def normalize_route(entry: Any, tag_index: int = 2) -> RouteDescriptor:
    """Convert one framework route entry into a RouteDescriptor."""
    pattern = _field(entry, "pattern", "/") or "/"
    path, parameters, tags = parse_pattern(pattern, tag_index)
    methods: list[str] = []
    for method in _field(entry, "methods", []) or []:
        method = str(method).upper()
        if method not in methods:
            methods.append(method)
    return RouteDescriptor(
        methods=methods,
        pattern=pattern,
        path=path,
        parameters=parameters,
        middleware=normalize_middleware(_field(entry, "middleware")),
        handler=to_handler_ref(ingest_handler(entry)),
        tags=tags,
    )


def parse_pattern(pattern: str, tag_index: int = 2) -> tuple[str, list[ParamDescriptor], list[str]]:
    """Rewrite ``:param`` segments to ``{param}`` and collect path parameters.

    The segment at *tag_index* (after splitting on ``/``) becomes the tag.
    """
    segments = pattern.split("/")
    tags = []
    if len(segments) > tag_index and segments[tag_index]:
        tags = [segments[tag_index].upper()]

    parts = []
    parameters = []
    for segment in segments:
        if segment.startswith(":"):
            name = segment[1:].rstrip("?")
            parameters.append(ParamDescriptor(name=name, location="path", required=not segment.endswith("?")))
            segment = "{" + name + "}"
        if segment:
            parts.append(segment)
    return "/" + "/".join(parts), parameters, tags


def normalize_middleware(middleware: Any) -> list[str]:
    """Middleware names; unnamed functions become ``"closure"``."""
    if middleware is None:
        return []
    if isinstance(middleware, str):
        return [middleware]
    all_items = getattr(middleware, "all", None)
    items = all_items() if callable(all_items) and not isinstance(middleware, Mapping) else middleware

    names = []
    for item in items:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, Mapping):
            if item.get("name"):
                names.append(item["name"])
        elif getattr(item, "name", None) and isinstance(item.name, str):
            names.append(item.name)
        elif callable(item):
            names.append(_callable_name(item) or CLOSURE)
    return names


def _callable_name(value: Any) -> str:
    name = getattr(value, "__name__", "") or ""
    return "" if name == "<lambda>" else name


def ingest_handler(entry: Any) -> LegacyHandler | ModernHandler:
    """Detect the route shape once and capture its handler fields."""
    handler = _field(entry, "handler")
    resolved = _field(_field(entry, "meta"), "resolvedHandler")
    if resolved is not None and not _has_reference(handler):
        return LegacyHandler(
            type=_field(resolved, "type", "") or "",
            namespace=_field(resolved, "namespace"),
            method=_field(resolved, "method"),
        )
    return _modern_handler(handler)


def _has_reference(handler: Any) -> bool:
    return not isinstance(handler, str) and _field(handler, "reference") not in (None, "")


def _modern_handler(handler: Any) -> ModernHandler:
    if handler is None:
        return ModernHandler()
    if isinstance(handler, str):
        return ModernHandler(reference=handler)
    if isinstance(handler, (tuple, list)):
        return _from_binding(handler, None)
    reference = _field(handler, "reference")
    if reference not in (None, ""):
        if isinstance(reference, (tuple, list)):
            return _from_binding(reference, _field(handler, "name"))
        return ModernHandler(reference=reference, name=_field(handler, "name"))
    if callable(handler) and not isinstance(handler, Mapping):
        return ModernHandler(name=_callable_name(handler) or None)
    return ModernHandler(name=_field(handler, "name"))


def _from_binding(binding: tuple | list, name: str | None) -> ModernHandler:
    reference = binding[0] if binding else None
    method = binding[1] if len(binding) > 1 else None
    return ModernHandler(reference=reference, method=method or None, name=name, lazy=True)


def to_handler_ref(handler: LegacyHandler | ModernHandler) -> HandlerRef:
    if isinstance(handler, LegacyHandler):
        if handler.namespace:
            return ControllerRef(source_file=_app_path(handler.namespace), action=handler.method or DEFAULT_METHOD)
        return ClosureRef(name=handler.method or CLOSURE)

    reference = handler.reference
    if reference is None:
        return ClosureRef(name=handler.name or CLOSURE)
    if isinstance(reference, str) and not handler.lazy:
        module, _, method = reference.rpartition(".")
        if not module:
            module, method = reference, DEFAULT_METHOD
        if module.startswith("#"):
            return ControllerRef(source_file="app/" + module[1:], action=method)
        return ControllerRef(source_file="app/controllers/" + module, action=method)

    specifier = module_specifier(reference).lstrip("#")
    return ControllerRef(source_file="app/" + specifier, action=handler.method or DEFAULT_METHOD)


def module_specifier(reference: Any) -> str:
    """Recover the imported module from a lazy reference.

    Looks for a dynamic import (``import('#controllers/x')`` or
    ``import_module("...")``) in the reference's text or source code and
    falls back to the reference's own name.
    """
    text = reference if isinstance(reference, str) else ""
    if not text:
        try:
            text = inspect.getsource(reference)
        except (OSError, TypeError):
            text = str(reference)
    match = DYNAMIC_IMPORT_RE.search(text)
    if match:
        return match.group(1)
    name = _callable_name(reference) or getattr(reference, "name", None)
    if not name:
        logger.warning("Cannot resolve module of handler reference %r", reference)
        return str(reference)
    return name


def _app_path(namespace: str) -> str:
    if namespace.startswith("App/"):
        return "app/" + namespace[len("App/") :]
    return namespace
