"""Document assembler: combines routes, annotations and schemas into OpenAPI.

Routes are processed one at a time in the order given, and methods in the
order the route declares them. Controller sources are parsed lazily
through the run's AnnotationCache, so each file is read at most once.
"""

import copy
import logging
import random
import re
from collections.abc import Iterable
from typing import Any

from api_autodoc.config import GeneratorOptions
from api_autodoc.parser.annotations import JSON_MEDIA_TYPE, AnnotationParser, status_phrase
from api_autodoc.parser.base import AnnotationRecord, ParamDescriptor
from api_autodoc.parser.comments import AnnotationCache
from api_autodoc.routes.base import ControllerRef, RouteDescriptor
from api_autodoc.routes.normalizer import normalize_route
from api_autodoc.schema.registry import SchemaRegistry, build_registry
from api_autodoc.sources import SourceLoader

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.0"

DEFAULT_STATUS = {"GET": "200", "POST": "201", "DELETE": "202", "PUT": "204", "PATCH": "204"}
BODYLESS_METHODS = {"GET", "DELETE"}

SECURITY_MIDDLEWARE = {
    "auth": {"BearerAuth": ["access"]},
    "auth:api": {"BearerAuth": ["access"]},
}
SECURITY_SCHEMES = {"BearerAuth": {"type": "http", "scheme": "bearer"}}

SHARED_RESPONSES = {
    "Forbidden": {"description": "Access token is missing or invalid"},
    "Accepted": {"description": "The request was accepted"},
    "Created": {"description": "The resource has been created"},
    "NotFound": {"description": "The resource was not found"},
    "NotAcceptable": {"description": "The resource is not acceptable"},
}

DEFAULT_SUMMARIES = {
    "index": "Get a list of {}",
    "show": "Get a single instance of {}",
    "update": "Update {}",
    "destroy": "Delete {}",
}


def format_operation_id(reference: str) -> str:
    """``UsersController.index`` -> ``usersControllerIndex``"""
    words: list[str] = []
    for chunk in re.split(r"[^a-zA-Z0-9]+", reference):
        words.extend(w.lower() for w in re.findall(r"[A-Z]+(?=[A-Z][a-z]|\b|\d)|[A-Z]?[a-z]+|[A-Z]+|\d+", chunk))
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


def emitted_methods(methods: list[str], preferred_put_patch: str = "PUT") -> list[str]:
    """Drop HEAD, and the non-preferred one of PUT/PATCH when both exist."""
    both = "PUT" in methods and "PATCH" in methods
    result = []
    for method in methods:
        if method == "HEAD":
            continue
        if both and method in ("PUT", "PATCH") and method != preferred_put_patch:
            continue
        result.append(method)
    return result


def merge_params(path_params: list[ParamDescriptor], annotated: dict[str, ParamDescriptor]) -> list[ParamDescriptor]:
    """Merge by name; annotation entries win and new names are appended."""
    merged = {param.name: param for param in path_params}
    merged.update(annotated)
    return list(merged.values())


def merge_responses(base: dict[str, dict], overrides: dict[str, dict]) -> dict[str, dict]:
    return {**base, **overrides}


def default_summary(action: str, tag: str) -> str:
    template = DEFAULT_SUMMARIES.get(action)
    return template.format(tag.lower()) if template else ""


class DocumentAssembler:
    """Builds the OpenAPI document for one generation run."""

    def __init__(self, options: GeneratorOptions, registry: SchemaRegistry, annotations: AnnotationCache):
        self.options = options
        self.registry = registry
        self.annotations = annotations

    def assemble(self, routes: Iterable[RouteDescriptor]) -> dict:
        paths: dict[str, dict] = {}
        tags: list[dict] = []
        seen_tags: set[str] = set()

        for route in routes:
            if route.pattern in self.options.ignore:
                logger.debug("Ignoring route %s", route.pattern)
                continue
            for tag in route.tags:
                if tag and tag not in seen_tags:
                    seen_tags.add(tag)
                    tags.append({"name": tag, "description": "Everything related to " + tag})

            annotation = self._annotation_for(route)
            for method in emitted_methods(route.methods, self.options.preferred_put_patch):
                operation = self.build_operation(route, method, annotation)
                paths.setdefault(route.path, {})[method.lower()] = operation

        return {
            "openapi": OPENAPI_VERSION,
            "info": {"title": self.options.title, "version": self.options.version},
            "components": {
                "responses": copy.deepcopy(SHARED_RESPONSES),
                "securitySchemes": copy.deepcopy(SECURITY_SCHEMES),
                "schemas": self.registry.to_openapi(),
            },
            "paths": paths,
            "tags": tags,
        }

    def _annotation_for(self, route: RouteDescriptor) -> AnnotationRecord | None:
        handler = route.handler
        if not isinstance(handler, ControllerRef):
            return None
        return self.annotations.get(handler.source_file, handler.action)

    def build_operation(self, route: RouteDescriptor, method: str, annotation: AnnotationRecord | None) -> dict:
        action = route.handler.action if isinstance(route.handler, ControllerRef) else ""
        annotation = annotation or AnnotationRecord(action=action)
        status = DEFAULT_STATUS.get(method, "200")

        security = []
        for name in route.middleware:
            scheme = SECURITY_MIDDLEWARE.get(name)
            if scheme is not None and scheme not in security:
                security.append(copy.deepcopy(scheme))

        responses: dict[str, dict] = {}
        if security:
            responses = {code: {"description": status_phrase(code)} for code in ("401", "403")}
        responses = merge_responses(
            responses, {code: response.to_openapi() for code, response in annotation.responses.items()}
        )
        if status not in responses:
            responses[status] = {"description": status_phrase(status), "content": {JSON_MEDIA_TYPE: {}}}

        description = annotation.description
        if not description and status in annotation.responses:
            description = annotation.responses[status].description

        tag = route.tags[0] if route.tags else ""
        summary = annotation.summary or default_summary(action, tag)

        operation: dict[str, Any] = {"summary": summary, "description": description}
        operation_id = annotation.operation_id or self._operation_id(route)
        if operation_id:
            operation["operationId"] = operation_id
        operation["parameters"] = [p.to_openapi() for p in merge_params(route.parameters, annotation.parameters)]
        operation["tags"] = list(route.tags)
        operation["responses"] = responses
        operation["security"] = security

        if method not in BODYLESS_METHODS:
            if annotation.request_body is not None:
                operation["requestBody"] = annotation.request_body.to_openapi()
            else:
                operation["requestBody"] = {"content": {JSON_MEDIA_TYPE: {}}}
        return operation

    def _operation_id(self, route: RouteDescriptor) -> str:
        handler = route.handler
        if not isinstance(handler, ControllerRef):
            return ""
        controller = handler.source_file.rsplit("/", 1)[-1]
        return format_operation_id(f"{controller}.{handler.action}")


def generate_document(
    route_entries: Iterable[Any],
    loader: SourceLoader,
    options: GeneratorOptions | None = None,
    rng: random.Random | None = None,
) -> dict:
    """Run one full generation: schemas, routes, annotations, document."""
    options = options or GeneratorOptions()
    registry = build_registry(
        loader.list_sources("interfaces"),
        loader.list_sources("models"),
        snake=options.snake_case,
        rng=rng,
    )
    parser = AnnotationParser(
        registry,
        common_headers=options.common.headers,
        common_parameters=options.common.parameters,
        max_depth=options.max_depth,
    )
    annotations = AnnotationCache(loader, parser)
    routes = [normalize_route(entry, options.tag_index) for entry in route_entries]
    logger.info("Assembling %d routes", len(routes))
    return DocumentAssembler(options, registry, annotations).assemble(routes)
