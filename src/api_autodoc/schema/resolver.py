"""Schema example resolver.

Expands a named schema into a concrete example payload by walking the
registry. Relations are expanded only when requested through the filter's
``include`` list, and recursion stops after ``max_depth`` relation hops,
so self-referential and mutually-referential schemas always terminate.

Each filtering rule is a small predicate so it can be tested on its own.
The rules are applied per property in this order:

1. ``is_excluded``: named in ``exclude`` (bare or as ``parent.field``)
2. ``is_hidden_password``: password fields unless included or in ``only``
3. ``is_hidden_timestamp``: timestamps when ``exclude`` holds ``timestamps``
4. ``is_outside_only``: top-level fields missing from a non-empty ``only``
5. ``is_unrequested_relation``: top-level model relations not included
6. ``is_unrequested_branch``: deeper model relations not included

A top-level field listed in ``only`` skips rules 1 and 3.
"""

import logging
from typing import Any

from api_autodoc.parser.base import FilterSpec
from api_autodoc.schema.base import schema_ref
from api_autodoc.schema.fields import TIMESTAMP_FIELDS
from api_autodoc.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10
PASSWORD_FIELDS = {"password", "password_confirmation"}


def is_excluded(key: str, parent: str, filters: FilterSpec) -> bool:
    return key in filters.exclude or f"{parent}.{key}" in filters.exclude


def is_hidden_password(key: str, filters: FilterSpec) -> bool:
    return key in PASSWORD_FIELDS and key not in filters.include and key not in filters.only


def is_hidden_timestamp(key: str, filters: FilterSpec) -> bool:
    return key in TIMESTAMP_FIELDS and "timestamps" in filters.exclude


def is_listed_in_only(key: str, parent: str, filters: FilterSpec) -> bool:
    return parent == "" and key in filters.only


def is_outside_only(key: str, parent: str, filters: FilterSpec) -> bool:
    return parent == "" and bool(filters.only) and key not in filters.only


def is_unrequested_relation(key: str, target_is_model: bool, parent: str, filters: FilterSpec) -> bool:
    """Top-level relations to models are dropped unless included.

    Inside a relation this never applies: the branch was already included.
    """
    if parent != "" or not target_is_model:
        return False
    if "relations" in filters.include or key in filters.include:
        return False
    return not any(entry.split(".")[0] == key for entry in filters.include)


def is_unrequested_branch(path: str, enclosing: str, target_is_model: bool, filters: FilterSpec) -> bool:
    """Relations two or more hops deep expand only when asked for explicitly."""
    if "." not in path or not target_is_model:
        return False
    requested = {path, path + ".relations", enclosing + ".relations"}
    if requested & set(filters.include):
        return False
    # an intermediate hop of a longer include path
    return not any(entry.startswith(path + ".") for entry in filters.include)


class SchemaExampleResolver:
    """Resolves schema names into example values for one filter spec."""

    def __init__(self, registry: SchemaRegistry, filters: FilterSpec | None = None, max_depth: int = DEFAULT_MAX_DEPTH):
        self.registry = registry
        self.filters = filters or FilterSpec()
        self.max_depth = max_depth

    def resolve(self, name: str, parent: str = "", level: int = 0) -> dict[str, Any]:
        """Build the example object for schema *name*.

        *parent* is the dotted chain of relation fields traversed so far,
        *level* the number of relation hops taken.
        """
        schema = self.registry.get(name)
        if schema is None:
            logger.debug("Unknown schema %s resolves to an empty example", name)
            return {}

        filters = self.filters
        props: dict[str, Any] = {}
        for key, prop in schema.properties.items():
            listed = is_listed_in_only(key, parent, filters)
            if not listed and is_excluded(key, parent, filters):
                continue
            if is_hidden_password(key, filters):
                continue
            if not listed and is_hidden_timestamp(key, filters):
                continue
            if is_outside_only(key, parent, filters):
                continue

            if not prop.is_reference:
                props[key] = [prop.example] if prop.is_array else prop.example
                continue

            target_is_model = self.registry.is_model(prop.ref)
            if is_unrequested_relation(key, target_is_model, parent, filters):
                continue
            path = key if parent == "" else f"{parent}.{key}"
            if is_unrequested_branch(path, parent, target_is_model, filters):
                continue

            value: dict[str, Any] = {}
            if level < self.max_depth:
                value = self.resolve(prop.ref, parent=path, level=level + 1)
            props[key] = [value] if prop.is_array else value
        return props


def resolve_example(
    registry: SchemaRegistry,
    name: str,
    filters: FilterSpec | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, Any]:
    """Resolve *name* and merge the filter's ``append`` overrides on top."""
    filters = filters or FilterSpec()
    example = SchemaExampleResolver(registry, filters, max_depth).resolve(name)
    return {**example, **filters.append}


def expand_reference(
    registry: SchemaRegistry,
    ref: str,
    filters: FilterSpec | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[dict, Any]:
    """Turn ``User`` or ``User[]`` into an OpenAPI schema and its example."""
    name = ref.strip()
    is_array = name.endswith("[]")
    if is_array:
        name = name[:-2].strip()
    example = resolve_example(registry, name, filters, max_depth)
    if is_array:
        return {"type": "array", "items": schema_ref(name)}, [example]
    return schema_ref(name), example
