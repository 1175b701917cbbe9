"""Model source parser.

Scans the declaration lines of an ORM model class (``declare``/``public``
fields and ``public get`` accessors) and converts them into a
SchemaDefinition of kind Model.
"""

import logging
import random
import re

from api_autodoc.parser.tokens import between_brackets, coerce_example, split_list
from api_autodoc.schema.base import PropertyDescriptor, SchemaDefinition, SchemaKind, SourceBlob
from api_autodoc.schema.fields import (
    BUILTIN_TYPES,
    DATETIME_EXAMPLE,
    apply_field_heuristics,
    field_example,
    snake_case,
)

logger = logging.getLogger(__name__)

CLASS_RE = re.compile(r"\bclass\s+([A-Za-z_$][\w$]*)")
TYPEOF_RE = re.compile(r"typeof\s+([A-Za-z_$][\w$]*)")
COMMENT_PREFIXES = ("//", "/*", "*")
ARRAY_RELATIONS = ("HasMany", "ManyToMany", "HasManyThrough")
SOFT_DELETE_MARKERS = ("@swagger-softdelete", "SoftDeletes")
SKIP_MARKERS = ("serializeAs: null", "@no-swagger")


def parse_model(blob: SourceBlob, snake: bool = True, rng: random.Random | None = None) -> SchemaDefinition:
    """Parse one model source blob; the class name falls back to the file stem."""
    lines = [line.strip() for line in blob.text.replace("\t", "").splitlines()]
    lines = [line for line in lines if line]

    name = ""
    soft_delete = False
    props: dict[str, PropertyDescriptor] = {}

    for index, line in enumerate(lines):
        previous = lines[index - 1] if index > 0 else ""
        if not name and line.startswith(("export default class", "export class", "class")):
            match = CLASS_RE.search(line)
            if match:
                name = match.group(1)
        if any(marker in line for marker in SOFT_DELETE_MARKERS):
            soft_delete = True
        if line.startswith(COMMENT_PREFIXES):
            continue
        if any(marker in previous for marker in SKIP_MARKERS):
            continue
        if not _is_declaration(line):
            continue

        parsed = _parse_declaration(line, previous, snake, rng)
        if parsed is not None:
            field, prop = parsed
            props[field] = prop

    if soft_delete:
        props["deleted_at"] = PropertyDescriptor(type="string", format="date-time", example=DATETIME_EXAMPLE)

    schema_name = name or blob.stem
    logger.debug("Parsed model %s with %d properties from %s", schema_name, len(props), blob.path)
    return SchemaDefinition(name=schema_name, kind=SchemaKind.MODEL, properties=props)


def _is_declaration(line: str) -> bool:
    """Field declarations and getters; methods are skipped."""
    if line.startswith("public get"):
        return True
    if not line.startswith(("public ", "declare ")):
        return False
    return "(" not in line


def _parse_declaration(line: str, previous: str, snake: bool, rng: random.Random | None):
    if line.startswith("public get"):
        declaration = line[len("public get") :]
    elif line.startswith("declare "):
        declaration = line[len("declare ") :]
    else:
        declaration = line[len("public ") :]

    field, _, type_name = declaration.replace(";", "").partition(":")
    field = field.replace("()", "").replace("{", "").replace("get ", "").strip().rstrip("?!")
    type_name = type_name.split("=")[0].replace("{", "").strip() or "string"
    if not field or " " in field or "=" in field:
        return None

    nullable = False
    if " | " in type_name and "typeof" not in type_name:
        members = [t.strip() for t in type_name.split(" | ")]
        nullable = "null" in members
        type_name = next((t for t in members if t != "null"), "string")

    example = field_example(field)
    enums: list[str] = []
    if "@enum" in previous:
        enums = split_list(between_brackets(previous, "enum"))
        if enums:
            example = enums[0]
    if "@example" in previous:
        literal = between_brackets(previous, "example")
        if literal != "":
            example = literal

    if snake:
        field = snake_case(field)

    is_array = any(marker in line for marker in ARRAY_RELATIONS)
    relation = TYPEOF_RE.search(type_name)
    if relation:
        prop = PropertyDescriptor(type=None, ref=relation.group(1))
    else:
        if type_name.endswith("[]"):
            type_name, is_array = type_name[:-2], True
        prop = _type_to_property(type_name)

    prop.is_array = is_array
    prop.nullable = nullable
    if prop.is_reference:
        prop.example = None
    else:
        prop.example = coerce_example(example, prop.type) if example is not None else "string"
    if enums:
        prop.enum_values = enums

    apply_field_heuristics(field, prop, rng)
    return field, prop


def _type_to_property(type_name: str) -> PropertyDescriptor:
    lowered = type_name.lower()
    if lowered == "any":
        return PropertyDescriptor(type=None, ref="Any")
    if lowered in BUILTIN_TYPES:
        return PropertyDescriptor(type=lowered)
    # assume it is a custom interface
    return PropertyDescriptor(type=None, ref=type_name)
