"""Interface source parser.

Extracts ``interface Name { field: Type }`` declarations from a source
blob and converts each into a SchemaDefinition of kind Interface.
"""

import logging
import random
import re

from api_autodoc.parser.tokens import between_brackets, coerce_example, split_list
from api_autodoc.schema.base import PropertyDescriptor, SchemaDefinition, SchemaKind
from api_autodoc.schema.fields import BUILTIN_TYPES, apply_field_heuristics, field_example, snake_case

logger = logging.getLogger(__name__)

INTERFACE_RE = re.compile(r"(?:export\s+(?:default\s+)?)?interface\s+([A-Za-z_$][\w$]*)[^{;]*\{")
GENERIC_ARRAY_RE = re.compile(r"^(?:Array|ReadonlyArray)<\s*(.+?)\s*>$")
COMMENT_PREFIXES = ("//", "/*", "*")


def parse_interfaces(text: str, snake: bool = True, rng: random.Random | None = None) -> list[SchemaDefinition]:
    """Parse every interface declared in *text*."""
    schemas = []
    for match in INTERFACE_RE.finditer(text):
        body = _block_body(text, match.end())
        if body is None:
            logger.warning("Unterminated interface %s, skipping", match.group(1))
            continue
        properties = _parse_members(body, snake, rng)
        schemas.append(SchemaDefinition(name=match.group(1), kind=SchemaKind.INTERFACE, properties=properties))
    return schemas


def _block_body(text: str, start: int) -> str | None:
    """Return the text up to the brace closing the block opened before *start*."""
    depth = 1
    for i in range(start, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return text[start:i]
    return None


def _split_members(body: str) -> list[str]:
    """Split a block body on newlines and semicolons that are not nested."""
    members: list[str] = []
    current: list[str] = []
    depth = 0
    for ch in body:
        in_comment = "".join(current).lstrip().startswith(COMMENT_PREFIXES)
        if ch in "{<" and not in_comment:
            depth += 1
        elif ch in "}>" and depth > 0 and not in_comment:
            depth -= 1
        if (ch == "\n" and (depth == 0 or in_comment)) or (ch == ";" and depth == 0 and not in_comment):
            members.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    members.append("".join(current).strip())
    return [m for m in members if m]


def _parse_members(body: str, snake: bool, rng: random.Random | None) -> dict[str, PropertyDescriptor]:
    props: dict[str, PropertyDescriptor] = {}
    meta = ""
    for member in _split_members(body):
        if member.startswith(COMMENT_PREFIXES):
            meta = f"{meta} {member}"
            continue
        parsed = _parse_member(member, meta, snake, rng)
        meta = ""
        if parsed is not None:
            field, prop = parsed
            props[field] = prop
    return props


def _parse_member(member: str, meta: str, snake: bool, rng: random.Random | None):
    if ":" not in member or "(" in member.split(":", 1)[0]:
        return None
    field, type_name = (part.strip() for part in member.split(":", 1))
    field = field.replace("readonly ", "").strip().strip("'\"")
    type_name = type_name.rstrip(",;").strip()
    if not field or not type_name:
        return None

    nullable = False
    if field.endswith("?"):
        field = field[:-1]
        nullable = True
    if snake:
        field = snake_case(field)

    type_name, union_nullable = _pick_union_member(type_name)
    nullable = nullable or union_nullable

    is_array = False
    generic = GENERIC_ARRAY_RE.match(type_name)
    if generic:
        type_name, is_array = generic.group(1), True
    if type_name.endswith("[]"):
        type_name, is_array = type_name[:-2], True

    prop = _type_to_property(type_name)
    prop.is_array = is_array
    prop.nullable = nullable

    example = between_brackets(meta, "example")
    prop.example = coerce_example(example, prop.type or "") if example != "" else field_example(field)
    enums = split_list(between_brackets(meta, "enum"))
    if enums:
        prop.enum_values = enums
        prop.example = enums[0]

    apply_field_heuristics(field, prop, rng)
    return field, prop


def _pick_union_member(type_name: str) -> tuple[str, bool]:
    if "|" not in type_name or type_name.startswith("{"):
        return type_name, False
    members = [t.strip() for t in type_name.split("|")]
    others = [t for t in members if t not in ("null", "undefined")]
    return (others[0] if others else "any"), len(others) != len(members)


def _type_to_property(type_name: str) -> PropertyDescriptor:
    lowered = type_name.lower()
    if type_name.startswith(("'", '"')):
        return PropertyDescriptor(type="string")
    if lowered in BUILTIN_TYPES:
        if lowered == "any":
            return PropertyDescriptor(type=None, ref="Any")
        return PropertyDescriptor(type=lowered)
    if type_name.startswith("{") or "<" in type_name or not re.match(r"^[A-Za-z_$][\w$.]*$", type_name):
        return PropertyDescriptor(type=None, ref="Any")
    return PropertyDescriptor(type=None, ref=type_name)
