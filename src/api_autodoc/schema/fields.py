"""Field-name heuristics shared by the interface and model parsers."""

import random
import re

from api_autodoc.schema.base import PropertyDescriptor

BUILTIN_TYPES = {"string", "number", "integer", "datetime", "date", "boolean", "any"}
NUMERIC_TYPES = {"integer", "number"}

DATETIME_EXAMPLE = "2021-03-23T16:13:08.489+01:00"
DATE_EXAMPLE = "2021-03-23"

TIMESTAMP_FIELDS = {"created_at", "updated_at", "deleted_at"}

FIELD_EXAMPLES = {
    "title": "Lorem Ipsum",
    "description": "Lorem ipsum dolor sit amet",
    "name": "John Doe",
    "full_name": "John Doe",
    "first_name": "John",
    "last_name": "Doe",
    "email": "johndoe@example.com",
    "address": "1028 Farland Street",
    "street": "1028 Farland Street",
    "country": "United States of America",
    "country_code": "US",
    "zip": 60617,
    "city": "Chicago",
    "password": "S3cur3P4s5word!",
    "password_confirmation": "S3cur3P4s5word!",
    "lat": 41.705,
    "long": -87.475,
    "price": 10.5,
    "avatar": "https://example.com/avatar.png",
    "url": "https://example.com",
}


def snake_case(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[^A-Za-z0-9]+", "_", s2).strip("_").lower()


def field_example(field: str):
    """Return a realistic example for well-known field names, else None."""
    return FIELD_EXAMPLES.get(field, FIELD_EXAMPLES.get(snake_case(field)))


def random_integer(rng: random.Random | None = None) -> int:
    return (rng or random).randrange(1000)


def apply_field_heuristics(field: str, prop: PropertyDescriptor, rng: random.Random | None = None) -> None:
    """Adjust format and example of *prop* based on its (final) field name and type."""
    key = snake_case(field)
    if prop.type == "datetime":
        prop.type, prop.format, prop.example = "string", "date-time", DATETIME_EXAMPLE
    elif prop.type == "date":
        prop.type, prop.format, prop.example = "string", "date", DATE_EXAMPLE

    if key in ("created_at", "updated_at") and prop.ref is None:
        prop.type, prop.format, prop.example = "string", "date-time", DATETIME_EXAMPLE
    if key == "email":
        prop.ref, prop.type, prop.format = None, "string", "email"
        prop.example = FIELD_EXAMPLES["email"]
    if key == "password":
        prop.ref, prop.type, prop.format = None, "string", "password"
        prop.example = None
        return

    if prop.type in NUMERIC_TYPES and (prop.example is None or prop.example == "string"):
        prop.example = random_integer(rng)
    if prop.type == "boolean":
        prop.example = True
