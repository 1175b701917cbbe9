"""Schema registry: the named catalog of every schema known to one run."""

import logging
import random

from api_autodoc.schema.base import SchemaDefinition, SchemaKind, SourceBlob
from api_autodoc.schema.interfaces import parse_interfaces
from api_autodoc.schema.models import parse_model

logger = logging.getLogger(__name__)

ANY_SCHEMA = SchemaDefinition(
    name="Any",
    kind=SchemaKind.BUILTIN,
    description="Any JSON object not defined as schema",
)


class SchemaRegistry:
    """Schemas keyed by name. Later registrations replace earlier ones."""

    def __init__(self):
        self._schemas: dict[str, SchemaDefinition] = {ANY_SCHEMA.name: ANY_SCHEMA}

    def register(self, schema: SchemaDefinition) -> None:
        existing = self._schemas.get(schema.name)
        if existing is not None:
            logger.warning(
                "Schema %s (%s) replaces an earlier %s definition",
                schema.name,
                schema.kind.value,
                existing.kind.value,
            )
        self._schemas[schema.name] = schema

    def get(self, name: str) -> SchemaDefinition | None:
        return self._schemas.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def names(self) -> list[str]:
        return list(self._schemas)

    def is_model(self, name: str) -> bool:
        schema = self._schemas.get(name)
        return schema is not None and schema.kind is SchemaKind.MODEL

    def to_openapi(self) -> dict:
        """Emit the ``components.schemas`` map."""
        return {name: schema.to_openapi() for name, schema in self._schemas.items()}


def build_registry(
    interfaces: list[SourceBlob],
    models: list[SourceBlob],
    snake: bool = True,
    rng: random.Random | None = None,
) -> SchemaRegistry:
    """Parse interface blobs, then model blobs, into a fresh registry."""
    registry = SchemaRegistry()
    for blob in interfaces:
        for schema in parse_interfaces(blob.text, snake=snake, rng=rng):
            registry.register(schema)
    for blob in models:
        registry.register(parse_model(blob, snake=snake, rng=rng))
    logger.info("Registered %d schemas", len(registry))
    return registry
