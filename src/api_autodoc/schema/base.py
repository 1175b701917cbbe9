"""Data models for reusable schemas discovered in model and interface sources."""

from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, Field

REF_PREFIX = "#/components/schemas/"


def schema_ref(name: str) -> dict:
    return {"$ref": REF_PREFIX + name}


class SchemaKind(str, Enum):
    MODEL = "Model"
    INTERFACE = "Interface"
    BUILTIN = "Builtin"


class SourceBlob(BaseModel):
    """Raw text of one source file, as handed over by the file collaborator."""

    path: str
    text: str

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path.replace("\\", "/")).stem


class PropertyDescriptor(BaseModel):
    """One property of a schema: either a primitive type or a schema reference."""

    type: str | None = "string"
    ref: str | None = None
    is_array: bool = False
    nullable: bool = False
    format: str | None = None
    example: Any = None
    enum_values: list[str] | None = None

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    def to_openapi(self) -> dict:
        """Emit the OpenAPI property schema, wrapping arrays in ``items``."""
        if self.ref is not None:
            item: dict = schema_ref(self.ref)
        else:
            item = {"type": self.type}
            if self.format:
                item["format"] = self.format
        item["example"] = self.example
        if self.nullable:
            item["nullable"] = True
        if self.is_array:
            prop = {"type": "array", "items": item}
        else:
            prop = item
        if self.enum_values:
            prop["enum"] = list(self.enum_values)
        return prop


class SchemaDefinition(BaseModel):
    """A named object shape, referenced by ``$ref`` from the document."""

    name: str
    kind: SchemaKind
    properties: dict[str, PropertyDescriptor] = Field(default_factory=dict)
    description: str | None = None

    def to_openapi(self) -> dict:
        if self.kind is SchemaKind.BUILTIN:
            return {"description": self.description or self.name}
        return {
            "type": "object",
            "properties": {name: prop.to_openapi() for name, prop in self.properties.items()},
            "description": self.kind.value,
        }
