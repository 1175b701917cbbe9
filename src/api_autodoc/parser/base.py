"""Unified data models for parsed controller annotations.

The annotation parser converts comment blocks into these records; the
document assembler turns them into OpenAPI fragments via ``to_openapi``.
"""

from typing import Any

from pydantic import BaseModel, Field

from api_autodoc.parser.tokens import between_brackets, parse_append, split_list


class ParamDescriptor(BaseModel):
    """A single operation parameter (path, query, header, or cookie)."""

    name: str
    location: str = "path"  # path / query / header / cookie
    required: bool = True
    type: str = "string"
    description: str = ""
    example: Any = None
    enum_values: list[str] | None = None

    @classmethod
    def from_openapi(cls, data: dict) -> "ParamDescriptor":
        """Build a descriptor from an OpenAPI parameter object."""
        schema = data.get("schema", {})
        return cls(
            name=data["name"],
            location=data.get("in", "query"),
            required=data.get("required", False),
            type=schema.get("type", "string"),
            description=data.get("description", ""),
            example=schema.get("example", data.get("example")),
            enum_values=schema.get("enum"),
        )

    def to_openapi(self) -> dict:
        schema: dict = {"type": self.type}
        if self.example is not None:
            schema["example"] = self.example
        if self.enum_values and len(self.enum_values) > 1:
            schema["enum"] = list(self.enum_values)
        param = {"in": self.location, "name": self.name}
        if self.description:
            param["description"] = self.description
        param["schema"] = schema
        param["required"] = self.required
        return param


class HeaderSpec(BaseModel):
    """A documented response header."""

    description: str = ""
    type: str = "string"
    example: Any = None
    enum_values: list[str] | None = None

    @classmethod
    def from_openapi(cls, data: dict) -> "HeaderSpec":
        schema = data.get("schema", {})
        return cls(
            description=data.get("description", ""),
            type=schema.get("type", "string"),
            example=schema.get("example"),
            enum_values=schema.get("enum"),
        )

    def to_openapi(self) -> dict:
        schema: dict = {"type": self.type, "example": self.example}
        if self.enum_values and len(self.enum_values) > 1:
            schema["enum"] = list(self.enum_values)
        return {"schema": schema, "description": self.description}


class MediaTypeSpec(BaseModel):
    """One entry of a ``content`` map: a schema plus an optional example."""

    schema_: dict = Field(default_factory=dict, alias="schema")
    example: Any = None
    has_example: bool = False

    model_config = {"populate_by_name": True}

    @classmethod
    def with_example(cls, schema: dict, example: Any) -> "MediaTypeSpec":
        return cls(schema=schema, example=example, has_example=True)

    def to_openapi(self) -> dict:
        out: dict = {}
        if self.schema_:
            out["schema"] = self.schema_
        if self.has_example:
            out["example"] = self.example
        return out


def content_to_openapi(content: dict[str, MediaTypeSpec]) -> dict:
    return {media_type: spec.to_openapi() for media_type, spec in content.items()}


class ResponseSpec(BaseModel):
    """A documented response for one status code."""

    status: str
    description: str = ""
    content: dict[str, MediaTypeSpec] = Field(default_factory=dict)
    headers: dict[str, HeaderSpec] = Field(default_factory=dict)

    def to_openapi(self) -> dict:
        out: dict = {"description": self.description}
        if self.content:
            out["content"] = content_to_openapi(self.content)
        if self.headers:
            out["headers"] = {name: h.to_openapi() for name, h in self.headers.items()}
        return out


class RequestBodySpec(BaseModel):
    """A documented request body."""

    content: dict[str, MediaTypeSpec] = Field(default_factory=dict)

    def to_openapi(self) -> dict:
        return {"content": content_to_openapi(self.content)}


class AnnotationRecord(BaseModel):
    """Everything documented in the comment block of one controller action."""

    action: str = ""
    summary: str = ""
    description: str = ""
    operation_id: str | None = None
    responses: dict[str, ResponseSpec] = Field(default_factory=dict)
    request_body: RequestBodySpec | None = None
    parameters: dict[str, ParamDescriptor] = Field(default_factory=dict)


class FilterSpec(BaseModel):
    """Controls which parts of a schema graph end up in an example."""

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    only: tuple[str, ...] = ()
    append: dict = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def from_text(cls, text: str) -> "FilterSpec":
        """Read the ``with``/``exclude``/``only``/``append`` tokens of *text*."""
        return cls(
            include=tuple(split_list(between_brackets(text, "with"))),
            exclude=tuple(split_list(between_brackets(text, "exclude"))),
            only=tuple(split_list(between_brackets(text, "only"))),
            append=parse_append(text),
        )
