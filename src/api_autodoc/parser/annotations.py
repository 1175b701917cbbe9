"""Annotation parser.

Converts the directives of one controller action's comment block into an
AnnotationRecord. Authoring mistakes never raise: a malformed directive is
logged and left out, the rest of the block is still used.
"""

import logging
from http import HTTPStatus
from typing import Any

from api_autodoc.parser.base import (
    AnnotationRecord,
    FilterSpec,
    HeaderSpec,
    MediaTypeSpec,
    ParamDescriptor,
    RequestBodySpec,
    ResponseSpec,
)
from api_autodoc.parser.directives import Directive, tokenize
from api_autodoc.parser.tokens import (
    between_brackets,
    coerce_example,
    extract_json_fragment,
    extract_schema_ref,
    parse_json_object,
    split_list,
)
from api_autodoc.schema.registry import SchemaRegistry
from api_autodoc.schema.resolver import DEFAULT_MAX_DEPTH, expand_reference

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
FORM_DATA_MEDIA_TYPE = "multipart/form-data"

DEFAULT_EXAMPLES = {"string": "string", "integer": 1, "float": 1.5}


def status_phrase(status: str | int) -> str:
    """Standard reason phrase for a status code, or "" when unknown."""
    try:
        return HTTPStatus(int(status)).phrase
    except ValueError:
        return ""


def default_example(type_name: str):
    return DEFAULT_EXAMPLES.get(type_name)


def describe_reference(ref: str, filters: FilterSpec) -> str:
    """Human-readable description of a schema-referencing response."""
    if ref.endswith("[]"):
        text = f"Returns a **list** of type `{ref[:-2]}`"
    else:
        text = f"Returns a **single** instance of type `{ref}`"
    if filters.only:
        text += " **only containing** _" + ", ".join(filters.only) + "_"
    if filters.include:
        text += " **including** _" + ", ".join(filters.include) + "_"
    else:
        text += " **without** any _relations_"
    if filters.exclude:
        text += " and **excludes** _" + ", ".join(filters.exclude) + "_"
    return text + ". Take a look at the example for further details."


class AnnotationParser:
    """Parses comment blocks against one schema registry and option set."""

    def __init__(
        self,
        registry: SchemaRegistry,
        common_headers: dict[str, dict] | None = None,
        common_parameters: dict[str, list[dict]] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.registry = registry
        self.common_headers = common_headers or {}
        self.common_parameters = common_parameters or {}
        self.max_depth = max_depth

    def parse(self, lines: list[str], action: str = "") -> AnnotationRecord:
        """Parse trimmed, non-empty comment lines into an AnnotationRecord."""
        return self.parse_directives(tokenize(lines), action)

    def parse_directives(self, directives: list[Directive], action: str = "") -> AnnotationRecord:
        record = AnnotationRecord(action=action)
        headers: dict[str, dict[str, HeaderSpec]] = {}

        for directive in directives:
            name, argument = directive.name, directive.argument
            if name == "summary":
                record.summary = argument
            elif name == "description":
                record.description = argument
            elif name == "operationId":
                record.operation_id = argument or None
            elif name == "responseBody":
                response = self.parse_response(argument)
                if response is not None:
                    record.responses = {**record.responses, response.status: response}
            elif name == "responseHeader":
                parsed = self.parse_response_header(argument)
                if parsed is None:
                    logger.error("Invalid response header annotation: %s", directive.raw)
                    continue
                status, found = parsed
                headers[status] = {**headers.get(status, {}), **found}
            elif name == "requestBody":
                record.request_body = self.parse_request_body(argument)
            elif name == "requestFormDataBody":
                body = self.parse_form_data_body(argument)
                if body is not None:
                    record.request_body = body
            elif directive.is_param:
                record.parameters = {**record.parameters, **self.parse_param(directive)}

        for status, response in record.responses.items():
            if status in headers:
                response.headers = {**response.headers, **headers[status]}
        return record

    def expand_refs(self, value: Any) -> Any:
        """Replace ``"<Schema>"`` strings inside a JSON value with examples."""
        if isinstance(value, dict):
            return {key: self.expand_refs(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.expand_refs(item) for item in value]
        if isinstance(value, str):
            ref = extract_schema_ref(value)
            if ref:
                _, example = expand_reference(self.registry, ref, FilterSpec.from_text(value), self.max_depth)
                return example
        return value

    def parse_response(self, argument: str) -> ResponseSpec | None:
        """``<status> - <description> <Ref[]> {json}``"""
        status, _, text = argument.partition(" - ")
        status = status.strip()
        if not status:
            logger.warning("Response annotation without status: %s", argument)
            return None

        phrase = status_phrase(status)
        response = ResponseSpec(status=status, description=phrase)
        if not text:
            return response
        response.description = f"{phrase}: {text}" if phrase else text

        fragment = extract_json_fragment(text)
        remainder = text.replace(fragment, "") if fragment else text
        if fragment:
            data = parse_json_object(fragment)
            if data is None:
                logger.warning("Invalid JSON for response %s: %s", status, fragment)
            else:
                response.content = {
                    JSON_MEDIA_TYPE: MediaTypeSpec.with_example({"type": "object"}, self.expand_refs(data))
                }

        ref = extract_schema_ref(remainder)
        if ref:
            filters = FilterSpec.from_text(remainder)
            schema, example = expand_reference(self.registry, ref, filters, self.max_depth)
            response.content = {JSON_MEDIA_TYPE: MediaTypeSpec.with_example(schema, example)}
            response.description = describe_reference(ref, filters)
        return response

    def parse_response_header(self, argument: str) -> tuple[str, dict[str, HeaderSpec]] | None:
        """``<status> - <name> - <description> - <meta>`` or ``<status> - @use(group,...)``"""
        parts = [part.strip() for part in argument.split(" - ", 3)]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return None
        status, name = parts[0], parts[1]

        if "@use" in name:
            merged: dict[str, HeaderSpec] = {}
            for group in split_list(between_brackets(name, "use")):
                if group not in self.common_headers:
                    logger.warning("Unknown common header group %s", group)
                    continue
                for header_name, header in self.common_headers[group].items():
                    merged[header_name] = HeaderSpec.from_openapi(header)
            return status, merged

        description = parts[2] if len(parts) > 2 else ""
        meta = parts[3] if len(parts) > 3 else ""
        type_name = between_brackets(meta, "type") or "string"
        enums = split_list(between_brackets(meta, "enum"))
        example: Any = between_brackets(meta, "example")
        if enums:
            example = enums[0]
        if example == "":
            example = default_example(type_name)
        header = HeaderSpec(
            description=description,
            type=type_name,
            example=coerce_example(example, type_name),
            enum_values=enums or None,
        )
        return status, {name: header}

    def parse_request_body(self, argument: str) -> RequestBodySpec | None:
        """A literal JSON object, or a ``<Ref>``/``<Ref[]>`` with filter tokens."""
        data = parse_json_object(argument)
        if data is not None:
            media = MediaTypeSpec.with_example({"type": "object"}, self.expand_refs(data))
            return RequestBodySpec(content={JSON_MEDIA_TYPE: media})

        ref = extract_schema_ref(argument)
        if not ref:
            logger.warning("Request body is neither JSON nor a schema reference: %s", argument)
            return None
        schema, example = expand_reference(self.registry, ref, FilterSpec.from_text(argument), self.max_depth)
        return RequestBodySpec(content={JSON_MEDIA_TYPE: MediaTypeSpec.with_example(schema, example)})

    def parse_form_data_body(self, argument: str) -> RequestBodySpec | None:
        data = parse_json_object(argument)
        if data is None:
            logger.warning("Form data body is not a JSON object: %s", argument)
            return None
        media = MediaTypeSpec(schema={"type": "object", "properties": data})
        return RequestBodySpec(content={FORM_DATA_MEDIA_TYPE: media})

    def parse_param(self, directive: Directive) -> dict[str, ParamDescriptor]:
        """``@param<Location> name - description - meta`` or ``@paramUse(group,...)``"""
        if directive.name == "paramUse":
            return self._common_params(between_brackets(directive.raw, "paramUse"))

        location = directive.name[len("param") :].lower() or "path"
        required = location != "query"
        name, _, rest = directive.argument.partition(" - ")
        name = name.strip()
        if not name:
            logger.warning("Parameter annotation without name: %s", directive.raw)
            return {}
        description, _, meta = rest.partition(" - ")

        type_name = "string"
        example: Any = ""
        enums: list[str] = []
        if meta:
            if "@required" in meta:
                required = True
            type_name = between_brackets(meta, "type") or type_name
            example = between_brackets(meta, "example")
            enums = split_list(between_brackets(meta, "enum"))
            if enums:
                example = enums[0]
        if example == "":
            example = default_example(type_name)

        param = ParamDescriptor(
            name=name,
            location=location,
            required=required,
            type=type_name,
            description=description.strip(),
            example=coerce_example(example, type_name),
            enum_values=enums or None,
        )
        return {name: param}

    def _common_params(self, groups: str) -> dict[str, ParamDescriptor]:
        params: dict[str, ParamDescriptor] = {}
        for group in split_list(groups):
            if group not in self.common_parameters:
                logger.warning("Unknown common parameter group %s", group)
                continue
            for data in self.common_parameters[group]:
                param = ParamDescriptor.from_openapi(data)
                params[param.name] = param
        return params
