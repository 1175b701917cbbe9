"""Generator options.

Options can be given in Python or loaded from a YAML/JSON file; both the
snake_case field names and the camelCase keys of the host framework's
config are accepted.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from api_autodoc.schema.resolver import DEFAULT_MAX_DEPTH


class CommonDefinitions(BaseModel):
    """Named groups for ``@use(...)`` and ``@paramUse(...)``."""

    headers: dict[str, dict[str, dict]] = Field(default_factory=dict)
    parameters: dict[str, list[dict]] = Field(default_factory=dict)


class GeneratorOptions(BaseModel):
    model_config = {"populate_by_name": True, "extra": "ignore"}

    title: str = "API"
    version: str = "1.0.0"
    ignore: list[str] = Field(default_factory=list, alias="ignorePatterns")
    tag_index: int = Field(default=2, alias="tagIndex")
    snake_case: bool = Field(default=True, alias="snakeCase")
    preferred_put_patch: str = Field(default="PUT", alias="preferredPutPatch")
    common: CommonDefinitions = Field(default_factory=CommonDefinitions)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, alias="maxDepth")

    @model_validator(mode="before")
    @classmethod
    def _accept_framework_keys(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "ignore" in data and "ignorePatterns" not in data:
            data["ignorePatterns"] = data.pop("ignore")
        common = dict(data.get("common") or {})
        if "commonHeaders" in data:
            common.setdefault("headers", data.pop("commonHeaders"))
        if "commonParameters" in data:
            common.setdefault("parameters", data.pop("commonParameters"))
        if common:
            data["common"] = common
        return data

    @field_validator("preferred_put_patch")
    @classmethod
    def _put_or_patch(cls, value: str) -> str:
        value = value.upper()
        if value not in ("PUT", "PATCH"):
            raise ValueError("preferredPutPatch must be PUT or PATCH")
        return value


def load_options(path: Path | None = None, **overrides) -> GeneratorOptions:
    """Load options from a YAML (or JSON) file, applying keyword overrides."""
    data: dict = {}
    if path is not None:
        loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            data.update(loaded)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return GeneratorOptions.model_validate(data)
