"""Canonical route models and the two framework handler shapes they come from."""

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from api_autodoc.parser.base import ParamDescriptor


class ControllerRef(BaseModel):
    kind: Literal["controller"] = "controller"
    source_file: str  # logical path, e.g. app/controllers/users_controller
    action: str

    model_config = {"frozen": True}


class ClosureRef(BaseModel):
    kind: Literal["closure"] = "closure"
    name: str = "closure"

    model_config = {"frozen": True}


HandlerRef = Annotated[Union[ControllerRef, ClosureRef], Field(discriminator="kind")]


class RouteDescriptor(BaseModel):
    """One routable endpoint, independent of the framework's route shape."""

    methods: list[str]
    pattern: str  # as declared, e.g. /users/:id
    path: str  # document form, e.g. /users/{id}
    parameters: list[ParamDescriptor] = Field(default_factory=list)
    middleware: list[str] = Field(default_factory=list)
    handler: HandlerRef = Field(default_factory=ClosureRef)
    tags: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


@dataclass(frozen=True)
class LegacyHandler:
    """Handler already resolved by the framework: namespace + method."""

    type: str
    namespace: str | None = None
    method: str | None = None


@dataclass(frozen=True)
class ModernHandler:
    """Handler as declared: a ``Controller.method`` string, a
    ``(reference, method)`` tuple, or a bare closure."""

    reference: Any = None
    method: str | None = None
    name: str | None = None
    lazy: bool = False  # reference came from a (reference, method) tuple
