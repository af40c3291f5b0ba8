"""Data models for a parsed API description.

The schema loader converts a Swagger/OpenAPI document into these models;
request synthesis reads them and never mutates them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

PARAM_LOCATIONS = ("path", "query", "header", "formData", "body")


class ParamDecl(BaseModel):
    """A single operation parameter as declared in the schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str  # path / query / header / formData / body
    required: bool = False
    example: Any = None  # schema.example
    examples: dict[str, Any] = {}  # named examples, each {"value": ...}
    default: Any = None


class Operation(BaseModel):
    """One (path, HTTP method) pair documented by the schema."""

    model_config = ConfigDict(frozen=True)

    method: str  # GET / POST / PUT / DELETE / PATCH / HEAD / OPTIONS
    path: str  # /users/{id}
    parameters: list[ParamDecl] = []
    consumes: list[str] = []
    summary: str = ""


class ApiDescription(BaseModel):
    """The whole API description, built once per check run."""

    model_config = ConfigDict(frozen=True)

    schemes: list[str] = []
    host: str | None = None
    base_path: str = "/"
    operations: list[Operation] = []
