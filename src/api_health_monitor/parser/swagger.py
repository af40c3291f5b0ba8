"""Swagger / OpenAPI document loader.

Reads a JSON or YAML API description from disk into an ApiDescription.
"""

import json
import logging
from pathlib import Path

import yaml

from api_health_monitor.errors import SchemaNotFoundError, SchemaParseError, UnsupportedSchemeError
from .base import ApiDescription, Operation, ParamDecl

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")


def load_schema(file_path: Path | str) -> ApiDescription:
    """Load a Swagger/OpenAPI file into an ApiDescription."""
    file_path = Path(file_path)
    if not file_path.is_file():
        raise SchemaNotFoundError(file_path)

    doc = _parse_document(file_path.read_text(encoding="utf-8"))
    if not doc or not isinstance(doc, dict):
        raise SchemaParseError(f"Schema wasn't decoded properly, check file: {file_path}")

    schemes = list(doc.get("schemes") or [])
    if len(schemes) > 1:
        raise UnsupportedSchemeError(schemes)

    paths = doc.get("paths") or {}
    if not isinstance(paths, dict):
        raise SchemaParseError(f"'paths' must be a mapping, check file: {file_path}")

    operations = []
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue
        shared = item.get("parameters") or []
        for method, operation in item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            operations.append(
                Operation(
                    method=method.upper(),
                    path=path,
                    parameters=_parse_parameters(doc, shared, operation.get("parameters") or []),
                    consumes=list(operation.get("consumes") or doc.get("consumes") or []),
                    summary=operation.get("summary") or "",
                )
            )

    logger.debug("Loaded %d operations from %s", len(operations), file_path)
    return ApiDescription(
        schemes=schemes,
        host=doc.get("host") or None,
        base_path=doc.get("basePath") or "/",
        operations=operations,
    )


def _parse_document(text: str):
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        pass

    # JSON that YAML rejects, e.g. tab indentation
    try:
        return json.loads(text)
    except ValueError as e:
        raise SchemaParseError(f"Schema is neither valid YAML nor JSON: {e}") from e


def _parse_parameters(doc: dict, shared: list[dict], own: list[dict]) -> list[ParamDecl]:
    """Merge path-level and operation-level parameters.

    An operation-level declaration replaces a path-level one with the same
    name and location. Repeats within one list are all kept, in order.
    """
    own_params = [_parse_parameter(doc, raw) for raw in _as_list(own)]
    overridden = {(p.name, p.location) for p in own_params}
    shared_params = [_parse_parameter(doc, raw) for raw in _as_list(shared)]
    return [p for p in shared_params if (p.name, p.location) not in overridden] + own_params


def _as_list(params) -> list:
    if not isinstance(params, list):
        raise SchemaParseError(f"Parameters must be a list: {params!r}")
    return params


def _parse_parameter(doc: dict, raw: dict) -> ParamDecl:
    if not isinstance(raw, dict):
        raise SchemaParseError(f"Parameter must be a mapping: {raw!r}")
    if "$ref" in raw:
        raw = _resolve_ref(doc, raw["$ref"])
    if not raw.get("name"):
        raise SchemaParseError(f"Parameter without a name: {raw}")

    schema = raw.get("schema") or {}
    default = raw.get("default")
    if default is None:
        default = schema.get("default")

    return ParamDecl(
        name=raw["name"],
        location=raw.get("in", ""),
        required=bool(raw.get("required", False)),
        example=schema.get("example"),
        examples=raw.get("examples") or {},
        default=default,
    )


def _resolve_ref(doc: dict, ref: str) -> dict:
    if not ref.startswith("#/"):
        raise SchemaParseError(f"Only local references are supported: {ref}")

    node = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise SchemaParseError(f"Cannot resolve reference: {ref}")
        node = node[part]
    if not isinstance(node, dict):
        raise SchemaParseError(f"Reference does not point to an object: {ref}")
    return node
