"""Parameter inclusion and value resolution.

Swagger's recommended place for mock values is the example[s] section, so
those are tried first. The declared default comes last: it describes what
the server assumes when the parameter is omitted, which makes it a usable
probe value but not the preferred one.
"""

from typing import Any

from api_health_monitor.errors import UnresolvableParameterError
from api_health_monitor.parser.base import ParamDecl


def should_include(param: ParamDecl, include_optional: bool) -> bool:
    return param.required or include_optional


def resolve_value(param: ParamDecl) -> Any:
    """Return the first of schema example, first named example, default."""
    if param.example is not None:
        return param.example

    if param.examples:
        first = next(iter(param.examples.values()))
        if isinstance(first, dict) and first.get("value") is not None:
            return first["value"]

    if param.default is not None:
        return param.default

    raise UnresolvableParameterError(param.name)


def format_value(value: Any) -> str:
    """Render a resolved value as URL or header text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
