"""Offline config generation: expand a schema into a static list of API calls."""

from pathlib import Path

from api_health_monitor.config import MonitorConfig, Target
from api_health_monitor.parser.swagger import load_schema
from .base_url import resolve_base_url
from .request import RequestBuilder
from .transport import get_request_builder


def build_monitor_config(
    schema_path: Path,
    serving_url: str,
    include_optional: bool = True,
    request_builder: str | None = None,
    strict: bool = False,
) -> MonitorConfig:
    """Resolve every schema operation into a pre-expanded ApiCall.

    The result carries a single ``default`` target, ready to be dumped
    with ``dump_config`` and checked without the schema at runtime.
    """
    config = MonitorConfig(
        include_optional_parameters=include_optional,
        strict=strict,
        serving_url=serving_url,
    )
    if request_builder:
        get_request_builder(request_builder)
        config.request_builder = request_builder

    description = load_schema(schema_path)
    base_url = resolve_base_url(description, serving_url)
    builder = RequestBuilder(include_optional=include_optional, strict=strict)

    apis = [builder.build_call(base_url, operation) for operation in description.operations]
    config.targets = [Target(name="default", apis=apis)]
    return config
