"""Base URL resolution from schema values and the serving URL."""

from urllib.parse import urlsplit

from api_health_monitor.errors import UnsupportedSchemeError
from api_health_monitor.parser.base import ApiDescription

DEFAULT_PORTS = {"http": 80, "https": 443}


def resolve_base_url(description: ApiDescription, serving_url: str) -> str:
    """Build ``scheme://host`` + basePath for every operation of the schema.

    Scheme and host fall back to the serving URL when the schema leaves
    them out. The base path is used verbatim.
    """
    serving = urlsplit(serving_url)

    if len(description.schemes) > 1:
        raise UnsupportedSchemeError(description.schemes)
    scheme = description.schemes[0] if description.schemes else serving.scheme

    host = description.host or _serving_host(serving)
    base_path = description.base_path or "/"

    return f"{scheme}://{host}{base_path}"


def _serving_host(serving) -> str:
    host = serving.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = serving.port
    if port and port != DEFAULT_PORTS.get(serving.scheme):
        host += f":{port}"
    return host
