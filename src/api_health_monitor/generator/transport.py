"""HTTP request builders: turn a pre-expanded API call into a dispatchable request.

Builders are selected by name from an explicit registry, once per monitor.
"""

import json
from typing import Any, Protocol
from urllib.parse import urlencode, urlsplit

import httpx
from pydantic import BaseModel, ConfigDict

from api_health_monitor.errors import ConfigError
from .params import format_value


class ResolvedRequest(BaseModel):
    """A fully formed request. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    method: str
    url: str  # absolute, query string included
    headers: dict[str, str] = {}
    body: str | None = None

    def to_httpx(self) -> httpx.Request:
        content = self.body.encode("utf-8") if self.body is not None else None
        return httpx.Request(self.method, self.url, headers=self.headers, content=content)


class HttpRequestBuilder(Protocol):
    def build(
        self,
        method: str,
        uri: str,
        query: dict[str, Any],
        headers: dict[str, Any],
        body: dict[str, Any] | None,
    ) -> ResolvedRequest: ...


class FormRequestBuilder:
    """Appends the query string and URL-form-encodes the body."""

    def build(self, method, uri, query, headers, body):
        return ResolvedRequest(
            method=method.upper(),
            url=append_query(uri, query),
            headers={name: format_value(value) for name, value in (headers or {}).items()},
            body=self._encode_body(body) if body else None,
        )

    def _encode_body(self, body: dict[str, Any]) -> str:
        return _urlencode(body)


class JsonRequestBuilder(FormRequestBuilder):
    """Sends the flat body as a JSON object."""

    def build(self, method, uri, query, headers, body):
        request = super().build(method, uri, query, headers, body)
        if request.body is None or "Content-Type" in request.headers:
            return request
        return request.model_copy(
            update={"headers": {**request.headers, "Content-Type": "application/json"}}
        )

    def _encode_body(self, body: dict[str, Any]) -> str:
        return json.dumps(body)


_REQUEST_BUILDERS: dict[str, type] = {
    "form": FormRequestBuilder,
    "json": JsonRequestBuilder,
}


def register_request_builder(name: str, builder_cls: type) -> None:
    """Make a custom builder selectable by ``request_builder: <name>``."""
    _REQUEST_BUILDERS[name] = builder_cls


def get_request_builder(name: str) -> HttpRequestBuilder:
    try:
        return _REQUEST_BUILDERS[name]()
    except KeyError:
        known = ", ".join(sorted(_REQUEST_BUILDERS))
        raise ConfigError(f"Unknown request builder '{name}', expected one of: {known}") from None


def append_query(uri: str, query: dict[str, Any]) -> str:
    """Append URL-encoded query parameters to uri."""
    if not query:
        return uri
    separator = "&" if urlsplit(uri).query else "?"
    return uri + separator + _urlencode(query)


def _urlencode(values: dict[str, Any]) -> str:
    pairs = []
    for name, value in values.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((name, format_value(item)) for item in value)
        else:
            pairs.append((name, format_value(value)))
    return urlencode(pairs)
