"""Request synthesis: one concrete request per schema operation."""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from api_health_monitor.config import ApiCall
from api_health_monitor.errors import (
    MissingPathPlaceholderError,
    UnsupportedBodyLocationError,
    UnsupportedContentTypeError,
    UnsupportedParameterLocationError,
)
from api_health_monitor.parser.base import PARAM_LOCATIONS, Operation
from .params import format_value, resolve_value, should_include
from .transport import FormRequestBuilder, HttpRequestBuilder, ResolvedRequest

logger = logging.getLogger(__name__)

BODY_METHODS = ("post", "put", "patch")


class RequestBuilder:
    """Builds requests for schema operations.

    Path, query and header parameters are resolved into an ApiCall, the
    same shape the offline config generator writes out; the HTTP request
    builder then appends the query string and encodes the body.
    """

    def __init__(
        self,
        include_optional: bool = False,
        http_builder: HttpRequestBuilder | None = None,
        strict: bool = False,
        form_content_type: str | None = None,
    ):
        self.include_optional = include_optional
        self.http_builder = http_builder or FormRequestBuilder()
        self.strict = strict
        self.form_content_type = form_content_type

    def build(self, base_url: str, operation: Operation) -> ResolvedRequest:
        call = self.build_call(base_url, operation)
        return self.http_builder.build(call.method, call.url, call.query, call.headers, call.body)

    def build_call(self, base_url: str, operation: Operation) -> ApiCall:
        if self.strict:
            self._check_strict(operation)

        url = self._build_url(base_url, operation)
        query = self._build_query(operation)
        headers = self._build_headers(operation)
        body = self._build_body(operation)
        if body and self.form_content_type:
            headers.setdefault("Content-Type", self.form_content_type)

        return ApiCall(url=url, method=operation.method.upper(), query=query, body=body, headers=headers)

    def iter_requests(self, base_url: str, operations: Iterable[Operation]) -> Iterator[ResolvedRequest]:
        """Yield one request per operation, built only when pulled."""
        for operation in operations:
            request = self.build(base_url, operation)
            logger.debug("Built probe %s %s", request.method, request.url)
            yield request

    def _included(self, operation: Operation, location: str):
        for param in operation.parameters:
            if param.location == location and should_include(param, self.include_optional):
                yield param

    def _build_url(self, base_url: str, operation: Operation) -> str:
        url = base_url.rstrip("/") + "/" + operation.path.lstrip("/")
        for param in self._included(operation, "path"):
            placeholder = "{" + param.name + "}"
            if placeholder not in url:
                raise MissingPathPlaceholderError(operation.path, param.name)
            url = url.replace(placeholder, format_value(resolve_value(param)), 1)
        return url

    def _build_query(self, operation: Operation) -> dict[str, Any]:
        return {param.name: resolve_value(param) for param in self._included(operation, "query")}

    def _build_headers(self, operation: Operation) -> dict[str, str]:
        headers: dict[str, str] = {}
        for param in self._included(operation, "header"):
            headers.setdefault(param.name, format_value(resolve_value(param)))

        if operation.consumes:
            if len(operation.consumes) > 1:
                raise UnsupportedContentTypeError(operation.method, operation.path, operation.consumes)
            headers.setdefault("Content-Type", operation.consumes[0])
        return headers

    def _build_body(self, operation: Operation) -> dict[str, Any] | None:
        if operation.method.lower() not in BODY_METHODS or not operation.parameters:
            return None

        form_data = {}
        for param in operation.parameters:
            if not should_include(param, self.include_optional):
                continue
            if param.location == "body":
                raise UnsupportedBodyLocationError(operation.path, param.name)
            if param.location == "formData":
                form_data[param.name] = resolve_value(param)

        return form_data or None

    def _check_strict(self, operation: Operation) -> None:
        for param in operation.parameters:
            if param.location not in PARAM_LOCATIONS:
                raise UnsupportedParameterLocationError(operation.path, param.name, param.location)
            if not should_include(param, self.include_optional):
                resolve_value(param)
