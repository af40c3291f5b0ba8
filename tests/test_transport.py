import pytest

from api_health_monitor.errors import ConfigError
from api_health_monitor.generator.transport import (
    FormRequestBuilder,
    JsonRequestBuilder,
    ResolvedRequest,
    append_query,
    get_request_builder,
    register_request_builder,
)


class TestAppendQuery:
    def test_no_query(self):
        assert append_query("https://a.example/x", {}) == "https://a.example/x"

    def test_adds_question_mark(self):
        assert append_query("https://a.example/x", {"a": 1}) == "https://a.example/x?a=1"

    def test_extends_existing_query(self):
        assert append_query("https://a.example/x?a=1", {"b": 2}) == "https://a.example/x?a=1&b=2"

    def test_list_values_repeat(self):
        assert append_query("https://a.example/x", {"id": [1, 2]}) == "https://a.example/x?id=1&id=2"


class TestFormRequestBuilder:
    def test_build(self):
        request = FormRequestBuilder().build(
            "post", "https://a.example/items", {"dry": True}, {"X-Count": 3}, {"name": "Ada"}
        )
        assert request.method == "POST"
        assert request.url == "https://a.example/items?dry=true"
        assert request.headers == {"X-Count": "3"}
        assert request.body == "name=Ada"

    def test_empty_body_is_absent(self):
        request = FormRequestBuilder().build("POST", "https://a.example/items", {}, {}, {})
        assert request.body is None


class TestJsonRequestBuilder:
    def test_keeps_declared_content_type(self):
        request = JsonRequestBuilder().build(
            "POST", "https://a.example/items", {}, {"Content-Type": "application/vnd.api+json"}, {"a": 1}
        )
        assert request.headers == {"Content-Type": "application/vnd.api+json"}
        assert request.body == '{"a": 1}'

    def test_no_content_type_without_body(self):
        request = JsonRequestBuilder().build("GET", "https://a.example/items", {}, {}, None)
        assert request.headers == {}


class TestResolvedRequest:
    def test_to_httpx(self):
        request = ResolvedRequest(
            method="POST", url="https://a.example/items?x=1", headers={"X-A": "b"}, body="a=1"
        )
        http_request = request.to_httpx()
        assert http_request.method == "POST"
        assert str(http_request.url) == "https://a.example/items?x=1"
        assert http_request.headers["X-A"] == "b"
        assert http_request.content == b"a=1"
        assert "content-type" not in http_request.headers


class TestRegistry:
    def test_builtin_builders(self):
        assert isinstance(get_request_builder("form"), FormRequestBuilder)
        assert isinstance(get_request_builder("json"), JsonRequestBuilder)

    def test_unknown_builder(self):
        with pytest.raises(ConfigError, match="nope"):
            get_request_builder("nope")

    def test_register_custom_builder(self):
        class UpperBuilder(FormRequestBuilder):
            pass

        register_request_builder("upper", UpperBuilder)
        assert isinstance(get_request_builder("upper"), UpperBuilder)
