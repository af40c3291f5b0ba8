from pathlib import Path
from unittest.mock import MagicMock

import anyio
import httpx
import pytest

from api_health_monitor.config import ApiCall, MonitorConfig, Target, load_config
from api_health_monitor.errors import ConfigError, UnsupportedBodyLocationError
from api_health_monitor.runner.checker import ApiMonitor

FIXTURES = Path(__file__).parent / "fixtures"


def _monitor(handler, reporter=None, **config) -> ApiMonitor:
    config.setdefault("serving_url", "http://localhost")
    return ApiMonitor(
        MonitorConfig(**config),
        transport=httpx.MockTransport(handler),
        reporter=reporter or MagicMock(),
    )


class TestSchemaCheck:
    def test_all_healthy(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            return httpx.Response(200)

        result = _monitor(handler, schema_path=FIXTURES / "users.json").check()
        assert result.healthy is True
        assert result.message == ""
        assert sorted(seen) == [
            ("DELETE", "https://api.example.com/v1/users/42"),
            ("GET", "https://api.example.com/v1/users"),
            ("GET", "https://api.example.com/v1/users/42"),
            ("POST", "https://api.example.com/v1/users"),
        ]

    def test_request_details(self):
        seen = {}

        def handler(request):
            seen[(request.method, request.url.path)] = request
            return httpx.Response(200)

        _monitor(handler, schema_path=FIXTURES / "users.json", include_optional_parameters=True).check()
        assert seen[("GET", "/v1/users")].url.query == b"limit=10"
        assert seen[("GET", "/v1/users/42")].headers["X-Request-Id"] == "probe"
        create = seen[("POST", "/v1/users")]
        assert create.content == b"name=Ada&email=ada%40example.com"
        assert create.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_failures_reported_per_request(self):
        def handler(request):
            return httpx.Response(500 if request.method == "DELETE" else 200)

        result = _monitor(handler, schema_path=FIXTURES / "users.json").check()
        assert result.healthy is False
        assert result.message == "Api URL: https://api.example.com/v1/users/42, error: Internal Server Error"

    def test_serving_url_used_without_host(self, tmp_path):
        schema = tmp_path / "api.yaml"
        schema.write_text("paths:\n  /a:\n    get: {}\n  /b:\n    get: {}\n")
        seen = set()

        def handler(request):
            seen.add((request.url.scheme, request.url.host, request.url.port))
            return httpx.Response(200)

        monitor = _monitor(handler, schema_path=schema, serving_url="http://svc.local:8080")
        assert monitor.check().healthy is True
        assert seen == {("http", "svc.local", 8080)}

    def test_fatal_error_becomes_result(self):
        reporter = MagicMock()
        result = _monitor(lambda r: httpx.Response(200), reporter, schema_path=FIXTURES / "petstore.yaml").check()
        assert result.healthy is False
        assert "Parameters in body not supported" in result.message
        reporter.assert_called_once()
        assert isinstance(reporter.call_args.args[0], UnsupportedBodyLocationError)

    def test_missing_schema(self, tmp_path):
        result = _monitor(lambda r: httpx.Response(200), schema_path=tmp_path / "nope.json").check()
        assert result.healthy is False
        assert result.message.startswith("File not found at:")

    def test_nothing_to_check(self):
        result = _monitor(lambda r: httpx.Response(200)).check()
        assert result.healthy is False
        assert "Nothing to check" in result.message

    def test_acheck(self):
        monitor = _monitor(lambda r: httpx.Response(204), schema_path=FIXTURES / "users.json")
        result = anyio.run(monitor.acheck)
        assert result.healthy is True


class TestTargetCheck:
    def test_pre_expanded_calls(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url), request.content))
            return httpx.Response(200)

        config = load_config(FIXTURES / "monitor.yaml")
        monitor = ApiMonitor(config, transport=httpx.MockTransport(handler))
        result = monitor.check(config.targets[0])
        assert result.healthy is True
        assert sorted(seen) == [
            ("GET", "https://api.example.com/users/42?verbose=true", b""),
            ("POST", "https://api.example.com/users", b"name=Ada"),
        ]

    def test_five_calls_two_failures(self):
        target = Target(apis=[ApiCall(url=f"https://api.example.com/{i}") for i in range(5)])

        def handler(request):
            if request.url.path == "/1":
                return httpx.Response(404)
            if request.url.path == "/3":
                raise httpx.ConnectTimeout("timed out", request=request)
            return httpx.Response(200)

        result = _monitor(handler).check(target)
        assert result.healthy is False
        lines = sorted(result.message.splitlines())
        assert lines == [
            "Api URL: https://api.example.com/1, error: Not Found",
            "Api URL: https://api.example.com/3, error: No response (timed out)",
        ]

    def test_check_targets(self):
        def handler(request):
            return httpx.Response(503 if request.url.host == "admin.example.com" else 200)

        config = load_config(FIXTURES / "monitor.yaml")
        results = ApiMonitor(config, transport=httpx.MockTransport(handler)).check_targets()
        assert list(results) == ["default", "admin"]
        assert results["default"].healthy is True
        assert results["admin"].healthy is False

    def test_check_targets_includes_schema(self):
        config = MonitorConfig(
            serving_url="http://localhost",
            schema_path=FIXTURES / "users.json",
            targets=[Target(name="extra", apis=[ApiCall(url="https://api.example.com/health")])],
        )
        results = ApiMonitor(config, transport=httpx.MockTransport(lambda r: httpx.Response(200))).check_targets()
        assert list(results) == ["schema", "extra"]


class TestConstruction:
    def test_unknown_request_builder(self):
        with pytest.raises(ConfigError):
            ApiMonitor(MonitorConfig(request_builder="nope"))

    def test_json_request_builder(self):
        seen = []

        def handler(request):
            seen.append((request.content, request.headers.get("Content-Type")))
            return httpx.Response(200)

        target = Target(apis=[ApiCall(url="https://api.example.com/items", method="POST", body={"a": 1})])
        _monitor(handler, request_builder="json").check(target)
        assert seen == [(b'{"a": 1}', "application/json")]


class TestReporting:
    def test_failing_reporter_does_not_escape(self):
        reporter = MagicMock(side_effect=RuntimeError("collector down"))
        result = _monitor(lambda r: httpx.Response(200), reporter, schema_path=FIXTURES / "petstore.yaml").check()
        assert result.healthy is False
        assert "Parameters in body not supported" in result.message
        reporter.assert_called_once()

    def test_notifier_told_about_unhealthy_targets(self):
        def handler(request):
            return httpx.Response(503 if request.url.host == "admin.example.com" else 200)

        config = load_config(FIXTURES / "monitor.yaml")
        config.notifications.emails = ["ops@example.com"]
        notifier = MagicMock()
        results = ApiMonitor(config, transport=httpx.MockTransport(handler), notifier=notifier).check_targets()

        notifier.send.assert_called_once_with(["ops@example.com"], "admin", results["admin"])

    def test_notifier_skipped_when_notify_disabled(self):
        config = load_config(FIXTURES / "monitor.yaml")
        config.notify = False
        notifier = MagicMock()
        ApiMonitor(config, transport=httpx.MockTransport(lambda r: httpx.Response(500)), notifier=notifier).check_targets()

        notifier.send.assert_not_called()
