"""ApiMonitor: the health check entry point.

Loads the API description (or takes a target's pre-expanded calls), probes
every operation and reduces the outcomes to a CheckResult. ``check`` never
raises: any failure along the way becomes an unhealthy result.
"""

import logging
from collections.abc import Callable, Iterable, Iterator

import anyio
import httpx

from api_health_monitor.config import ApiCall, MonitorConfig, Target
from api_health_monitor.errors import ConfigError
from api_health_monitor.generator.base_url import resolve_base_url
from api_health_monitor.generator.request import RequestBuilder
from api_health_monitor.generator.transport import HttpRequestBuilder, ResolvedRequest, get_request_builder
from api_health_monitor.parser.swagger import load_schema
from api_health_monitor.notify import Notifier, notify_health_issue
from .aggregate import CheckResult, aggregate
from .probe import ProbeOutcome, ProbeRunner

logger = logging.getLogger(__name__)

SCHEMA_TARGET = "schema"


def _log_exception(exc: Exception) -> None:
    logger.error("API health check failed: %s", exc, exc_info=exc)


class ApiMonitor:
    """Runs API health checks for one MonitorConfig.

    ``transport`` is handed to the HTTP client, ``reporter`` receives every
    exception that turned a check unhealthy and ``notifier`` is told about
    unhealthy targets after ``check_targets`` when the config enables it.
    """

    def __init__(
        self,
        config: MonitorConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        reporter: Callable[[Exception], None] | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config
        self.transport = transport
        self.reporter = reporter or _log_exception
        self.notifier = notifier
        self.http_builder: HttpRequestBuilder = get_request_builder(config.request_builder)

    def check(self, target: Target | None = None) -> CheckResult:
        """Check a target's API calls, or the configured schema when target is None."""
        try:
            return anyio.run(self.acheck, target)
        except Exception as e:
            self._report(e)
            return CheckResult.from_exception(e)

    async def acheck(self, target: Target | None = None) -> CheckResult:
        try:
            outcomes = await self._probe(target)
        except Exception as e:
            self._report(e)
            return CheckResult.from_exception(e)

        result = aggregate(outcomes)
        if not result.healthy:
            logger.warning("API health check unhealthy:\n%s", result.message)
        return result

    def check_targets(self) -> dict[str, CheckResult]:
        """Check the configured schema (if any) and every configured target."""
        results = {}
        if self.config.schema_path is not None:
            results[SCHEMA_TARGET] = self.check()
        for target in self.config.targets:
            results[target.name] = self.check(target)

        if self.notifier is not None and self.config.notify:
            notify_health_issue(results, self.config.notifications.emails, self.notifier)
        return results

    def _report(self, exc: Exception) -> None:
        try:
            self.reporter(exc)
        except Exception:
            logger.exception("Reporter failed while handling: %s", exc)

    async def _probe(self, target: Target | None) -> list[ProbeOutcome]:
        if target is None and self.config.schema_path is None:
            raise ConfigError("Nothing to check: no schema_path and no target given")

        async with self._client() as client:
            runner = ProbeRunner(client, self.config.concurrency)
            if target is not None:
                return await runner.run(self._iter_api_calls(target.apis))

            description = load_schema(self.config.schema_path)
            base_url = resolve_base_url(description, self.config.serving_url)
            builder = RequestBuilder(
                include_optional=self.config.include_optional_parameters,
                http_builder=self.http_builder,
                strict=self.config.strict,
                form_content_type=self.config.form_content_type,
            )
            return await runner.probe_operations(description.operations, base_url, builder)

    def _iter_api_calls(self, calls: Iterable[ApiCall]) -> Iterator[ResolvedRequest]:
        for call in calls:
            yield self.http_builder.build(call.method, call.url, call.query, call.headers, call.body)

    def _client(self) -> httpx.AsyncClient:
        kwargs = {"transport": self.transport, "follow_redirects": True}
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        return httpx.AsyncClient(**kwargs)
