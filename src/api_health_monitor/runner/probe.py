"""Concurrent probe execution with a bounded worker pool."""

import logging
from collections.abc import Iterable

import anyio
import httpx
from pydantic import BaseModel

from api_health_monitor.config import DEFAULT_CONCURRENCY
from api_health_monitor.generator.request import RequestBuilder
from api_health_monitor.generator.transport import ResolvedRequest
from api_health_monitor.parser.base import Operation

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response"


class ProbeOutcome(BaseModel):
    """Success or failure of a single probe."""

    url: str
    succeeded: bool
    reason: str = ""
    status_code: int | None = None

    @classmethod
    def success(cls, url: str, status_code: int) -> "ProbeOutcome":
        return cls(url=url, succeeded=True, status_code=status_code)

    @classmethod
    def failure(cls, url: str, reason: str, status_code: int | None = None) -> "ProbeOutcome":
        return cls(url=url, succeeded=False, reason=reason, status_code=status_code)


class ProbeRunner:
    """Dispatches requests with at most ``concurrency`` of them in flight.

    Requests are pulled from the iterable one at a time by the workers, so
    a lazy generator is never materialized. Every request is attempted;
    a failed probe never stops the others.
    """

    def __init__(self, client: httpx.AsyncClient, concurrency: int = DEFAULT_CONCURRENCY):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.client = client
        self.concurrency = concurrency

    async def probe_operations(
        self, operations: Iterable[Operation], base_url: str, builder: RequestBuilder
    ) -> list[ProbeOutcome]:
        return await self.run(builder.iter_requests(base_url, operations))

    async def run(self, requests: Iterable[ResolvedRequest]) -> list[ProbeOutcome]:
        """Probe every request and return outcomes in completion order.

        An exception raised while producing the next request (a schema or
        parameter error) cancels the batch and is re-raised.
        """
        pending = iter(requests)
        outcomes: list[ProbeOutcome] = []
        fatal: list[Exception] = []

        async def worker(cancel_scope: anyio.CancelScope) -> None:
            while True:
                try:
                    request = next(pending)
                except StopIteration:
                    return
                except Exception as e:
                    fatal.append(e)
                    cancel_scope.cancel()
                    return
                # workers share one event loop thread, plain append is safe
                outcomes.append(await self.probe(request))

        async with anyio.create_task_group() as tg:
            for _ in range(self.concurrency):
                tg.start_soon(worker, tg.cancel_scope)

        if fatal:
            raise fatal[0]
        return outcomes

    async def probe(self, request: ResolvedRequest) -> ProbeOutcome:
        try:
            http_request = request.to_httpx()
        except (httpx.InvalidURL, ValueError) as e:
            # e.g. a header value that is not ASCII-encodable
            logger.debug("Probe %s %s cannot be sent: %s", request.method, request.url, e)
            return ProbeOutcome.failure(request.url, f"Invalid request ({e})")

        try:
            response = await self.client.send(http_request)
        except httpx.HTTPError as e:
            logger.debug("Probe %s %s got no response: %s", request.method, request.url, e)
            detail = str(e)
            return ProbeOutcome.failure(request.url, f"{NO_RESPONSE} ({detail})" if detail else NO_RESPONSE)

        if response.is_error:
            logger.debug("Probe %s %s failed with %d", request.method, request.url, response.status_code)
            reason = response.reason_phrase or str(response.status_code)
            return ProbeOutcome.failure(request.url, reason, response.status_code)

        return ProbeOutcome.success(request.url, response.status_code)
