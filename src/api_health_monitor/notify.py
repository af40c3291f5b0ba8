"""Hand unhealthy check results over to a notifier."""

import logging
from typing import Protocol

from api_health_monitor.runner.aggregate import CheckResult

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, recipients: list[str], target_name: str, result: CheckResult) -> None: ...


def notify_health_issue(
    results: dict[str, CheckResult], recipients: list[str], notifier: Notifier
) -> int:
    """Notify recipients about every unhealthy target, return how many were sent.

    A failing notifier is logged and skipped so the remaining targets are
    still reported.
    """
    sent = 0
    for target_name, result in results.items():
        if result.healthy:
            continue
        try:
            notifier.send(recipients, target_name, result)
        except Exception:
            logger.exception("Failed to send health notification for target %s", target_name)
            continue
        sent += 1
    return sent


class LoggingNotifier:
    """Writes each health issue to the log, one warning per target."""

    def send(self, recipients: list[str], target_name: str, result: CheckResult) -> None:
        logger.warning(
            "Health issue in target %s (notify: %s):\n%s",
            target_name,
            ", ".join(recipients) or "nobody",
            result.message,
        )
