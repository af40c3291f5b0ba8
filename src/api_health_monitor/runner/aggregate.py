"""Reduce probe outcomes into a single verdict."""

from collections.abc import Iterable

from pydantic import BaseModel

from .probe import ProbeOutcome


class CheckResult(BaseModel):
    healthy: bool
    message: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "CheckResult":
        return cls(healthy=False, message=str(exc) or type(exc).__name__)


def format_failure(outcome: ProbeOutcome) -> str:
    return f"Api URL: {outcome.url}, error: {outcome.reason}"


def aggregate(outcomes: Iterable[ProbeOutcome]) -> CheckResult:
    """Healthy iff nothing failed; one message line per failure, in the given order."""
    lines = [format_failure(outcome) for outcome in outcomes if not outcome.succeeded]
    return CheckResult(healthy=not lines, message="\n".join(lines))
