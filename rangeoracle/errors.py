"""
Error hierarchy for the range activation oracle.

Two classes of failure matter to the oracle:

- Retryable conflicts raised by transactional reads against the service.
  These are absorbed by the transactional retry loop and never surface.
- Invariant violations. These are fatal: they mean the tracked model and the
  service's observable behavior have diverged, and the run must end.
"""

from typing import Any


class RangeOracleError(Exception):
    """Base class for every error raised by rangeoracle."""


class InvariantViolation(RangeOracleError, AssertionError):
    """
    The service's observable state contradicts the oracle's expectation.

    Carries the violated condition as ``message`` and the ranges/values
    involved as ``context`` so a failing run identifies what diverged.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message

        details = ", ".join(
            f"{name}={value}" for name, value in self.context.items()
        )
        return f"{self.message} ({details})"

    def with_context(self, **kwargs: Any) -> 'InvariantViolation':
        self.context.update(kwargs)
        return self


class ConvergenceTimeout(InvariantViolation):
    """Polling for an expected verdict exceeded its deadline."""


class TransactionConflict(RangeOracleError):
    """A transactional read conflicted and should be retried."""


class ServiceError(RangeOracleError):
    """A non-retryable failure reported by the range service."""


def ensure(condition: bool, message: str, **context: Any) -> None:
    if not condition:
        raise InvariantViolation(message, **context)
