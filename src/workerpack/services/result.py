"""Common service result contracts for packaging entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from ..errors import PackagingError, PackagingFailureCode

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceSuccess(Generic[T]):
    """Container for successful service outcomes.

    Args:
        outcome: Typed outcome payload returned by a service.
    """

    outcome: T


@dataclass(frozen=True)
class ServiceFailure:
    """Deterministic failure result for expected service errors.

    Args:
        code: Stable failure code for callers and tests.
        message: Human-readable failure summary.
        recovery_hint: Optional actionable hint for recovery.
    """

    code: PackagingFailureCode
    message: str
    recovery_hint: str | None = None


ServiceResult = ServiceSuccess[T] | ServiceFailure


def service_success(outcome: T) -> ServiceSuccess[T]:
    return ServiceSuccess(outcome=outcome)


def service_failure(
    *,
    code: PackagingFailureCode,
    message: str,
    recovery_hint: str | None = None,
) -> ServiceFailure:
    return ServiceFailure(code=code, message=message, recovery_hint=recovery_hint)


def failure_from_error(error: PackagingError) -> ServiceFailure:
    """Map a raised packaging error onto its failure result."""
    return service_failure(
        code=error.code,
        message=str(error),
        recovery_hint=error.recovery_hint,
    )
