"""Packaging failure contracts.

Loaders and writers raise ``PackagingError`` on expected failures (bad
config, unreadable files). The migration and packaging core never raises
these; it is total over well-formed input. Programmer bugs raise normal
exceptions.
"""

from __future__ import annotations

from typing import Literal

PackagingFailureCode = Literal[
    "validation_failed",
    "io_failed",
]


class PackagingError(Exception):
    """Expected packaging failure with a stable code.

    Use ``raise ConfigInvalidError(...) from exc`` to chain the causing
    exception; it is available as ``__cause__``.
    """

    def __init__(
        self,
        code: PackagingFailureCode,
        message: str,
        *,
        recovery_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.recovery_hint = recovery_hint


class ConfigInvalidError(PackagingError):
    """Configuration or input payload failed validation."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("validation_failed", message, recovery_hint=recovery_hint)


class IoFailedError(PackagingError):
    """Reading or writing a file failed."""

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__("io_failed", message, recovery_hint=recovery_hint)
