"""Structured terminal logging for workerpack commands."""

from __future__ import annotations

import os
import sys
from enum import IntEnum

from rich.console import Console
from rich.text import Text


class LogLevel(IntEnum):
    TRACE = 10
    DEBUG = 20
    INFO = 30
    SUCCESS = 35
    WARNING = 40
    ERROR = 50


LOG_LEVEL_NAMES = ("trace", "debug", "info", "success", "warning", "error")

_LEVEL_BY_NAME = {
    "trace": LogLevel.TRACE,
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "success": LogLevel.SUCCESS,
    "warning": LogLevel.WARNING,
    "warn": LogLevel.WARNING,
    "error": LogLevel.ERROR,
}
_DEFAULT_LEVEL = LogLevel.INFO
_configured_level = None
_no_color_override = None


def _normalize_level(value: str | None) -> LogLevel:
    if value is None:
        return _DEFAULT_LEVEL
    normalized = value.strip().lower()
    if not normalized:
        return _DEFAULT_LEVEL
    return _LEVEL_BY_NAME.get(normalized, _DEFAULT_LEVEL)


def configured_level() -> LogLevel:
    global _configured_level
    if _configured_level is None:
        _configured_level = _normalize_level(os.environ.get("WORKERPACK_LOG_LEVEL"))
    return _configured_level


def set_level(value: str | None) -> None:
    """Set the active log level."""
    global _configured_level
    _configured_level = _normalize_level(value)


def set_no_color(value: bool | None) -> None:
    """Force colors off (``True``) or defer to the environment (``None``)."""
    global _no_color_override
    _no_color_override = value


def is_enabled(level: LogLevel) -> bool:
    return level >= configured_level()


def _no_color() -> bool:
    if _no_color_override is not None:
        return _no_color_override
    return bool(os.environ.get("NO_COLOR") or os.environ.get("WORKERPACK_NO_COLOR"))


def _console(*, stderr: bool) -> Console:
    return Console(
        file=sys.stderr if stderr else sys.stdout,
        soft_wrap=True,
        highlight=False,
        no_color=_no_color(),
    )


def _default_style(level: LogLevel) -> str:
    if level is LogLevel.TRACE:
        return "dim"
    if level is LogLevel.DEBUG:
        return "cyan"
    if level is LogLevel.SUCCESS:
        return "green"
    if level is LogLevel.WARNING:
        return "yellow"
    if level is LogLevel.ERROR:
        return "bold red"
    return ""


def format_fields(fields: dict[str, object]) -> str:
    """Render event fields as ``key=value`` pairs in insertion order.

    Example:
        >>> format_fields({"script_name": "api", "asset_count": 3})
        'script_name=api asset_count=3'
        >>> format_fields({"label": "two words"})
        "label='two words'"
    """
    parts: list[str] = []
    for key, value in fields.items():
        rendered = str(value)
        if not rendered or any(ch.isspace() for ch in rendered):
            rendered = repr(rendered)
        parts.append(f"{key}={rendered}")
    return " ".join(parts)


def emit(
    level: LogLevel,
    message: str,
    *,
    style: str | None = None,
    stderr: bool | None = None,
    fields: dict[str, object] | None = None,
) -> None:
    if not is_enabled(level):
        return
    target_stderr = stderr if stderr is not None else level >= LogLevel.WARNING
    text = Text(message, style=style or _default_style(level))
    if fields:
        text.append(" ")
        text.append(format_fields(fields), style="dim")
    _console(stderr=target_stderr).print(text)


def trace(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.TRACE, message, style=style, stderr=False, fields=fields)


def debug(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.DEBUG, message, style=style, stderr=False, fields=fields)


def info(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.INFO, message, style=style, stderr=False, fields=fields)


def success(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.SUCCESS, message, style=style, stderr=False, fields=fields)


def warning(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.WARNING, message, style=style, stderr=True, fields=fields)


def error(message: str, *, style: str | None = None, **fields: object) -> None:
    emit(LogLevel.ERROR, message, style=style, stderr=True, fields=fields)
