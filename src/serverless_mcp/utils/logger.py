# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging setup for serverless-mcp.

Everything logs through the standard :mod:`logging` tree under the
``serverless_mcp`` namespace.  :func:`setup_logger` attaches a single managed
stream handler to the root logger with either coloured text or structured
JSON output (serialised with ``orjson``).  Lambda and other log-shipping
environments usually want ``SERVERLESS_MCP_LOG_JSON=1``.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import os
from typing import Any, ClassVar, Final

import orjson


RESET: Final[str] = "\033[0m"
DEBUG_COLOR: Final[str] = "\033[36m"
INFO_COLOR: Final[str] = "\033[32m"
WARNING_COLOR: Final[str] = "\033[33m"
ERROR_COLOR: Final[str] = "\033[1;31m"
CRITICAL_COLOR: Final[str] = "\033[1;35m"
LOGGER_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "serverless_mcp"
ENV_LOG_LEVEL: Final[str] = "SERVERLESS_MCP_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "SERVERLESS_MCP_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]
PayloadTransformer = Callable[[dict[str, Any]], dict[str, Any]]

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "context", "taskName"}


class ColoredFormatter(logging.Formatter):
    """Text formatter that colours the level name and logger name."""

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": DEBUG_COLOR,
        "INFO": INFO_COLOR,
        "WARNING": WARNING_COLOR,
        "ERROR": ERROR_COLOR,
        "CRITICAL": CRITICAL_COLOR,
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname, name = record.levelname, record.name
        record.levelname = f"{self.LEVEL_COLORS.get(levelname, '')}{levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = levelname, name


class MCPLogHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marker handler so :func:`setup_logger` can find what it installed."""


class StructuredJSONFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Values passed through ``extra={"context": {...}}`` are merged into a
    ``context`` object together with any other non-standard record attributes.
    """

    def __init__(
        self,
        serializer: JsonSerializer | None = None,
        *,
        datefmt: str | None = None,
        payload_transformer: PayloadTransformer | None = None,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer or _orjson_serializer
        self._transformer = payload_transformer

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context: dict[str, Any] = {}
        supplied = record.__dict__.get("context")
        if isinstance(supplied, dict):
            context.update(supplied)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                context.setdefault(key, value)
        if context:
            payload["context"] = context

        if self._transformer is not None:
            payload = self._transformer(payload)
        return self._serializer(payload)


def _orjson_serializer(payload: dict[str, Any]) -> str:
    return orjson.dumps(payload, default=str).decode()


def _env_flag(key: str) -> bool:
    value = os.getenv(key)
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _managed_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in root.handlers if isinstance(handler, MCPLogHandler)]


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    payload_transformer: PayloadTransformer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Install the managed handler on the root logger.

    Args:
        level: Log level; falls back to ``SERVERLESS_MCP_LOG_LEVEL`` and then
            ``INFO``.
        use_json: Emit JSON lines; falls back to ``SERVERLESS_MCP_LOG_JSON``.
        use_color: Colour text output; off when ``NO_COLOR`` is set or JSON is
            enabled.
        json_serializer: Replacement for the default ``orjson`` serializer.
        payload_transformer: Hook applied to each JSON payload before
            serialisation.
        fmt: Text format string.
        datefmt: Timestamp format.
        force: Replace a previously installed handler.
    """
    root = logging.getLogger()
    existing = _managed_handlers(root)
    if existing and not force:
        return
    for handler in existing:
        root.removeHandler(handler)
        handler.close()

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    as_json = use_json if use_json is not None else _env_flag(ENV_LOG_JSON)
    if use_color is None:
        use_color = not as_json and not os.getenv(ENV_NO_COLOR)

    formatter: logging.Formatter
    if as_json:
        formatter = StructuredJSONFormatter(json_serializer, datefmt=datefmt, payload_transformer=payload_transformer)
    elif use_color:
        formatter = ColoredFormatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)
    else:
        formatter = logging.Formatter(fmt or DEFAULT_FORMAT, datefmt=datefmt)

    handler = MCPLogHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, installing the default handler on first use."""
    if not _managed_handlers(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "MCPLogHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
