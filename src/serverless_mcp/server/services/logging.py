# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging capability service.

Handles ``logging/setLevel`` by adjusting the library logger and, when a
notifier is attached, bridges Python's logging system to
``notifications/message`` so clients see server-side log records at or above
the level they asked for.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
import logging
from typing import Any

from ... import types
from ...errors import InvalidParamsError
from ...utils import get_logger


_LOGGING_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}

LIBRARY_LOGGER = "serverless_mcp"

Notifier = Callable[[str, dict[str, Any]], Awaitable[None]]

_forwarding: ContextVar[bool] = ContextVar("serverless_mcp_log_forwarding", default=False)


class LoggingService:
    """Implements the logging provider contract.

    Records are only forwarded after a client has chosen a level with
    ``logging/setLevel``.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        notifier: Notifier | None = None,
        logger_name: str = LIBRARY_LOGGER,
    ) -> None:
        self._logger = logger or get_logger(f"{LIBRARY_LOGGER}.logging")
        self._target = logging.getLogger(logger_name)
        self._notifier = notifier
        self._threshold: int | None = None
        self._level: types.LoggingLevel | None = None
        self._handler = _NotificationHandler(self)
        if notifier is not None:
            self._install_handler()

    @property
    def level(self) -> types.LoggingLevel | None:
        return self._level

    def attach(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._install_handler()

    def detach(self) -> None:
        self._notifier = None
        self._target.removeHandler(self._handler)

    async def set_log_level(self, level: types.LoggingLevel) -> None:
        numeric = self._resolve(level)
        self._target.setLevel(numeric)
        self._threshold = numeric
        self._level = level
        self._logger.debug("Log level set to %s", level)

    async def emit(self, level: types.LoggingLevel, data: Any, logger_name: str | None = None) -> None:
        numeric = self._resolve(level)
        await self._broadcast(level, numeric, data, logger_name)

    async def handle_log_record(self, record: logging.LogRecord) -> None:
        data: dict[str, Any] = {"message": record.getMessage()}
        if record.exc_info:
            data["exception"] = logging.Formatter().formatException(record.exc_info)
        await self._broadcast(self._coerce_level_name(record.levelno), record.levelno, data, record.name)

    def _resolve(self, level: str) -> int:
        try:
            return _LOGGING_LEVEL_MAP[level]
        except KeyError as exc:
            raise InvalidParamsError(f"Unsupported logging level '{level}'") from exc

    def _coerce_level_name(self, numeric: int) -> types.LoggingLevel:
        if numeric >= logging.CRITICAL:
            return "critical"
        if numeric >= logging.ERROR:
            return "error"
        if numeric >= logging.WARNING:
            return "warning"
        if numeric >= logging.INFO:
            return "info"
        return "debug"

    def _install_handler(self) -> None:
        if self._handler not in self._target.handlers:
            self._target.addHandler(self._handler)

    async def _broadcast(self, level: types.LoggingLevel, numeric: int, data: Any, logger_name: str | None) -> None:
        if self._notifier is None or self._threshold is None or numeric < self._threshold:
            return
        params = types.LoggingMessageNotificationParams(level=level, data=data, logger=logger_name)
        token = _forwarding.set(True)
        try:
            await self._notifier("notifications/message", params.to_wire())
        except Exception as exc:
            self._logger.debug("Dropping log notification: %r", exc)
        finally:
            _forwarding.reset(token)


class _NotificationHandler(logging.Handler):
    def __init__(self, service: LoggingService) -> None:
        super().__init__(level=logging.NOTSET)
        self.service = service

    def emit(self, record: logging.LogRecord) -> None:
        # Records produced while forwarding would loop back through the notifier.
        if _forwarding.get():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(self.service.handle_log_record(record))


__all__ = ["LIBRARY_LOGGER", "LoggingService", "Notifier"]
