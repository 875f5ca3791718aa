# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared ASGI transport primitives.

Concrete subclasses supply the route table while this base class assembles
the Starlette application, applies the CORS policy, and runs the result under
uvicorn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from uvicorn import Config, Server

from ...shared.transport import DEFAULT_MAX_MESSAGE_SIZE
from ._exchange import CORSConfig, ExchangeTransport


if TYPE_CHECKING:
    from starlette.routing import BaseRoute

    from ..core import MCPServer


@dataclass(slots=True)
class ASGIRunConfig:
    """Runtime options passed straight to uvicorn."""

    host: str = "127.0.0.1"
    port: int = 8000
    path: str = "/mcp"
    log_level: str = "info"
    uvicorn_options: dict[str, Any] = field(default_factory=dict)


class ASGITransportBase(ExchangeTransport, ABC):
    """Template for transports that present an :class:`MCPServer` via ASGI."""

    DEFAULT_HOST: str = "127.0.0.1"
    DEFAULT_PORT: int = 8000
    DEFAULT_PATH: str = "/mcp"
    DEFAULT_LOG_LEVEL: str = "info"

    def __init__(
        self,
        server: MCPServer,
        *,
        cors: CORSConfig | None = None,
        max_message_size: int | None = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        super().__init__(server, max_message_size=max_message_size)
        self._cors = cors or CORSConfig()

    @property
    def cors(self) -> CORSConfig:
        return self._cors

    def app(self, path: str | None = None) -> Starlette:
        """Build the Starlette application serving this transport at *path*.

        The server session is bound here so the app can also be mounted under
        an external ASGI server.
        """
        self.ensure_session()
        routes = list(self._build_routes(path=path or self.DEFAULT_PATH))
        middleware = [
            Middleware(
                CORSMiddleware,
                allow_origins=list(self._cors.allow_origins),
                allow_methods=list(self._cors.allow_methods),
                allow_headers=list(self._cors.allow_headers),
                allow_credentials=self._cors.allow_credentials,
                max_age=self._cors.max_age,
            )
        ]
        return Starlette(routes=routes, middleware=middleware, lifespan=self._lifespan)

    @asynccontextmanager
    async def _lifespan(self, _app: Starlette) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await self.close_session()

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        path: str | None = None,
        log_level: str | None = None,
        config: ASGIRunConfig | None = None,
        **uvicorn_options: Any,
    ) -> None:
        if config is not None:
            host = host or config.host
            port = port or config.port
            path = path or config.path
            log_level = log_level or config.log_level
            uvicorn_options = {**config.uvicorn_options, **uvicorn_options}

        host = host or self.DEFAULT_HOST
        port = port or self.DEFAULT_PORT
        path = path or self.DEFAULT_PATH
        log_level = log_level or self.DEFAULT_LOG_LEVEL

        self.ensure_session()

        await self._serve(host, port, path, log_level, uvicorn_options)

    async def _serve(self, host: str, port: int, path: str, log_level: str, uvicorn_options: dict[str, Any]) -> None:
        config = Config(app=self.app(path), host=host, port=port, log_level=log_level, **uvicorn_options)
        server_instance = Server(config)
        self._logger.info("Listening on http://%s:%s%s", host, port, path)
        await server_instance.serve()

    @abstractmethod
    def _build_routes(self, *, path: str) -> Iterable[BaseRoute]: ...


__all__ = ["ASGIRunConfig", "ASGITransportBase"]
