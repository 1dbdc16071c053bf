# SPDX-License-Identifier: MIT

"""The listening side of the broker."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import parse_qs, urlparse

from .connection import ConnectionHandler
from .core.errors import NotReadyError
from .core.models import BrokerOptions

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter
    from types import TracebackType

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_URI = "kafka://127.0.0.1:9092"


def parse_uri(uri: str) -> BrokerOptions:
    """Parse a broker URI into options.

    Args:
        uri (str): A URI such as ``kafka://127.0.0.1:9092?backlog=50``.

    Raises:
        ValueError: If the scheme is not ``kafka`` or an option is malformed.

    Returns:
        BrokerOptions: The parsed options, with defaults for anything missing.
    """
    parsed = urlparse(uri)
    if parsed.scheme != "kafka":
        msg = f"Unsupported scheme {parsed.scheme!r}, expected 'kafka'"
        raise ValueError(msg)

    defaults = BrokerOptions()
    options = defaults._replace(
        host=parsed.hostname or defaults.host,
        # port 0 is meaningful, it asks the OS for a free port
        port=defaults.port if parsed.port is None else parsed.port,
    )

    query_string = parse_qs(parsed.query)
    backlog = query_string.get("backlog", None)
    if backlog is not None:
        options = options._replace(backlog=int(backlog[0]))

    return options


class Broker:
    """A TCP server answering every request with a bare response header."""

    def __init__(self, uri: str = DEFAULT_URI) -> None:
        """Create a new Broker instance.

        Args:
            uri (str, optional): Where to listen.
                Defaults to ``kafka://127.0.0.1:9092``.
        """
        self._options: BrokerOptions = parse_uri(uri)
        self.__server: asyncio.Server | None = None
        self._writers: set[StreamWriter] = set()

    def __repr__(self) -> str:
        return f"<Broker {self._options.host}:{self._options.port}>"

    def _fail_if_none(self, value: T | None) -> T:
        if value is None:
            raise NotReadyError(NotReadyError.msg)
        return value

    @property
    def _server(self) -> asyncio.Server:
        return self._fail_if_none(self.__server)

    @property
    def options(self) -> BrokerOptions:
        """Get the options the broker was created with.

        Returns:
            BrokerOptions: The options.
        """
        return self._options

    @property
    def port(self) -> int:
        """Get the port the broker is bound to.

        Returns:
            int: The bound port. Differs from the configured one when that was 0.
        """
        return self._server.sockets[0].getsockname()[1]

    async def _on_connection(self, reader: StreamReader, writer: StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        logger.info("Accepted new connection from %s", peer)
        self._writers.add(writer)

        try:
            await ConnectionHandler(reader, writer).run()
        except Exception:
            logger.exception("Unexpected error while handling %s", peer)
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                # The peer is already gone, nothing left to release
                logger.debug("Error while closing %s: %s", peer, e)

        logger.info("Closed connection from %s", peer)

    async def start(self) -> None:
        """Bind the listener and start accepting connections.

        Raises:
            OSError: If the address cannot be bound.
        """
        self.__server = await asyncio.start_server(
            self._on_connection,
            self._options.host,
            self._options.port,
            backlog=self._options.backlog,
        )
        logger.info("Listening on %s:%d", self._options.host, self.port)

    async def serve_forever(self) -> None:
        """Start the broker if needed and serve until cancelled."""
        if self.__server is None:
            await self.start()
        await self._server.serve_forever()

    async def close(self) -> None:
        """Stop accepting connections and drop the open ones."""
        if self.__server is None:
            return
        self.__server.close()
        for writer in list(self._writers):
            writer.close()
        await self.__server.wait_closed()
        self.__server = None

    async def __aenter__(self) -> Broker:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
