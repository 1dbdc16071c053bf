# SPDX-License-Identifier: MIT

"""Handling of a single client connection."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .codec import read_request_header, write_response_header
from .core.errors import ReadFailure, WriteFailure
from .core.models import RequestHeader, ResponseHeader
from .core.typings import ApiKey, ConnectionState

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)


class PeerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Prefix log records with the address of the peer."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        return f"[{self.extra['peer']}] {msg}", kwargs  # type: ignore[index]


def make_response(request: RequestHeader) -> ResponseHeader:
    """Build the response header for a request.

    Args:
        request (RequestHeader): The decoded request.

    Returns:
        ResponseHeader: A header echoing the request's correlation id.
    """
    # TODO: compute the real size once response bodies are encoded
    return ResponseHeader(message_size=0, correlation_id=request.correlation_id)


class ConnectionHandler:
    """Runs the request/response loop of one accepted connection.

    Requests are handled strictly one after another. The first read or write
    failure ends the loop; the stream itself is left for the caller to close.
    """

    def __init__(
        self,
        reader: StreamReader,
        writer: StreamWriter,
        *,
        log: logging.Logger | logging.LoggerAdapter[Any] | None = None,
    ) -> None:
        """Create a new ConnectionHandler instance.

        Args:
            reader (StreamReader): The reader of the connection.
            writer (StreamWriter): The writer of the connection.
            log (logging.Logger | logging.LoggerAdapter | None, optional): Where
                diagnostics are sent. Defaults to the module logger tagged
                with the peer address.
        """
        self._reader = reader
        self._writer = writer
        if log is None:
            log = PeerAdapter(logger, {"peer": writer.get_extra_info("peername")})
        self._log = log
        self.state = ConnectionState.AWAITING_REQUEST
        self.requests_handled = 0

    def __repr__(self) -> str:
        return (
            f"<ConnectionHandler state={self.state.name} "
            f"handled={self.requests_handled}>"
        )

    async def _await_request(self) -> RequestHeader | None:
        try:
            request = await read_request_header(self._reader)
        except ReadFailure as e:
            if e.clean_close:
                self._log.info("Peer closed the connection")
            elif e.partial:
                self._log.warning(
                    "Could not parse request: %s (received %s)", e, e.partial.hex()
                )
            else:
                self._log.warning("Could not parse request: %s", e)
            self.state = ConnectionState.CLOSED
            return None

        self.state = ConnectionState.PROCESSING
        return request

    async def _process(self, request: RequestHeader) -> None:
        self._log.info(
            "Received %s v%d request with correlation ID: %d",
            ApiKey.describe(request.request_api_key),
            request.request_api_version,
            request.correlation_id,
        )

        try:
            await write_response_header(self._writer, make_response(request))
        except WriteFailure as e:
            self._log.warning("Could not send response: %s", e)
            self.state = ConnectionState.CLOSED
            return

        self.requests_handled += 1
        self.state = ConnectionState.AWAITING_REQUEST

    async def run(self) -> None:
        """Handle requests until the stream ends or fails."""
        while self.state is not ConnectionState.CLOSED:
            request = await self._await_request()
            if request is not None:
                await self._process(request)

        self._log.debug("Handled %d request(s)", self.requests_handled)
