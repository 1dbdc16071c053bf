# SPDX-License-Identifier: MIT

"""Encoding and decoding of request and response headers."""
from __future__ import annotations

import asyncio
import logging
import struct
from typing import TYPE_CHECKING

from .core.errors import ReadFailure, WriteFailure
from .core.models import RequestHeader, ResponseHeader

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)

# message_size, request_api_key, request_api_version, correlation_id
REQUEST_HEADER_FORMAT = ">iHHi"
# message_size, correlation_id
RESPONSE_HEADER_FORMAT = ">ii"

REQUEST_HEADER_SIZE = struct.calcsize(REQUEST_HEADER_FORMAT)
RESPONSE_HEADER_SIZE = struct.calcsize(RESPONSE_HEADER_FORMAT)


def decode_request_header(data: bytes) -> RequestHeader:
    """Decode the fixed-size prefix of a request.

    Args:
        data (bytes): Exactly ``REQUEST_HEADER_SIZE`` bytes.

    Raises:
        ReadFailure: If ``data`` is not exactly the header size.

    Returns:
        RequestHeader: The decoded header. ``client_id`` and ``tag_buffer``
            are left at their defaults.
    """
    if len(data) != REQUEST_HEADER_SIZE:
        msg = f"Expected {REQUEST_HEADER_SIZE} header bytes, got {len(data)}"
        raise ReadFailure(msg, partial=bytes(data))

    return RequestHeader(*struct.unpack(REQUEST_HEADER_FORMAT, data))


def encode_response_header(header: ResponseHeader) -> bytes:
    """Encode a response header.

    Args:
        header (ResponseHeader): The header to encode.

    Returns:
        bytes: ``message_size`` followed by ``correlation_id``, big-endian.
    """
    return struct.pack(RESPONSE_HEADER_FORMAT, *header)


async def read_request_header(reader: StreamReader) -> RequestHeader:
    """Read and decode exactly one request header from a stream.

    Anything following the header on the wire is left in the reader.

    Args:
        reader (StreamReader): The reader to read from.

    Raises:
        ReadFailure: If the stream ends or fails before the header is complete.

    Returns:
        RequestHeader: The decoded header.
    """
    try:
        data = await reader.readexactly(REQUEST_HEADER_SIZE)
    except asyncio.IncompleteReadError as e:
        msg = (
            f"Stream ended after {len(e.partial)} of "
            f"{REQUEST_HEADER_SIZE} header bytes"
        )
        raise ReadFailure(msg, partial=e.partial, eof=True) from e
    except OSError as e:
        msg = f"Failed to read from stream: {e}"
        raise ReadFailure(msg) from e

    logger.debug("< %s", data.hex())
    return decode_request_header(data)


async def write_response_header(writer: StreamWriter, header: ResponseHeader) -> None:
    """Write a response header to a stream and wait for it to be flushed.

    Args:
        writer (StreamWriter): The writer to write to.
        header (ResponseHeader): The header to send.

    Raises:
        WriteFailure: If the stream rejects the write or the flush.
    """
    data = encode_response_header(header)
    logger.debug("> %s", data.hex())

    try:
        writer.write(data)
        await writer.drain()
    except OSError as e:
        msg = f"Failed to write to stream: {e}"
        raise WriteFailure(msg) from e
