# SPDX-License-Identifier: MIT

from __future__ import annotations

from typing import NamedTuple


class RequestHeader(NamedTuple):
    message_size: int
    request_api_key: int
    request_api_version: int
    correlation_id: int
    client_id: str | None = None
    tag_buffer: tuple[str, ...] = ()


class ResponseHeader(NamedTuple):
    message_size: int
    correlation_id: int


class BrokerOptions(NamedTuple):
    host: str = "127.0.0.1"
    port: int = 9092
    backlog: int = 100
