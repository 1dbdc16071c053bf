# SPDX-License-Identifier: MIT
from __future__ import annotations

from enum import Enum, IntEnum


class ApiKey(IntEnum):
    PRODUCE = 0
    FETCH = 1
    LIST_OFFSETS = 2
    METADATA = 3
    OFFSET_COMMIT = 8
    OFFSET_FETCH = 9
    FIND_COORDINATOR = 10
    JOIN_GROUP = 11
    HEARTBEAT = 12
    LEAVE_GROUP = 13
    SYNC_GROUP = 14
    DESCRIBE_GROUPS = 15
    LIST_GROUPS = 16
    SASL_HANDSHAKE = 17
    API_VERSIONS = 18
    CREATE_TOPICS = 19
    DELETE_TOPICS = 20
    DESCRIBE_TOPIC_PARTITIONS = 75

    @classmethod
    def describe(cls, value: int) -> str:
        """Get a readable name for an API key.

        Args:
            value (int): The raw API key from the wire.

        Returns:
            str: The enum name, or the number itself if the key is unknown.
        """
        try:
            return cls(value).name
        except ValueError:
            return str(value)


class ConnectionState(Enum):
    AWAITING_REQUEST = "awaiting_request"
    PROCESSING = "processing"
    CLOSED = "closed"
