# SPDX-License-Identifier: MIT

"""akafka - A natively async Kafka wire protocol broker for Python."""

__all__ = ("Broker", "ConnectionHandler")

from .broker import Broker
from .connection import ConnectionHandler
