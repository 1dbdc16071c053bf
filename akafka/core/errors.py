# SPDX-License-Identifier: MIT

"""Errors raised by akafka."""

from __future__ import annotations


class FramingError(Exception):
    """Base class for errors that end a single connection."""


class ReadFailure(FramingError):  # noqa: N818
    """Raised when the stream cannot supply a full request header."""

    def __init__(self, msg: str, *, partial: bytes = b"", eof: bool = False) -> None:
        """Create a new ReadFailure instance.

        Args:
            msg (str): The error message.
            partial (bytes, optional): Bytes received before the stream ended.
            eof (bool, optional): Whether the stream ended rather than failed.
        """
        super().__init__(msg)
        self.partial = partial
        self.eof = eof

    @property
    def clean_close(self) -> bool:
        """Whether the peer closed between two requests.

        Returns:
            bool: True if the stream ended before any header byte arrived.
        """
        return self.eof and not self.partial


class WriteFailure(FramingError):  # noqa: N818
    """Raised when the stream rejects the response bytes or the flush."""


class NotReadyError(Exception):
    """Exception raised when the broker has not been started."""

    msg = "Broker not started. Did you forget to call `start()`?"
