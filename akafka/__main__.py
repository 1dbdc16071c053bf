# SPDX-License-Identifier: MIT

"""Run a broker from the command line."""
from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

from .broker import DEFAULT_URI, Broker

logger = logging.getLogger("akafka")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line.

    Args:
        argv (list[str] | None, optional): The arguments to parse.
            Uses ``sys.argv`` if None.

    Returns:
        argparse.Namespace: The parsed ``uri`` and ``log_level``.
    """
    parser = argparse.ArgumentParser(
        prog="akafka", description="Serve the Kafka wire protocol."
    )
    parser.add_argument(
        "--uri", default=DEFAULT_URI, help=f"where to listen (default: {DEFAULT_URI})"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="logging verbosity (default: INFO)",
    )
    return parser.parse_args(argv)


async def main(uri: str) -> None:
    """Serve until cancelled, then close the broker.

    Args:
        uri (str): Where to listen.
    """
    broker = Broker(uri)
    try:
        await broker.serve_forever()
    finally:
        await broker.close()


def run(argv: list[str] | None = None) -> None:
    """Configure logging and run a broker until interrupted.

    Args:
        argv (list[str] | None, optional): The command line arguments.
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    logger.info("Logs from your program will appear here!")

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main(args.uri))


if __name__ == "__main__":
    run()
