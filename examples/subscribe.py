# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Register one channel and print notifications until interrupted.

    python examples/subscribe.py ws://localhost:7777/simplepush
"""

from __future__ import annotations

import sys

import anyio

from simplepush import TransportFault, Update, open_connection
from simplepush.utils import get_logger, setup_logger


async def main(url: str) -> None:
    setup_logger(level="DEBUG")
    log = get_logger("simplepush.example")
    failed = anyio.Event()

    def on_registered(channel_id: str, endpoint: str | None) -> None:
        log.info("channel %s -> %s", channel_id, endpoint)

    def on_message(update: Update) -> None:
        log.info("channel %s is now at version %d", update.channel_id, update.version)

    def on_error(fault: TransportFault) -> None:
        log.error("giving up: %s", fault.__cause__)
        failed.set()

    async with open_connection(url, on_message=on_message, on_error=on_error) as client:
        await client.register(on_registered)
        await failed.wait()


if __name__ == "__main__":
    anyio.run(main, sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:7777/simplepush")
