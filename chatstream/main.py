"""
Command-line entry point: stream one chat reply to stdout.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from chatstream.chat.client import StreamChatClient
from chatstream.chat.models import ChatRequest
from chatstream.chat.streaming.models import StreamEventType, StreamHandlers
from chatstream.config import Configuration


def configure_logging(config: Configuration) -> None:
    """Apply the configured log level to the stdlib root logger."""
    level_name = str(config.get_logging_config().get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


async def run_chat(message: str, config: Configuration | None = None) -> int:
    """Stream the reply to ``message``; return a process exit code."""
    config = config or Configuration()
    configure_logging(config)

    cancel_event = asyncio.Event()

    def signal_handler() -> None:
        """Cancel the in-flight stream on SIGINT/SIGTERM."""
        logging.info("Received shutdown signal, cancelling stream...")
        cancel_event.set()

    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    def on_token(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def on_done() -> None:
        sys.stdout.write("\n")
        sys.stdout.flush()

    def on_error(error_message: str) -> None:
        sys.stdout.write("\n")
        print(error_message, file=sys.stderr)

    handlers = StreamHandlers(
        on_token=on_token,
        on_done=on_done,
        on_error=on_error,
        cancel_event=cancel_event,
    )

    async with StreamChatClient(config.build_client_config()) as client:
        terminal = await client.stream_chat(ChatRequest(message=message), handlers)

    return 0 if terminal.event_type is StreamEventType.DONE else 1


def main() -> None:
    """Main entry point."""
    if len(sys.argv) < 2:
        print("usage: chatstream MESSAGE...", file=sys.stderr)
        sys.exit(2)

    sys.exit(asyncio.run(run_chat(" ".join(sys.argv[1:]))))


if __name__ == "__main__":
    main()
