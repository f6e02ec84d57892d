#!/usr/bin/env python3
"""
IVY chat entry point

    python run.py serve   # local chat-stream endpoint (Flask dev server)
    python run.py chat    # terminal chat client against CHAT_STREAM_URL

- Loads .env before importing the package so config sees it.
- Initializes logging exactly once per process.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load env before any other imports that might read it
load_dotenv()

from ivy_chat import TranscriptController, create_app  # noqa: E402
from ivy_chat.config import get_config  # noqa: E402
from ivy_chat.logging_setup import setup_logging  # noqa: E402
from ivy_chat.models import TranscriptSnapshot  # noqa: E402

log = logging.getLogger(__name__)


# --------------------------------------------------------------------------------------
# Terminal presentation layer
# --------------------------------------------------------------------------------------

class TerminalRenderer:
    """
    Prints snapshots as they arrive. The growing bot bubble is written
    incrementally; a retracted bubble (booking hand-off) is announced.
    """

    def __init__(self, booking_url: str, out=None) -> None:
        self.booking_url = booking_url
        self.out = out or sys.stdout
        self._printed = 0          # messages fully rendered
        self._partial = ""         # text already written for the open bot bubble
        self._booking_shown = False

    def __call__(self, snap: TranscriptSnapshot) -> None:
        transcript = snap.transcript

        if len(transcript) < self._printed + (1 if self._partial else 0):
            # Partial answer was retracted
            self._write("\n")
            self._partial = ""
            self._printed = len(transcript)

        while self._printed < len(transcript):
            msg = transcript[self._printed]
            is_tail = self._printed == len(transcript) - 1
            if msg.is_bot and is_tail and snap.streaming:
                if not self._partial:
                    self._write("ivy> ")
                self._write(msg.content[len(self._partial):])
                self._partial = msg.content
                break
            if msg.is_bot:
                if not self._partial:
                    self._write("ivy> ")
                self._write(msg.content[len(self._partial):] + "\n")
                self._partial = ""
            self._printed += 1

        if snap.show_booking and not self._booking_shown:
            self._booking_shown = True
            self._write(f"[booking] Pick a time: {self.booking_url}\n")

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()


def run_chat() -> None:
    cfg = get_config()
    controller = TranscriptController.from_config(cfg)
    controller.subscribe(TerminalRenderer(cfg.CALENDLY_URL))

    print(f"Connected to {cfg.CHAT_STREAM_URL} (Ctrl-D to quit)")
    while True:
        try:
            text = input("you> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        controller.submit(text)


# --------------------------------------------------------------------------------------
# Local dev server
# --------------------------------------------------------------------------------------

def _resolve_server_config() -> Tuple[str, int, bool]:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8080"))

    flask_debug = os.getenv("FLASK_DEBUG", "").lower()
    if flask_debug in ("1", "true", "yes", "on"):
        debug = True
    elif flask_debug in ("0", "false", "no", "off"):
        debug = False
    else:
        debug = os.getenv("APP_ENV", "development").lower() == "development"

    return host, port, debug


def run_server() -> None:
    app = create_app()
    host, port, debug = _resolve_server_config()

    print("IVY chat-stream dev server")
    print("=" * 60)
    print(f"Endpoint:     http://{host}:{port}/api/chat-stream")
    print(f"Health check: http://{host}:{port}/health")
    print(f"Environment:  {os.getenv('APP_ENV', 'development')}")
    print(f"Debug mode:   {debug}")
    print("=" * 60)

    try:
        app.run(
            host=host,
            port=port,
            debug=debug,
            use_reloader=False,  # Avoid double init/log handlers in dev
            threaded=True,
        )
    except KeyboardInterrupt:
        print("\nShutting down gracefully...")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="IVY chat client and dev stream server")
    parser.add_argument("command", choices=("serve", "chat"))
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    if args.command == "serve":
        run_server()
    else:
        run_chat()


if __name__ == "__main__":
    main()
