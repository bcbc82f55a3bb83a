"""CLI entry point for the Ethos Digital chat engine.

A terminal chat loop for trying prompts and intent detection locally.
For production, use the FastAPI server (ethos_chat/server.py).

Usage:
    python -m ethos_chat.main            # normal mode (quiet)
    python -m ethos_chat.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import logging
import uuid

from dotenv import load_dotenv

from ethos_chat.engine import create_session_engine

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("ethos_chat").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="Ethos Digital chat engine CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  Ethos Digital Assistant - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit' to exit, 'new' for a new conversation.")
    print("=" * 60 + "\n")

    engine = create_session_engine()
    visitor_id = f"cli-{uuid.uuid4().hex[:8]}"
    conversation = engine.start_conversation(visitor_id)
    print(f"Assistant: {conversation.messages[0].content}\n")

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye! Thanks for stopping by.")
            break

        if user_input.lower() == "new":
            conversation = engine.start_conversation(visitor_id)
            print(f"\n>> New conversation started: {conversation.id[:8]}...\n")
            continue

        reply = engine.process_message(conversation.id, user_input, visitor_id)
        print(f"\nAssistant: {reply.message}")
        print(f"  [intent={reply.intent} confidence={reply.confidence:.2f}]")
        if reply.suggestions:
            print("  Try: " + " | ".join(reply.suggestions))
        print()


if __name__ == "__main__":
    main()
