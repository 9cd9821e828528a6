"""
CLI Entrypoint Module

Talk to the parts assistant from a terminal:
- With a message on the command line, runs one turn and prints the reply
- Without one, starts an interactive session that keeps the conversation history

Usage:
    python -m parts_assistant.cli "is PS11752778 compatible with WDT780SAEM1?"
    python -m parts_assistant.cli  # interactive mode
"""

import argparse
import asyncio
import logging
import os

from .agent_types import AssistantResponse
from .models import ConversationMessage
from .service import AssistantContext, create_context, run_turn

EXIT_WORDS = {"exit", "quit"}


def print_response(response: AssistantResponse, show_products: bool) -> None:
    print(f"\n[{response.intent}] {response.message}\n")
    if show_products and response.products:
        print("Products:")
        for part in response.products:
            print(f"  - {part.part_number}: {part.name} (${part.price:.2f})")
        print()


async def interactive(context: AssistantContext, show_products: bool) -> int:
    history: list[ConversationMessage] = []
    print("Ask about refrigerator or dishwasher parts (type 'exit' to quit).")
    while True:
        try:
            message = input("> ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nbye.")
            return 0

        if not message:
            continue
        if message.lower() in EXIT_WORDS:
            return 0

        response = await run_turn(context, message, history)
        print_response(response, show_products)
        history.append(ConversationMessage(role="user", content=message))
        history.append(ConversationMessage(role="assistant", content=response.message))


def main() -> int:
    """Run the parts assistant CLI.

    Returns:
        0 on success, 1 on error.
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Chat with the refrigerator and dishwasher parts assistant."
    )
    parser.add_argument("message", nargs="*", help="Message to send; omit for an interactive session.")
    parser.add_argument("--products", action="store_true", help="Also list the products returned.")
    args = parser.parse_args()

    try:
        context = create_context()
    except ValueError as exc:
        print(f"configuration error: {exc}")
        return 1

    if not args.message:
        return asyncio.run(interactive(context, args.products))

    response = asyncio.run(run_turn(context, " ".join(args.message)))
    print_response(response, args.products)
    return 1 if response.intent == "error" else 0


if __name__ == "__main__":
    raise SystemExit(main())
