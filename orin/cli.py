"""
Interactive shell for the orchestrator.

Usage:
    python -m orin.cli                # interactive prompt
    python -m orin.cli --verbose      # also print the plan and each tool invocation
    python -m orin.cli -q "Write a haiku about the sea"
"""

import argparse
import asyncio
import json
import logging
import sys

from orin.agent.graph import run_workflow
from orin.agent.state import WorkflowEvent
from orin.core.errors import WorkflowError

EXIT_COMMANDS = frozenset({"exit", "quit", "bye", "q"})
RULE = "=" * 60


def print_welcome() -> None:
    print(RULE)
    print("  Orin - Agentic AI Assistant")
    print(RULE)
    print("Ask me anything! I can:")
    print("  - Search the web for the latest information")
    print("  - Fetch and analyse content from URLs")
    print("  - Generate creative haikus")
    print("")
    print("Examples:")
    print("  'What are the latest AI developments?'")
    print("  'Summarise this article: https://example.com'")
    print("  'Write a haiku about technology'")
    print("")
    print("Type 'exit', 'quit', or Ctrl+C to exit")
    print(RULE)


def print_event(event: WorkflowEvent) -> None:
    """Verbose mode: narrate stages and tool invocations."""
    if event.kind == "stage":
        print(f"[{event.stage.value}]")
    elif event.kind == "plan":
        print(json.dumps(event.data.get("plan"), indent=2))
    elif event.kind == "tool_started":
        print(f"  -> {event.data['tool']}({event.data['argument']!r})")
    elif event.kind == "tool_finished":
        status = "ok" if event.data.get("ok") else f"error: {event.data.get('error')}"
        if event.data.get("degraded"):
            status += " (fallback)"
        print(f"  <- {event.data['tool']}: {status}")


async def process_query(line: str, verbose: bool = False) -> bool:
    """Handle one input line. Returns False when the user asked to exit."""
    query = line.strip()
    if query.lower() in EXIT_COMMANDS:
        return False
    if not query:
        print("Please enter a query, or type 'exit' to quit.\n")
        return True
    try:
        result = await run_workflow(query, on_event=print_event if verbose else None)
    except WorkflowError as e:
        print(f"\nError processing your query ({e.kind}): {e.message}")
        print("Please try again with a different query.\n")
        return True
    print("\n" + RULE)
    print("RESPONSE:")
    print(RULE)
    print(result.answer)
    print(RULE + "\n")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Plan, execute tools, and synthesize an answer.")
    parser.add_argument("-q", "--query", help="Answer a single query and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print the plan and each tool invocation.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if args.query:
        asyncio.run(process_query(args.query, verbose=args.verbose))
        return 0

    print_welcome()
    try:
        while True:
            line = input("Your query: ")
            if not asyncio.run(process_query(line, verbose=args.verbose)):
                break
    except (KeyboardInterrupt, EOFError):
        print("")
    print("Thank you for using Orin! Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
