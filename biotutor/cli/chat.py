import sys
from pathlib import Path

import anyio
from dotenv import load_dotenv
from loguru import logger

from biotutor.agents.history import ensure_thread_id
from biotutor.agents.orchestrator import TutorOrchestrator
from biotutor.core.tutor import build_tutor
from biotutor.utils.logging_cfg import setup_logging

EXIT_COMMANDS = {"exit", "quit", ":q"}


async def chat_loop(tutor: TutorOrchestrator, thread_id: str | None = None) -> None:
    """
    Reads user messages from stdin and prints tutor replies until exit.

    Args:
        tutor (TutorOrchestrator): The wired tutor.
        thread_id (str | None, optional): Thread to continue. Defaults to a new thread.
    """
    thread_id = ensure_thread_id(thread_id)
    print(f"Thread: {thread_id} (type 'exit' to quit)")
    while True:
        try:
            user_input = await anyio.to_thread.run_sync(input, "You: ")
        except EOFError:
            break
        if user_input.strip().lower() in EXIT_COMMANDS:
            break
        if not user_input.strip():
            continue
        result = await tutor.handle_turn(thread_id, user_input)
        logger.debug(
            "Turn routed to {} (in_domain={})",
            result.decision.response_type.value,
            result.in_domain,
        )
        print(f"Tutor [{result.decision.response_type.value}]: {result.response}\n")


def main() -> None:
    """
    Main entry point for the chat CLI. An optional first argument selects the thread id.
    """
    load_dotenv()
    setup_logging(level="WARNING")
    tutor = build_tutor()
    thread_id = sys.argv[1] if len(sys.argv) > 1 else None
    anyio.run(chat_loop, tutor, thread_id)


if __name__ == "__main__":
    sys.path.append(str(Path(__file__).parents[2].resolve()))
    main()
