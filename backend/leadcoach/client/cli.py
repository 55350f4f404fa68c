"""
Terminal chat against a running LeadCoach API.

Usage:
    leadcoach-chat --topic growth-profile [--resume CONVERSATION_ID] [--api-url URL]

Commands inside the chat:
    /new     Start a new conversation
    /quit    Leave
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from ..coaching.topics import TOPICS, get_topic
from ..config import settings
from ..core.logging_config import setup_logging
from ..models import Conversation, Message, Sender
from .errors import SessionBusyError, EmptyMessageError
from .session import ChatSession, ChatState, open_session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with the leadership coach")
    parser.add_argument(
        "--topic",
        default="growth-profile",
        help=f"Coaching topic ({', '.join(TOPICS)})",
    )
    parser.add_argument("--resume", metavar="CONVERSATION_ID", help="Continue a stored conversation")
    parser.add_argument("--api-url", default=settings.coach_api_url, help="LeadCoach API root URL")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.chat_timeout_seconds,
        help="Seconds to wait for a coaching reply",
    )
    parser.add_argument("--verbose", action="store_true", help="Log to the console")
    return parser.parse_args(argv)


def _print_message(message: Message) -> None:
    speaker = "You" if message.sender is Sender.USER else "Coach"
    print(f"{speaker}: {message.text}\n")


def _print_saved(conversation: Conversation) -> None:
    print(f"  [saved: {conversation.title or conversation.id} - {conversation.message_count} messages]\n")


async def chat_loop(session: ChatSession, topic: str) -> None:
    """Read lines from stdin and run one turn per line until /quit or EOF."""
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break

        command = line.strip()
        if command == "/quit":
            break
        if command == "/new":
            session.clear_messages()
            print("Started a new conversation.\n")
            continue

        try:
            result = await session.send_message(command, topic)
        except EmptyMessageError:
            continue
        except SessionBusyError:
            print("Still waiting for the previous reply.\n")
            continue

        _print_message(result.reply)
        if result.state is ChatState.FAILED:
            print("  [reply unavailable - this turn was not saved]\n")


async def run(args: argparse.Namespace) -> int:
    topic = get_topic(args.topic)
    async with open_session(args.api_url, reply_timeout=args.timeout) as session:
        session.on_persisted(_print_saved)

        if args.resume:
            conversation = await session.resume(args.resume)
            if conversation is None:
                print(f"Could not load conversation {args.resume}; starting fresh.\n")
            else:
                topic = get_topic(conversation.topic)
                print(f"Resuming \"{conversation.title}\" ({len(session.messages)} messages)\n")
                for message in session.messages:
                    _print_message(message)

        print(f"Topic: {topic.title}. Type /new to start over, /quit to leave.\n")
        await chat_loop(session, topic.id)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.model_copy(update={
        "log_console_enabled": args.verbose,
        "log_level": "DEBUG" if args.verbose else settings.log_level,
    }))
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
