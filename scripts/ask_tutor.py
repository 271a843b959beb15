#!/usr/bin/env python3
"""
Ask the AI tutor a question from the terminal and print the answer as it
streams in.

Usage:
    python scripts/ask_tutor.py --topic "Quadratic Equations" --grade 9 \
        --step "Use the quadratic formula" "Why is there a plus-minus?"

Examples:
    # Against a deployed API, reusing a session
    python scripts/ask_tutor.py --url https://api.example.com --session <id> "What is a root?"
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List

from rich.console import Console
from rich.panel import Panel

# Add the project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from mathtutor.models.tutor import ChatMessage, TutorQuestion
from mathtutor.utils.streaming import append_delta, stream_tutor_answer

console = Console()


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Math Tutor streaming client")

    parser.add_argument("question", help="The question to ask")
    parser.add_argument("--url", default="http://localhost:8000", help="API root (default: %(default)s)")
    parser.add_argument("--topic", default="Quadratic Equations", help="Lesson topic")
    parser.add_argument("--grade", default="9", help="Grade level")
    parser.add_argument("--step", default="Solve ax² + bx + c = 0", help="Step the question is about")
    parser.add_argument("--explanation", default="", help="Explanation shown with the step")
    parser.add_argument("--session", help="Session id to send with the request")

    return parser.parse_args()


async def ask(args: argparse.Namespace) -> List[ChatMessage]:
    question = TutorQuestion(
        step_content=args.step,
        step_explanation=args.explanation,
        user_question=args.question,
        topic=args.topic,
        grade_level=args.grade
    )
    messages = [ChatMessage(role="user", content=args.question)]

    async for delta in stream_tutor_answer(args.url, question, session_id=args.session):
        console.print(delta, end="", soft_wrap=True, highlight=False)
        append_delta(messages, delta)

    console.print()
    return messages


def main() -> int:
    args = parse_arguments()
    console.print(Panel(args.question, title=f"🧮 {args.topic} (grade {args.grade})", style="blue"))

    try:
        messages = asyncio.run(ask(args))
    except KeyboardInterrupt:
        console.print("\n⏹️  Interrupted", style="yellow")
        return 130
    except Exception as e:
        console.print(f"❌ Request failed: {e}", style="red")
        return 1

    answer = messages[-1].content if messages[-1].role == "assistant" else ""
    console.print(f"✅ {len(answer)} characters received", style="green")
    return 0


if __name__ == "__main__":
    sys.exit(main())
